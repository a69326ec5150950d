"""Asset declarations and the derived records produced while rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Dict, Optional


class AssetKind(str, Enum):
    STYLE = "style"
    SCRIPT = "script"
    OTHER = "other"

    @property
    def extension(self) -> str:
        """File extension used for combined bundles of this kind."""
        if self is AssetKind.STYLE:
            return "css"
        if self is AssetKind.SCRIPT:
            return "js"
        raise ValueError(f"Assets of kind '{self.value}' are never bundled")


class AssetFormat(str, Enum):
    CSS = "css"
    LESS = "less"
    JS = "js"
    OTHER = "other"

    @classmethod
    def from_extension(cls, extension: str) -> "AssetFormat":
        ext = extension.strip().lstrip(".").lower()
        for item in cls:
            if item is not cls.OTHER and item.value == ext:
                return item
        return cls.OTHER

    @property
    def kind(self) -> AssetKind:
        if self in (AssetFormat.CSS, AssetFormat.LESS):
            return AssetKind.STYLE
        if self is AssetFormat.JS:
            return AssetKind.SCRIPT
        return AssetKind.OTHER

    @property
    def needs_compile(self) -> bool:
        return self is AssetFormat.LESS

    @property
    def cache_suffix(self) -> str:
        return ".css" if self is AssetFormat.LESS else ""


def source_extension(source: str) -> str:
    """Extension of a source identifier, ignoring any ``package::`` prefix."""
    relative = source.split("::")[-1]
    return PurePosixPath(relative).suffix.lstrip(".")


@dataclass(frozen=True)
class AssetDeclaration:
    source: str
    attributes: Dict[str, str] = field(default_factory=dict)
    extension: str = ""
    format: AssetFormat = AssetFormat.OTHER

    @classmethod
    def create(cls, source: str, attributes: Optional[Dict[str, str]] = None) -> "AssetDeclaration":
        source = str(source).strip()
        if not source:
            raise ValueError("Asset source must be a non-empty string")
        extension = source_extension(source)
        return cls(
            source=source,
            attributes={str(k): str(v) for k, v in (attributes or {}).items()},
            extension=extension,
            format=AssetFormat.from_extension(extension),
        )

    @property
    def kind(self) -> AssetKind:
        return self.format.kind

    @property
    def is_preminified(self) -> bool:
        lowered = self.source.lower()
        return ".min" in lowered or "-min" in lowered


@dataclass(frozen=True)
class ResolvedAsset:
    declaration: AssetDeclaration
    source_path: Path
    is_public: bool


@dataclass(frozen=True)
class ProcessedAsset:
    resolved: ResolvedAsset
    path: Path
    url: str

    @property
    def source(self) -> str:
        return self.resolved.declaration.source

    @property
    def attributes(self) -> Dict[str, str]:
        return self.resolved.declaration.attributes

    @property
    def kind(self) -> AssetKind:
        return self.resolved.declaration.kind

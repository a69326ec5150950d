"""Resolution of asset source identifiers to filesystem paths."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Sequence

from loguru import logger

from casset.config_loader import AssetConfig

NAMESPACE_SEPARATOR = "::"


class SearchRoot(Protocol):
    def find(self, namespace: str) -> Optional[Path]:
        """Directory holding the namespace's package, or None."""


class DirectorySearchRoot:
    """Looks for a directory named after the namespace a few levels below ``root``.

    Depth 0 is a direct child of ``root``. Shallower matches win, ties are
    broken by path order so the result does not depend on directory listing
    order.
    """

    def __init__(self, root: Path, max_depth: int = 3):
        self.root = Path(root)
        self.max_depth = max_depth

    def find(self, namespace: str) -> Optional[Path]:
        if not namespace or not self.root.is_dir():
            return None

        level: List[Path] = [self.root]
        for _ in range(self.max_depth):
            children: List[Path] = []
            for parent in level:
                try:
                    entries = sorted(p for p in parent.iterdir() if p.is_dir())
                except OSError:
                    continue
                for entry in entries:
                    if entry.name == namespace:
                        return entry
                    children.append(entry)
            if not children:
                break
            level = children
        return None

    def __repr__(self) -> str:
        return f"DirectorySearchRoot({str(self.root)!r}, max_depth={self.max_depth})"


def default_search_roots(config: AssetConfig) -> List[SearchRoot]:
    return [DirectorySearchRoot(root) for root in config.search_roots]


def split_namespace(source: str) -> tuple[str, str]:
    parts = source.split(NAMESPACE_SEPARATOR)
    return parts[0], parts[-1]


class PathResolver:
    def __init__(self, config: AssetConfig, search_roots: Optional[Sequence[SearchRoot]] = None):
        self.config = config
        self.search_roots: List[SearchRoot] = list(
            search_roots if search_roots is not None else default_search_roots(config)
        )

    def resolve(self, source: str) -> Path:
        if NAMESPACE_SEPARATOR not in source:
            return self.config.assets_path / source.lstrip("/")

        namespace, relative = split_namespace(source)
        package_dir = find_first(self.search_roots, namespace)
        if package_dir is not None:
            return Path(package_dir) / "public" / relative.lstrip("/")

        logger.debug("No package directory found for '{}', using it as a literal path", source)
        return Path(source)

    def is_public(self, path: Path) -> bool:
        return is_under(path, self.config.public_path)

    def url_for(self, path: Path) -> str:
        """Public URL for a path, with the servable root prefix stripped."""
        absolute = _absolute(path)
        public = _absolute(self.config.public_path)
        try:
            relative = absolute.relative_to(public)
        except ValueError:
            return Path(path).as_posix()
        return "/" + relative.as_posix()


def _absolute(path: Path) -> Path:
    return Path(os.path.abspath(str(path)))


def is_under(path: Path, root: Path) -> bool:
    try:
        _absolute(path).relative_to(_absolute(root))
    except ValueError:
        return False
    return True


def find_first(roots: Iterable[SearchRoot], namespace: str) -> Optional[Path]:
    for root in roots:
        match = root.find(namespace)
        if match is not None:
            return match
    return None

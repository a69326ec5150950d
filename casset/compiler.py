"""Compilation of non-native asset formats into servable content."""

from __future__ import annotations

import hashlib
import io
import re
from pathlib import Path
from typing import Callable, Dict, Optional

from loguru import logger

from casset.models import AssetFormat, source_extension
from casset.storage import TEXT_ERRORS, CacheStore, FileSystemStore

# Content, import directory -> compiled CSS.
StyleTransform = Callable[[str, Path], str]

_MARKER_RE = re.compile(r"^/\*([0-9a-f]{32})\*/$")


class CompileError(RuntimeError):
    """Raised when a preprocessor rejects a source file."""


def fingerprint(content: bytes) -> str:
    return hashlib.md5(content).hexdigest()


def fingerprint_marker(digest: str) -> str:
    return f"/*{digest}*/\n"


def parse_fingerprint_marker(line: str) -> Optional[str]:
    """Digest stored in an artifact's first line, or None if it is not a marker."""
    match = _MARKER_RE.match(line.strip())
    if not match:
        return None
    return match.group(1)


class _NamedSource(io.StringIO):
    # lesscpy resolves @import relative to the stream's name.
    def __init__(self, content: str, name: str):
        super().__init__(content)
        self.name = name


def lesscpy_transform(content: str, import_dir: Path) -> str:
    import lesscpy

    stream = _NamedSource(content, str(Path(import_dir) / "__source__.less"))
    try:
        return lesscpy.compile(stream, minify=False)
    except Exception as exc:
        raise CompileError(f"LESS compilation failed in {import_dir}: {exc}") from exc


class Compiler:
    """Turns one source file into the content stored in its cache artifact."""

    def __init__(self, store: Optional[CacheStore] = None, less_transform: Optional[StyleTransform] = None):
        self.store = store or FileSystemStore()
        self.less_transform = less_transform or lesscpy_transform
        self._handlers: Dict[AssetFormat, Callable[[Path, bytes], str]] = {
            AssetFormat.LESS: self._compile_less,
        }

    def compile(self, path: Path) -> str:
        path = Path(path)
        raw = self.store.read_bytes(path)
        asset_format = AssetFormat.from_extension(source_extension(path.name))
        handler = self._handlers.get(asset_format)
        if handler is None:
            return raw.decode("utf-8", errors=TEXT_ERRORS)
        return handler(path, raw)

    def _compile_less(self, path: Path, raw: bytes) -> str:
        logger.debug("Compiling LESS source {}", path)
        try:
            css = self.less_transform(raw.decode("utf-8", errors=TEXT_ERRORS), path.parent)
        except CompileError:
            raise
        except Exception as exc:
            raise CompileError(f"LESS compilation failed for {path}: {exc}") from exc
        return fingerprint_marker(fingerprint(raw)) + css

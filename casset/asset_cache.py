"""Per-asset cache validation and materialization."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from loguru import logger

from casset.compiler import Compiler, fingerprint, parse_fingerprint_marker
from casset.config_loader import AssetConfig
from casset.locks import PathLocks
from casset.models import AssetDeclaration, ProcessedAsset, ResolvedAsset
from casset.paths import NAMESPACE_SEPARATOR, PathResolver
from casset.storage import CacheStore, FileSystemStore

STATUS_PUBLIC = "public"
STATUS_MISSING = "missing"
STATUS_ABSENT = "absent"
STATUS_FRESH = "fresh"
STATUS_UNCHANGED = "unchanged"
STATUS_STALE = "stale"


def cache_file_name(declaration: AssetDeclaration) -> str:
    name = declaration.source.replace("/", "-").replace(NAMESPACE_SEPARATOR, "-")
    return name + declaration.format.cache_suffix


class AssetCache:
    """Decides whether an asset's cached artifact is usable and rebuilds it when not.

    Modification times are the cheap first check. Only when the source looks
    newer than its artifact is the source hashed and compared against the
    fingerprint stored in the artifact's first line.
    """

    def __init__(
        self,
        config: AssetConfig,
        resolver: Optional[PathResolver] = None,
        compiler: Optional[Compiler] = None,
        store: Optional[CacheStore] = None,
        locks: Optional[PathLocks] = None,
    ):
        self.config = config
        self.store = store or FileSystemStore()
        self.resolver = resolver or PathResolver(config)
        self.compiler = compiler or Compiler(self.store)
        self.locks = locks if locks is not None else PathLocks()

    def resolve(self, declaration: AssetDeclaration) -> ResolvedAsset:
        path = self.resolver.resolve(declaration.source)
        return ResolvedAsset(
            declaration=declaration,
            source_path=path,
            is_public=self.resolver.is_public(path),
        )

    def cache_path_for(self, declaration: AssetDeclaration) -> Path:
        return self.config.cache_path / cache_file_name(declaration)

    @staticmethod
    def _served_in_place(resolved: ResolvedAsset) -> bool:
        return resolved.is_public and not resolved.declaration.format.needs_compile

    def process(self, declaration: AssetDeclaration) -> ProcessedAsset:
        resolved = self.resolve(declaration)
        if self._served_in_place(resolved):
            return ProcessedAsset(resolved, resolved.source_path, self.resolver.url_for(resolved.source_path))

        source_path = resolved.source_path
        cache_path = self.cache_path_for(declaration)
        with self.locks.hold(cache_path):
            if self._needs_compile(source_path, cache_path):
                if self.store.exists(source_path):
                    content = self.compiler.compile(source_path)
                    self.store.write_text(cache_path, content)
                    logger.info("Compiled {} -> {}", declaration.source, cache_path)
                else:
                    logger.warning(
                        "Source for {} not found at {}; keeping cached artifact as-is",
                        declaration.source,
                        source_path,
                    )

        return ProcessedAsset(resolved, cache_path, self.resolver.url_for(cache_path))

    def _needs_compile(self, source_path: Path, cache_path: Path) -> bool:
        cache_mtime = self.store.mtime(cache_path)
        if cache_mtime is None:
            logger.debug("No cached artifact at {}", cache_path)
            return True

        source_mtime = self.store.mtime(source_path)
        if source_mtime is None or cache_mtime >= source_mtime:
            return False

        if self._fingerprint_matches(source_path, cache_path):
            # Content is identical; bump the artifact so the next check stops at mtimes.
            self.store.touch(cache_path)
            logger.debug("Source {} touched but unchanged; refreshed {}", source_path, cache_path)
            return False

        return True

    def _fingerprint_matches(self, source_path: Path, cache_path: Path) -> bool:
        try:
            stored = parse_fingerprint_marker(self.store.read_first_line(cache_path))
        except OSError:
            return False
        if stored is None:
            return False
        return fingerprint(self.store.read_bytes(source_path)) == stored

    def status(self, declaration: AssetDeclaration) -> str:
        """Read-only diagnosis of a declaration's cache state."""
        resolved = self.resolve(declaration)
        source_mtime = self.store.mtime(resolved.source_path)
        if source_mtime is None:
            return STATUS_MISSING
        if self._served_in_place(resolved):
            return STATUS_PUBLIC

        cache_path = self.cache_path_for(declaration)
        cache_mtime = self.store.mtime(cache_path)
        if cache_mtime is None:
            return STATUS_ABSENT
        if cache_mtime >= source_mtime:
            return STATUS_FRESH
        if self._fingerprint_matches(resolved.source_path, cache_path):
            return STATUS_UNCHANGED
        return STATUS_STALE

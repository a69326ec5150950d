"""Combination of processed assets into one cached bundle per kind."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from loguru import logger

from casset.config_loader import AssetConfig
from casset.locks import PathLocks
from casset.minifier import Minifier
from casset.models import AssetDeclaration, AssetKind, ProcessedAsset, ResolvedAsset
from casset.paths import PathResolver
from casset.storage import CacheStore, FileSystemStore


@dataclass(frozen=True)
class Bundle:
    kind: AssetKind
    assets: tuple
    path: Path
    newest_input: int

    def as_processed(self, resolver: PathResolver) -> ProcessedAsset:
        declaration = AssetDeclaration.create(self.path.name)
        resolved = ResolvedAsset(declaration, self.path, resolver.is_public(self.path))
        url = f"{resolver.url_for(self.path)}?ts={self.newest_input}"
        return ProcessedAsset(resolved, self.path, url)


def bundle_entry(source: str, content: str) -> str:
    return f"/* {source} */\n{content}\n\n"


class BundleCombiner:
    def __init__(
        self,
        container_name: str,
        config: AssetConfig,
        resolver: Optional[PathResolver] = None,
        minifier: Optional[Minifier] = None,
        store: Optional[CacheStore] = None,
        locks: Optional[PathLocks] = None,
    ):
        self.container_name = container_name
        self.config = config
        self.resolver = resolver or PathResolver(config)
        self.minifier = minifier or Minifier()
        self.store = store or FileSystemStore()
        self.locks = locks if locks is not None else PathLocks()

    def bundle_path(self, kind: AssetKind) -> Path:
        return self.config.cache_path / f"bundle-{self.container_name}.{kind.extension}"

    def newest_input(self, assets: Sequence[ProcessedAsset]) -> float:
        """Latest mtime among the constituents that exist, 0 when none do."""
        newest = 0.0
        for asset in assets:
            mtime = self.store.mtime(asset.path)
            if mtime is not None and mtime > newest:
                newest = mtime
        return newest

    def build(self, assets: Sequence[ProcessedAsset], kind: AssetKind) -> Optional[Bundle]:
        if not assets:
            return None

        path = self.bundle_path(kind)
        newest = self.newest_input(assets)
        with self.locks.hold(path):
            bundle_mtime = self.store.mtime(path)
            if bundle_mtime is None or bundle_mtime < newest:
                self.store.write_text(path, self.render(assets, kind))
                logger.info("Combined {} {} asset(s) into {}", len(assets), kind.value, path)
            else:
                logger.debug("Bundle {} is up to date", path)

        return Bundle(kind=kind, assets=tuple(assets), path=path, newest_input=int(newest))

    def render(self, assets: Sequence[ProcessedAsset], kind: AssetKind) -> str:
        chunks = []
        for asset in assets:
            if not self.store.exists(asset.path):
                logger.debug("Skipping {}: {} does not exist", asset.source, asset.path)
                continue
            content = self.store.read_text(asset.path)
            if self.config.minify and not asset.resolved.declaration.is_preminified:
                content = self.minifier.minify(content, kind)
            chunks.append(bundle_entry(asset.source, content))
        return "".join(chunks)

    def combine(self, assets: Sequence[ProcessedAsset], kind: AssetKind) -> List[ProcessedAsset]:
        bundle = self.build(assets, kind)
        if bundle is None:
            return []
        return [bundle.as_processed(self.resolver)]

"""Named asset containers: registration order in, ordered asset references out."""

from __future__ import annotations

from typing import Dict, List, Optional

from loguru import logger

from casset.asset_cache import AssetCache
from casset.bundle import BundleCombiner
from casset.compiler import Compiler
from casset.config_loader import AssetConfig
from casset.locks import PathLocks
from casset.minifier import Minifier
from casset.models import AssetDeclaration, AssetKind, ProcessedAsset
from casset.paths import PathResolver
from casset.render import HtmlRenderer, TagRenderer, render_tags
from casset.storage import CacheStore, FileSystemStore


class Container:
    def __init__(
        self,
        name: str,
        config: AssetConfig,
        store: Optional[CacheStore] = None,
        resolver: Optional[PathResolver] = None,
        compiler: Optional[Compiler] = None,
        minifier: Optional[Minifier] = None,
        locks: Optional[PathLocks] = None,
        renderer: Optional[TagRenderer] = None,
    ):
        self.name = name
        self.config = config
        self.store = store or FileSystemStore()
        self.resolver = resolver or PathResolver(config)
        self.locks = locks if locks is not None else PathLocks()
        self.renderer = renderer or HtmlRenderer()
        self.cache = AssetCache(
            config,
            resolver=self.resolver,
            compiler=compiler or Compiler(self.store),
            store=self.store,
            locks=self.locks,
        )
        self.combiner = BundleCombiner(
            name,
            config,
            resolver=self.resolver,
            minifier=minifier,
            store=self.store,
            locks=self.locks,
        )
        self.assets: List[AssetDeclaration] = []

    def add(self, source: str, attributes: Optional[Dict[str, str]] = None) -> "Container":
        """Register an asset.

        Accepts a source relative to the assets directory (``js/jquery.js``) or
        relative to a package's public directory (``package::js/file.js``).
        """
        declaration = AssetDeclaration.create(source, attributes)
        if declaration.kind is AssetKind.OTHER:
            logger.debug("Asset {} has no style or script extension and will not be rendered", source)
        self.assets.append(declaration)
        return self

    def declarations(self, kind: AssetKind) -> List[AssetDeclaration]:
        return [asset for asset in self.assets if asset.kind is kind]

    def entries(self, kind: AssetKind) -> List[ProcessedAsset]:
        processed = [self.cache.process(declaration) for declaration in self.declarations(kind)]
        self._warn_shared_outputs(processed)
        if not processed:
            return []
        if self.config.combine:
            return self.combiner.combine(processed, kind)
        return processed

    def style_entries(self) -> List[ProcessedAsset]:
        return self.entries(AssetKind.STYLE)

    def script_entries(self) -> List[ProcessedAsset]:
        return self.entries(AssetKind.SCRIPT)

    def styles(self) -> str:
        """HTML link tags for every registered stylesheet."""
        return render_tags(self.renderer, self.style_entries(), AssetKind.STYLE)

    def scripts(self) -> str:
        """HTML script tags for every registered script."""
        return render_tags(self.renderer, self.script_entries(), AssetKind.SCRIPT)

    @staticmethod
    def _warn_shared_outputs(processed: List[ProcessedAsset]) -> None:
        seen: Dict[str, str] = {}
        for asset in processed:
            key = asset.path.as_posix()
            other = seen.setdefault(key, asset.source)
            if other != asset.source:
                logger.warning("Assets {} and {} share cache file {}", other, asset.source, key)

    def __repr__(self) -> str:
        return f"Container(name={self.name!r}, assets={len(self.assets)})"

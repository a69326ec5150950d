"""Registry of named containers sharing one configuration."""

from __future__ import annotations

from typing import Any, Dict, Optional

from casset.compiler import Compiler
from casset.config_loader import AssetConfig, build_asset_config, get_container_declarations
from casset.container import Container
from casset.locks import PathLocks
from casset.minifier import Minifier
from casset.paths import PathResolver
from casset.render import HtmlRenderer, TagRenderer
from casset.storage import CacheStore, FileSystemStore


class AssetManager:
    def __init__(
        self,
        config: AssetConfig,
        store: Optional[CacheStore] = None,
        resolver: Optional[PathResolver] = None,
        compiler: Optional[Compiler] = None,
        minifier: Optional[Minifier] = None,
        renderer: Optional[TagRenderer] = None,
    ):
        self.config = config
        self.store = store or FileSystemStore()
        self.resolver = resolver or PathResolver(config)
        self.compiler = compiler or Compiler(self.store)
        self.minifier = minifier or Minifier()
        self.renderer = renderer or HtmlRenderer()
        self.locks = PathLocks()
        self.containers: Dict[str, Container] = {}

    @classmethod
    def from_config(cls, config: Dict[str, Any], **kwargs) -> "AssetManager":
        """Build a manager and register every container declared in the config."""
        manager = cls(build_asset_config(config), **kwargs)
        for name, entries in get_container_declarations(config).items():
            container = manager.container(name)
            for entry in entries:
                container.add(entry["source"], entry["attributes"])
        return manager

    def container(self, name: Optional[str] = None) -> Container:
        name = name or self.config.default_container
        if name not in self.containers:
            self.containers[name] = Container(
                name,
                self.config,
                store=self.store,
                resolver=self.resolver,
                compiler=self.compiler,
                minifier=self.minifier,
                locks=self.locks,
                renderer=self.renderer,
            )
        return self.containers[name]

    def add(self, source: str, attributes: Optional[Dict[str, str]] = None, container: Optional[str] = None) -> Container:
        return self.container(container).add(source, attributes)

    def styles(self, container: Optional[str] = None) -> str:
        return self.container(container).styles()

    def scripts(self, container: Optional[str] = None) -> str:
        return self.container(container).scripts()

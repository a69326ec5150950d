"""HTML tags for processed assets."""

from __future__ import annotations

from html import escape
from typing import Dict, Iterable, Optional, Protocol

from casset.models import AssetKind, ProcessedAsset


class TagRenderer(Protocol):
    def style(self, url: str, attributes: Dict[str, str]) -> str:
        ...

    def script(self, url: str, attributes: Dict[str, str]) -> str:
        ...


def _attrs(attributes: Dict[str, str]) -> str:
    return "".join(f' {escape(str(k))}="{escape(str(v))}"' for k, v in attributes.items())


def style_tag(url: str, attributes: Optional[Dict[str, str]] = None) -> str:
    merged = {"media": "all", "type": "text/css", "rel": "stylesheet"}
    merged.update(attributes or {})
    merged["href"] = url
    return f"<link{_attrs(merged)}>"


def script_tag(url: str, attributes: Optional[Dict[str, str]] = None) -> str:
    merged = {"type": "text/javascript"}
    merged.update(attributes or {})
    merged["src"] = url
    return f"<script{_attrs(merged)}></script>"


class HtmlRenderer:
    def style(self, url: str, attributes: Dict[str, str]) -> str:
        return style_tag(url, attributes)

    def script(self, url: str, attributes: Dict[str, str]) -> str:
        return script_tag(url, attributes)


def render_tags(renderer: TagRenderer, assets: Iterable[ProcessedAsset], kind: AssetKind) -> str:
    tag = renderer.style if kind is AssetKind.STYLE else renderer.script
    return "".join(tag(asset.url, asset.attributes) for asset in assets)

"""Minification of style and script payloads."""

from __future__ import annotations

from typing import Callable, Dict, Optional

import rcssmin
import rjsmin

from casset.models import AssetKind


def minify_css(content: str) -> str:
    """Minify CSS content."""
    return rcssmin.cssmin(content)


def minify_js(content: str) -> str:
    """Minify JavaScript content."""
    return rjsmin.jsmin(content)


class Minifier:
    def __init__(self, transforms: Optional[Dict[AssetKind, Callable[[str], str]]] = None):
        self.transforms = dict(transforms) if transforms is not None else {
            AssetKind.STYLE: minify_css,
            AssetKind.SCRIPT: minify_js,
        }

    def minify(self, content: str, kind: AssetKind) -> str:
        transform = self.transforms.get(kind)
        if transform is None:
            return content
        return transform(content)

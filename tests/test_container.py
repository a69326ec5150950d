"""Tests for container orchestration, the manager and HTML rendering."""

import os
import sys
import tempfile
import unittest
from dataclasses import replace
from pathlib import Path

import rjsmin
from loguru import logger

sys.path.insert(0, str(Path(__file__).parent.parent))

from casset.compiler import Compiler
from casset.config_loader import build_asset_config
from casset.container import Container
from casset.manager import AssetManager
from casset.render import script_tag, style_tag
from casset.storage import FileSystemStore


JQUERY_SOURCE = """
var jQuery = function (selector) {
    return new jQuery.fn.init(selector);
};

var version = "1.0.0";

function noConflict(deep) {
    return jQuery;
}
"""

JQUERY_MIN_SOURCE = 'var jQuery=function(s){return new jQuery.fn.init(s)};'


class ContainerTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp_dir.name)
        self.config = build_asset_config({}, base_dir=str(self.root))

    def tearDown(self):
        self.tmp_dir.cleanup()

    def _asset(self, relative: str, content: str, mtime=None) -> Path:
        path = self.config.assets_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path


class TestContainer(ContainerTestCase):
    def test_combined_and_minified_scripts_end_to_end(self):
        self._asset("jquery.js", JQUERY_SOURCE, mtime=1_700_000_000)
        self._asset("jquery.min.js", JQUERY_MIN_SOURCE, mtime=1_700_000_100)

        container = Container("main", self.config)
        container.add("jquery.js").add("jquery.min.js")
        entries = container.script_entries()

        self.assertEqual(len(entries), 1)
        bundle = entries[0]
        self.assertEqual(bundle.url, "/assets/cache/bundle-main.js?ts=1700000100")
        self.assertEqual(
            bundle.path.read_text(encoding="utf-8"),
            f"/* jquery.js */\n{rjsmin.jsmin(JQUERY_SOURCE)}\n\n"
            f"/* jquery.min.js */\n{JQUERY_MIN_SOURCE}\n\n",
        )
        self.assertEqual(container.style_entries(), [])

    def test_zero_styles_render_nothing(self):
        self._asset("js/app.js", "var a;")
        container = Container("main", self.config).add("js/app.js")

        self.assertEqual(container.style_entries(), [])
        self.assertEqual(container.styles(), "")
        self.assertFalse((self.config.cache_path / "bundle-main.css").exists())

    def test_uncombined_assets_keep_order_and_attributes(self):
        config = replace(self.config, combine=False)
        self._asset("css/b.css", "b{}")
        self._asset("css/a.css", "a{}")
        container = Container("main", config)
        container.add("css/b.css", {"media": "print"}).add("js/x.js").add("css/a.css")

        entries = container.style_entries()

        self.assertEqual([e.url for e in entries], ["/assets/css/b.css", "/assets/css/a.css"])
        self.assertEqual(entries[0].attributes, {"media": "print"})
        self.assertEqual(
            container.styles(),
            style_tag("/assets/css/b.css", {"media": "print"}) + style_tag("/assets/css/a.css", {}),
        )

    def test_compiled_dialect_joins_style_bundle(self):
        self._asset("css/base.css", "body{margin:0}")
        self._asset("css/theme.less", "@c: red;")
        compiler = Compiler(FileSystemStore(), less_transform=lambda content, import_dir: ".theme{color:red}")
        config = replace(self.config, minify=False)
        container = Container("main", config, compiler=compiler)
        container.add("css/base.css").add("css/theme.less")

        [bundle] = container.style_entries()
        content = bundle.path.read_text(encoding="utf-8")

        self.assertTrue(content.startswith("/* css/base.css */\nbody{margin:0}\n\n/* css/theme.less */\n/*"))
        self.assertTrue(content.endswith("*/\n.theme{color:red}\n\n"))

    def test_other_extensions_are_ignored(self):
        self._asset("img/logo.png", "png")
        container = Container("main", self.config).add("img/logo.png")

        self.assertEqual(container.styles(), "")
        self.assertEqual(container.scripts(), "")
        self.assertEqual(len(container.assets), 1)

    def test_scripts_render_combined_tag(self):
        self._asset("js/app.js", "var a = 1;", mtime=1234)
        container = Container("site", self.config).add("js/app.js", {"defer": "defer"})

        self.assertEqual(container.scripts(), script_tag("/assets/cache/bundle-site.js?ts=1234", {}))

    def test_non_utf8_stylesheet_is_bundled(self):
        path = self.config.assets_path / "css" / "latin1.css"
        path.parent.mkdir(parents=True)
        path.write_bytes(b"@charset \"ISO-8859-1\";\n.caf\xe9 { color: red; }\n")

        container = Container("main", self.config)
        container.add("css/latin1.css")
        html = container.styles()

        self.assertIn("bundle-main.css?ts=", html)
        content = (self.config.cache_path / "bundle-main.css").read_bytes()
        self.assertIn(b".caf\xe9{", content)

    def test_cache_file_collision_is_warned(self):
        messages = []
        handler_id = logger.add(lambda message: messages.append(str(message)), level="WARNING")
        try:
            container = Container("main", replace(self.config, combine=False))
            container.add("widgets::js/a.js").add("widgets::js-a.js")
            container.script_entries()
        finally:
            logger.remove(handler_id)

        self.assertTrue(any("share cache file" in m for m in messages))


class TestAssetManager(ContainerTestCase):
    def test_containers_are_lazy_and_shared(self):
        manager = AssetManager(self.config)

        default = manager.container()
        self.assertIs(manager.container("default"), default)
        self.assertIsNot(manager.container("footer"), default)
        self.assertIs(manager.container("footer").store, manager.store)
        self.assertIs(manager.container("footer").locks, manager.locks)

    def test_lock_registry_reaches_every_cache_writer(self):
        manager = AssetManager(self.config)

        for name in ("default", "footer"):
            container = manager.container(name)
            self.assertIs(container.locks, manager.locks)
            self.assertIs(container.cache.locks, manager.locks)
            self.assertIs(container.combiner.locks, manager.locks)

    def test_from_config_registers_declared_assets(self):
        self._asset("css/site.css", "body{}")
        config = {
            "casset": {"base_dir": str(self.root), "combine": False},
            "containers": {
                "default": [{"source": "css/site.css", "attributes": {"media": "screen"}}],
                "footer": ["js/footer.js"],
            },
        }

        manager = AssetManager.from_config(config)

        self.assertEqual([a.source for a in manager.container("footer").assets], ["js/footer.js"])
        self.assertEqual(manager.styles(), style_tag("/assets/css/site.css", {"media": "screen"}))

    def test_add_targets_named_container(self):
        manager = AssetManager(self.config)
        manager.add("js/a.js", container="footer")

        self.assertEqual(manager.container().assets, [])
        self.assertEqual(len(manager.container("footer").assets), 1)


class TestRender(unittest.TestCase):
    def test_style_tag_defaults_and_escaping(self):
        self.assertEqual(
            style_tag("/a.css?ts=1", {"media": "print", "title": 'x"y'}),
            '<link media="print" type="text/css" rel="stylesheet" title="x&quot;y" href="/a.css?ts=1">',
        )

    def test_tags_without_attributes_use_defaults(self):
        self.assertEqual(style_tag("/a.css"), '<link media="all" type="text/css" rel="stylesheet" href="/a.css">')
        self.assertEqual(script_tag("/a.js"), '<script type="text/javascript" src="/a.js"></script>')

    def test_script_tag(self):
        self.assertEqual(
            script_tag("/a.js", {"async": "async"}),
            '<script type="text/javascript" async="async" src="/a.js"></script>',
        )


if __name__ == "__main__":
    unittest.main()

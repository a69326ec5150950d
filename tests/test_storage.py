"""Tests for cache stores and per-path locking."""

import sys
import tempfile
import threading
import time
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from casset.asset_cache import AssetCache
from casset.compiler import Compiler
from casset.config_loader import build_asset_config
from casset.locks import PathLocks
from casset.models import AssetDeclaration
from casset.storage import FileSystemStore, MemoryStore


class TestFileSystemStore(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp_dir.name)
        self.store = FileSystemStore()

    def tearDown(self):
        self.tmp_dir.cleanup()

    def test_write_atomic_creates_parents_and_replaces_content(self):
        target = self.root / "cache" / "nested" / "bundle.js"
        self.store.write_atomic(target, b"x" * 100)
        self.store.write_text(target, "short")

        self.assertEqual(target.read_text(encoding="utf-8"), "short")
        self.assertEqual([p.name for p in target.parent.iterdir()], ["bundle.js"])

    def test_text_round_trip_keeps_non_utf8_bytes(self):
        target = self.root / "latin1.css"
        raw = b"@charset \"ISO-8859-1\";\n.caf\xe9 { color: red; }\n"
        target.write_bytes(raw)

        self.store.write_text(target, self.store.read_text(target))

        self.assertEqual(target.read_bytes(), raw)

    def test_mtime_and_first_line(self):
        target = self.root / "a.css"
        self.assertIsNone(self.store.mtime(target))
        self.assertFalse(self.store.exists(target))

        target.write_text("/*abc*/\nbody{}\n", encoding="utf-8")
        self.assertIsNotNone(self.store.mtime(target))
        self.assertEqual(self.store.read_first_line(target), "/*abc*/\n")

    def test_touch_moves_mtime_forward(self):
        import os

        target = self.root / "a.css"
        target.write_text("x", encoding="utf-8")
        os.utime(target, (1000, 1000))

        self.store.touch(target)
        self.assertGreater(self.store.mtime(target), 1000)
        self.assertEqual(target.read_text(encoding="utf-8"), "x")


class TestMemoryStore(unittest.TestCase):
    def test_counts_writes_and_touches(self):
        ticks = iter(range(10, 100))
        store = MemoryStore(clock=lambda: next(ticks))
        store.put("/a.js", "seed", mtime=1)

        store.write_text("/b.js", "x")
        store.touch("/a.js")

        self.assertEqual(store.writes, 1)
        self.assertEqual(store.touches, 1)
        self.assertEqual(store.mtime("/a.js"), 11)
        self.assertEqual(store.read_first_line("/a.js"), "seed")

    def test_missing_files(self):
        store = MemoryStore()
        self.assertIsNone(store.mtime("/nope"))
        with self.assertRaises(FileNotFoundError):
            store.read_bytes("/nope")
        with self.assertRaises(FileNotFoundError):
            store.touch("/nope")


class TestPathLocks(unittest.TestCase):
    def test_same_path_same_lock(self):
        locks = PathLocks()
        self.assertIs(locks.lock_for(Path("/c/a.css")), locks.lock_for("/c/a.css"))
        self.assertIsNot(locks.lock_for("/c/a.css"), locks.lock_for("/c/b.css"))
        self.assertEqual(len(locks), 2)

    def test_concurrent_process_compiles_once(self):
        config = build_asset_config({}, base_dir="/site")
        store = MemoryStore()
        source = config.assets_path / "css" / "site.less"
        store.put(source, "@c: red;", mtime=100)

        calls = []

        def slow_transform(content, import_dir):
            calls.append(content)
            time.sleep(0.05)
            return "a{color:red}"

        cache = AssetCache(config, compiler=Compiler(store, less_transform=slow_transform), store=store)
        declaration = AssetDeclaration.create("css/site.less")

        threads = [threading.Thread(target=cache.process, args=(declaration,)) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(calls), 1)
        self.assertEqual(store.writes, 1)


if __name__ == "__main__":
    unittest.main()

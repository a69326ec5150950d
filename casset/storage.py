"""Storage backends for cache artifacts and the sources they are built from."""

from __future__ import annotations

import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol, Tuple

# Bytes that are not UTF-8 survive a read_text/write_text round trip unchanged.
TEXT_ERRORS = "surrogateescape"


class CacheStore(Protocol):
    def mtime(self, path: Path) -> Optional[float]:
        """Modification time in seconds, or None when the file does not exist."""

    def exists(self, path: Path) -> bool:
        ...

    def read_bytes(self, path: Path) -> bytes:
        ...

    def read_text(self, path: Path) -> str:
        ...

    def read_first_line(self, path: Path) -> str:
        ...

    def write_atomic(self, path: Path, data: bytes) -> None:
        ...

    def write_text(self, path: Path, content: str) -> None:
        ...

    def touch(self, path: Path) -> None:
        ...


class FileSystemStore:
    """Local filesystem store. Writes go through a sibling temp file and ``os.replace``."""

    def mtime(self, path: Path) -> Optional[float]:
        try:
            return Path(path).stat().st_mtime
        except (FileNotFoundError, NotADirectoryError):
            return None

    def exists(self, path: Path) -> bool:
        return Path(path).is_file()

    def read_bytes(self, path: Path) -> bytes:
        return Path(path).read_bytes()

    def read_text(self, path: Path) -> str:
        return self.read_bytes(path).decode("utf-8", errors=TEXT_ERRORS)

    def read_first_line(self, path: Path) -> str:
        with open(path, "r", encoding="utf-8", errors="replace") as fh:
            return fh.readline()

    def write_atomic(self, path: Path, data: bytes) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def write_text(self, path: Path, content: str) -> None:
        self.write_atomic(path, content.encode("utf-8", errors=TEXT_ERRORS))

    def touch(self, path: Path) -> None:
        os.utime(path, None)


class MemoryStore:
    """In-memory store with a controllable clock, used by tests and dry runs."""

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time
        self._files: Dict[str, Tuple[bytes, float]] = {}
        self._lock = threading.Lock()
        self.writes = 0
        self.touches = 0

    @staticmethod
    def _key(path: Path) -> str:
        return Path(path).as_posix()

    def put(self, path: Path, data, mtime: Optional[float] = None) -> None:
        """Seed a file without counting it as a cache write."""
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        with self._lock:
            self._files[self._key(path)] = (payload, self._clock() if mtime is None else float(mtime))

    def set_mtime(self, path: Path, mtime: float) -> None:
        with self._lock:
            data, _ = self._files[self._key(path)]
            self._files[self._key(path)] = (data, float(mtime))

    def mtime(self, path: Path) -> Optional[float]:
        entry = self._files.get(self._key(path))
        return entry[1] if entry else None

    def exists(self, path: Path) -> bool:
        return self._key(path) in self._files

    def read_bytes(self, path: Path) -> bytes:
        entry = self._files.get(self._key(path))
        if entry is None:
            raise FileNotFoundError(str(path))
        return entry[0]

    def read_text(self, path: Path) -> str:
        return self.read_bytes(path).decode("utf-8", errors=TEXT_ERRORS)

    def read_first_line(self, path: Path) -> str:
        text = self.read_bytes(path).decode("utf-8", errors="replace")
        head, sep, _ = text.partition("\n")
        return head + sep

    def write_atomic(self, path: Path, data: bytes) -> None:
        with self._lock:
            self._files[self._key(path)] = (bytes(data), self._clock())
            self.writes += 1

    def write_text(self, path: Path, content: str) -> None:
        self.write_atomic(path, content.encode("utf-8", errors=TEXT_ERRORS))

    def touch(self, path: Path) -> None:
        with self._lock:
            key = self._key(path)
            if key not in self._files:
                raise FileNotFoundError(str(path))
            data, _ = self._files[key]
            self._files[key] = (data, self._clock())
            self.touches += 1

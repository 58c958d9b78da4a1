"""A JSON document on disk that several writers can share safely.

Readers always see a complete document because writes go to a temporary
file that then replaces the original.  Writers take an in-process lock and
an exclusive ``fcntl`` lock on a sidecar ``.lock`` file, so a
read-check-write sequence inside ``locked()`` cannot interleave with another
thread or process doing the same.
"""

from __future__ import annotations

import fcntl
import json
import os
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

_registry_lock = threading.Lock()
_path_locks: dict[Path, threading.RLock] = {}


def _thread_lock_for(path: Path) -> threading.RLock:
    with _registry_lock:
        return _path_locks.setdefault(path, threading.RLock())


class JsonFile:

    def __init__(self, file_path: Path, empty: Any) -> None:
        self._file_path = file_path.resolve()
        self._lock_path = self._file_path.with_name(self._file_path.name + ".lock")
        self._thread_lock = _thread_lock_for(self._file_path)
        self._empty = empty
        self._ensure_file()

    @property
    def path(self) -> Path:
        return self._file_path

    def read(self) -> Any:
        return json.loads(self._file_path.read_text(encoding="utf-8"))

    def write(self, data: Any) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self._file_path.parent, prefix=self._file_path.name, suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(json.dumps(data, indent=2) + "\n")
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._file_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._thread_lock:
            with open(self._lock_path, "a+", encoding="utf-8") as lock_file:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            with self.locked():
                if not self._file_path.exists():
                    self.write(self._empty)

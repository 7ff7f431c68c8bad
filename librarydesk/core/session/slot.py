from __future__ import annotations

import contextlib
import os
import tempfile
import threading
from typing import Optional


class SessionSlot:
    """
    A single persisted key holding one JSON document.

    `read()` returns None for "nothing stored" and for any read failure;
    callers cannot tell the two apart, which keeps them fail-closed.
    """

    def read(self) -> Optional[str]:
        raise NotImplementedError

    def write(self, raw: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class MemorySlot(SessionSlot):
    def __init__(self, raw: Optional[str] = None):
        self._raw = raw
        self._lock = threading.Lock()

    def read(self) -> Optional[str]:
        with self._lock:
            return self._raw

    def write(self, raw: str) -> None:
        with self._lock:
            self._raw = str(raw)

    def clear(self) -> None:
        with self._lock:
            self._raw = None


class JsonFileSlot(SessionSlot):
    """File-backed slot. Writes go through a temp file and os.replace."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def read(self) -> Optional[str]:
        with self._lock:
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    return f.read()
            except (OSError, UnicodeDecodeError):
                return None

    def write(self, raw: str) -> None:
        d = os.path.dirname(self.path) or "."
        os.makedirs(d, exist_ok=True)
        with self._lock:
            fd, tmp = tempfile.mkstemp(prefix=".tmp_session_", suffix=".json", dir=d)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(raw + "\n")
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp, self.path)
            except BaseException:
                if os.path.exists(tmp):
                    os.remove(tmp)
                raise

    def clear(self) -> None:
        with self._lock, contextlib.suppress(FileNotFoundError):
            os.remove(self.path)

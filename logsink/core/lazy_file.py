# logsink/core/lazy_file.py
from __future__ import annotations
import io
import os
import threading
from pathlib import Path
from typing import Optional

from logsink.errors import IOFailure


def open_append(path: Path) -> io.FileIO:
    """Unbuffered append handle; each write is a single os-level append."""
    try:
        return io.FileIO(str(path), "ab")
    except OSError as e:
        raise IOFailure(f"open {path} failed: {e}", str(path)) from e


class LazyFile:
    """
    A file that is only created on disk on the first write.

    Two states: unopened (just a path) and open (a handle). The transition
    happens once, behind a gate, so concurrent first writers open it exactly
    once.
    """

    def __init__(self, path: Path):
        self._path = Path(path)
        self._file: Optional[io.FileIO] = None
        self._gate = threading.Lock()
        self._closed = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_created(self) -> bool:
        return self._file is not None

    def _ensure_open(self) -> io.FileIO:
        f = self._file
        if f is not None:
            return f
        with self._gate:
            if self._closed:
                raise IOFailure(f"write to closed file {self._path}", str(self._path))
            if self._file is None:
                self._file = open_append(self._path)
            return self._file

    def write(self, data: bytes) -> int:
        f = self._ensure_open()
        try:
            return f.write(data)
        except OSError as e:
            raise IOFailure(f"write {self._path} failed: {e}", str(self._path)) from e

    def seek_end(self) -> int:
        """Current size of the file, 0 when it was never created."""
        f = self._file
        if f is None:
            return 0
        return f.seek(0, os.SEEK_END)

    def close(self) -> None:
        with self._gate:
            f, self._file = self._file, None
            self._closed = True
        if f is not None:
            f.close()

    def __repr__(self) -> str:
        state = "open" if self.is_created else "unopened"
        return f"LazyFile({str(self._path)!r}, {state})"


__all__ = ["LazyFile", "open_append"]

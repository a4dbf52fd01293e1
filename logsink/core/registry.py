# logsink/core/registry.py
from __future__ import annotations
import os
import threading
from pathlib import Path
from typing import Set, Union

from logsink.errors import ConfigError


def normalize_dir(path: Union[str, Path]) -> str:
    return os.path.normcase(os.path.abspath(str(path) or "."))


class DirectoryRegistry:
    """
    Directories already bound to a sink. Two sinks writing into (and sweeping)
    the same folder would corrupt each other, so a folder can be claimed once.
    Claims are never released.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._dirs: Set[str] = set()

    def is_claimed(self, path: Union[str, Path]) -> bool:
        with self._lock:
            return normalize_dir(path) in self._dirs

    def check(self, path: Union[str, Path]) -> None:
        if self.is_claimed(path):
            raise ConfigError(f"log_dir {str(path)!r} is already used by another sink")

    def claim(self, path: Union[str, Path]) -> None:
        key = normalize_dir(path)
        with self._lock:
            if key in self._dirs:
                raise ConfigError(f"log_dir {str(path)!r} is already used by another sink")
            self._dirs.add(key)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, (str, Path)) and self.is_claimed(path)

    def __len__(self) -> int:
        with self._lock:
            return len(self._dirs)


# Used when the caller does not inject one.
default_registry = DirectoryRegistry()

__all__ = ["DirectoryRegistry", "default_registry", "normalize_dir"]

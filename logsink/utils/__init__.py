# logsink/utils/__init__.py
from __future__ import annotations

from .ansi import strip_ansi
from .rwlock import ReadWriteLock

__all__ = ["strip_ansi", "ReadWriteLock"]

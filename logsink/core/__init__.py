# logsink/core/__init__.py
from __future__ import annotations

from .buffered_sink import BufferedSink
from .hook import RotatingHook
from .lazy_file import LazyFile
from .registry import DirectoryRegistry, default_registry
from .resolver import FileHandleSet, WriteTargetResolver
from .split_policy import RotationState, SplitDecision, SplitKind, SplitPolicy

__all__ = [
    "BufferedSink",
    "DirectoryRegistry",
    "FileHandleSet",
    "LazyFile",
    "RotatingHook",
    "RotationState",
    "SplitDecision",
    "SplitKind",
    "SplitPolicy",
    "WriteTargetResolver",
    "default_registry",
]

# logsink/__init__.py
from __future__ import annotations

from .config import LogConfig
from .core import DirectoryRegistry, RotatingHook
from .entry import LogEntry, Severity, parse_level
from .errors import ConfigError, FormatFailure, IOFailure, LogSinkError
from .ops.log_setup import LoggingHandle, setup_logging
from .ops.retention import RetentionSweeper, SweepReport

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "DirectoryRegistry",
    "FormatFailure",
    "IOFailure",
    "LogConfig",
    "LogEntry",
    "LogSinkError",
    "LoggingHandle",
    "RetentionSweeper",
    "RotatingHook",
    "Severity",
    "SweepReport",
    "parse_level",
    "setup_logging",
]

# logsink/entry.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, Optional


class Severity(IntEnum):
    """Ordered panic > fatal > error > warn > info > debug > trace."""
    TRACE = 5
    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40
    FATAL = 50
    PANIC = 60

    @property
    def label(self) -> str:
        return self.name.lower()


_ALIASES = {
    "trace": Severity.TRACE,
    "debug": Severity.DEBUG,
    "info": Severity.INFO,
    "success": Severity.INFO,
    "warn": Severity.WARN,
    "warning": Severity.WARN,
    "error": Severity.ERROR,
    "fatal": Severity.FATAL,
    "critical": Severity.FATAL,
    "panic": Severity.PANIC,
}

# severity -> loguru level name
LOGURU_LEVELS = {
    Severity.TRACE: "TRACE",
    Severity.DEBUG: "DEBUG",
    Severity.INFO: "INFO",
    Severity.WARN: "WARNING",
    Severity.ERROR: "ERROR",
    Severity.FATAL: "CRITICAL",
    Severity.PANIC: "PANIC",
}


def parse_level(level: Optional[str], default: Severity = Severity.INFO) -> Severity:
    """panic, fatal, error, warn, info, debug, trace (case-insensitive). Unknown -> default."""
    if level is None:
        return default
    return _ALIASES.get(str(level).strip().lower(), default)


def severity_from_number(no: int) -> Severity:
    """Map a numeric level (loguru ``record["level"].no``) onto the closest severity at or below it."""
    best = Severity.TRACE
    for sev in Severity:
        if sev <= no:
            best = sev
    return best


@dataclass
class LogEntry:
    severity: Severity
    message: str
    timestamp: datetime
    fields: Dict[str, Any] = field(default_factory=dict)
    caller_file: Optional[str] = None
    caller_line: Optional[int] = None
    caller_function: Optional[str] = None


__all__ = ["Severity", "LogEntry", "LOGURU_LEVELS", "parse_level", "severity_from_number"]

# logsink/errors.py
from __future__ import annotations


class LogSinkError(Exception):
    """Base class for everything the sink reports."""


class ConfigError(LogSinkError):
    """Bad or conflicting configuration. Raised at initialisation only."""


class IOFailure(LogSinkError):
    """Open / create / write / stat / remove failed."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class FormatFailure(LogSinkError):
    """The formatter could not serialise an entry."""


__all__ = ["LogSinkError", "ConfigError", "IOFailure", "FormatFailure"]

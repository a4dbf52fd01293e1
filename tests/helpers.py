"""Small test doubles shared across modules."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from logsink.entry import LogEntry, Severity


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class MessageFormatter:
    """Writes just the message and a newline, so byte counts are exact."""

    def format(self, entry: LogEntry) -> bytes:
        return (entry.message + "\n").encode("utf-8")


class BrokenFormatter:
    def format(self, entry: LogEntry) -> bytes:
        raise ValueError("cannot serialise")


def make_entry(message: str, severity: Severity = Severity.INFO, **fields) -> LogEntry:
    return LogEntry(
        severity=severity,
        message=message,
        timestamp=datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
        fields=dict(fields),
        caller_file="/src/app/service.py",
        caller_line=42,
        caller_function="app.service.handle_request",
    )

# logsink/formatting.py
from __future__ import annotations
import json
import re
from datetime import datetime, tzinfo
from typing import Any, Dict, Optional, Protocol

from logsink.config import LogConfig
from logsink.entry import LogEntry, Severity

_COLORS = {
    Severity.TRACE: 37,
    Severity.DEBUG: 37,
    Severity.INFO: 36,
    Severity.WARN: 33,
    Severity.ERROR: 31,
    Severity.FATAL: 31,
    Severity.PANIC: 31,
}
_BARE = re.compile(r"^[A-Za-z0-9\-._/@^+:]+$")
_MAX_LEVEL_LEN = max(len(s.name) for s in Severity)


class Formatter(Protocol):
    def format(self, entry: LogEntry) -> bytes: ...


def render_time(ts: datetime, fmt: str, tz: Optional[tzinfo] = None) -> str:
    """strftime, with ``%f`` rendered as milliseconds."""
    if tz is not None:
        ts = ts.astimezone(tz)
    return ts.strftime(fmt.replace("%f", f"{ts.microsecond // 1000:03d}"))


def _quote(value: Any) -> str:
    s = value if isinstance(value, str) else str(value)
    if s and _BARE.match(s):
        return s
    return json.dumps(s, ensure_ascii=False)


class TextFormatter:
    """
    ``INFO[2024-01-31 12:00:00.000] message  key=value FILE=app.py:12``
    Level text is cut to 4 characters unless truncation is disabled or
    padding is requested; colors wrap the level and field keys.
    """

    def __init__(
        self,
        *,
        timestamp_format: str = "%Y-%m-%d %H:%M:%S.%f",
        no_timestamp: bool = False,
        colors: bool = False,
        disable_level_truncation: bool = False,
        pad_level_text: bool = False,
        tz: Optional[tzinfo] = None,
    ):
        self.timestamp_format = timestamp_format
        self.no_timestamp = no_timestamp
        self.colors = colors
        self.disable_level_truncation = disable_level_truncation
        self.pad_level_text = pad_level_text
        self.tz = tz

    def _level_text(self, sev: Severity) -> str:
        text = sev.name
        if self.pad_level_text:
            return text.ljust(_MAX_LEVEL_LEN)
        if not self.disable_level_truncation:
            return text[:4]
        return text

    def format(self, entry: LogEntry) -> bytes:
        level = self._level_text(entry.severity)
        color = _COLORS.get(entry.severity, 36)
        if self.colors:
            level = f"\x1b[{color}m{level}\x1b[0m"
        head = level
        if not self.no_timestamp:
            head += "[" + render_time(entry.timestamp, self.timestamp_format, self.tz) + "]"
        parts = [f"{head} {entry.message}"]
        if entry.fields:
            kv = []
            for k in sorted(entry.fields):
                key = f"\x1b[{color}m{k}\x1b[0m" if self.colors else k
                kv.append(f"{key}={_quote(entry.fields[k])}")
            parts.append(" ".join(kv))
        return ("  ".join(parts) + "\n").encode("utf-8")


class JSONFormatter:
    """One JSON object per line: level, msg, time and the entry fields."""

    def __init__(
        self,
        *,
        timestamp_format: str = "%Y-%m-%d %H:%M:%S.%f",
        no_timestamp: bool = False,
        tz: Optional[tzinfo] = None,
    ):
        self.timestamp_format = timestamp_format
        self.no_timestamp = no_timestamp
        self.tz = tz

    def format(self, entry: LogEntry) -> bytes:
        data: Dict[str, Any] = {}
        for k, v in entry.fields.items():
            # reserved keys are kept under a prefix rather than overwritten
            data["fields." + k if k in ("level", "msg", "time") else k] = v
        data["level"] = entry.severity.label
        data["msg"] = entry.message
        if not self.no_timestamp:
            data["time"] = render_time(entry.timestamp, self.timestamp_format, self.tz)
        return (json.dumps(data, ensure_ascii=False, default=str) + "\n").encode("utf-8")


def build_formatter(config: LogConfig) -> Formatter:
    """Same formatter for console and file; the file side strips the colors afterwards."""
    if config.json_format:
        return JSONFormatter(
            timestamp_format=config.timestamp_format,
            no_timestamp=config.no_timestamp,
            tz=config.tz(),
        )
    return TextFormatter(
        timestamp_format=config.timestamp_format,
        no_timestamp=config.no_timestamp,
        colors=not config.disable_colors,
        disable_level_truncation=config.disable_level_truncation,
        pad_level_text=config.pad_level_text,
        tz=config.tz(),
    )


__all__ = ["Formatter", "TextFormatter", "JSONFormatter", "build_formatter", "render_time"]

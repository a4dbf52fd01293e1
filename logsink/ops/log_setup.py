# logsink/ops/log_setup.py
from __future__ import annotations
import sys
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TextIO

from loguru import logger

from logsink.config import LogConfig
from logsink.core.hook import RotatingHook
from logsink.core.registry import DirectoryRegistry
from logsink.entry import LOGURU_LEVELS, LogEntry, Severity, parse_level, severity_from_number
from logsink.formatting import Formatter, build_formatter
from logsink.ops.retention import SweepReport

_PANIC_LOCK = threading.Lock()


def ensure_panic_level(logger_=logger) -> None:
    """loguru has no level above CRITICAL; register PANIC once."""
    with _PANIC_LOCK:
        try:
            logger_.level("PANIC")
        except ValueError:
            logger_.level("PANIC", no=int(Severity.PANIC), color="<RED><bold>")


def record_to_entry(record: Dict[str, Any]) -> LogEntry:
    """loguru record -> LogEntry. ``extra`` becomes the entry fields."""
    fields: Dict[str, Any] = dict(record.get("extra") or {})
    exc = record.get("exception")
    if exc is not None and exc.value is not None:
        fields.setdefault("error", str(exc.value))
    file = record.get("file")
    return LogEntry(
        severity=severity_from_number(record["level"].no),
        message=record["message"],
        timestamp=record["time"],
        fields=fields,
        caller_file=getattr(file, "path", None),
        caller_line=record.get("line"),
        caller_function=record.get("function"),
    )


class LoguruSink:
    """loguru sink callable feeding the RotatingHook."""

    def __init__(self, hook: RotatingHook):
        self.hook = hook

    def __call__(self, message) -> None:
        self.hook.handle(record_to_entry(message.record))


class ConsoleSink:
    """
    Console mirror. Formats with the same formatter as the file (colors kept)
    and writes to a plain stream. FILE / FUNC only show up when configured.
    """

    def __init__(self, hook: RotatingHook, stream: Optional[TextIO] = None,
                 formatter: Optional[Formatter] = None):
        self.hook = hook
        self.stream = stream
        self.formatter = formatter or build_formatter(hook.config)

    def __call__(self, message) -> None:
        entry = self.hook.console_view(self.hook.attach_metadata(record_to_entry(message.record)))
        stream = self.stream or sys.stdout
        stream.write(self.formatter.format(entry).decode("utf-8"))
        stream.flush()


@dataclass
class LoggingHandle:
    hook: RotatingHook
    handler_ids: List[int] = field(default_factory=list)
    logger_: Any = logger

    def flush(self) -> None:
        self.hook.flush()

    def purge(self, max_age_days: int = 0) -> SweepReport:
        return self.hook.purge(max_age_days)

    def close(self) -> None:
        for hid in self.handler_ids:
            try:
                self.logger_.remove(hid)
            except ValueError:
                pass
        self.handler_ids = []
        self.hook.shutdown()


def setup_logging(
    config: Optional[LogConfig] = None,
    *,
    registry: Optional[DirectoryRegistry] = None,
    clock: Optional[Callable[[], datetime]] = None,
    stream: Optional[TextIO] = None,
    replace_handlers: bool = True,
    logger_=logger,
) -> LoggingHandle:
    """
    Configure loguru with a console mirror + the rotating file sink.
    ``config`` defaults to ``LogConfig.from_env()``.
    Raises ConfigError / IOFailure when the sink cannot be initialised; in
    that case loguru is left untouched.
    """
    config = (config or LogConfig.from_env()).normalized()
    hook = RotatingHook(config, registry=registry, clock=clock)

    ensure_panic_level(logger_)
    level = LOGURU_LEVELS[parse_level(config.log_level)]
    if replace_handlers:
        logger_.remove()  # clear default sink

    ids: List[int] = []
    if not config.no_console:
        ids.append(logger_.add(ConsoleSink(hook, stream), level=level, format="{message}", catch=True))
    ids.append(
        logger_.add(
            LoguruSink(hook),
            level=level,
            format="{message}",
            backtrace=True,
            diagnose=False,
            catch=True,
        )
    )
    logger_.debug(f"[logsink] file sink ready in {config.log_path()} (level={level})")
    return LoggingHandle(hook=hook, handler_ids=ids, logger_=logger_)


__all__ = [
    "ConsoleSink",
    "LoggingHandle",
    "LoguruSink",
    "ensure_panic_level",
    "record_to_entry",
    "setup_logging",
]

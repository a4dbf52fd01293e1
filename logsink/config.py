# logsink/config.py
from __future__ import annotations
import os
from dataclasses import dataclass, field, replace
from datetime import tzinfo
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import pytz
from dotenv import load_dotenv

from logsink.errors import ConfigError

# Log folder used when retention is enabled but no folder was given.
# Do not keep other files in it: they may be swept.
DEFAULT_SAVE_PATH = "./logs"

DEFAULT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"
DEFAULT_BUFFER_SIZE = 4096
DEFAULT_MAX_PENDING = 10_000
DEFAULT_KEEP_SUFFIX = "keep"

# -----------------------------------------------------------------------------
# Env helpers
# -----------------------------------------------------------------------------
def _b(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return str(v).strip().lower() in {"1", "true", "yes", "y", "on"}

def _intish(x: str, default: int = 0) -> int:
    try:
        return int(float(x))
    except (TypeError, ValueError):
        return default

def _i(name: str, default: int = 0) -> int:
    v = os.getenv(name)
    if v is None:
        return default
    return _intish(v, default)

def _s(name: str, default: str = "") -> str:
    return os.getenv(name, default)

def _opt(name: str) -> Optional[str]:
    v = os.getenv(name)
    if v is None or not v.strip():
        return None
    return v.strip()


@dataclass(frozen=True)
class LogConfig:
    # Folder the log files live in ("" = current directory).
    log_dir: str = ""
    file_name_suffix: str = ""
    # Base name when neither date nor size split is on.
    default_log_name: str = ""
    # Route error-and-above to a dedicated file.
    err_separate: bool = False
    # With err_separate: also mirror errors into the normal file.
    err_in_normal: bool = False
    # Split by date (mutually exclusive with max_log_size).
    date_split: bool = False
    # Split by size in bytes, 0 = off.
    max_log_size: int = 0
    log_file_disable: bool = False
    no_console: bool = False
    no_timestamp: bool = False
    timestamp_format: str = ""
    show_short_file_in_console: bool = False
    show_func_in_console: bool = False
    disable_caller: bool = False
    disable_writer_buffer: bool = False
    writer_buffer_size: int = 0
    json_format: bool = False
    disable_colors: bool = False
    disable_level_truncation: bool = False
    pad_level_text: bool = False
    # Retention window in days, 0 = keep forever.
    max_keep_days: int = 0
    log_ext: str = ""
    log_level: str = "info"
    # pytz zone name, None = local time.
    time_zone: Optional[str] = None
    static_fields: Mapping[str, Any] = field(default_factory=dict)
    keep_suffix: str = DEFAULT_KEEP_SUFFIX
    # Whether error-stream bytes count toward the size-split threshold.
    count_error_in_size: bool = True
    max_pending: int = DEFAULT_MAX_PENDING

    # ------------------------------------------------------------------
    def with_key_value(self, key: str, value: Any) -> "LogConfig":
        """Return a copy that appends ``key=value`` to every entry."""
        merged: Dict[str, Any] = dict(self.static_fields)
        merged[key] = value
        return replace(self, static_fields=merged)

    def normalized(self) -> "LogConfig":
        """Fill in defaults. Idempotent."""
        ext = self.log_ext or ".log"
        if not ext.startswith("."):
            ext = "." + ext
        log_dir = self.log_dir
        if self.max_keep_days > 0 and not log_dir:
            log_dir = DEFAULT_SAVE_PATH
        return replace(
            self,
            log_dir=log_dir,
            log_ext=ext,
            default_log_name=self.default_log_name or "default",
            timestamp_format=self.timestamp_format or DEFAULT_TIMESTAMP_FORMAT,
            writer_buffer_size=self.writer_buffer_size if self.writer_buffer_size > 0 else DEFAULT_BUFFER_SIZE,
            max_pending=self.max_pending if self.max_pending > 0 else DEFAULT_MAX_PENDING,
            keep_suffix=self.keep_suffix or DEFAULT_KEEP_SUFFIX,
        )

    def validate(self) -> None:
        if self.date_split and self.max_log_size > 0:
            raise ConfigError("date_split and max_log_size cannot be enabled together")
        if self.max_log_size < 0:
            raise ConfigError(f"max_log_size must be >= 0, got {self.max_log_size}")
        if self.max_keep_days < 0:
            raise ConfigError(f"max_keep_days must be >= 0, got {self.max_keep_days}")
        if self.time_zone:
            try:
                pytz.timezone(self.time_zone)
            except pytz.UnknownTimeZoneError as e:
                raise ConfigError(f"unknown time_zone {self.time_zone!r}") from e

    def tz(self) -> Optional[tzinfo]:
        return pytz.timezone(self.time_zone) if self.time_zone else None

    @property
    def buffered(self) -> bool:
        return not self.disable_writer_buffer

    # ------------------------------------------------------------------
    @classmethod
    def from_env(cls, prefix: str = "LOGSINK_", *, dotenv: bool = True, **overrides: Any) -> "LogConfig":
        """
        Build a config from ``<prefix>*`` environment variables, e.g.
          LOGSINK_LOG_DIR=./logs
          LOGSINK_MAX_LOG_SIZE=10485760
          LOGSINK_ERR_SEPARATE=1
        A ``.env`` file is honoured (never overriding the real environment).
        Keyword overrides win over the environment.
        """
        if dotenv:
            load_dotenv(override=False)
        p = prefix
        values: Dict[str, Any] = dict(
            log_dir=_s(p + "LOG_DIR"),
            file_name_suffix=_s(p + "FILE_NAME_SUFFIX"),
            default_log_name=_s(p + "DEFAULT_LOG_NAME"),
            err_separate=_b(p + "ERR_SEPARATE"),
            err_in_normal=_b(p + "ERR_IN_NORMAL"),
            date_split=_b(p + "DATE_SPLIT"),
            max_log_size=_i(p + "MAX_LOG_SIZE", 0),
            log_file_disable=_b(p + "LOG_FILE_DISABLE"),
            no_console=_b(p + "NO_CONSOLE"),
            no_timestamp=_b(p + "NO_TIMESTAMP"),
            timestamp_format=_s(p + "TIMESTAMP_FORMAT"),
            show_short_file_in_console=_b(p + "SHOW_SHORT_FILE_IN_CONSOLE"),
            show_func_in_console=_b(p + "SHOW_FUNC_IN_CONSOLE"),
            disable_caller=_b(p + "DISABLE_CALLER"),
            disable_writer_buffer=_b(p + "DISABLE_WRITER_BUFFER"),
            writer_buffer_size=_i(p + "WRITER_BUFFER_SIZE", 0),
            json_format=_b(p + "JSON_FORMAT"),
            disable_colors=_b(p + "DISABLE_COLORS"),
            disable_level_truncation=_b(p + "DISABLE_LEVEL_TRUNCATION"),
            pad_level_text=_b(p + "PAD_LEVEL_TEXT"),
            max_keep_days=_i(p + "MAX_KEEP_DAYS", 0),
            log_ext=_s(p + "LOG_EXT"),
            log_level=_s(p + "LOG_LEVEL", "info"),
            time_zone=_opt(p + "TIME_ZONE"),
            keep_suffix=_s(p + "KEEP_SUFFIX", DEFAULT_KEEP_SUFFIX),
            count_error_in_size=_b(p + "COUNT_ERROR_IN_SIZE", True),
            max_pending=_i(p + "MAX_PENDING", DEFAULT_MAX_PENDING),
        )
        values.update(overrides)
        return cls(**values)

    def log_path(self) -> Path:
        return Path(self.log_dir or ".")


__all__ = ["LogConfig", "DEFAULT_SAVE_PATH", "DEFAULT_TIMESTAMP_FORMAT", "DEFAULT_BUFFER_SIZE"]

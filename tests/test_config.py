"""Tests for LogConfig defaults, validation and environment loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from logsink.config import DEFAULT_SAVE_PATH, LogConfig
from logsink.errors import ConfigError


def test_normalized_fills_defaults() -> None:
    cfg = LogConfig(log_ext="txt").normalized()
    assert cfg.log_ext == ".txt"
    assert cfg.default_log_name == "default"
    assert cfg.timestamp_format == "%Y-%m-%d %H:%M:%S.%f"
    assert cfg.writer_buffer_size == 4096
    assert cfg.log_path() == Path(".")
    assert cfg.normalized() == cfg


def test_retention_without_dir_uses_default_folder() -> None:
    cfg = LogConfig(max_keep_days=3).normalized()
    assert cfg.log_dir == DEFAULT_SAVE_PATH


@pytest.mark.parametrize(
    "kwargs",
    [
        {"date_split": True, "max_log_size": 1},
        {"max_log_size": -1},
        {"max_keep_days": -2},
        {"time_zone": "Mars/Olympus"},
    ],
)
def test_validate_rejects_bad_settings(kwargs) -> None:
    with pytest.raises(ConfigError):
        LogConfig(**kwargs).validate()


def test_time_zone_is_resolved_with_pytz() -> None:
    cfg = LogConfig(time_zone="Europe/Berlin")
    cfg.validate()
    assert cfg.tz().zone == "Europe/Berlin"
    assert LogConfig().tz() is None


def test_with_key_value_returns_copy() -> None:
    base = LogConfig(static_fields={"app": "api"})
    derived = base.with_key_value("region", "eu")
    assert derived.static_fields == {"app": "api", "region": "eu"}
    assert base.static_fields == {"app": "api"}


def test_from_env_reads_prefixed_variables(monkeypatch) -> None:
    monkeypatch.setenv("LOGSINK_LOG_DIR", "/var/log/app")
    monkeypatch.setenv("LOGSINK_MAX_LOG_SIZE", "1048576")
    monkeypatch.setenv("LOGSINK_ERR_SEPARATE", "yes")
    monkeypatch.setenv("LOGSINK_COUNT_ERROR_IN_SIZE", "0")
    monkeypatch.setenv("LOGSINK_TIME_ZONE", "  ")

    cfg = LogConfig.from_env(dotenv=False, no_console=True)

    assert cfg.log_dir == "/var/log/app"
    assert cfg.max_log_size == 1048576
    assert cfg.err_separate is True
    assert cfg.count_error_in_size is False
    assert cfg.time_zone is None
    assert cfg.no_console is True

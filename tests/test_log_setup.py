"""End-to-end tests through the loguru front-end."""

from __future__ import annotations

import io
import json
from datetime import datetime, timezone
from types import SimpleNamespace

from logsink.config import LogConfig
from logsink.entry import Severity
from logsink.ops.log_setup import record_to_entry, setup_logging


def test_file_and_console_views(log_dir, registry, restore_loguru) -> None:
    logger = restore_loguru
    console = io.StringIO()
    handle = setup_logging(
        LogConfig(log_dir=str(log_dir), disable_writer_buffer=True),
        registry=registry,
        stream=console,
    )
    logger.bind(user="bob").info("hello")
    logger.debug("filtered out")
    handle.close()

    text = (log_dir / "default.log").read_text()
    assert "hello" in text
    assert "user=bob" in text
    assert "FILE=test_log_setup.py:" in text
    assert "FUNC=test_file_and_console_views" in text
    assert "filtered out" not in text
    assert "\x1b[" not in text

    shown = console.getvalue()
    assert "hello" in shown
    assert "user=bob" in shown
    assert "FILE=" not in shown
    assert "\x1b[36m" in shown


def test_panic_level_and_json_output(log_dir, registry, restore_loguru) -> None:
    logger = restore_loguru
    handle = setup_logging(
        LogConfig(log_dir=str(log_dir), json_format=True, no_console=True, disable_caller=True),
        registry=registry,
    )
    logger.warning("careful")
    logger.log("PANIC", "meltdown")
    rows = [json.loads(line) for line in (log_dir / "default.log").read_text().splitlines()]
    handle.close()

    assert [(r["level"], r["msg"]) for r in rows] == [("warn", "careful"), ("panic", "meltdown")]
    assert len(handle.handler_ids) == 0


def test_error_separation_through_logger(log_dir, registry, restore_loguru) -> None:
    logger = restore_loguru
    handle = setup_logging(
        LogConfig(log_dir=str(log_dir), err_separate=True, no_console=True, disable_writer_buffer=True),
        registry=registry,
    )
    logger.info("fine")
    try:
        raise RuntimeError("kaput")
    except RuntimeError:
        logger.exception("failed")
    handle.close()

    assert "fine" in (log_dir / "default.log").read_text()
    errors = (log_dir / "default_error.log").read_text()
    assert "failed" in errors
    assert "error=kaput" in errors


def test_record_to_entry_maps_loguru_fields() -> None:
    ts = datetime(2024, 1, 1, tzinfo=timezone.utc)
    record = {
        "level": SimpleNamespace(no=40, name="ERROR"),
        "message": "boom",
        "time": ts,
        "extra": {"req": "r-1"},
        "exception": None,
        "file": SimpleNamespace(name="svc.py", path="/app/svc.py"),
        "line": 7,
        "function": "run",
    }
    entry = record_to_entry(record)
    assert entry.severity is Severity.ERROR
    assert entry.fields == {"req": "r-1"}
    assert entry.caller_file == "/app/svc.py"
    assert entry.caller_line == 7
    assert entry.timestamp == ts

    record["level"] = SimpleNamespace(no=25, name="SUCCESS")
    assert record_to_entry(record).severity is Severity.INFO

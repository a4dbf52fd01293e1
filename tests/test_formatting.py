"""Tests for the text and JSON line formatters."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytz

from logsink.config import LogConfig
from logsink.entry import Severity
from logsink.formatting import JSONFormatter, TextFormatter, build_formatter, render_time
from tests.helpers import make_entry


def test_render_time_uses_milliseconds_and_zone() -> None:
    ts = datetime(2024, 1, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)
    assert render_time(ts, "%H:%M:%S.%f") == "12:00:00.123"
    assert render_time(ts, "%H:%M", pytz.timezone("Asia/Tokyo")) == "21:00"


def test_text_line_layout() -> None:
    line = TextFormatter().format(make_entry("hello world", Severity.WARN, user="bob", note="two words"))
    assert line == b'WARN[2024-01-01 12:00:00.000] hello world  note="two words" user=bob\n'


def test_text_level_truncation_and_padding() -> None:
    entry = make_entry("x", Severity.ERROR)
    assert TextFormatter(no_timestamp=True).format(entry) == b"ERRO x\n"
    assert TextFormatter(no_timestamp=True, disable_level_truncation=True).format(entry) == b"ERROR x\n"
    assert TextFormatter(no_timestamp=True, pad_level_text=True).format(entry) == b"ERROR x\n"
    assert TextFormatter(no_timestamp=True, pad_level_text=True).format(make_entry("x")) == b"INFO  x\n"


def test_text_colors_wrap_level_and_keys() -> None:
    line = TextFormatter(no_timestamp=True, colors=True).format(make_entry("x", Severity.ERROR, k=1))
    assert line == b"\x1b[31mERRO\x1b[0m x  \x1b[31mk\x1b[0m=1\n"


def test_json_line_keeps_reserved_keys() -> None:
    line = JSONFormatter().format(make_entry("hi", Severity.PANIC, msg="shadow", count=3))
    data = json.loads(line)
    assert data == {
        "level": "panic",
        "msg": "hi",
        "time": "2024-01-01 12:00:00.000",
        "fields.msg": "shadow",
        "count": 3,
    }


def test_build_formatter_follows_config() -> None:
    assert isinstance(build_formatter(LogConfig(json_format=True).normalized()), JSONFormatter)
    text = build_formatter(LogConfig(disable_colors=True).normalized())
    assert isinstance(text, TextFormatter)
    assert text.colors is False

"""Shared fixtures for the logsink test-suite."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List

import pytest
from loguru import logger

from logsink.core.registry import DirectoryRegistry
from tests.helpers import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def registry() -> DirectoryRegistry:
    return DirectoryRegistry()


@pytest.fixture
def reports() -> List[str]:
    return []


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    return tmp_path / "logs"


@pytest.fixture
def restore_loguru():
    yield logger
    logger.remove()
    logger.add(sys.stderr)

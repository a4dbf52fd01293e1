# logsink/core/split_policy.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, tzinfo
from enum import Enum
from typing import Optional, TYPE_CHECKING

from logsink.config import LogConfig
from logsink.utils.paths import DATE_FMT

if TYPE_CHECKING:
    from logsink.core.resolver import FileHandleSet


class SplitKind(Enum):
    NONE = "none"
    BY_DATE = "by_date"
    BY_SIZE = "by_size"


@dataclass(frozen=True)
class SplitDecision:
    kind: SplitKind
    date_key: Optional[str] = None

    @property
    def due(self) -> bool:
        return self.kind is not SplitKind.NONE


NO_SPLIT = SplitDecision(SplitKind.NONE)
SIZE_SPLIT = SplitDecision(SplitKind.BY_SIZE)


@dataclass
class RotationState:
    # 2024_01_31
    file_date: str
    # bytes in the current slot; only meaningful with size split
    size: int = 0
    handles: Optional["FileHandleSet"] = None


def date_key(now: datetime, tz: Optional[tzinfo] = None) -> str:
    if tz is not None:
        now = now.astimezone(tz)
    return now.strftime(DATE_FMT)


class SplitPolicy:
    """Pure decision logic: is a rotation due, and what is the new key."""

    def __init__(self, config: LogConfig):
        self.date_split = config.date_split
        self.max_size = config.max_log_size
        self.tz = config.tz()

    @property
    def active(self) -> bool:
        return self.date_split or self.max_size > 0

    def date_key(self, now: datetime) -> str:
        return date_key(now, self.tz)

    def should_split(self, state: RotationState, now: datetime, incoming: int = 0) -> SplitDecision:
        """
        ``incoming`` is the length of the entry about to be written: a slot is
        full once the bytes already in it plus that entry reach the threshold,
        so the entry that crosses the line opens the next slot.
        """
        if self.date_split:
            today = self.date_key(now)
            if today != state.file_date:
                return SplitDecision(SplitKind.BY_DATE, today)
            return NO_SPLIT
        if self.max_size > 0:
            if state.size > 0 and state.size + incoming >= self.max_size:
                return SIZE_SPLIT
        return NO_SPLIT


__all__ = ["SplitKind", "SplitDecision", "SplitPolicy", "RotationState", "NO_SPLIT", "SIZE_SPLIT", "date_key"]

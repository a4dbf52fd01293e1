# logsink/ops/retention.py
from __future__ import annotations
import os
import threading
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Set

from loguru import logger

from logsink.utils.paths import has_keep_suffix, is_empty_dir, list_dirs, list_files, parse_date_key

DAY_SECS = 24 * 3600


@dataclass
class SweepReport:
    removed: List[Path] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class RetentionSweeper:
    """
    Deletes log data older than a retention window.

    * top-level folders named ``YYYY_MM_DD...`` dated at or before the cutoff
      are emptied (keep / live files excepted) and removed once empty;
    * top-level files use the date in their name, or their mtime when the
      name carries none;
    * anything whose name (or stem) ends with the keep suffix is left alone,
      as are the files currently open for writing.

    ``max_age_days <= 0`` is a full reset: ``reset`` (if given) closes,
    deletes and reopens the live files first, then everything sweepable goes.

    Problems are logged and the sweep moves on. Logging goes through the
    front-end, so never call this while holding the writer lock.
    """

    def __init__(
        self,
        root: Path,
        *,
        keep_suffix: str = "keep",
        live_paths: Optional[Callable[[], Iterable[Path]]] = None,
        reset: Optional[Callable[[], None]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        tz: Optional[tzinfo] = None,
    ):
        self.root = Path(root)
        self.keep_suffix = keep_suffix
        self._live_paths = live_paths or (lambda: ())
        self._reset = reset
        self._clock = clock or (lambda: datetime.now().astimezone())
        self.tz = tz

    # ---------- public API ----------

    def sweep(self, max_age_days: int) -> SweepReport:
        report = SweepReport()
        if not self.root.is_dir():
            logger.debug(f"[retention] {self.root} does not exist; nothing to sweep")
            return report

        if max_age_days <= 0 and self._reset is not None:
            self._reset()

        now = self._clock()
        if self.tz is not None:
            now = now.astimezone(self.tz)
        cutoff_day = (now - timedelta(days=max(0, max_age_days))).date()
        cutoff_ts = now.timestamp() - max(0, max_age_days) * DAY_SECS
        wipe = max_age_days <= 0
        live = {p.name.lower() for p in self._live_paths()}

        self._sweep_dirs(cutoff_day, wipe, live, report)
        self._sweep_files(self.root, cutoff_day, cutoff_ts, wipe, live, report)

        if report.removed:
            logger.info(f"[retention] removed {len(report.removed)} item(s) from {self.root} (max_age_days={max_age_days})")
        if report.errors:
            logger.warning(f"[retention] {len(report.errors)} error(s) during sweep of {self.root}")
        return report

    # ---------- internals ----------

    def _expired_day(self, day: date, cutoff_day: date, wipe: bool) -> bool:
        return wipe or day <= cutoff_day

    def _sweep_dirs(self, cutoff_day: date, wipe: bool, live: Set[str], report: SweepReport) -> None:
        try:
            dirs = list_dirs(self.root)
        except OSError as e:
            self._error(report, f"list dirs of {self.root} failed: {e}")
            return
        for name in dirs:
            if has_keep_suffix(name, self.keep_suffix):
                continue
            day = parse_date_key(name)
            if day is None:
                continue
            if not self._expired_day(day, cutoff_day, wipe):
                continue
            folder = self.root / name
            self._sweep_files(folder, cutoff_day, 0.0, True, live, report)
            try:
                if is_empty_dir(folder):
                    folder.rmdir()
                    report.removed.append(folder)
            except OSError as e:
                self._error(report, f"remove dir {folder} failed: {e}")

    def _sweep_files(
        self,
        folder: Path,
        cutoff_day: date,
        cutoff_ts: float,
        wipe: bool,
        live: Set[str],
        report: SweepReport,
    ) -> None:
        try:
            files = list_files(folder)
        except OSError as e:
            self._error(report, f"list files of {folder} failed: {e}")
            return
        for name in files:
            if has_keep_suffix(name, self.keep_suffix):
                continue
            if name.lower() in live:
                continue
            path = folder / name
            if not wipe:
                day = parse_date_key(name)
                if day is not None:
                    if not self._expired_day(day, cutoff_day, wipe):
                        continue
                else:
                    try:
                        mtime = os.stat(path).st_mtime
                    except OSError as e:
                        self._error(report, f"stat {path} failed: {e}")
                        continue
                    if mtime >= cutoff_ts:
                        continue
            try:
                path.unlink()
                report.removed.append(path)
            except FileNotFoundError:
                pass
            except OSError as e:
                self._error(report, f"remove {path} failed: {e}")

    @staticmethod
    def _error(report: SweepReport, msg: str) -> None:
        report.errors.append(msg)
        logger.error(f"[retention] {msg}")


class RetentionTimer(threading.Thread):
    """Runs ``sweeper.sweep(max_age_days)`` now and then every ``interval_sec`` until stopped."""

    def __init__(self, sweeper: RetentionSweeper, max_age_days: int, interval_sec: float = DAY_SECS,
                 name: str = "logsink-retention", daemon: bool = True):
        super().__init__(daemon=daemon, name=name)
        self.sweeper = sweeper
        self.max_age_days = max_age_days
        self.interval_sec = max(1.0, float(interval_sec))
        self._stop_evt = threading.Event()

    def run(self) -> None:
        while True:
            try:
                self.sweeper.sweep(self.max_age_days)
            except Exception as e:  # keep the timer alive whatever the sweep hits
                logger.warning(f"[retention] {self.name}: {e}")
            if self._stop_evt.wait(self.interval_sec):
                return

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop_evt.set()
        if self.is_alive() and threading.current_thread() is not self:
            self.join(timeout)


__all__ = ["RetentionSweeper", "RetentionTimer", "SweepReport"]

# logsink/core/hook.py
from __future__ import annotations
import sys
import threading
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from loguru import logger

from logsink.config import LogConfig
from logsink.core.buffered_sink import BufferedSink
from logsink.core.registry import DirectoryRegistry, default_registry
from logsink.core.resolver import FileHandleSet, WriteTargetResolver
from logsink.core.split_policy import RotationState, SplitDecision, SplitKind, SplitPolicy
from logsink.entry import LogEntry, Severity
from logsink.errors import FormatFailure, IOFailure, LogSinkError
from logsink.formatting import Formatter, build_formatter
from logsink.ops.retention import RetentionSweeper, RetentionTimer, SweepReport
from logsink.utils.ansi import strip_ansi
from logsink.utils.paths import short_file_name
from logsink.utils.rwlock import ReadWriteLock

FILE_KEY = "FILE"
FUNC_KEY = "FUNC"


def _stderr(msg: str) -> None:
    sys.stderr.write(msg.rstrip("\n") + "\n")
    sys.stderr.flush()


def _local_now() -> datetime:
    return datetime.now().astimezone()


class RotatingHook:
    """
    File side of the logger: receives entries, keeps the current rotation
    slot open, routes error-and-above to the error stream and everything else
    to the normal stream (directly or through the BufferedSink).

    Locking: producers write under the shared lock; rotation, purge and
    shutdown swap handles under the exclusive lock. The write path never logs
    through the front-end (it runs inside one of its handlers); problems go to
    ``error_channel`` (stderr by default).

        hook = RotatingHook(LogConfig(log_dir="logs", max_log_size=10 << 20))
        hook.handle(entry)
        ...
        hook.shutdown()
    """

    def __init__(
        self,
        config: LogConfig,
        *,
        registry: Optional[DirectoryRegistry] = None,
        formatter: Optional[Formatter] = None,
        clock: Optional[Callable[[], datetime]] = None,
        error_channel: Optional[Callable[[str], None]] = None,
        start_retention: bool = True,
    ):
        config = config.normalized()
        config.validate()
        self.config = config
        self._registry = registry if registry is not None else default_registry
        self._clock = clock or _local_now
        self._report = error_channel or _stderr
        self._formatter = formatter or build_formatter(config)

        self._lock = ReadWriteLock()
        self._size_lock = threading.Lock()
        self._policy = SplitPolicy(config)
        self._resolver = WriteTargetResolver(config, self._policy)
        self._state = RotationState(file_date=self._policy.date_key(self._clock()))
        self._closed = False
        self._buffer: Optional[BufferedSink] = None
        self._retention_timer: Optional[RetentionTimer] = None

        self.sweeper = RetentionSweeper(
            config.log_path(),
            keep_suffix=config.keep_suffix,
            live_paths=self.live_paths,
            reset=self._reset_files,
            clock=self._clock,
            tz=self._policy.tz,
        )

        if config.log_file_disable:
            return

        log_dir = config.log_path()
        self._registry.check(log_dir)
        handles, size = self._resolver.resolve(self._clock())
        try:
            self._registry.claim(log_dir)
        except LogSinkError:
            handles.close()
            raise
        if config.buffered:
            self._buffer = BufferedSink(self._lock, max_pending=config.max_pending, report=self._report)
        self._install(handles, size)
        if self._buffer is not None:
            self._buffer.start()
        if config.max_keep_days > 0 and config.log_dir and start_retention:
            self._retention_timer = RetentionTimer(self.sweeper, config.max_keep_days)
            self._retention_timer.start()

    # ---------- metadata ----------

    def attach_metadata(self, entry: LogEntry) -> LogEntry:
        """Copy of ``entry`` with static fields and (unless disabled) FILE / FUNC attached."""
        fields = dict(entry.fields)
        for k, v in self.config.static_fields.items():
            fields[k] = v
        if not self.config.disable_caller and entry.caller_file:
            fields[FILE_KEY] = short_file_name(entry.caller_file, entry.caller_line)
            if entry.caller_function:
                fields[FUNC_KEY] = entry.caller_function.rsplit(".", 1)[-1]
        return replace(entry, fields=fields)

    def console_view(self, entry: LogEntry) -> LogEntry:
        """Hide FILE / FUNC from the console unless asked to show them."""
        fields = dict(entry.fields)
        if not self.config.show_short_file_in_console:
            fields.pop(FILE_KEY, None)
        if not self.config.show_func_in_console:
            fields.pop(FUNC_KEY, None)
        return replace(entry, fields=fields)

    # ---------- write path ----------

    def handle(self, entry: LogEntry) -> Optional[LogSinkError]:
        """
        Persist one entry. Never raises: a failure is reported to the error
        channel and returned so the caller can inspect it.
        """
        entry = self.attach_metadata(entry)
        if self.config.log_file_disable:
            return None
        if self._closed:
            return self._fail(IOFailure("log sink is shut down"))

        try:
            line = self._formatter.format(entry)
        except Exception as e:  # formatter is a collaborator; anything it throws drops this entry
            return self._fail(FormatFailure(f"unable to format entry: {e}"))
        line = strip_ansi(line)

        self.check_split(len(line))
        if self._buffer is not None:
            # never wait for room while holding the shared lock
            self._buffer.wait_for_room()
        try:
            with self._lock.read():
                self._route(entry.severity, line)
        except IOFailure as e:
            return self._fail(e)

        if self._buffer is not None and entry.severity >= Severity.FATAL:
            self._buffer.flush_sync()
        return None

    def _route(self, severity: Severity, line: bytes) -> None:
        handles = self._state.handles
        if handles is None:
            raise IOFailure("no log file is open")
        if handles.error is not None and severity >= Severity.ERROR:
            handles.error.write(line)
            if self.config.count_error_in_size:
                self._account(len(line))
            if not self.config.err_in_normal:
                return
        if self._buffer is not None:
            self._buffer.enqueue(line, block=False)
        else:
            handles.write_normal(line)
        self._account(len(line))

    def _account(self, n: int) -> None:
        with self._size_lock:
            self._state.size += n

    def _fail(self, err: LogSinkError) -> LogSinkError:
        self._report(f"[logsink] {type(err).__name__}: {err}")
        return err

    # ---------- rotation ----------

    def check_split(self, incoming: int = 0) -> bool:
        """Rotate if due. Returns True when this call performed the rotation."""
        if not self._policy.active or self._closed:
            return False
        now = self._clock()
        if not self._policy.should_split(self._state, now, incoming).due:
            return False
        with self._lock.write():
            # another producer may have rotated while we waited
            decision = self._policy.should_split(self._state, now, incoming)
            if not decision.due or self._state.handles is None:
                return False
            return self._rotate(decision, now)

    def _rotate(self, decision: SplitDecision, now: datetime) -> bool:
        # exclusive lock held
        old = self._state.handles
        if self._buffer is not None:
            self._buffer.drain_locked()
        exclude = [old.slot] if old is not None and old.slot is not None else []
        try:
            handles, size = self._resolver.resolve(now, exclude=exclude)
        except IOFailure as e:
            msg = f"ERROR!!!!!!!! split log file failed: {e} !!!!!!!!ERROR\n"
            self._report(msg)
            # don't retry on every entry; the next boundary tries again
            if decision.kind is SplitKind.BY_DATE and decision.date_key:
                self._state.file_date = decision.date_key
            else:
                self._state.size = 0
            self._write_best_effort(old, msg.encode("utf-8"))
            return False
        self._install(handles, size, file_date=decision.date_key)
        if old is not None:
            try:
                old.close()
            except IOFailure as e:
                self._report(f"[logsink] closing rotated file failed: {e}")
        return True

    def _install(self, handles: FileHandleSet, size: int, file_date: Optional[str] = None) -> None:
        # exclusive lock held (or not yet shared)
        self._state.handles = handles
        with self._size_lock:
            self._state.size = size
        self._state.file_date = file_date or self._policy.date_key(self._clock())
        if self._buffer is not None:
            self._buffer.attach(handles.buffered)

    def _write_best_effort(self, handles: Optional[FileHandleSet], data: bytes) -> None:
        if handles is None:
            return
        try:
            if handles.buffered is not None:
                handles.buffered.write(data)
                handles.buffered.flush()
            else:
                handles.write_normal(data)
        except (OSError, ValueError, IOFailure) as e:
            self._report(f"[logsink] could not record split failure in {handles.normal_path}: {e}")

    # ---------- housekeeping ----------

    @property
    def state(self) -> RotationState:
        return self._state

    def live_paths(self) -> List[Path]:
        with self._lock.read():
            handles = self._state.handles
            return handles.live_paths() if handles is not None else []

    def flush(self) -> None:
        if self._buffer is not None:
            self._buffer.flush_sync()

    def purge(self, max_age_days: int) -> SweepReport:
        """
        Delete logs older than ``max_age_days``; ``<= 0`` wipes everything not
        marked keep, the live files included (they are reopened fresh).
        Must not be called while holding this hook's lock.
        """
        if not self.config.log_dir:
            logger.warning("[retention] no log_dir configured; refusing to sweep the working directory")
            return SweepReport()
        return self.sweeper.sweep(max_age_days)

    def _reset_files(self) -> None:
        if self.config.log_file_disable or self._closed:
            return
        with self._lock.write():
            old = self._state.handles
            if old is None:
                return
            if self._buffer is not None:
                self._buffer.drain_locked()
            doomed = [old.normal_path]
            if old.error is not None and old.error.is_created:
                doomed.append(old.error.path)
            try:
                old.close()
            except IOFailure as e:
                self._report(f"[logsink] close before purge failed: {e}")
            for path in doomed:
                try:
                    path.unlink()
                except FileNotFoundError:
                    pass
                except OSError as e:
                    self._report(f"[logsink] remove {path} failed: {e}")
            self._state.handles = None
            if self._buffer is not None:
                self._buffer.attach(None)
            try:
                handles, size = self._resolver.resolve(self._clock(), resume=False)
            except IOFailure as e:
                self._report(f"[logsink] reopen after purge failed: {e}")
                return
            self._install(handles, size)

    def shutdown(self) -> None:
        """Stop background tasks, flush and close the files. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._retention_timer is not None:
            self._retention_timer.stop()
        if self._buffer is not None:
            self._buffer.stop()
        with self._lock.write():
            if self._buffer is not None:
                # lines enqueued by handle() calls that raced the flusher stop
                self._buffer.drain_locked()
            handles, self._state.handles = self._state.handles, None
            if self._buffer is not None:
                self._buffer.attach(None)
        if handles is not None:
            try:
                handles.close()
            except IOFailure as e:
                self._report(f"[logsink] close on shutdown failed: {e}")

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "RotatingHook":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()


__all__ = ["RotatingHook", "FILE_KEY", "FUNC_KEY"]

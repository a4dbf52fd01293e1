# logsink/core/buffered_sink.py
from __future__ import annotations
import threading
from collections import deque
from typing import Callable, Deque, List, Optional

from logsink.utils.rwlock import ReadWriteLock


class BufferedSink:
    """
    Decouples producers from the disk write.

    Producers only touch the queue (``wait_for_room`` then ``enqueue``) and
    never wait for room while holding the shared lock. A single flusher
    thread owns the ``io.BufferedWriter``: it waits for work, takes the
    shared lock, drains the whole queue, writes the batch and flushes the OS buffer only
    when nothing new arrived meanwhile. Anything that must touch the writer
    from outside the flusher (sync flush, rotation, shutdown) holds the
    exclusive lock.

    Usage:
        sink = BufferedSink(lock, report=print)
        sink.attach(writer)
        sink.start()
        sink.enqueue(b"line\\n")
        ...
        sink.stop()
    """

    def __init__(
        self,
        lock: ReadWriteLock,
        *,
        max_pending: int = 10_000,
        report: Optional[Callable[[str], None]] = None,
        name: str = "logsink-flusher",
    ):
        self._lock = lock
        self._max_pending = max(1, int(max_pending))
        self._report = report or (lambda _msg: None)
        self._name = name

        self._queue: Deque[bytes] = deque()
        self._cond = threading.Condition(threading.Lock())
        self._writer = None
        self._stop_evt = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ---------- public API ----------

    def attach(self, writer) -> None:
        """Swap the underlying writer. Caller must hold the exclusive lock."""
        self._writer = writer

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_evt.clear()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def wait_for_room(self, timeout: Optional[float] = None) -> bool:
        """Block until the queue has space (or the sink is stopping). Call without holding the lock."""
        with self._cond:
            return self._cond.wait_for(self._has_room, timeout)

    def enqueue(self, line: bytes, block: bool = True) -> None:
        """
        Queue one line. With ``block=False`` the bound is not enforced here;
        callers holding the shared lock use that after ``wait_for_room``.
        """
        with self._cond:
            if block:
                while not self._has_room():
                    self._cond.wait()
            self._queue.append(line)
            self._cond.notify_all()

    def pending(self) -> int:
        with self._cond:
            return len(self._queue)

    def flush_sync(self) -> None:
        """Force everything queued so far onto disk before returning."""
        with self._lock.write():
            self.drain_locked()

    def drain_locked(self) -> None:
        """Write out the queue and flush. Caller must hold the exclusive lock."""
        batch = self._pop_all()
        self._write_batch(batch)
        self._flush()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop_evt.set()
        with self._cond:
            self._cond.notify_all()
        th = self._thread
        if th is not None:
            th.join(timeout)
        self._thread = None
        self.flush_sync()

    # ---------- internals ----------

    def _has_room(self) -> bool:
        # _cond held
        return len(self._queue) < self._max_pending or self._stop_evt.is_set()

    def _pop_all(self) -> List[bytes]:
        with self._cond:
            batch = list(self._queue)
            self._queue.clear()
            self._cond.notify_all()
            return batch

    def _is_empty(self) -> bool:
        with self._cond:
            return not self._queue

    def _write_batch(self, batch: List[bytes]) -> None:
        writer = self._writer
        if writer is None:
            if batch:
                self._report(f"buffered sink has no writer, dropped {len(batch)} line(s)")
            return
        for line in batch:
            try:
                writer.write(line)
            except (OSError, ValueError) as e:
                self._report(f"buffered write failed: {e}")

    def _flush(self) -> None:
        writer = self._writer
        if writer is None:
            return
        try:
            writer.flush()
        except (OSError, ValueError) as e:
            self._report(f"buffer flush failed: {e}")

    def _run(self) -> None:
        while True:
            with self._cond:
                while not self._queue and not self._stop_evt.is_set():
                    self._cond.wait()
                if self._stop_evt.is_set() and not self._queue:
                    return
            # shared lock before popping: a sync flush can never overtake a popped batch
            with self._lock.read():
                batch = self._pop_all()
                if not batch:
                    continue
                self._write_batch(batch)
                if self._is_empty():
                    self._flush()


__all__ = ["BufferedSink"]

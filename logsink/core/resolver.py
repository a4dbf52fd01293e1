# logsink/core/resolver.py
from __future__ import annotations
import io
import os
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from logsink.config import LogConfig
from logsink.core.lazy_file import LazyFile, open_append
from logsink.core.split_policy import SplitPolicy
from logsink.errors import IOFailure
from logsink.utils.paths import STAMP_FMT, folder_size, list_dirs, list_files, make_file_name_legal

_STAMP_RE = r"(\d{4}_\d{2}_\d{2}_\d{6})(?:_(\d+))?"


@dataclass
class FileHandleSet:
    """The handles of one rotation slot. Replaced as a whole, never patched."""
    normal: io.FileIO
    error: Optional[LazyFile] = None
    buffered: Optional[io.BufferedWriter] = None
    # file (or folder, with separated errors) that identifies the size-split slot
    slot: Optional[Path] = None

    @property
    def normal_path(self) -> Path:
        return Path(self.normal.name)

    @property
    def error_path(self) -> Optional[Path]:
        return self.error.path if self.error is not None else None

    def live_paths(self) -> List[Path]:
        paths = [self.normal_path]
        if self.error is not None:
            paths.append(self.error.path)
        return paths

    def write_normal(self, data: bytes) -> int:
        try:
            return self.normal.write(data)
        except (OSError, ValueError) as e:
            raise IOFailure(f"write {self.normal.name} failed: {e}", str(self.normal.name)) from e

    def close(self) -> None:
        """Flush and close everything. Errors from individual handles are collected and re-raised."""
        failures: List[str] = []
        try:
            if self.buffered is not None:
                self.buffered.close()  # closes self.normal too
            else:
                self.normal.close()
        except OSError as e:
            failures.append(f"{self.normal.name}: {e}")
        if self.error is not None:
            try:
                self.error.close()
            except OSError as e:
                failures.append(f"{self.error.path}: {e}")
        if failures:
            raise IOFailure("close failed: " + "; ".join(failures))


class WriteTargetResolver:
    """
    Finds or creates the file(s) a rotation slot writes to.

    Layout:
      no split    <dir>/<default>[_<suffix>]<ext>
      date split  <dir>/<YYYY_MM_DD>/<YYYY_MM_DD>[_<suffix>]<ext>
      size split  <dir>/<YYYY_MM_DD_HHMMSS>[_<suffix>]<ext>
                  <dir>/<YYYY_MM_DD_HHMMSS>/...   when errors are separated
    With separated errors each size slot gets its own timestamped folder
    rather than sharing the day folder, so a slot can be resumed and swept
    as one unit.
    The error file carries an ``_error`` infix next to the normal one.
    """

    def __init__(self, config: LogConfig, policy: Optional[SplitPolicy] = None):
        self.config = config
        self.policy = policy or SplitPolicy(config)
        self.root = config.log_path()
        suffix = "_" + config.file_name_suffix if config.file_name_suffix else ""
        self._tail = make_file_name_legal(suffix + config.log_ext)
        self._file_re = re.compile("^" + _STAMP_RE + re.escape(self._tail) + "$")
        self._dir_re = re.compile("^" + _STAMP_RE + "$")

    # ---------- naming ----------

    def file_names(self, base: str) -> Tuple[str, str]:
        """(normal, error) file names for a slot base name."""
        normal = make_file_name_legal(base) + self._tail
        error = make_file_name_legal(base + "_error") + self._tail
        return normal, error

    def stamp(self, now: datetime) -> str:
        tz = self.policy.tz
        if tz is not None:
            now = now.astimezone(tz)
        return now.strftime(STAMP_FMT)

    # ---------- public ----------

    def resolve(
        self, now: datetime, exclude: Iterable[Path] = (), resume: bool = True
    ) -> Tuple[FileHandleSet, int]:
        """
        Open the handles for the slot that should receive writes at ``now``.
        Returns (handles, bytes already in the slot). ``exclude`` lists slots
        that must not be resumed (the one being rotated away from); with
        ``resume=False`` a size-split slot is always a fresh one.
        Raises IOFailure.
        """
        self._mkdir(self.root)
        if self.config.max_log_size > 0:
            skip = {os.path.normcase(os.path.abspath(p)) for p in exclude}
            if self.config.err_separate:
                return self._resolve_size_folder(now, skip, resume)
            return self._resolve_size_file(now, skip, resume)
        if self.config.date_split:
            key = self.policy.date_key(now)
            return self._open_in(self.root / key, key)
        return self._open_in(self.root, self.config.default_log_name)

    # ---------- internals ----------

    def _open_in(self, folder: Path, base: str, slot: Optional[Path] = None) -> Tuple[FileHandleSet, int]:
        self._mkdir(folder)
        normal_name, error_name = self.file_names(base)
        normal = open_append(folder / normal_name)
        error = LazyFile(folder / error_name) if self.config.err_separate else None
        size = normal.seek(0, os.SEEK_END)
        buffered = None
        if self.config.buffered:
            buffered = io.BufferedWriter(normal, buffer_size=self.config.writer_buffer_size)
        handles = FileHandleSet(normal=normal, error=error, buffered=buffered, slot=slot or folder / normal_name)
        return handles, size

    def _latest(self, names: List[str], pattern: "re.Pattern[str]") -> Optional[str]:
        best: Optional[Tuple[str, int]] = None
        best_name = None
        for name in names:
            m = pattern.match(name)
            if not m:
                continue
            key = (m.group(1), int(m.group(2) or 0))
            if best is None or key > best:
                best, best_name = key, name
        return best_name

    def _fresh_base(self, now: datetime, taken: Iterable[str], as_dir: bool) -> str:
        taken = set(taken)
        base = self.stamp(now)
        seq = 0
        while True:
            candidate = base if seq == 0 else f"{base}_{seq}"
            name = candidate if as_dir else self.file_names(candidate)[0]
            if name not in taken:
                return candidate
            seq += 1

    def _resolve_size_file(self, now: datetime, skip: set, resume: bool = True) -> Tuple[FileHandleSet, int]:
        names = self._scan(list_files)
        latest = self._latest(names, self._file_re)
        if latest is not None and resume:
            path = self.root / latest
            if os.path.normcase(os.path.abspath(path)) not in skip:
                size = self._stat_size(path)
                if size < self.config.max_log_size:
                    return self._open_in(self.root, self._base_of(latest))
        return self._open_in(self.root, self._fresh_base(now, names, as_dir=False))

    def _resolve_size_folder(self, now: datetime, skip: set, resume: bool = True) -> Tuple[FileHandleSet, int]:
        names = self._scan(list_dirs)
        latest = self._latest(names, self._dir_re)
        if latest is not None and resume:
            folder = self.root / latest
            if os.path.normcase(os.path.abspath(folder)) not in skip:
                try:
                    used = folder_size(folder)
                except OSError as e:
                    raise IOFailure(f"size of {folder} failed: {e}", str(folder)) from e
                if used < self.config.max_log_size:
                    handles, _ = self._open_in(folder, latest, slot=folder)
                    return handles, used
        base = self._fresh_base(now, names, as_dir=True)
        return self._open_in(self.root / base, base, slot=self.root / base)

    def _base_of(self, file_name: str) -> str:
        return file_name[: len(file_name) - len(self._tail)]

    def _scan(self, lister) -> List[str]:
        try:
            return lister(self.root)
        except OSError as e:
            raise IOFailure(f"list {self.root} failed: {e}", str(self.root)) from e

    @staticmethod
    def _stat_size(path: Path) -> int:
        try:
            return path.stat().st_size
        except OSError as e:
            raise IOFailure(f"stat {path} failed: {e}", str(path)) from e

    @staticmethod
    def _mkdir(path: Path) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailure(f"mkdir {path} failed: {e}", str(path)) from e


__all__ = ["FileHandleSet", "WriteTargetResolver"]

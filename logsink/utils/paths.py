# logsink/utils/paths.py
from __future__ import annotations
import os
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

DATE_FMT = "%Y_%m_%d"            # 2024_01_31
STAMP_FMT = "%Y_%m_%d_%H%M%S"    # 2024_01_31_235959 (size split)
DATE_KEY_LEN = len("2024_01_31")
STAMP_KEY_LEN = len("2024_01_31_235959")

_ILLEGAL = '/\\:*?"<>|'
_ILLEGAL_TABLE = str.maketrans({c: "_" for c in _ILLEGAL})


def make_file_name_legal(name: str) -> str:
    """Replace characters that are illegal in file names with ``_``."""
    return name.translate(_ILLEGAL_TABLE)


def short_file_name(file: str, line: Optional[int] = None) -> str:
    # D:\xxx\yyy\project\pkg\log.py -> log.py:123
    file = str(file or "").replace("\\", "/")
    base = file.rsplit("/", 1)[-1]
    return f"{base}:{line}" if line is not None else base


def list_dirs(path: Path) -> List[str]:
    return sorted(e.name for e in os.scandir(path) if e.is_dir())


def list_files(path: Path) -> List[str]:
    return sorted(e.name for e in os.scandir(path) if not e.is_dir())


def is_empty_dir(path: Path) -> bool:
    with os.scandir(path) as it:
        return next(it, None) is None


def folder_size(path: Path) -> int:
    total = 0
    for root, _dirs, files in os.walk(path):
        for f in files:
            total += os.path.getsize(os.path.join(root, f))
    return total


def parse_date_key(name: str) -> Optional[date]:
    """``2024_01_31...`` -> date(2024, 1, 31); anything else -> None."""
    if len(name) < DATE_KEY_LEN:
        return None
    try:
        return datetime.strptime(name[:DATE_KEY_LEN], DATE_FMT).date()
    except ValueError:
        return None


def has_keep_suffix(name: str, suffix: str) -> bool:
    if not suffix:
        return False
    return name.endswith(suffix) or Path(name).stem.endswith(suffix)

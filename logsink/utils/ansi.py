# logsink/utils/ansi.py
from __future__ import annotations

_CSI = b"\x1b["
_RESET = b"\x1b[0m"


def strip_ansi(line: bytes) -> bytes:
    """
    Remove SGR color sequences such as ``\\x1b[31m`` / ``\\x1b[0m`` from a line.

    Only lines that carry a reset sequence are touched. The terminating ``m``
    must sit within 1-4 parameter bytes of ``\\x1b[``; if any sequence is
    incomplete the line is returned unchanged rather than half-stripped.
    """
    if _RESET not in line:
        return line
    out = bytearray()
    start = 0
    n = len(line)
    while start < n:
        idx = line.find(_CSI, start)
        if idx < 0:
            out += line[start:]
            break
        out += line[start:idx]
        end = line.find(b"m", idx + 3, min(idx + 7, n))
        if end < 0:
            return line
        start = end + 1
    return bytes(out)

# logsink/__main__.py
from __future__ import annotations
import argparse
import sys
from pathlib import Path

from loguru import logger

from logsink.config import DEFAULT_KEEP_SUFFIX, DEFAULT_SAVE_PATH
from logsink.ops.retention import RetentionSweeper


def _setup_logger(verbose: bool = False) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=("DEBUG" if verbose else "INFO"),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
    )


def main(argv=None) -> int:
    """
    Examples:
      python -m logsink sweep --dir logs --days 7
      python -m logsink purge --dir logs
    """
    p = argparse.ArgumentParser(prog="logsink", description="Log folder housekeeping")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("sweep", help="delete logs older than --days")
    sp.add_argument("--dir", default=DEFAULT_SAVE_PATH)
    sp.add_argument("--days", type=int, required=True)
    sp.add_argument("--keep-suffix", default=DEFAULT_KEEP_SUFFIX)

    pp = sub.add_parser("purge", help="delete everything not marked keep")
    pp.add_argument("--dir", default=DEFAULT_SAVE_PATH)
    pp.add_argument("--keep-suffix", default=DEFAULT_KEEP_SUFFIX)

    p.add_argument("--verbose", action="store_true")
    args = p.parse_args(argv)

    _setup_logger(args.verbose)
    days = args.days if args.cmd == "sweep" else 0
    if args.cmd == "sweep" and days <= 0:
        logger.error("--days must be > 0 (use 'purge' to delete everything)")
        return 2

    sweeper = RetentionSweeper(Path(args.dir), keep_suffix=args.keep_suffix)
    report = sweeper.sweep(days)
    for path in report.removed:
        logger.debug(f"removed {path}")
    logger.info(f"{args.cmd}: removed={len(report.removed)} errors={len(report.errors)}")
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())

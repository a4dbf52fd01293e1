"""Tests for the ``python -m logsink`` housekeeping CLI."""

from __future__ import annotations

from logsink.__main__ import main


def test_sweep_removes_old_folders(tmp_path, restore_loguru) -> None:
    old = tmp_path / "2000_01_01"
    old.mkdir()
    (old / "2000_01_01.log").write_text("x\n")
    kept = tmp_path / "2000_01_02_keep"
    kept.mkdir()

    assert main(["sweep", "--dir", str(tmp_path), "--days", "7"]) == 0
    assert not old.exists()
    assert kept.exists()


def test_sweep_requires_positive_days(tmp_path, restore_loguru) -> None:
    assert main(["sweep", "--dir", str(tmp_path), "--days", "0"]) == 2


def test_purge_deletes_everything_not_kept(tmp_path, restore_loguru) -> None:
    (tmp_path / "default.log").write_text("x\n")
    (tmp_path / "important_keep.log").write_text("y\n")

    assert main(["--verbose", "purge", "--dir", str(tmp_path)]) == 0
    assert sorted(p.name for p in tmp_path.iterdir()) == ["important_keep.log"]

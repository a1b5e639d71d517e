"""Unit tests for shared utilities."""

from __future__ import annotations

from pathlib import Path

import pytest

from bumpline.utils import (
    CROSS_PREFIX,
    WARNING_PREFIX,
    atomic_write_text,
    configure_logging,
    log_error,
    log_warning,
    read_text,
)


def test_atomic_write_text_preserves_line_endings(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "file.txt"

    atomic_write_text(target, "a\r\nb\n")

    assert target.read_bytes() == b"a\r\nb\n"
    assert read_text(target) == "a\r\nb\n"
    assert [path.name for path in target.parent.iterdir()] == ["file.txt"]


def test_atomic_write_text_replaces_existing_file(tmp_path: Path) -> None:
    target = tmp_path / "file.txt"
    target.write_text("old", encoding="utf-8")

    atomic_write_text(target, "new")

    assert target.read_text(encoding="utf-8") == "new"


def test_log_helpers_prefix_every_line(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging()

    log_warning("first\nsecond")
    log_error("failed")

    err = capsys.readouterr().err
    assert f"{WARNING_PREFIX}first\n{WARNING_PREFIX}second\n" in err
    assert f"{CROSS_PREFIX}failed\n" in err

"""Shared fixtures: stand-in archiver commands and a populated source directory.

The archiver is swapped for tiny ``python -c`` programs so tests do not depend
on the host's ``tar`` and can simulate success, failure and hangs on demand.
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

Builder = Callable[[Path, Path], Sequence[str]]


@pytest.fixture  # type: ignore[misc]
def source_dir(tmp_path: Path) -> Path:
    """A source directory holding `a.txt` and `b.txt`."""
    src = tmp_path / "source"
    src.mkdir()
    (src / "a.txt").write_text("alpha", encoding="utf-8")
    (src / "b.txt").write_text("beta", encoding="utf-8")
    return src


@pytest.fixture  # type: ignore[misc]
def succeeding_archiver() -> Builder:
    """Archiver that writes a placeholder artifact and exits 0."""

    def build(source: Path, artifact: Path) -> list[str]:
        code = "import pathlib, sys; pathlib.Path(sys.argv[1]).write_bytes(b'archive')"
        return [sys.executable, "-c", code, str(artifact)]

    return build


@pytest.fixture  # type: ignore[misc]
def failing_archiver() -> Builder:
    """Archiver that exits with status 3 without writing anything."""

    def build(source: Path, artifact: Path) -> list[str]:
        return [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"]

    return build


@pytest.fixture  # type: ignore[misc]
def missing_archiver() -> Builder:
    """Archiver whose executable does not exist (spawn error)."""

    def build(source: Path, artifact: Path) -> list[str]:
        return [str(source.parent / "no-such-archiver"), str(artifact)]

    return build


@pytest.fixture  # type: ignore[misc]
def hanging_archiver() -> Builder:
    """Archiver that sleeps far longer than any test timeout."""

    def build(source: Path, artifact: Path) -> list[str]:
        return [sys.executable, "-c", "import time; time.sleep(60)"]

    return build

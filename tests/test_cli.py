# tests/test_cli.py
"""
Tests for the backup-trigger command-line interface (CLI).

Scope
-----
1.  **Usage**: `--help` works and missing positional arguments are rejected.
2.  **Outcomes**: skip, success and archiver failure each print one status line.
3.  **Fatal errors**: an unreadable source exits 1 without writing the log.

The real `tar` is swapped for a fixture command by patching
`backup_trigger.cli.tar_command`, which `build_engine()` reads at call time.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
from collections.abc import Callable, Sequence
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from backup_trigger.cli import app
from backup_trigger.core.fingerprint import compute_fingerprint

Builder = Callable[[Path, Path], Sequence[str]]


@pytest.fixture  # type: ignore[misc]
def runner() -> CliRunner:
    """Create a fresh CliRunner for each test."""
    return CliRunner()


def test_cli_help_shows_usage(runner: CliRunner) -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0, f"Help failed: {result.output}"
    assert "SOURCE" in result.output
    assert "DESTINATION" in result.output


def test_missing_arguments_exit_non_zero(runner: CliRunner, tmp_path: Path) -> None:
    """Both positional arguments are required."""
    result = runner.invoke(app, [str(tmp_path)])
    assert result.exit_code != 0
    assert "Usage" in result.output


def test_backup_success_prints_artifact(
    runner: CliRunner, source_dir: Path, tmp_path: Path, succeeding_archiver: Builder
) -> None:
    log = tmp_path / "backup_log.txt"
    dest = tmp_path / "backups"

    with patch("backup_trigger.cli.tar_command", succeeding_archiver):
        result = runner.invoke(app, [str(source_dir), str(dest), "--log-file", str(log)])

    assert result.exit_code == 0, f"CLI failed with output:\n{result.output}"
    assert "Backup successful" in result.output
    [artifact] = list(dest.iterdir())
    assert artifact.name in result.output
    assert f"HASH: {compute_fingerprint(source_dir)}" in log.read_text(encoding="utf-8")


def test_unchanged_source_is_skipped(runner: CliRunner, source_dir: Path, tmp_path: Path) -> None:
    log = tmp_path / "backup_log.txt"
    log.write_text(
        "2026-10-19T09:00:00.000Z: SUCCESS: Backup created at /b/x.tar.gz, "
        f"HASH: {compute_fingerprint(source_dir)}\n",
        encoding="utf-8",
    )
    dest = tmp_path / "backups"

    result = runner.invoke(app, [str(source_dir), str(dest), "--log-file", str(log)])

    assert result.exit_code == 0, result.output
    assert "No changes detected. Skipping backup." in result.output
    assert not dest.exists()
    assert log.read_text(encoding="utf-8").splitlines()[-1].endswith("SKIPPED: No changes detected")


def test_archiver_failure_is_reported_but_exits_zero(
    runner: CliRunner, source_dir: Path, tmp_path: Path, failing_archiver: Builder
) -> None:
    """The failure is durable in the log, not in the exit status."""
    log = tmp_path / "backup_log.txt"

    with patch("backup_trigger.cli.tar_command", failing_archiver):
        result = runner.invoke(
            app, [str(source_dir), str(tmp_path / "out"), "--log-file", str(log)]
        )

    assert result.exit_code == 0, result.output
    assert "Backup failed" in result.output
    assert ": FAILED: " in log.read_text(encoding="utf-8")


def test_unreadable_source_exits_one_without_log(runner: CliRunner, tmp_path: Path) -> None:
    log = tmp_path / "backup_log.txt"

    result = runner.invoke(
        app, [str(tmp_path / "ghost"), str(tmp_path / "out"), "--log-file", str(log)]
    )

    assert result.exit_code == 1, f"Expected 1, got {result.exit_code}:\n{result.output}"
    assert "Error" in result.output
    assert not log.exists()
    assert not (tmp_path / "out").exists()


def test_log_file_defaults_to_settings(
    runner: CliRunner, source_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Without --log-file the log lands where BACKUP_LOG_FILE points."""
    from backup_trigger.core.settings import load_settings

    log = tmp_path / "from_env.txt"
    monkeypatch.setenv("BACKUP_LOG_FILE", str(log))
    load_settings.cache_clear()
    try:
        with patch("backup_trigger.cli.tar_command", lambda s, a: ["true"]):
            result = runner.invoke(app, [str(source_dir), str(tmp_path / "out")])
    finally:
        monkeypatch.delenv("BACKUP_LOG_FILE")
        load_settings.cache_clear()

    assert result.exit_code == 0, result.output
    assert log.exists()


def _run_cli(cwd: Path, *args: str) -> list[str]:
    """Run the CLI in a child process at the default log level; return all output lines."""
    env = {k: v for k, v in os.environ.items() if k not in {"LOG_LEVEL", "BACKUP_LOG_FILE"}}
    proc = subprocess.run(
        [sys.executable, "-m", "backup_trigger.cli", *args],
        cwd=cwd,
        env=env,
        capture_output=True,
        text=True,
        check=False,
        timeout=60,
    )
    assert proc.returncode == 0, f"stdout:\n{proc.stdout}\nstderr:\n{proc.stderr}"
    return [line for line in (proc.stdout + proc.stderr).splitlines() if line.strip()]


def test_default_skip_run_prints_one_line(source_dir: Path, tmp_path: Path) -> None:
    """Stdout and stderr together carry only the status line for a skip."""
    log = tmp_path / "backup_log.txt"
    log.write_text(
        "2026-10-19T09:00:00.000Z: SUCCESS: Backup created at /b/x.tar.gz, "
        f"HASH: {compute_fingerprint(source_dir)}\n",
        encoding="utf-8",
    )

    lines = _run_cli(tmp_path, str(source_dir), str(tmp_path / "out"), "--log-file", str(log))

    assert lines == ["No changes detected. Skipping backup."]


@pytest.mark.skipif(shutil.which("tar") is None, reason="tar not available")  # type: ignore[misc]
def test_default_success_run_prints_one_line(source_dir: Path, tmp_path: Path) -> None:
    log = tmp_path / "backup_log.txt"

    lines = _run_cli(tmp_path, str(source_dir), str(tmp_path / "out"), "--log-file", str(log))

    assert len(lines) == 1, lines
    assert lines[0].startswith("Backup successful:")


def test_dotenv_in_working_directory_sets_log_file(source_dir: Path, tmp_path: Path) -> None:
    """A `.env` next to the invocation configures the default history log."""
    (tmp_path / ".env").write_text("BACKUP_LOG_FILE=from_dotenv.txt\n", encoding="utf-8")
    log = tmp_path / "backup_log.txt"
    log.write_text(
        "2026-10-19T09:00:00.000Z: SUCCESS: Backup created at /b/x.tar.gz, "
        f"HASH: {compute_fingerprint(source_dir)}\n",
        encoding="utf-8",
    )
    (tmp_path / "from_dotenv.txt").write_text(log.read_text(encoding="utf-8"), encoding="utf-8")

    lines = _run_cli(tmp_path, str(source_dir), str(tmp_path / "out"))

    assert lines == ["No changes detected. Skipping backup."]
    written = (tmp_path / "from_dotenv.txt").read_text(encoding="utf-8").splitlines()
    assert written[-1].endswith("SKIPPED: No changes detected")
    assert len(log.read_text(encoding="utf-8").splitlines()) == 1

# src/backup_trigger/cli.py
"""
backup-trigger Command Line Interface (CLI).

This module implements the terminal entry point using `typer` and `rich`.
Each invocation performs exactly one backup check and prints exactly one
status line:

- **Skip**: the source's top-level listing matches the last successful backup.
- **Success**: a new archive was written and recorded in the history log.
- **Failure**: the archiver failed; the failure is recorded in the log and the
  command still exits 0, so the next scheduled run retries.

Fatal pre-checks (unreadable source, uncreatable destination) exit with code 1
and leave the history log untouched.

Usage
-----
    $ backup-trigger ~/documents /mnt/backups
    $ backup-trigger ~/documents /mnt/backups --log-file /var/log/backup_log.txt --timeout 600
"""

from __future__ import annotations

import asyncio
import traceback
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

# Load .env before the settings singleton is built by the package imports below
load_dotenv()

from backup_trigger.core.archiver import ArchiveProducer, tar_command  # noqa: E402
from backup_trigger.core.engine import BackupEngine, Decision, RunOutcome  # noqa: E402
from backup_trigger.core.errors import BackupError  # noqa: E402
from backup_trigger.core.history import EntryStatus, HistoryStore  # noqa: E402
from backup_trigger.core.settings import load_settings  # noqa: E402

app = typer.Typer(
    help="backup-trigger: archive a directory only when its contents have changed.",
    rich_markup_mode="markdown",
)
console = Console(soft_wrap=True)


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def build_engine(log_file: Path, timeout: float | None) -> BackupEngine:
    """Assemble a :class:`BackupEngine` writing to ``log_file``."""
    history = HistoryStore(log_file)
    producer = ArchiveProducer(history, build_command=tar_command, timeout=timeout)
    return BackupEngine(history, producer)


def _report(outcome: RunOutcome) -> None:
    """Print the single console line describing ``outcome``."""
    if outcome.decision is Decision.SKIP:
        console.print("[yellow]No changes detected. Skipping backup.[/yellow]")
    elif outcome.entry.status is EntryStatus.SUCCESS:
        console.print(f"[bold green]Backup successful:[/bold green] {escape(str(outcome.artifact))}")
    else:
        console.print(f"[bold red]Backup failed:[/bold red] {escape(outcome.entry.detail or '')}")


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def backup(
    source: Annotated[
        Path,
        typer.Argument(help="Directory to back up."),
    ],
    destination: Annotated[
        Path,
        typer.Argument(help="Directory that receives the archives (created if missing)."),
    ],
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            "-l",
            help="History log path. Defaults to BACKUP_LOG_FILE or ./backup_log.txt.",
        ),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option(
            "--timeout",
            "-t",
            min=0.001,
            help="Kill the archiver after this many seconds and record a failure.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show full error tracebacks for debugging.",
        ),
    ] = False,
) -> None:
    """
    Back up SOURCE into DESTINATION if it changed since the last successful backup.

    Change detection compares a SHA-256 fingerprint of the source's top-level
    entry names against the last SUCCESS line of the history log.
    """
    cfg = load_settings()
    engine = build_engine(
        log_file if log_file is not None else cfg.log_file,
        timeout if timeout is not None else cfg.archiver_timeout,
    )

    try:
        outcome = asyncio.run(engine.run(source, destination))
    except (BackupError, OSError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        if verbose:
            traceback.print_exc()
        raise typer.Exit(code=1) from e

    _report(outcome)


if __name__ == "__main__":
    app()

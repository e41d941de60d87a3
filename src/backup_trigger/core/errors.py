"""Exception taxonomy for the backup engine.

Fatal conditions (`DirectoryUnreadable`, `DestinationUnwritable`) propagate to
the CLI, which exits non-zero without touching the history log. The other two
are recovered where they happen: a degraded history read becomes "no previous
fingerprint", and an archiver failure becomes a FAILED log entry.
"""

from __future__ import annotations

from pathlib import Path


class BackupError(Exception):
    """Base class for every error raised by the backup engine."""


class DirectoryUnreadable(BackupError):
    """The source directory is missing, not a directory, or cannot be listed."""

    def __init__(self, directory: Path, reason: str) -> None:
        super().__init__(f"Cannot read directory {directory}: {reason}")
        self.directory = directory
        self.reason = reason


class DestinationUnwritable(BackupError):
    """The destination directory could not be created."""

    def __init__(self, destination: Path, reason: str) -> None:
        super().__init__(f"Cannot create destination {destination}: {reason}")
        self.destination = destination
        self.reason = reason


class HistoryReadDegraded(BackupError):
    """The history log exists but could not be read or decoded."""

    def __init__(self, log_path: Path, reason: str) -> None:
        super().__init__(f"Cannot read history log {log_path}: {reason}")
        self.log_path = log_path
        self.reason = reason


class ArchiverFailure(BackupError):
    """The external archiver failed to start, exited non-zero, or timed out."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


__all__ = [
    "ArchiverFailure",
    "BackupError",
    "DestinationUnwritable",
    "DirectoryUnreadable",
    "HistoryReadDegraded",
]

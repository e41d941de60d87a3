"""Core package for the backup engine.

Re-exports the pieces the CLI wires together so callers can do:
    from backup_trigger.core import BackupEngine, HistoryStore, ArchiveProducer
"""

from __future__ import annotations

from .archiver import ArchiveProducer, artifact_name, tar_command
from .engine import BackupEngine, Decision, RunOutcome, decide
from .errors import (
    ArchiverFailure,
    BackupError,
    DestinationUnwritable,
    DirectoryUnreadable,
    HistoryReadDegraded,
)
from .fingerprint import compute_fingerprint
from .history import EntryStatus, HistoryEntry, HistoryStore

__all__ = [
    "ArchiveProducer",
    "ArchiverFailure",
    "BackupEngine",
    "BackupError",
    "Decision",
    "DestinationUnwritable",
    "DirectoryUnreadable",
    "EntryStatus",
    "HistoryEntry",
    "HistoryReadDegraded",
    "HistoryStore",
    "RunOutcome",
    "artifact_name",
    "compute_fingerprint",
    "decide",
    "tar_command",
]

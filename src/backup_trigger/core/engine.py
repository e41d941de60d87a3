"""Decision engine: compare fingerprints and choose between skip and backup."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .archiver import ArchiveProducer
from .fingerprint import compute_fingerprint
from .history import EntryStatus, HistoryEntry, HistoryStore
from .settings import get_logger

logger = get_logger("backup_trigger.engine")


class Decision(str, Enum):
    SKIP = "skip"
    BACKUP = "backup"


def decide(new_fingerprint: str, last_fingerprint: str | None) -> Decision:
    """Return SKIP only when the fingerprint matches the last recorded one.

    A missing ``last_fingerprint`` never matches, so the first run backs up.
    """
    if last_fingerprint is not None and new_fingerprint == last_fingerprint:
        return Decision.SKIP
    return Decision.BACKUP


@dataclass(frozen=True, slots=True)
class RunOutcome:
    """Result of a single engine run.

    Attributes
    ----------
    decision : Decision
        What the engine chose to do.
    entry : HistoryEntry
        The stamped entry appended to the history log for this run.
    fingerprint : str
        Fingerprint computed for the source directory.
    artifact : Path | None
        Archive path when a backup succeeded, otherwise ``None``.
    """

    decision: Decision
    entry: HistoryEntry
    fingerprint: str
    artifact: Path | None = None

    @property
    def succeeded(self) -> bool:
        return self.entry.status is not EntryStatus.FAILED


class BackupEngine:
    """Wire the fingerprinter, history store and archive producer together."""

    def __init__(self, history: HistoryStore, producer: ArchiveProducer) -> None:
        self.history = history
        self.producer = producer

    async def run(self, source: Path, destination: Path) -> RunOutcome:
        """Perform one backup check for ``source``.

        Raises
        ------
        DirectoryUnreadable
            If ``source`` cannot be listed.
        DestinationUnwritable
            If a backup is needed and ``destination`` cannot be created.
        """
        fingerprint = compute_fingerprint(source)
        last = self.history.read_last_fingerprint()
        decision = decide(fingerprint, last)
        logger.debug("Fingerprint %s (last: %s) -> %s", fingerprint, last, decision.value)

        if decision is Decision.SKIP:
            entry = self.history.append(HistoryEntry.skipped())
            return RunOutcome(decision=decision, entry=entry, fingerprint=fingerprint)

        entry = await self.producer.produce(source, destination, fingerprint)
        return RunOutcome(
            decision=decision,
            entry=entry,
            fingerprint=fingerprint,
            artifact=entry.artifact,
        )


__all__ = ["BackupEngine", "Decision", "RunOutcome", "decide"]

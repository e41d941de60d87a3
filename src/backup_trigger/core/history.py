"""
Append-only history log.

The log is both the audit trail of every run and the only place the "last
known fingerprint" is kept. Each run appends exactly one line:

    2026-10-19T12:30:05.123Z: SUCCESS: Backup created at <path>, HASH: <fingerprint>
    2026-10-19T12:31:00.004Z: FAILED: tar command failed (exit status 2)
    2026-10-19T12:32:10.870Z: SKIPPED: No changes detected

Design Notes
------------
- **Typed entries**: :class:`HistoryEntry` is a frozen Pydantic model tagged by
  :class:`EntryStatus`. Only SUCCESS entries carry a fingerprint, which is what
  lets a failed run be retried on the next invocation.
- **Append-only**: :meth:`HistoryStore.append` opens the file in append mode
  and never rewrites existing lines.
- **Fail-open reads**: if the log exists but cannot be read, the store reports
  no previous fingerprint so the caller takes a fresh backup.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import HistoryReadDegraded
from .settings import get_logger

logger = get_logger("backup_trigger.history")

Fingerprint = Annotated[
    str,
    Field(pattern=r"^[0-9a-f]{64}$", description="SHA-256 hex digest of a directory listing."),
]

SKIPPED_DETAIL = "No changes detected"
SUCCESS_PREFIX = "Backup created at "
HASH_SEPARATOR = ", HASH: "

_LINE_RE = re.compile(
    r"^(?P<timestamp>\S+): (?P<status>SUCCESS|FAILED|SKIPPED)(?:: (?P<body>.*))?$"
)
_HASH_RE = re.compile(r"HASH: (?P<fingerprint>[0-9a-f]{64})\b")


class EntryStatus(str, Enum):
    """Outcome recorded by a single run."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


def format_timestamp(moment: datetime) -> str:
    """Render ``moment`` as UTC ISO-8601 with millisecond precision and a ``Z``."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class HistoryEntry(BaseModel):
    """One immutable line of the history log.

    ``timestamp`` stays ``None`` until the entry is written; the store stamps
    it at append time.
    """

    model_config = ConfigDict(frozen=True)

    status: EntryStatus
    detail: str | None = None
    fingerprint: Fingerprint | None = None
    timestamp: datetime | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> HistoryEntry:
        if self.status is EntryStatus.SUCCESS and self.fingerprint is None:
            raise ValueError("SUCCESS entries must carry a fingerprint")
        if self.status is not EntryStatus.SUCCESS and self.fingerprint is not None:
            raise ValueError(f"{self.status.value} entries cannot carry a fingerprint")
        if self.detail is not None and ("\n" in self.detail or "\r" in self.detail):
            raise ValueError("detail must fit on a single line")
        return self

    # ----------------------------- Constructors -----------------------------

    @classmethod
    def success(cls, artifact: Path, fingerprint: str) -> HistoryEntry:
        return cls(
            status=EntryStatus.SUCCESS,
            detail=f"{SUCCESS_PREFIX}{artifact}",
            fingerprint=fingerprint,
        )

    @classmethod
    def failed(cls, detail: str) -> HistoryEntry:
        return cls(status=EntryStatus.FAILED, detail=" ".join(detail.split()))

    @classmethod
    def skipped(cls) -> HistoryEntry:
        return cls(status=EntryStatus.SKIPPED, detail=SKIPPED_DETAIL)

    # ----------------------------- Text format ------------------------------

    @property
    def artifact(self) -> Path | None:
        """Return the archive path named by a SUCCESS entry."""
        if self.status is not EntryStatus.SUCCESS or not self.detail:
            return None
        if not self.detail.startswith(SUCCESS_PREFIX):
            return None
        return Path(self.detail.removeprefix(SUCCESS_PREFIX))

    @property
    def message(self) -> str:
        """Return the part of the log line that follows the timestamp."""
        text = self.status.value
        if self.detail:
            text += f": {self.detail}"
        if self.fingerprint:
            text += f"{HASH_SEPARATOR}{self.fingerprint}"
        return text

    def render(self) -> str:
        """Return the full log line (without the trailing newline)."""
        if self.timestamp is None:
            raise ValueError("cannot render an entry that has not been stamped")
        return f"{format_timestamp(self.timestamp)}: {self.message}"

    @classmethod
    def parse(cls, line: str) -> HistoryEntry | None:
        """Parse one log line, returning ``None`` if it is malformed."""
        match = _LINE_RE.match(line.strip())
        if match is None:
            return None

        status = EntryStatus(match["status"])
        detail = match["body"]
        fingerprint = None
        if status is EntryStatus.SUCCESS and detail and HASH_SEPARATOR in detail:
            detail, fingerprint = detail.rsplit(HASH_SEPARATOR, 1)

        try:
            timestamp = datetime.fromisoformat(match["timestamp"])
            return cls(
                status=status,
                detail=detail or None,
                fingerprint=fingerprint,
                timestamp=timestamp,
            )
        except (ValueError, ValidationError):
            return None


class HistoryStore:
    """Read and append history entries in a single text log file."""

    def __init__(self, log_path: Path) -> None:
        self.log_path = log_path

    def _read_lines(self) -> list[str] | None:
        """Return the log's lines, ``None`` if the log does not exist.

        Raises
        ------
        HistoryReadDegraded
            If the log exists but cannot be read or is not valid UTF-8.
        """
        try:
            text = self.log_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise HistoryReadDegraded(self.log_path, str(exc)) from exc
        return text.splitlines()

    def read_last_fingerprint(self) -> str | None:
        """Return the fingerprint of the most recent SUCCESS line.

        Lines are scanned newest to oldest; a HASH token on any other status is
        ignored. A missing log, a log with no SUCCESS line, or an unreadable
        log all yield ``None``.
        """
        try:
            lines = self._read_lines()
        except HistoryReadDegraded as exc:
            logger.warning("%s; treating history as empty", exc)
            return None

        if lines is None:
            logger.debug("No history log at %s", self.log_path)
            return None

        for line in reversed(lines):
            parsed = _LINE_RE.match(line.strip())
            if parsed is None or parsed["status"] != EntryStatus.SUCCESS.value:
                continue
            match = _HASH_RE.search(parsed["body"] or "")
            if match:
                return match["fingerprint"]
        return None

    def entries(self) -> list[HistoryEntry]:
        """Return every well-formed entry, oldest first.

        Malformed lines are skipped. Unlike :meth:`read_last_fingerprint` this
        raises :class:`HistoryReadDegraded` when the log cannot be read.
        """
        lines = self._read_lines()
        if lines is None:
            return []

        out: list[HistoryEntry] = []
        for number, line in enumerate(lines, 1):
            entry = HistoryEntry.parse(line)
            if entry is None:
                if line.strip():
                    logger.debug("Skipping malformed history line %d: %r", number, line)
                continue
            out.append(entry)
        return out

    def append(self, entry: HistoryEntry) -> HistoryEntry:
        """Stamp ``entry`` with the current time, append it, and return it."""
        stamped = entry.model_copy(update={"timestamp": datetime.now(UTC)})
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        with self.log_path.open("a", encoding="utf-8") as f:
            f.write(stamped.render() + "\n")
        logger.debug("Appended history entry: %s", stamped.message)
        return stamped


__all__ = [
    "EntryStatus",
    "Fingerprint",
    "HistoryEntry",
    "HistoryStore",
    "format_timestamp",
]

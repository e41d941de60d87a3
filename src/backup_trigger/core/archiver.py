"""
Archive producer.

Runs the external archiver for a "backup" decision and records the outcome in
the history log. The log append happens only after the archiver process has
settled, so a SUCCESS line always refers to a finished archive.

Steps
-----
1. Create the destination directory (fatal :class:`DestinationUnwritable` on error).
2. Name the artifact after the current UTC time, e.g.
   ``backup-2026-10-19T12-30-05-123Z.tar.gz``.
3. Spawn the archiver and await it.
4. Append SUCCESS (with fingerprint) or FAILED (without one).

Two runs within the same millisecond produce the same artifact name; runs are
expected to be scheduled one at a time.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from pathlib import Path

from .errors import ArchiverFailure, DestinationUnwritable
from .history import HistoryEntry, HistoryStore, format_timestamp
from .settings import get_logger

logger = get_logger("backup_trigger.archiver")

ARTIFACT_PREFIX = "backup-"
ARTIFACT_SUFFIX = ".tar.gz"

CommandBuilder = Callable[[Path, Path], Sequence[str]]


def artifact_name(moment: datetime | None = None) -> str:
    """Return a filesystem-safe archive name for ``moment`` (default: now)."""
    stamp = format_timestamp(moment or datetime.now(UTC))
    return f"{ARTIFACT_PREFIX}{stamp.replace(':', '-').replace('.', '-')}{ARTIFACT_SUFFIX}"


def tar_command(source: Path, artifact: Path) -> list[str]:
    """Build the default archiver command: a gzipped tar of the whole source tree."""
    return ["tar", "-czf", str(artifact), "-C", str(source), "."]


class ArchiveProducer:
    """Spawn the archiver and append its outcome to the history log.

    Parameters
    ----------
    history:
        Store that receives the SUCCESS/FAILED entry.
    build_command:
        Callable ``(source, artifact) -> argv``. Defaults to :func:`tar_command`.
    timeout:
        Seconds to wait for the archiver before killing it. ``None`` waits forever.
    """

    def __init__(
        self,
        history: HistoryStore,
        *,
        build_command: CommandBuilder = tar_command,
        timeout: float | None = None,
    ) -> None:
        self.history = history
        self.build_command = build_command
        self.timeout = timeout

    async def produce(self, source: Path, destination: Path, fingerprint: str) -> HistoryEntry:
        """Archive ``source`` into ``destination`` and return the appended entry.

        Raises
        ------
        DestinationUnwritable
            If the destination directory cannot be created. Nothing is spawned
            and nothing is logged in that case.
        """
        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DestinationUnwritable(destination, exc.strerror or str(exc)) from exc

        artifact = destination / artifact_name()
        argv = list(self.build_command(source, artifact))

        try:
            await self._run(argv)
        except ArchiverFailure as exc:
            logger.error("Backup of %s failed: %s", source, exc.detail)
            return self.history.append(HistoryEntry.failed(exc.detail))

        logger.debug("Backup of %s written to %s", source, artifact)
        return self.history.append(HistoryEntry.success(artifact, fingerprint))

    async def _run(self, argv: list[str]) -> None:
        """Run ``argv`` to completion, raising :class:`ArchiverFailure` on any failure."""
        program = Path(argv[0]).name
        logger.debug("Spawning archiver: %s", argv)

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ArchiverFailure(f"{program} command could not be started: {exc}") from exc

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except TimeoutError as exc:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            raise ArchiverFailure(
                f"{program} command timed out after {self.timeout:g}s"
            ) from exc

        if proc.returncode != 0:
            if stderr:
                logger.warning("%s stderr: %s", program, stderr.decode(errors="replace").strip())
            raise ArchiverFailure(f"{program} command failed (exit status {proc.returncode})")


__all__ = ["ArchiveProducer", "CommandBuilder", "artifact_name", "tar_command"]

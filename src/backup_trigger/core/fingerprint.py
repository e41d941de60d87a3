"""Directory fingerprinting.

A fingerprint is the SHA-256 of the comma-joined, byte-sorted names of a
directory's immediate entries. It deliberately ignores file contents and
nested directories: renaming, adding, or removing a top-level entry changes
the fingerprint, editing a file in place does not.
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

from .errors import DirectoryUnreadable

SEPARATOR = b","


def compute_fingerprint(directory: Path) -> str:
    """Return the lowercase hex fingerprint of ``directory``'s top-level names.

    Raises
    ------
    DirectoryUnreadable
        If the directory does not exist, is not a directory, or cannot be listed.
    """
    try:
        names = os.listdir(directory)
    except OSError as exc:
        raise DirectoryUnreadable(directory, exc.strerror or str(exc)) from exc

    encoded = sorted(os.fsencode(name) for name in names)
    return hashlib.sha256(SEPARATOR.join(encoded)).hexdigest()


__all__ = ["compute_fingerprint"]

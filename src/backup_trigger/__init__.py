"""backup-trigger: take a compressed backup only when a directory has changed."""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.1.0"

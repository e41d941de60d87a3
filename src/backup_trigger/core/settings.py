"""Centralized configuration for the backup trigger using Pydantic Settings (v2).

This module exposes a single, cached `settings` instance that reads from:
- Real environment variables (highest precedence)
- `.env` files in the working directory: .env, .env.local, .env.dev/.env.test/.env.prod

The history log location lives here rather than being implied by the current
working directory; the CLI passes it explicitly to :class:`HistoryStore`.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["dev", "test", "prod"]
LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
Seconds = Annotated[float, Field(gt=0)]

DEFAULT_LOG_FILE = Path("backup_log.txt")


class Settings(BaseSettings):
    """Typed configuration loaded from env and `.env` files.

    Attributes
    ----------
    environment : EnvName
        Runtime environment flag; maps from `BACKUP_TRIGGER_ENV`.
    log_level : LogLevelName
        Level of the operator-facing logger; maps from `LOG_LEVEL`.
    log_file : Path
        Append-only history log; maps from `BACKUP_LOG_FILE`.
    archiver_timeout : float | None
        Seconds to wait for the external archiver before killing it;
        maps from `BACKUP_ARCHIVER_TIMEOUT`. ``None`` waits forever.
    """

    environment: EnvName = Field(default="dev", alias="BACKUP_TRIGGER_ENV")
    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")
    log_file: Path = Field(default=DEFAULT_LOG_FILE, alias="BACKUP_LOG_FILE")
    archiver_timeout: Seconds | None = Field(default=None, alias="BACKUP_ARCHIVER_TIMEOUT")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local", ".env.dev", ".env.test", ".env.prod"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_prod(self) -> bool:
        """Return True if running in the production environment."""
        return self.environment == "prod"

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.INFO)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    Tests force a rebuild via `load_settings.cache_clear()` after mutating
    `os.environ`.
    """
    os.environ.setdefault("BACKUP_TRIGGER_ENV", "dev")
    return Settings()


settings: Settings = load_settings()


def get_logger(name: str = "backup_trigger") -> logging.Logger:
    """Return a process-global logger configured to the current log level."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(load_settings().log_level_numeric())
    logger.propagate = False
    return logger

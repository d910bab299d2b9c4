"""
Runtime configuration, read from the environment once at startup.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Final, Mapping

STORAGE_SNAPSHOT: Final = "snapshot"
STORAGE_SQL: Final = "sql"

DEFAULT_DATABASE_URL: Final = "sqlite:///data/teamhub.db"
DEFAULT_DATA_DIR: Final = "data"
DEFAULT_SESSION_SECRET: Final = "teamhub-dev-secret-change-in-production"
DEFAULT_SESSION_MAX_AGE: Final = 30 * 24 * 60 * 60  # seconds
DEFAULT_LOG_LEVEL: Final = "INFO"

LOG_FORMAT: Final = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    storage: str = STORAGE_SNAPSHOT
    database_url: str = DEFAULT_DATABASE_URL
    data_dir: str = DEFAULT_DATA_DIR
    session_secret: str = DEFAULT_SESSION_SECRET
    session_max_age: int = DEFAULT_SESSION_MAX_AGE
    log_level: str = DEFAULT_LOG_LEVEL


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from environment variables; unset variables keep their defaults."""
    env = os.environ if environ is None else environ
    storage = env.get("TEAMHUB_STORAGE", STORAGE_SNAPSHOT).strip().lower()
    if storage not in (STORAGE_SNAPSHOT, STORAGE_SQL):
        raise ValueError(f"TEAMHUB_STORAGE must be '{STORAGE_SNAPSHOT}' or '{STORAGE_SQL}', got {storage!r}")
    max_age_raw = env.get("SESSION_MAX_AGE_SECONDS")
    try:
        max_age = int(max_age_raw) if max_age_raw else DEFAULT_SESSION_MAX_AGE
    except ValueError:
        raise ValueError(f"SESSION_MAX_AGE_SECONDS must be an integer, got {max_age_raw!r}") from None
    if max_age <= 0:
        raise ValueError("SESSION_MAX_AGE_SECONDS must be positive")
    return Settings(
        storage=storage,
        database_url=env.get("DATABASE_URL", DEFAULT_DATABASE_URL),
        data_dir=env.get("TEAMHUB_DATA_DIR", DEFAULT_DATA_DIR),
        session_secret=env.get("SESSION_SECRET", DEFAULT_SESSION_SECRET),
        session_max_age=max_age,
        log_level=env.get("TEAMHUB_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
    )


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)

"""
Backend selection: build the configured repository once at startup.
"""
from __future__ import annotations

import logging

from teamhub.config import STORAGE_SQL, Settings

from .contract import Repository
from .snapshot_store import SnapshotStore
from .sql_store import SqlStore

logger = logging.getLogger(__name__)


def create_repository(settings: Settings) -> Repository:
    if settings.storage == STORAGE_SQL:
        logger.info("Using SQL storage at %s", settings.database_url)
        return SqlStore(settings.database_url)
    logger.info("Using snapshot storage in %s", settings.data_dir)
    return SnapshotStore(settings.data_dir)

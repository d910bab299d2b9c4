"""
Persistence layer for team-management data.
No business logic; only read/write interfaces.
"""
from .contract import Repository
from .db import get_connection, init_db, parse_database_url
from .errors import (
    CascadeError,
    ConflictError,
    IntegrityOtherError,
    InternalStorageError,
    ReferenceIntegrityError,
    RequiredFieldError,
    StorageError,
)
from .factory import create_repository
from .sessions import MemorySessionStore, SessionStore, SqlSessionStore
from .snapshot_store import SnapshotStore
from .sql_store import SqlStore

__all__ = [
    "Repository",
    "get_connection",
    "init_db",
    "parse_database_url",
    "StorageError",
    "ConflictError",
    "ReferenceIntegrityError",
    "RequiredFieldError",
    "IntegrityOtherError",
    "CascadeError",
    "InternalStorageError",
    "create_repository",
    "SessionStore",
    "MemorySessionStore",
    "SqlSessionStore",
    "SnapshotStore",
    "SqlStore",
]

"""
Storage error taxonomy.

Every backend raises these, never raw driver errors. Each class carries a
transport status hint the HTTP layer may use as-is. "Not found" is not an
error: reads return None, updates return None, deletes return False.
"""
from __future__ import annotations

import re
import sqlite3
from typing import Any, Callable, Mapping

from .invariants import UNIQUE_KEYS, missing_parent_message, references


class StorageError(Exception):
    code = "internal"
    status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConflictError(StorageError):
    """Unique-constraint violation."""
    code = "conflict"
    status = 409


class ReferenceIntegrityError(StorageError):
    """A foreign-key field points at a row that does not exist."""
    code = "reference_integrity"
    status = 409


class RequiredFieldError(StorageError):
    code = "required_field"
    status = 400


class IntegrityOtherError(StorageError):
    """Any other integrity rule (closed value sets, check constraints)."""
    code = "integrity"
    status = 409


class CascadeError(IntegrityOtherError):
    """A dependent row could not be removed while deleting its parent."""

    def __init__(self, message: str = "dependent records could not be deleted") -> None:
        super().__init__(message)


class InternalStorageError(StorageError):
    code = "internal"
    status = 500


# ---------- SQLite integrity translation ----------

_UNIQUE_COLUMNS_RE = re.compile(r"UNIQUE constraint failed: (?!index )(.+)$")
_UNIQUE_INDEX_RE = re.compile(r"UNIQUE constraint failed: index '([^']+)'")
_NOT_NULL_RE = re.compile(r"NOT NULL constraint failed: (?:\w+\.)?(\w+)")


def _conflict_message(text: str) -> str:
    m = _UNIQUE_INDEX_RE.search(text)
    if m:
        index = m.group(1)
        for keys in UNIQUE_KEYS.values():
            for key in keys:
                if key.index == index:
                    return key.message
        return "record already exists"
    m = _UNIQUE_COLUMNS_RE.search(text)
    if m:
        table = None
        cols: list[str] = []
        for part in m.group(1).split(","):
            qualified = part.strip()
            if "." in qualified:
                table, col = qualified.split(".", 1)
            else:
                col = qualified
            cols.append(col)
        for key in UNIQUE_KEYS.get(table or "", ()):
            if set(key.fields) == set(cols):
                return key.message
        return f"{', '.join(cols)} already exists"
    return "record already exists"


def _reference_message(
    collection: str | None,
    values: Mapping[str, Any] | None,
    parent_exists: Callable[[str, int], bool] | None,
) -> str:
    if collection and values is not None and parent_exists is not None:
        for ref in references(collection):
            value = values.get(ref.field)
            if value is not None and not parent_exists(ref.parent, value):
                return missing_parent_message(ref.parent)
    return "referenced record does not exist"


def translate_integrity_error(
    exc: sqlite3.Error,
    collection: str | None = None,
    values: Mapping[str, Any] | None = None,
    parent_exists: Callable[[str, int], bool] | None = None,
) -> StorageError:
    """
    Map a sqlite3 error to the taxonomy.
    values/parent_exists let a foreign-key failure name the missing parent,
    which SQLite itself does not report.
    """
    if not isinstance(exc, sqlite3.IntegrityError):
        return InternalStorageError("database operation failed")
    text = str(exc)
    errorname = getattr(exc, "sqlite_errorname", "") or ""
    if "UNIQUE constraint failed" in text or errorname in ("SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"):
        return ConflictError(_conflict_message(text))
    if "FOREIGN KEY constraint failed" in text or errorname == "SQLITE_CONSTRAINT_FOREIGNKEY":
        return ReferenceIntegrityError(_reference_message(collection, values, parent_exists))
    if "NOT NULL constraint failed" in text or errorname == "SQLITE_CONSTRAINT_NOTNULL":
        m = _NOT_NULL_RE.search(text)
        column = m.group(1) if m else None
        return RequiredFieldError(f"required field missing: {column}" if column else "required field missing")
    return IntegrityOtherError("data integrity constraint violation")

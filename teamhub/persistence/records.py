"""
Record shaping shared by both backends: defaults on create, partial merge on
update, closed-value checks, and conversion to/from SQL rows.
"""
from __future__ import annotations

import json
from dataclasses import MISSING, fields, replace
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from teamhub.join_code import is_valid_join_code, normalize_join_code
from teamhub.models import Team, parse_datetime, record_from_dict, record_to_dict, utcnow

from .errors import IntegrityOtherError, RequiredFieldError


def required_fields(cls: type) -> list[str]:
    """Fields with no default (the id is assigned by the backend)."""
    return [
        f.name for f in fields(cls)
        if f.name != "id" and f.default is MISSING and f.default_factory is MISSING
    ]


def _bool_fields(cls: type) -> list[str]:
    return [f.name for f in fields(cls) if f.type in ("bool", bool)]


def _normalize(cls: type, name: str, value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, Enum):
        value = value.value
    choices = getattr(cls, "choices", {})
    if name in choices:
        allowed = {c.value for c in choices[name]}
        if value not in allowed:
            raise IntegrityOtherError(f"invalid value for {name}: {value!r}")
    if name in _bool_fields(cls) and not isinstance(value, bool):
        raise IntegrityOtherError(f"invalid value for {name}: {value!r}")
    if name in getattr(cls, "datetime_fields", ()):
        if not isinstance(value, (str, datetime)):
            raise IntegrityOtherError(f"invalid timestamp for {name}")
        try:
            return parse_datetime(value)
        except ValueError as exc:
            raise IntegrityOtherError(f"invalid timestamp for {name}") from exc
    if name in getattr(cls, "json_fields", ()):
        try:
            json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise IntegrityOtherError(f"{name} is not JSON-serializable") from exc
    if isinstance(value, list):
        return list(value)
    if isinstance(value, dict):
        return dict(value)
    return value


def _check_known(cls: type, values: Mapping[str, Any]) -> None:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"unknown field(s) for {cls.__name__}: {', '.join(unknown)}")


def build_record(cls: type, record_id: int | None, values: Mapping[str, Any]) -> Any:
    """
    New record from caller-supplied values. Missing optional fields take their
    defaults; a missing required field raises RequiredFieldError.
    """
    values = {k: v for k, v in values.items() if k != "id"}
    _check_known(cls, values)
    for name in required_fields(cls):
        if values.get(name) is None:
            raise RequiredFieldError(f"required field missing: {name}")
    kwargs = {name: _normalize(cls, name, value) for name, value in values.items()}
    return cls(id=record_id, **kwargs)


def merge_record(record: Any, changes: Mapping[str, Any]) -> Any:
    """Partial update: only the given fields change; updated_at is refreshed if present."""
    cls = type(record)
    changes = {k: v for k, v in changes.items() if k != "id"}
    _check_known(cls, changes)
    required = set(required_fields(cls))
    for name, value in changes.items():
        if name in required and value is None:
            raise RequiredFieldError(f"required field missing: {name}")
    normalized = {name: _normalize(cls, name, value) for name, value in changes.items()}
    if "updated_at" in {f.name for f in fields(cls)} and "updated_at" not in normalized:
        normalized["updated_at"] = utcnow()
    return replace(record, **normalized)


# ---------- SQL rows ----------


def record_to_row(record: Any) -> dict[str, Any]:
    """Column values for SQL: timestamps as ISO text, structured fields as JSON text."""
    row = record_to_dict(record)
    for name in getattr(record, "json_fields", ()):
        if row[name] is not None:
            row[name] = json.dumps(row[name])
    return row


def record_from_row(cls: type, row: Mapping[str, Any]) -> Any:
    data = dict(row)
    for name in getattr(cls, "json_fields", ()):
        if data.get(name) is not None:
            data[name] = json.loads(data[name])
    for name in _bool_fields(cls):
        if data.get(name) is not None:
            data[name] = bool(data[name])
    return record_from_dict(cls, data)


# ---------- Teams ----------


def checked_join_code(team: Team, required: bool = False) -> Team:
    """
    Normalize an explicit join code and check it against the code alphabet.
    With required set (updates), clearing the code is refused.
    """
    if team.join_code is None:
        if required:
            raise RequiredFieldError("required field missing: join_code")
        return team
    if not isinstance(team.join_code, str):
        raise IntegrityOtherError(f"invalid join code: {team.join_code!r}")
    code = normalize_join_code(team.join_code)
    if not is_valid_join_code(code):
        raise IntegrityOtherError(f"invalid join code: {team.join_code!r}")
    return replace(team, join_code=code)

"""Pre-flight argument checks shared by every operation."""

from __future__ import annotations

import logging
from typing import Mapping, NoReturn

from .errors import InvalidRequestError

LOG = logging.getLogger(__name__)

DEFAULT_SCHEMA = "public"

_LABELS = {
    "database": "Database name",
    "table": "Table name",
    "column_defs": "Table schema definition",
    "name": "Database name",
}


def resolve_schema(schema: str | None) -> str:
    """Fall back to ``public`` when no schema (or a blank one) was given."""

    if schema is None or not schema.strip():
        return DEFAULT_SCHEMA
    return schema


def require_names(action: str, **names: str | None) -> None:
    """Reject blank names, reporting every offending field at once.

    ``action`` completes the message prefix, e.g. ``"create table"`` gives
    ``"Cannot create table: Table name cannot be empty."``.
    """

    problems = [
        f"{_LABELS.get(field, field)} cannot be empty."
        for field, value in names.items()
        if value is None or not str(value).strip()
    ]
    if problems:
        _reject(f"Cannot {action}: {' '.join(problems)}")


def require_payload(label: str, payload: Mapping[str, object] | None) -> None:
    """Reject a missing or empty column map, or one with blank column names."""

    if not payload:
        _reject(f"{label} cannot be empty")
    blank = [key for key in payload if not isinstance(key, str) or not key]
    if blank:
        _reject(f"{label} contains an empty column name")


def check_condition(label: str, condition: Mapping[str, object] | None) -> None:
    """Column names in an optional condition map must not be blank."""

    if condition and any(not isinstance(key, str) or not key for key in condition):
        _reject(f"{label} contains an empty column name")


def _reject(message: str) -> NoReturn:
    LOG.error(message)
    raise InvalidRequestError(message)


__all__ = [
    "DEFAULT_SCHEMA",
    "check_condition",
    "require_names",
    "require_payload",
    "resolve_schema",
]

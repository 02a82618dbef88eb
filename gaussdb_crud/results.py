"""Conversion of engine records into ordered display rows."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Mapping
from uuid import UUID

ResultRow = dict[str, Any]

# NULL is reported as an empty string rather than None; consumers rely on it.
NULL_PLACEHOLDER = ""


def display_value(value: object) -> object:
    """Render one column value as text, a number or a boolean."""

    if value is None:
        return NULL_PLACEHOLDER
    if isinstance(value, datetime):
        return value.isoformat(timespec="microseconds")
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        # bytea hex output format
        return "\\x" + bytes(value).hex()
    return value


def map_record(record: Mapping[str, object]) -> ResultRow:
    """Map one record to a row keyed by column name in engine order."""

    return {str(column): display_value(value) for column, value in record.items()}


def map_records(records: Iterable[Mapping[str, object]]) -> list[ResultRow]:
    return [map_record(record) for record in records]


__all__ = ["NULL_PLACEHOLDER", "ResultRow", "display_value", "map_record", "map_records"]

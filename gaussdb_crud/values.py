"""Normalization of loosely typed input values into bindable parameters."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

import orjson

from .errors import InvalidRequestError

INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1


class ValueKind(str, Enum):
    """Closed set of shapes a normalized value can take."""

    NULL = "null"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    TEXT = "text"
    BINARY = "binary"
    TEMPORAL = "temporal"
    UUID = "uuid"
    JSON_TEXT = "json"


class ParamType(str, Enum):
    """Wire type hint attached to a bound parameter.

    The value is the PostgreSQL type name used to cast the placeholder.
    ``UNTYPED`` leaves the placeholder bare so the engine infers the type
    from the surrounding statement.
    """

    INT32 = "int4"
    INT64 = "int8"
    FLOAT64 = "float8"
    DECIMAL = "numeric"
    BOOLEAN = "bool"
    TEXT = "text"
    TIMESTAMP = "timestamp"
    TIMESTAMPTZ = "timestamptz"
    DATE = "date"
    TIME = "time"
    BINARY = "bytea"
    UUID = "uuid"
    UNTYPED = ""

    @property
    def cast(self) -> str:
        return f"::{self.value}" if self.value else ""


@dataclass(frozen=True, slots=True)
class FieldValue:
    """A value ready to be bound positionally, with its wire type hint."""

    kind: ValueKind
    value: Any
    param_type: ParamType = ParamType.UNTYPED

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL


NULL = FieldValue(ValueKind.NULL, None, ParamType.UNTYPED)


def normalize(value: object) -> FieldValue:
    """Resolve an arbitrary input value into a :class:`FieldValue`.

    JSON document nodes (``dict``, ``list``, ``tuple``) are re-serialized to
    canonical JSON text and stored as opaque text. Integers prefer a 32-bit
    representation, then 64-bit, then floating point, then raw text. Native
    scalars pass through unchanged. Passing a ``FieldValue`` returns it as is.
    """

    if value is None:
        return NULL
    if isinstance(value, FieldValue):
        return value
    if isinstance(value, (dict, list, tuple)):
        return FieldValue(ValueKind.JSON_TEXT, _dump_json(value), ParamType.UNTYPED)
    # bool is an int subclass; test it first.
    if isinstance(value, bool):
        return FieldValue(ValueKind.BOOLEAN, value, ParamType.BOOLEAN)
    if isinstance(value, int):
        return _normalize_integer(value)
    if isinstance(value, float):
        return FieldValue(ValueKind.FLOAT, value, ParamType.FLOAT64)
    if isinstance(value, Decimal):
        return FieldValue(ValueKind.DECIMAL, value, ParamType.DECIMAL)
    if isinstance(value, str):
        return FieldValue(ValueKind.TEXT, value, ParamType.TEXT)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return FieldValue(ValueKind.BINARY, bytes(value), ParamType.BINARY)
    if isinstance(value, (datetime, date, time)):
        return FieldValue(ValueKind.TEMPORAL, value, infer_param_type(value))
    if isinstance(value, UUID):
        return FieldValue(ValueKind.UUID, value, ParamType.UUID)
    return FieldValue(ValueKind.TEXT, str(value), ParamType.TEXT)


def infer_param_type(value: object) -> ParamType:
    """Best-matching wire type for a native value; unknown types map to text."""

    if value is None:
        return ParamType.UNTYPED
    if isinstance(value, bool):
        return ParamType.BOOLEAN
    if isinstance(value, int):
        if INT32_MIN <= value <= INT32_MAX:
            return ParamType.INT32
        if INT64_MIN <= value <= INT64_MAX:
            return ParamType.INT64
        try:
            float(value)
        except OverflowError:
            return ParamType.TEXT
        return ParamType.FLOAT64
    if isinstance(value, float):
        return ParamType.FLOAT64
    if isinstance(value, Decimal):
        return ParamType.DECIMAL
    if isinstance(value, datetime):
        return ParamType.TIMESTAMP if value.tzinfo is None else ParamType.TIMESTAMPTZ
    if isinstance(value, date):
        return ParamType.DATE
    if isinstance(value, time):
        return ParamType.TIME
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ParamType.BINARY
    if isinstance(value, UUID):
        return ParamType.UUID
    return ParamType.TEXT


def _normalize_integer(value: int) -> FieldValue:
    param_type = infer_param_type(value)
    if param_type is ParamType.FLOAT64:
        return FieldValue(ValueKind.FLOAT, float(value), param_type)
    if param_type is ParamType.TEXT:
        return FieldValue(ValueKind.TEXT, str(value), param_type)
    return FieldValue(ValueKind.INTEGER, value, param_type)


def _dump_json(node: object) -> str:
    try:
        return orjson.dumps(node, default=_json_default, option=orjson.OPT_NON_STR_KEYS).decode()
    except orjson.JSONEncodeError:
        pass
    # orjson stops at 64-bit integers; the json module keeps wider ones exact.
    try:
        return json.dumps(node, default=_json_default, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise InvalidRequestError(f"Value cannot be stored as JSON: {exc}") from exc


def _json_default(obj: object) -> object:
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    if isinstance(obj, (bytes, bytearray)):
        return obj.decode("utf-8", errors="replace")
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


__all__ = [
    "FieldValue",
    "NULL",
    "ParamType",
    "ValueKind",
    "infer_param_type",
    "normalize",
]

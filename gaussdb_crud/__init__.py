"""Dynamic CRUD statement generation and typed value binding for GaussDB/PostgreSQL."""

from __future__ import annotations

from .config import ConnectionConfig, load_config
from .connections import ConnectionManager, ConnectionProvider, ConnectionTestResult
from .errors import (
    CrudError,
    DatabaseConnectionError,
    EngineError,
    InvalidRequestError,
    TableNotFoundError,
)
from .identifiers import escape_identifier, qualified_name
from .operations import CrudService
from .results import map_record, map_records
from .statements import Statement
from .values import FieldValue, ParamType, ValueKind, infer_param_type, normalize

__all__ = [
    "ConnectionConfig",
    "ConnectionManager",
    "ConnectionProvider",
    "ConnectionTestResult",
    "CrudError",
    "CrudService",
    "DatabaseConnectionError",
    "EngineError",
    "FieldValue",
    "InvalidRequestError",
    "ParamType",
    "Statement",
    "TableNotFoundError",
    "ValueKind",
    "escape_identifier",
    "infer_param_type",
    "load_config",
    "map_record",
    "map_records",
    "normalize",
    "qualified_name",
]

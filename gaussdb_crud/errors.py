"""Exception hierarchy raised by the CRUD operations."""

from __future__ import annotations


class CrudError(RuntimeError):
    """Base class for every caller-facing failure."""


class InvalidRequestError(CrudError):
    """Raised when a request is rejected before reaching the engine."""


class DatabaseConnectionError(CrudError):
    """Raised when a connection cannot be opened or acquired from the pool."""


class EngineError(CrudError):
    """Raised when the engine rejects a statement."""


class TableNotFoundError(CrudError):
    """Raised when catalog introspection finds no rows for a table."""


__all__ = [
    "CrudError",
    "DatabaseConnectionError",
    "EngineError",
    "InvalidRequestError",
    "TableNotFoundError",
]

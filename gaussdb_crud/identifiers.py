"""Delimited identifier quoting for schema, table and column names."""

from __future__ import annotations


def escape_identifier(identifier: str) -> str:
    """Return ``identifier`` as a double-quoted SQL identifier.

    Embedded double quotes are doubled, so the result is safe to concatenate
    into statement text whatever characters the name contains. The character
    set is never checked.
    """

    return '"' + identifier.replace('"', '""') + '"'


def qualified_name(schema: str, table: str) -> str:
    return f"{escape_identifier(schema)}.{escape_identifier(table)}"


__all__ = ["escape_identifier", "qualified_name"]

"""SQL text builders for the CRUD and DDL operations.

Every identifier is routed through :func:`escape_identifier` and every value is
bound positionally (``$1``, ``$2`` ...) after :func:`normalize`; values never
appear in statement text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from .errors import InvalidRequestError
from .identifiers import escape_identifier, qualified_name
from .values import FieldValue, normalize

Condition = Mapping[str, object]


@dataclass(frozen=True, slots=True)
class Statement:
    """Statement text plus its ordered parameters."""

    sql: str
    params: tuple[FieldValue, ...] = ()

    @property
    def args(self) -> tuple[object, ...]:
        """Parameter values in placeholder order, as handed to the driver."""

        return tuple(param.value for param in self.params)


def placeholder(index: int, param: FieldValue) -> str:
    """Positional placeholder carrying the parameter's wire type as a cast."""

    return f"${index}{param.param_type.cast}"


def create_database(name: str) -> Statement:
    # Database names cannot be bound; quoting is the only protection here.
    return Statement(f"CREATE DATABASE {escape_identifier(name)}")


def create_table(schema: str, table: str, column_defs: str) -> Statement:
    """``CREATE TABLE IF NOT EXISTS`` with a caller-supplied column fragment.

    ``column_defs`` is inserted verbatim: it must already be valid DDL and is
    not sanitized any further.
    """

    return Statement(f"CREATE TABLE IF NOT EXISTS {qualified_name(schema, table)} ({column_defs})")


def drop_table(schema: str, table: str) -> Statement:
    return Statement(f"DROP TABLE IF EXISTS {qualified_name(schema, table)}")


def insert(schema: str, table: str, data: Mapping[str, object]) -> Statement:
    if not data:
        raise InvalidRequestError("Insert data cannot be empty")
    columns: list[str] = []
    placeholders: list[str] = []
    params: list[FieldValue] = []
    for index, (column, raw) in enumerate(data.items(), start=1):
        param = normalize(raw)
        columns.append(escape_identifier(column))
        placeholders.append(placeholder(index, param))
        params.append(param)
    sql = (
        f"INSERT INTO {qualified_name(schema, table)} ({', '.join(columns)}) "
        f"VALUES ({', '.join(placeholders)})"
    )
    return Statement(sql, tuple(params))


def select(schema: str, table: str, condition: Condition | None = None) -> Statement:
    """``SELECT *``; an empty or missing condition selects every row."""

    sql = f"SELECT * FROM {qualified_name(schema, table)}"
    where, params = _where_clause(condition or {}, start=1)
    return Statement(sql + where, params)


def update(
    schema: str,
    table: str,
    data: Mapping[str, object],
    condition: Condition | None,
) -> Statement:
    """``UPDATE ... SET ... WHERE ...``.

    SET placeholders take ``$1..$k`` and WHERE placeholders ``$k+1..$k+m``.
    A missing or empty condition is rejected so a full-table update can
    never be issued.
    """

    if not data:
        raise InvalidRequestError("Update data cannot be empty")
    if not condition:
        raise InvalidRequestError("Update condition cannot be empty")
    assignments, set_params = _equality_terms(data, start=1)
    where, where_params = _where_clause(condition, start=len(set_params) + 1)
    sql = f"UPDATE {qualified_name(schema, table)} SET {', '.join(assignments)}{where}"
    return Statement(sql, set_params + where_params)


def delete(schema: str, table: str, condition: Condition | None = None) -> Statement:
    """``DELETE FROM``; an empty or missing condition deletes every row."""

    sql = f"DELETE FROM {qualified_name(schema, table)}"
    where, params = _where_clause(condition or {}, start=1)
    return Statement(sql + where, params)


_DESCRIBE_TABLE_SQL = """
    SELECT
        'CREATE TABLE ' || quote_ident(c.relname) || E'\\n(\\n' ||
        string_agg(
            '    ' || quote_ident(a.attname) || ' ' || pg_catalog.format_type(a.atttypid, a.atttypmod) ||
            CASE WHEN a.attnotnull THEN ' NOT NULL' ELSE '' END,
            E',\\n' ORDER BY a.attnum
        ) || E'\\n);' AS create_table_sql
    FROM pg_catalog.pg_class c
    JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
    JOIN pg_catalog.pg_attribute a ON a.attrelid = c.oid
    WHERE c.relkind = 'r'
        AND a.attnum > 0
        AND NOT a.attisdropped
        AND c.relname = $1::text
        AND ($2::text IS NULL OR n.nspname = $2::text)
    GROUP BY n.nspname, c.relname
    ORDER BY n.nspname = 'public' DESC, n.nspname
    LIMIT 1
"""


def describe_create_table(table: str, schema: str | None = None) -> Statement:
    """Catalog query rebuilding a ``CREATE TABLE`` text for ``table``.

    Columns come out in physical order with their formatted type and
    ``NOT NULL`` marker. Without ``schema`` every schema is searched and
    ``public`` wins ties. The query yields no row when the table is missing.
    """

    return Statement(_DESCRIBE_TABLE_SQL, (normalize(table), normalize(schema)))


def _equality_terms(mapping: Condition, *, start: int) -> tuple[list[str], tuple[FieldValue, ...]]:
    terms: list[str] = []
    params: list[FieldValue] = []
    for offset, (column, raw) in enumerate(mapping.items()):
        param = normalize(raw)
        terms.append(f"{escape_identifier(column)} = {placeholder(start + offset, param)}")
        params.append(param)
    return terms, tuple(params)


def _where_clause(condition: Condition, *, start: int) -> tuple[str, tuple[FieldValue, ...]]:
    if not condition:
        return "", ()
    terms, params = _equality_terms(condition, start=start)
    return f" WHERE {' AND '.join(terms)}", params


__all__ = [
    "Condition",
    "Statement",
    "create_database",
    "create_table",
    "delete",
    "describe_create_table",
    "drop_table",
    "insert",
    "placeholder",
    "select",
    "update",
]

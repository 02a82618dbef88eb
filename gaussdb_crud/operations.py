"""CRUD and DDL operations exposed to the tool adapter."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping

import orjson

from . import statements
from .connections import ConnectionProvider, ConnectionTestResult
from .errors import CrudError, DatabaseConnectionError, EngineError, TableNotFoundError
from .results import ResultRow, map_records
from .statements import Condition
from .validation import DEFAULT_SCHEMA, check_condition, require_names, require_payload, resolve_schema

LOG = logging.getLogger(__name__)

# CREATE DATABASE is issued from the maintenance database.
MAINTENANCE_DATABASE = "postgres"


class CrudService:
    """Runs one statement per call against a :class:`ConnectionProvider`.

    Arguments are validated before any connection is requested. Engine
    failures are logged in full and re-raised as :class:`EngineError` whose
    message names the operation, the target and the driver's message.
    """

    def __init__(self, connections: ConnectionProvider) -> None:
        self._connections = connections

    async def test_connection(self) -> ConnectionTestResult:
        LOG.info("Starting database connection test...")
        result = await self._connections.test_connection()
        if result.success:
            LOG.info(result.summary())
        else:
            LOG.error(result.summary())
        return result

    async def create_database(self, name: str) -> str:
        require_names("create database", name=name)
        statement = statements.create_database(name)
        async with self._session(MAINTENANCE_DATABASE, f"Failed to create database {name}") as conn:
            await conn.execute(statement.sql)
        return _succeeded(f"Successfully created database: {name}")

    async def create_table(
        self,
        database: str,
        table: str,
        column_defs: str,
        schema: str | None = DEFAULT_SCHEMA,
    ) -> str:
        """Create ``schema.table`` if missing.

        ``column_defs`` (e.g. ``"id INT PRIMARY KEY, name VARCHAR(255)"``) is
        trusted DDL and is inserted into the statement unchanged.
        """

        require_names("create table", database=database, table=table, column_defs=column_defs)
        schema = resolve_schema(schema)
        statement = statements.create_table(schema, table, column_defs)
        async with self._session(database, f"Failed to create table {table}") as conn:
            await conn.execute(statement.sql)
        return _succeeded(f"Successfully created table: {database}.{schema}.{table}")

    async def drop_table(self, database: str, table: str, schema: str | None = DEFAULT_SCHEMA) -> str:
        require_names("drop table", database=database, table=table)
        statement = statements.drop_table(resolve_schema(schema), table)
        async with self._session(database, f"Failed to drop table {table}") as conn:
            await conn.execute(statement.sql)
        return _succeeded(f"Successfully dropped table: {table}")

    async def get_create_table_sql(self, database: str, table: str, schema: str | None = None) -> str:
        """Rebuild the ``CREATE TABLE`` text of an existing table from the catalog."""

        require_names("get create table SQL", database=database, table=table)
        statement = statements.describe_create_table(table, schema)
        async with self._session(database, f"Failed to get create table SQL for '{table}'") as conn:
            ddl = await conn.fetchval(statement.sql, *statement.args)
        if not isinstance(ddl, str):
            message = f"Table '{table}' not found."
            LOG.error(message)
            raise TableNotFoundError(message)
        LOG.info("Successfully generated create SQL for %s", table)
        return ddl

    async def insert(
        self,
        database: str,
        table: str,
        data: Mapping[str, object],
        schema: str | None = DEFAULT_SCHEMA,
    ) -> str:
        require_names("insert data", database=database, table=table)
        require_payload("Insert data", data)
        statement = statements.insert(resolve_schema(schema), table, data)
        async with self._session(database, f"Failed to insert data into {table}") as conn:
            await conn.execute(statement.sql, *statement.args)
        return _succeeded(f"Successfully inserted data into {table}: {_as_json(data)}")

    async def select(
        self,
        database: str,
        table: str,
        condition: Condition | None = None,
        schema: str | None = DEFAULT_SCHEMA,
    ) -> list[ResultRow]:
        """Rows of ``table`` matching every ``column = value`` pair.

        Without a condition the whole table is returned.
        """

        require_names("select data", database=database, table=table)
        check_condition("Select condition", condition)
        statement = statements.select(resolve_schema(schema), table, condition)
        async with self._session(database, f"Failed to select from {table}") as conn:
            records = await conn.fetch(statement.sql, *statement.args)
        rows = map_records(records)
        LOG.info("Successfully selected %d rows from %s", len(rows), table)
        return rows

    async def update(
        self,
        database: str,
        table: str,
        data: Mapping[str, object],
        condition: Condition | None,
        schema: str | None = DEFAULT_SCHEMA,
    ) -> str:
        """Update matching rows; an empty condition is always rejected."""

        require_names("update data", database=database, table=table)
        require_payload("Update data", data)
        require_payload("Update condition", condition)
        statement = statements.update(resolve_schema(schema), table, data, condition)
        async with self._session(database, f"Failed to update {table}") as conn:
            await conn.execute(statement.sql, *statement.args)
        return _succeeded(f"Successfully updated {table} with data: {_as_json(data)}")

    async def delete(
        self,
        database: str,
        table: str,
        condition: Condition | None = None,
        schema: str | None = DEFAULT_SCHEMA,
    ) -> str:
        """Delete matching rows; without a condition every row is deleted."""

        require_names("delete data", database=database, table=table)
        check_condition("Delete condition", condition)
        statement = statements.delete(resolve_schema(schema), table, condition)
        async with self._session(database, f"Failed to delete from {table}") as conn:
            await conn.execute(statement.sql, *statement.args)
        described = _as_json(condition) if condition is not None else "None"
        return _succeeded(f"Successfully deleted from {table} with condition: {described}")

    @asynccontextmanager
    async def _session(self, database: str, failure: str) -> AsyncIterator[Any]:
        """One connection for one statement, translating failures on the way out."""

        try:
            async with self._connections.connection(database) as conn:
                yield conn
        except DatabaseConnectionError as exc:
            LOG.error("%s: %s", failure, exc)
            raise DatabaseConnectionError(f"{failure}: {exc}") from exc
        except CrudError:
            raise
        except Exception as exc:
            LOG.exception(failure, extra={"database": database})
            raise EngineError(f"{failure}: {exc}") from exc


def _succeeded(message: str) -> str:
    LOG.info(message)
    return message


def _as_json(payload: Mapping[str, object]) -> str:
    try:
        return orjson.dumps(payload, default=str, option=orjson.OPT_NON_STR_KEYS).decode()
    except orjson.JSONEncodeError:
        return str(dict(payload))


__all__ = ["CrudService", "MAINTENANCE_DATABASE"]

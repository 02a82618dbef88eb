"""End-to-end scenarios against a live engine.

Set ``GAUSSDB_TEST_HOST`` (plus the usual ``GAUSSDB_TEST_PORT``,
``GAUSSDB_TEST_USER``, ``GAUSSDB_TEST_PASSWORD`` and
``GAUSSDB_TEST_DATABASE``) to run them.
"""

from __future__ import annotations

import os
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

import pytest

from gaussdb_crud.config import ConnectionConfig
from gaussdb_crud.connections import ConnectionManager
from gaussdb_crud.errors import EngineError, TableNotFoundError
from gaussdb_crud.identifiers import escape_identifier
from gaussdb_crud.operations import CrudService

pytestmark = pytest.mark.skipif(
    not os.getenv("GAUSSDB_TEST_HOST"), reason="GAUSSDB_TEST_HOST not set in environment"
)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


def _config() -> ConnectionConfig:
    return ConnectionConfig(
        host=os.environ["GAUSSDB_TEST_HOST"],
        port=int(os.getenv("GAUSSDB_TEST_PORT", "5432")),
        user=os.getenv("GAUSSDB_TEST_USER", "postgres"),
        password=os.getenv("GAUSSDB_TEST_PASSWORD", "postgres"),
        database=os.getenv("GAUSSDB_TEST_DATABASE", "postgres"),
    )


@asynccontextmanager
async def _scratch_table(columns: str, name: str | None = None) -> AsyncIterator[tuple[CrudService, str, str]]:
    config = _config()
    table = name or f"crud_test_{uuid.uuid4().hex[:8]}"
    async with ConnectionManager(config) as connections:
        service = CrudService(connections)
        await service.create_table(config.database, table, columns)
        try:
            yield service, config.database, table
        finally:
            await service.drop_table(config.database, table)


@pytest.mark.anyio
async def test_health_check_succeeds() -> None:
    async with ConnectionManager(_config()) as connections:
        result = await connections.test_connection()

    assert result.success is True
    assert result.server_version


@pytest.mark.anyio
async def test_insert_then_select_and_update() -> None:
    async with _scratch_table("id INT PRIMARY KEY, name VARCHAR(255)") as (service, db, table):
        await service.insert(db, table, {"id": 1, "name": "John"})
        assert await service.select(db, table, {"id": 1}) == [{"id": 1, "name": "John"}]

        await service.update(db, table, {"name": "Jane"}, {"id": 1})
        assert await service.select(db, table, {"id": 1}) == [{"id": 1, "name": "Jane"}]

        await service.delete(db, table)
        assert await service.select(db, table) == []


@pytest.mark.anyio
async def test_timestamp_round_trip() -> None:
    stamp = datetime(2024, 5, 6, 7, 8, 9, 123456)
    async with _scratch_table("id INT, created TIMESTAMP, note TEXT") as (service, db, table):
        await service.insert(db, table, {"id": 1, "created": stamp, "note": None})

        rows = await service.select(db, table)

    assert rows == [{"id": 1, "created": "2024-05-06T07:08:09.123456", "note": ""}]


@pytest.mark.anyio
async def test_json_documents_are_stored_as_text() -> None:
    async with _scratch_table("id INT, doc JSONB") as (service, db, table):
        await service.insert(db, table, {"id": 1, "doc": {"tags": ["a", "b"]}})

        rows = await service.select(db, table, {"id": 1})

    assert rows == [{"id": 1, "doc": '{"tags": ["a", "b"]}'}]


@pytest.mark.anyio
async def test_quoted_identifiers_round_trip() -> None:
    name = f'odd"name {uuid.uuid4().hex[:6]}'
    async with _scratch_table('"we""ird col" TEXT', name=name) as (service, db, table):
        await service.insert(db, table, {'we"ird col': "x"})

        rows = await service.select(db, table, {'we"ird col': "x"})
        ddl = await service.get_create_table_sql(db, table)

    assert rows == [{'we"ird col': "x"}]
    assert ddl.startswith(f"CREATE TABLE {escape_identifier(table)}")
    assert escape_identifier('we"ird col') in ddl


@pytest.mark.anyio
async def test_missing_table_is_not_found() -> None:
    config = _config()
    async with ConnectionManager(config) as connections:
        service = CrudService(connections)
        with pytest.raises(TableNotFoundError):
            await service.get_create_table_sql(config.database, f"missing_{uuid.uuid4().hex[:8]}")


@pytest.mark.anyio
async def test_engine_rejection_is_engine_error() -> None:
    config = _config()
    async with ConnectionManager(config) as connections:
        service = CrudService(connections)
        with pytest.raises(EngineError, match="Failed to select from"):
            await service.select(config.database, f"missing_{uuid.uuid4().hex[:8]}")

"""Tests for pre-flight validation."""

from __future__ import annotations

import logging

import pytest

from gaussdb_crud.errors import InvalidRequestError
from gaussdb_crud.validation import check_condition, require_names, require_payload, resolve_schema


@pytest.mark.parametrize("schema", [None, "", "   "])
def test_blank_schema_falls_back_to_public(schema: str | None) -> None:
    assert resolve_schema(schema) == "public"


def test_explicit_schema_is_kept() -> None:
    assert resolve_schema("sales") == "sales"


def test_require_names_reports_every_problem(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR):
        with pytest.raises(InvalidRequestError) as excinfo:
            require_names("create table", database="", table=" ", column_defs="id INT")

    assert str(excinfo.value) == (
        "Cannot create table: Database name cannot be empty. Table name cannot be empty."
    )
    assert "Cannot create table" in caplog.text


def test_require_names_accepts_valid_names() -> None:
    require_names("drop table", database="db", table="t")


@pytest.mark.parametrize("payload", [None, {}])
def test_require_payload_rejects_empty(payload: dict[str, object] | None) -> None:
    with pytest.raises(InvalidRequestError, match="Insert data cannot be empty"):
        require_payload("Insert data", payload)


def test_require_payload_rejects_blank_column() -> None:
    with pytest.raises(InvalidRequestError, match="empty column name"):
        require_payload("Insert data", {"": 1})


def test_check_condition_allows_missing_condition() -> None:
    check_condition("Delete condition", None)
    check_condition("Delete condition", {})
    with pytest.raises(InvalidRequestError):
        check_condition("Delete condition", {"": 1})

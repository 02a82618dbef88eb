"""Tests for the command line health check."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from gaussdb_crud import cli
from gaussdb_crud.connections import ConnectionManager, ConnectionTestResult


def _result(success: bool) -> ConnectionTestResult:
    return ConnectionTestResult(
        success=success,
        host="127.0.0.1",
        port=8000,
        database="postgres",
        user="root",
        timestamp=datetime(2024, 1, 2, tzinfo=timezone.utc),
        message="Database connection successful" if success else "Connection failed: refused",
        server_version="9.2.4" if success else "",
        error_details="" if success else "OSError: refused",
        connection_string="Host=127.0.0.1;Port=8000;Username=root;Password=***;Database=***;",
    )


def _patch_check(monkeypatch: pytest.MonkeyPatch, success: bool) -> None:
    async def _test_connection(self: ConnectionManager) -> ConnectionTestResult:
        return _result(success)

    monkeypatch.setattr(ConnectionManager, "test_connection", _test_connection)


def test_check_prints_summary(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    _patch_check(monkeypatch, success=True)

    code = cli.main(["check"])

    out = capsys.readouterr().out
    assert code == 0
    assert out.startswith("[SUCCESS] Database Connection Test")
    assert "Server Version: 9.2.4" in out


def test_check_json_and_failure_exit_code(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _patch_check(monkeypatch, success=False)

    code = cli.main(["check", "--json"])

    payload = json.loads(capsys.readouterr().out)
    assert code == 1
    assert payload["success"] is False
    assert payload["error_details"] == "OSError: refused"
    assert "Password=***" in payload["connection_string"]


def test_parser_requires_command() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])

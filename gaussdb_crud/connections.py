"""Pooled asyncpg connections scoped per target database, plus health checks."""

from __future__ import annotations

import asyncio
import logging
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Protocol, runtime_checkable

import asyncpg

from .config import ConnectionConfig
from .errors import DatabaseConnectionError

LOG = logging.getLogger(__name__)

POOL_MIN_SIZE = 5
POOL_MAX_SIZE = 20
CONNECT_TIMEOUT = 10.0
COMMAND_TIMEOUT = 10.0
REDACTED = "***"


@dataclass(frozen=True, slots=True)
class ConnectionTestResult:
    """Outcome of a health check; failures are reported here, not raised."""

    success: bool
    host: str
    port: int
    database: str
    user: str
    timestamp: datetime
    message: str = ""
    server_version: str = ""
    error_details: str = ""
    connection_string: str = ""

    def summary(self) -> str:
        """Multi-line human readable report."""

        status = "SUCCESS" if self.success else "FAILED"
        details = (
            f"Server Version: {self.server_version}" if self.success else f"Error: {self.error_details}"
        )
        return "\n".join(
            (
                f"[{status}] Database Connection Test - {self.timestamp:%Y-%m-%d %H:%M:%S}",
                f"Host: {self.host}:{self.port}",
                f"User: {self.user}",
                f"Database: {self.database}",
                f"Connection String: {self.connection_string}",
                f"Message: {self.message}",
                f"Details: {details}",
            )
        )

    def as_dict(self) -> dict[str, object]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@runtime_checkable
class ConnectionProvider(Protocol):
    """Source of connections consumed by the operation layer."""

    def connection(self, database: str | None = None) -> AbstractAsyncContextManager[Any]:
        """Yield one open connection to ``database`` (default when ``None``)."""

    async def test_connection(self) -> ConnectionTestResult:
        """Check that the default database answers a trivial query."""


class ConnectionManager:
    """Owns one asyncpg pool per target database.

    Construct once at startup and pass it to the operation layer. Pools are
    created lazily on first use of a database and closed by :meth:`close`.
    """

    def __init__(self, config: ConnectionConfig) -> None:
        self._config = config
        self._pools: dict[str, asyncpg.Pool] = {}
        self._lock = asyncio.Lock()

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    def connection_string(self, database: str | None = None, *, redact: bool = False) -> str:
        """Keyword connection string for ``database``.

        With ``redact`` the database name and password are replaced by
        ``***``; only that form may be logged or returned to callers.
        """

        config = self._config
        target = REDACTED if redact else config.target(database)
        password = REDACTED if redact else config.password.get_secret_value()
        return (
            f"Host={config.host};Port={config.port};Username={config.user};"
            f"Password={password};Database={target};"
            f"Pooling=true;MaxPoolSize={POOL_MAX_SIZE};MinPoolSize={POOL_MIN_SIZE};"
            f"Timeout={CONNECT_TIMEOUT:g};CommandTimeout={COMMAND_TIMEOUT:g};"
        )

    def connect_kwargs(self, database: str | None = None) -> dict[str, object]:
        """Keyword arguments handed to ``asyncpg.connect``/``create_pool``."""

        config = self._config
        return {
            "host": config.host,
            "port": config.port,
            "user": config.user,
            "password": config.password.get_secret_value(),
            "database": config.target(database),
            "timeout": CONNECT_TIMEOUT,
            "command_timeout": COMMAND_TIMEOUT,
        }

    @asynccontextmanager
    async def connection(self, database: str | None = None) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a pooled connection for the duration of the block.

        Waiting for a free slot is bounded by the connect timeout. The
        connection goes back to the pool on every exit path.
        """

        target = self._config.target(database)
        pool = await self._pool_for(target)
        try:
            conn = await pool.acquire(timeout=CONNECT_TIMEOUT)
        except asyncio.TimeoutError as exc:
            raise DatabaseConnectionError(
                f"Timed out after {CONNECT_TIMEOUT:g}s waiting for a connection to '{target}'"
            ) from exc
        except Exception as exc:
            raise DatabaseConnectionError(f"Failed to connect to database '{target}': {exc}") from exc
        try:
            yield conn
        finally:
            await pool.release(conn)

    async def test_connection(self) -> ConnectionTestResult:
        """Run ``SELECT 1`` on a dedicated connection to the default database."""

        config = self._config
        base = {
            "host": config.host,
            "port": config.port,
            "database": config.database,
            "user": config.user,
            "timestamp": datetime.now(tz=timezone.utc),
            "connection_string": self.connection_string(redact=True),
        }
        try:
            conn = await asyncpg.connect(**self.connect_kwargs())
            try:
                await conn.fetchval("SELECT 1", timeout=COMMAND_TIMEOUT)
                version = _format_version(conn.get_server_version())
            finally:
                try:
                    await conn.close()
                except Exception:  # pragma: no cover - best effort cleanup
                    pass
        except Exception as exc:
            LOG.warning("Connection test failed: %s", exc, extra={"target": base["connection_string"]})
            return ConnectionTestResult(
                success=False,
                message=f"Connection failed: {exc}",
                error_details=f"{type(exc).__name__}: {exc}",
                **base,
            )
        return ConnectionTestResult(
            success=True,
            message="Database connection successful",
            server_version=version,
            **base,
        )

    async def close(self) -> None:
        """Close every pool opened so far."""

        pools = list(self._pools.values())
        self._pools.clear()
        for pool in pools:
            await pool.close()

    async def __aenter__(self) -> ConnectionManager:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _pool_for(self, database: str) -> asyncpg.Pool:
        pool = self._pools.get(database)
        if pool is not None:
            return pool
        async with self._lock:
            pool = self._pools.get(database)
            if pool is None:
                try:
                    pool = await asyncpg.create_pool(
                        min_size=POOL_MIN_SIZE,
                        max_size=POOL_MAX_SIZE,
                        **self.connect_kwargs(database),
                    )
                except Exception as exc:
                    raise DatabaseConnectionError(
                        f"Failed to connect to database '{database}': {exc}"
                    ) from exc
                LOG.info("Opened connection pool", extra={"target": self.connection_string(redact=True)})
                self._pools[database] = pool
        return pool


def _format_version(version: object) -> str:
    major = getattr(version, "major", None)
    if major is None:
        return str(version)
    return f"{major}.{version.minor}.{version.micro}"  # type: ignore[attr-defined]


__all__ = [
    "COMMAND_TIMEOUT",
    "CONNECT_TIMEOUT",
    "ConnectionManager",
    "ConnectionProvider",
    "ConnectionTestResult",
    "POOL_MAX_SIZE",
    "POOL_MIN_SIZE",
    "REDACTED",
]

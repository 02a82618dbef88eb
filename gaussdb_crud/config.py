"""Connection configuration and its environment loader."""

from __future__ import annotations

import logging
import os
from typing import Mapping

from pydantic import BaseModel, ConfigDict, SecretStr

LOG = logging.getLogger(__name__)

ENV_HOST = "GAUSSDB_HOST"
ENV_PORT = "GAUSSDB_PORT"
ENV_USER = "GAUSSDB_USER"
ENV_PASSWORD = "GAUSSDB_PASSWORD"
ENV_DATABASE = "GAUSSDB_DATABASE"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
DEFAULT_USER = "root"
DEFAULT_PASSWORD = "password"
DEFAULT_DATABASE = "postgres"


class ConnectionConfig(BaseModel):
    """Process-wide connection settings, resolved once at startup."""

    model_config = ConfigDict(frozen=True)

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    user: str = DEFAULT_USER
    password: SecretStr = SecretStr(DEFAULT_PASSWORD)
    database: str = DEFAULT_DATABASE

    def target(self, database: str | None = None) -> str:
        """Database a call should use; ``None`` means the configured default."""

        return database or self.database


def load_config(environ: Mapping[str, str] | None = None) -> ConnectionConfig:
    """Build the configuration from ``GAUSSDB_*`` environment variables.

    Missing variables keep their defaults. A missing or malformed port logs a
    warning and falls back to the default port instead of failing.
    """

    env = os.environ if environ is None else environ
    config = ConnectionConfig(
        host=env.get(ENV_HOST) or DEFAULT_HOST,
        port=_parse_port(env.get(ENV_PORT)),
        user=env.get(ENV_USER) or DEFAULT_USER,
        password=SecretStr(env.get(ENV_PASSWORD) or DEFAULT_PASSWORD),
        database=env.get(ENV_DATABASE) or DEFAULT_DATABASE,
    )
    LOG.info(
        "Loaded connection configuration",
        extra={"host": config.host, "port": config.port, "database": config.database, "user": config.user},
    )
    return config


def _parse_port(raw: str | None) -> int:
    try:
        port = int(raw) if raw is not None else None
    except ValueError:
        port = None
    if port is None or not 0 < port < 65536:
        LOG.warning("%s is unset or malformed, using default port %s", ENV_PORT, DEFAULT_PORT)
        return DEFAULT_PORT
    return port


__all__ = [
    "ConnectionConfig",
    "DEFAULT_DATABASE",
    "DEFAULT_HOST",
    "DEFAULT_PASSWORD",
    "DEFAULT_PORT",
    "DEFAULT_USER",
    "load_config",
]

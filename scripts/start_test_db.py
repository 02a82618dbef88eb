"""Launch a disposable PostgreSQL container for the integration tests."""

from __future__ import annotations

import argparse
import asyncio
import subprocess
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from gaussdb_crud.config import ConnectionConfig
from gaussdb_crud.connections import ConnectionManager

DEFAULT_CONTAINER = "gaussdb-crud-test-db"
DEFAULT_PORT = 5544
DEFAULT_PASSWORD = "gaussdb"
DEFAULT_DB = "crud_test"
DEFAULT_USER = "gaussdb"
DOCKER_IMAGE = "postgres:16-alpine"


def run(cmd: list[str], *, check: bool = True) -> subprocess.CompletedProcess[str]:
    print("$", " ".join(cmd))
    return subprocess.run(cmd, check=check, text=True)


def container_exists(name: str) -> bool:
    result = subprocess.run(
        ["docker", "ps", "-a", "--filter", f"name={name}", "--format", "{{.ID}}"],
        text=True,
        capture_output=True,
    )
    return bool(result.stdout.strip())


def start_container(name: str, port: int, password: str, database: str, user: str) -> None:
    if container_exists(name):
        print(f"Container '{name}' already exists. Reusing it.")
        run(["docker", "start", name], check=False)
        return
    run(
        [
            "docker",
            "run",
            "-d",
            "--name",
            name,
            "-e",
            f"POSTGRES_PASSWORD={password}",
            "-e",
            f"POSTGRES_DB={database}",
            "-e",
            f"POSTGRES_USER={user}",
            "-p",
            f"{port}:5432",
            DOCKER_IMAGE,
        ]
    )


def wait_until_ready(config: ConnectionConfig, retries: int = 20, delay: float = 1.0) -> bool:
    manager = ConnectionManager(config)
    for _ in range(retries):
        result = asyncio.run(manager.test_connection())
        if result.success:
            print(f"Server {result.server_version} is accepting connections.")
            return True
        time.sleep(delay)
    print(f"Warning: database did not become ready: {result.error_details}")
    return False


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--container", default=DEFAULT_CONTAINER, help="Docker container name")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Host port to expose Postgres on")
    parser.add_argument("--password", default=DEFAULT_PASSWORD, help="Postgres password")
    parser.add_argument("--database", default=DEFAULT_DB, help="Database name to create")
    parser.add_argument("--user", default=DEFAULT_USER, help="Database user")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or sys.argv[1:])
    try:
        start_container(args.container, args.port, args.password, args.database, args.user)
    except FileNotFoundError:
        print("Docker is not installed or not on PATH.")
        return 1
    config = ConnectionConfig(
        host="127.0.0.1",
        port=args.port,
        user=args.user,
        password=args.password,
        database=args.database,
    )
    if not wait_until_ready(config):
        return 1
    print("Export these before running pytest:")
    print(f"  export GAUSSDB_TEST_HOST={config.host}")
    print(f"  export GAUSSDB_TEST_PORT={config.port}")
    print(f"  export GAUSSDB_TEST_USER={config.user}")
    print(f"  export GAUSSDB_TEST_PASSWORD={args.password}")
    print(f"  export GAUSSDB_TEST_DATABASE={config.database}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

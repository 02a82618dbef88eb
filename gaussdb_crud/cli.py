"""Command line health check against the configured database."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Sequence

import orjson

from .config import load_config
from .connections import ConnectionManager
from .operations import CrudService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gaussdb-crud",
        description="Check connectivity to the database configured through GAUSSDB_* variables.",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    check = sub.add_parser("check", help="Run SELECT 1 against the default database.")
    check.add_argument("--json", action="store_true", help="Print the result as JSON.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


async def _check(as_json: bool) -> bool:
    async with ConnectionManager(load_config()) as connections:
        result = await CrudService(connections).test_connection()
    if as_json:
        print(orjson.dumps(result.as_dict(), option=orjson.OPT_INDENT_2).decode())
    else:
        print(result.summary())
    return result.success


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ok = asyncio.run(_check(args.json))
    return 0 if ok else 1


__all__ = ["build_parser", "main"]

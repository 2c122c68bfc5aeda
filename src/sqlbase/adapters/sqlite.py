# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SQLite async adapter using aiosqlite."""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING, Any

import aiosqlite

from ..errors import ConnectionFailed
from .base import DbAdapter

if TYPE_CHECKING:
    from ..config import DbConfig


class SqliteAdapter(DbAdapter):
    """SQLite async adapter.

    Uses :name placeholders natively. dbname is the database file path
    (or ":memory:"). host, port and credentials are not used. Connections
    are opened with isolation_level=None so that every statement commits
    on its own.
    """

    name = "sqlite"
    placeholder = ":name"
    required_keys = ("dbname",)

    @property
    def statement_errors(self) -> tuple[type[BaseException], ...]:
        return (sqlite3.Error,)

    def connect_args(self, config: DbConfig) -> dict[str, Any]:
        return {"database": config.dbname, "isolation_level": None}

    async def connect(self, config: DbConfig) -> aiosqlite.Connection:
        """Open connection to the database file."""
        args = self.connect_args(config)
        try:
            return await aiosqlite.connect(**args)
        except sqlite3.Error as e:
            raise ConnectionFailed(
                f"SQLite connection failed: {e}", dsn=config.dsn()
            ) from e

    async def close(self, raw: aiosqlite.Connection) -> None:
        """Close connection."""
        await raw.close()

    async def run(
        self, raw: aiosqlite.Connection, query: str, params: dict[str, Any] | None = None
    ) -> tuple[list[dict[str, Any]], int]:
        """Execute query, return rows as dicts and affected row count."""
        async with raw.execute(query, params or {}) as cursor:
            if cursor.description is None:
                return [], cursor.rowcount
            rows = await cursor.fetchall()
            cols = [c[0] for c in cursor.description]
            return [dict(zip(cols, row, strict=True)) for row in rows], cursor.rowcount

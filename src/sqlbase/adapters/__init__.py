# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Database adapters for MySQL, PostgreSQL and SQLite.

This package provides async database adapters with a unified interface
for connecting and executing single statements with parameter binding.

Components:
    DbAdapter: Abstract base class defining the adapter interface.
    SqliteAdapter: SQLite adapter using aiosqlite.
    PostgresAdapter: PostgreSQL adapter using psycopg3.
    MysqlAdapter: MySQL adapter using aiomysql.
    get_adapter: Factory function to create adapters from a driver name.

Example:
    Usage via a Connection (recommended)::

        from sqlbase import DbConfig, connect

        conn = await connect(DbConfig(driver="sqlite", dbname=":memory:"))
        await conn.execute("CREATE TABLE users (id TEXT PRIMARY KEY)")
        rows = await conn.fetch_all("SELECT * FROM users WHERE id = :id", {"id": "u1"})

Note:
    PostgreSQL requires psycopg: `pip install sqlbase[postgresql]`.
    MySQL requires aiomysql: `pip install sqlbase[mysql]`.
"""

from ..errors import InvalidConfiguration
from .base import DbAdapter
from .sqlite import SqliteAdapter

__all__ = ["DbAdapter", "SqliteAdapter", "ADAPTERS", "get_adapter"]

# Adapter registry
ADAPTERS: dict[str, type[DbAdapter]] = {
    "sqlite": SqliteAdapter,
}


def get_adapter(driver: str) -> DbAdapter:
    """Create database adapter from a driver name.

    Driver names:
        - "mysql" → MySQL (aiomysql)
        - "postgresql" / "postgres" → PostgreSQL (psycopg)
        - "sqlite" → SQLite (aiosqlite)

    Args:
        driver: Driver name, case-insensitive.

    Returns:
        DbAdapter instance.

    Raises:
        InvalidConfiguration: If the driver is unknown.
        ImportError: If the driver library is not installed.
    """
    driver = (driver or "").lower()

    if driver in ADAPTERS:
        return ADAPTERS[driver]()

    if driver in ("postgresql", "postgres"):
        # Lazy import to avoid ImportError when psycopg not installed
        from .postgresql import PostgresAdapter

        ADAPTERS["postgresql"] = PostgresAdapter
        ADAPTERS["postgres"] = PostgresAdapter
        return PostgresAdapter()

    if driver == "mysql":
        from .mysql import MysqlAdapter

        ADAPTERS["mysql"] = MysqlAdapter
        return MysqlAdapter()

    raise InvalidConfiguration(
        f"Unknown database driver: '{driver}'. Supported: mysql, postgresql, sqlite",
        key="driver",
    )

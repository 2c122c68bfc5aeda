# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SQLite and MySQL fixtures for database tests.

SQLite fixtures use a private in-memory database per test.

MySQL fixtures connect to a server on port 3306 (override with the
SQLBASE_TEST_MYSQL_* variables). Tests marked `mysql` are skipped when
nothing listens there.

Every test starts and ends with a clean process-wide default connection,
configuration and logger.
"""

from __future__ import annotations

import contextlib
import os
import socket
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio

from sqlbase import (
    Connection,
    DbConfig,
    Table,
    connect,
    reset_defaults,
    set_default_logger,
)

MYSQL_CONFIG = DbConfig(
    driver="mysql",
    host=os.environ.get("SQLBASE_TEST_MYSQL_HOST", "localhost"),
    port=int(os.environ.get("SQLBASE_TEST_MYSQL_PORT", "3306")),
    dbname=os.environ.get("SQLBASE_TEST_MYSQL_DB", "sqlbase"),
    username=os.environ.get("SQLBASE_TEST_MYSQL_USER", "sqlbase"),
    password=os.environ.get("SQLBASE_TEST_MYSQL_PASSWORD", "testpassword"),
)

ITEMS_DDL = (
    "CREATE TABLE items ("
    "id TEXT PRIMARY KEY, name TEXT, email TEXT, qty INTEGER, date TEXT)"
)


class ItemsTable(Table):
    """Minimal table adapter for testing."""

    name = "items"
    prefix = "itm"
    fields = ("id", "name", "email", "qty", "date")


def _is_mysql_available() -> bool:
    """Check if MySQL is reachable."""
    try:
        with socket.create_connection((MYSQL_CONFIG.host, MYSQL_CONFIG.port), timeout=1):
            return True
    except OSError:
        return False


@pytest.fixture(autouse=True)
def skip_if_mysql_unavailable(request):
    """Auto-skip mysql-marked tests if MySQL is not available."""
    if request.node.get_closest_marker("mysql"):
        pytest.importorskip("aiomysql")
        if not _is_mysql_available():
            pytest.skip(f"MySQL not available at {MYSQL_CONFIG.host}:{MYSQL_CONFIG.port}")


@pytest.fixture(autouse=True)
def clean_defaults():
    """Reset process-wide connection, configuration and logger."""
    reset_defaults()
    set_default_logger(None)
    yield
    reset_defaults()
    set_default_logger(None)


@pytest.fixture
def log_records() -> list[tuple[str, str]]:
    """Collected (message, title) pairs for a logging callback."""
    return []


@pytest.fixture
def log_callback(log_records):
    """Logging callback appending to log_records."""

    def callback(message: str, title: str = "") -> None:
        log_records.append((message, title))

    return callback


@pytest_asyncio.fixture
async def sqlite_conn() -> AsyncGenerator[Connection, None]:
    """Open an in-memory SQLite connection for the test."""
    conn = await connect(DbConfig(driver="sqlite", dbname=":memory:"))
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def items(sqlite_conn: Connection, log_callback) -> ItemsTable:
    """ItemsTable bound to a fresh SQLite database."""
    await sqlite_conn.execute(ITEMS_DDL)
    return ItemsTable(connection=sqlite_conn, logger=log_callback)


@pytest_asyncio.fixture
async def mysql_conn() -> AsyncGenerator[Connection, None]:
    """Open a MySQL connection with a fresh items table."""
    conn = await connect(MYSQL_CONFIG)
    await conn.execute("DROP TABLE IF EXISTS items")
    await conn.execute(
        "CREATE TABLE items (id VARCHAR(32) PRIMARY KEY, name VARCHAR(64), "
        "email VARCHAR(128), qty INT, date DATE)"
    )
    yield conn
    with contextlib.suppress(Exception):
        await conn.execute("DROP TABLE IF EXISTS items")
    await conn.close()

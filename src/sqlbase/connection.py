# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Connection handle, provider and process-wide default connection.

Resolution order when a table needs a connection:

1. The connection set explicitly on the table instance
2. The provider's connection (the process-wide default provider unless
   one was injected)
3. A connection built from the provider's configuration, once, then
   cached on the provider

If none of them is available NoConnectionConfigured is raised.

Usage:
    # Explicit handle
    conn = await connect(DbConfig(driver="sqlite", dbname=":memory:"))
    users = UsersTable(connection=conn)

    # Process-wide default built lazily on first use
    set_default_config(config_from_env())
    users = UsersTable()
    await users.get_by_id("usr3f2a")  # connects here, exactly once
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from .adapters import DbAdapter, get_adapter
from .config import DbConfig
from .errors import NoConnectionConfigured

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[[DbConfig], Awaitable["Connection"]]


class Connection:
    """One open database session: an adapter plus its driver connection.

    The handle may be shared by many tables. Statements are serialized by
    an asyncio.Lock, since a driver connection carries one statement at a
    time.

    Attributes:
        adapter: DbAdapter for the backend.
        raw: Driver connection object.
        dsn: Display DSN (password redacted), if known.
    """

    def __init__(self, adapter: DbAdapter, raw: Any, dsn: str | None = None):
        self.adapter = adapter
        self.raw = raw
        self.dsn = dsn
        self.closed = False
        self._lock: asyncio.Lock | None = None

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<Connection {self.adapter.name} {self.dsn or ''} {state}>"

    async def run(
        self, query: str, params: dict[str, Any] | None = None
    ) -> tuple[list[dict[str, Any]], int]:
        """Execute one statement, return (rows, affected row count)."""
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            return await self.adapter.run(self.raw, query, params)

    async def execute(self, query: str, params: dict[str, Any] | None = None) -> int:
        """Execute query, return affected row count."""
        _, rowcount = await self.run(query, params)
        return rowcount

    async def fetch_all(
        self, query: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Execute query, return all rows."""
        rows, _ = await self.run(query, params)
        return rows

    async def close(self) -> None:
        """Close the driver connection. Safe to call twice."""
        if self.closed:
            return
        await self.adapter.close(self.raw)
        self.closed = True


def _as_config(config: DbConfig | Mapping[str, Any]) -> DbConfig:
    if isinstance(config, DbConfig):
        return config
    return DbConfig.from_mapping(config)


async def connect(config: DbConfig | Mapping[str, Any]) -> Connection:
    """Open a connection from configuration.

    Required keys are validated before any network attempt.

    Raises:
        InvalidConfiguration: If a required key is missing or the driver is unknown.
        ConnectionFailed: If the driver handshake fails.
    """
    config = _as_config(config)
    adapter = get_adapter(config.driver)
    config.validate(adapter.required_keys)
    raw = await adapter.connect(config)
    logger.info("Database connection opened: %s", config.dsn())
    return Connection(adapter, raw, dsn=config.dsn())


class ConnectionProvider:
    """Supplies a connection to tables, building it from configuration once.

    The lazy build is guarded by an asyncio.Lock, so concurrent first-time
    callers share a single connection.

    Args:
        config: Configuration used to build the connection on first use.
        connection: Ready-made connection. Takes precedence over config.
        factory: Coroutine function building a Connection from a DbConfig.
    """

    def __init__(
        self,
        config: DbConfig | Mapping[str, Any] | None = None,
        connection: Connection | None = None,
        factory: ConnectionFactory | None = None,
    ):
        self._config = _as_config(config) if config is not None else None
        self._connection = connection
        self._factory = factory or connect
        self._lock: asyncio.Lock | None = None

    @property
    def connection(self) -> Connection | None:
        """Current connection, or None if not built yet."""
        return self._connection

    @property
    def config(self) -> DbConfig | None:
        return self._config

    def set_connection(self, connection: Connection | None) -> None:
        self._connection = connection

    def set_config(self, config: DbConfig | Mapping[str, Any] | None) -> None:
        self._config = _as_config(config) if config is not None else None

    async def get(self) -> Connection:
        """Return the connection, building it from configuration if needed.

        Raises:
            NoConnectionConfigured: If there is neither connection nor config.
            InvalidConfiguration: If the configuration misses required keys.
            ConnectionFailed: If the driver handshake fails.
        """
        if self._connection is not None:
            return self._connection
        if self._config is None:
            raise NoConnectionConfigured(
                "No database connection set and no configuration provided"
            )
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self._connection is None:
                self._connection = await self._factory(self._config)
        return self._connection

    def reset(self) -> None:
        """Forget connection and configuration without closing anything."""
        self._connection = None
        self._config = None
        self._lock = None

    async def close(self) -> None:
        """Close and forget the connection. The configuration is kept."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None


# -----------------------------------------------------------------------------
# Process-wide default
# -----------------------------------------------------------------------------

_default_provider = ConnectionProvider()


def get_default_provider() -> ConnectionProvider:
    """Return the provider used by tables created without one."""
    return _default_provider


def set_default_connection(connection: Connection | None) -> None:
    _default_provider.set_connection(connection)


def get_default_connection() -> Connection | None:
    return _default_provider.connection


def set_default_config(config: DbConfig | Mapping[str, Any] | None) -> None:
    """Configure the default connection, built lazily on first use."""
    _default_provider.set_config(config)


def get_default_config() -> DbConfig | None:
    return _default_provider.config


async def create_connection(config: DbConfig | Mapping[str, Any] | None = None) -> Connection:
    """Open a new connection from config, or from the default configuration.

    Raises:
        NoConnectionConfigured: If config is None and no default is set.
    """
    config = config if config is not None else _default_provider.config
    if config is None:
        raise NoConnectionConfigured("No database configuration provided")
    return await connect(config)


async def initialize_default_connection(
    config: DbConfig | Mapping[str, Any] | None = None,
) -> Connection:
    """Open a connection and install it as the process-wide default."""
    connection = await create_connection(config)
    set_default_connection(connection)
    return connection


def reset_defaults() -> None:
    """Forget the default connection and configuration (does not close)."""
    _default_provider.reset()


async def resolve_connection(
    instance_connection: Connection | None, provider: ConnectionProvider | None = None
) -> Connection:
    """Resolve the connection for a table instance.

    Explicit instance connection > provider connection > lazily built from
    the provider configuration.
    """
    if instance_connection is not None:
        return instance_connection
    return await (provider or _default_provider).get()


__all__ = [
    "Connection",
    "ConnectionProvider",
    "connect",
    "create_connection",
    "get_default_config",
    "get_default_connection",
    "get_default_provider",
    "initialize_default_connection",
    "reset_defaults",
    "resolve_connection",
    "set_default_config",
    "set_default_connection",
]

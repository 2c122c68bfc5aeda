# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Async relational-database access base layer.

This package wraps a single SQL connection and gives per-table subclasses
whitelisted CRUD operations, an atomic upsert, identifier generation and
small query-composition helpers (date ranges, IN clauses).

Components:
    Table: Base class for table adapters (name, pkey, prefix, fields).
    Connection: One open database session (adapter + driver connection).
    ConnectionProvider: Builds the connection from configuration, once.
    DbConfig: Connection parameters, from env, INI file or mapping.
    DbAdapter: Abstract base for MySQL/PostgreSQL/SQLite adapters.
    StatementResult: Outcome of one statement (rows, rowcount, error).

Error model:
    Configuration, random-source and connectivity errors are raised.
    Statement errors are logged and returned as a failed StatementResult:
    reads give empty results, upserts give {}.

Example:
    Per-table adapter over the process-wide default connection::

        from sqlbase import Table, config_from_env, set_default_config

        class ContactsTable(Table):
            name = "contact"
            prefix = "con"
            fields = ("id", "email", "name", "date")

        set_default_config(config_from_env())

        contacts = ContactsTable()
        written = await contacts.update({"email": "a@b.c", "name": "A"})
        # INSERT ... ON DUPLICATE KEY UPDATE, id generated as "con" + 13 hex chars
        rows = await contacts.get_all(date_from="2025-01-01", order_by="date")
"""

from .adapters import DbAdapter, get_adapter
from .config import DbConfig, config_from_env, config_from_file
from .connection import (
    Connection,
    ConnectionProvider,
    connect,
    create_connection,
    get_default_config,
    get_default_connection,
    get_default_provider,
    initialize_default_connection,
    reset_defaults,
    resolve_connection,
    set_default_config,
    set_default_connection,
)
from .errors import (
    ConnectionFailed,
    InvalidConfiguration,
    NoConnectionConfigured,
    RandomSourceUnavailable,
    SqlBaseError,
    StatementFailed,
)
from .executor import StatementResult, execute_statement, set_default_logger
from .ids import new_id
from .table import Table

__version__ = "0.1.0"

__all__ = [
    # Main classes
    "Table",
    "Connection",
    "ConnectionProvider",
    "DbConfig",
    "StatementResult",
    # Connection management
    "connect",
    "create_connection",
    "initialize_default_connection",
    "get_default_config",
    "get_default_connection",
    "get_default_provider",
    "reset_defaults",
    "resolve_connection",
    "set_default_config",
    "set_default_connection",
    # Configuration
    "config_from_env",
    "config_from_file",
    # Execution and logging
    "execute_statement",
    "set_default_logger",
    # Identifiers
    "new_id",
    # Exceptions
    "SqlBaseError",
    "RandomSourceUnavailable",
    "InvalidConfiguration",
    "ConnectionFailed",
    "NoConnectionConfigured",
    "StatementFailed",
    # Adapters
    "DbAdapter",
    "get_adapter",
]

# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Base adapter class for async database backends with SQL helpers."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from ..config import REQUIRED_KEYS

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..config import DbConfig

_PLACEHOLDER_RE = re.compile(r"(?<!:):([a-zA-Z_][a-zA-Z0-9_]*)")


class DbAdapter(ABC):
    """Abstract base class for async database adapters.

    Provides a unified interface for MySQL, PostgreSQL and SQLite with:
    - Connection management (connect, close)
    - Single-statement execution with parameter binding (run)
    - Dialect helpers (identifier quoting, placeholders, upsert statement)

    Connection model:
    - connect(config): opens one driver connection in autocommit mode
    - close(raw): closes it
    Connections are long lived and shared; there is no pool and no
    transaction control at this layer.

    SQL passed to run() always uses :name placeholders. Subclasses whose
    driver expects another style set `placeholder` and the query is
    converted before execution.
    """

    name: str = ""
    placeholder: str = ":name"  # Override in subclass
    required_keys: tuple[str, ...] = REQUIRED_KEYS
    excluded: str = "excluded"  # ON CONFLICT pseudo-table name

    @property
    def statement_errors(self) -> tuple[type[BaseException], ...]:
        """Driver exception classes recovered as StatementFailed."""
        return ()

    # -------------------------------------------------------------------------
    # Connection
    # -------------------------------------------------------------------------

    @abstractmethod
    def connect_args(self, config: DbConfig) -> dict[str, Any]:
        """Return driver keyword arguments for config."""
        ...

    @abstractmethod
    async def connect(self, config: DbConfig) -> Any:
        """Open a driver connection.

        Raises:
            ConnectionFailed: Wrapping the driver error.
        """
        ...

    @abstractmethod
    async def close(self, raw: Any) -> None:
        """Close a driver connection."""
        ...

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    @abstractmethod
    async def run(
        self, raw: Any, query: str, params: dict[str, Any] | None = None
    ) -> tuple[list[dict[str, Any]], int]:
        """Execute one statement, return (rows, affected row count).

        rows is empty for statements that produce no result set.
        """
        ...

    # -------------------------------------------------------------------------
    # SQL Helpers
    # -------------------------------------------------------------------------

    def sql_name(self, name: str) -> str:
        """Return quoted SQL identifier for column/table name."""
        return f'"{name}"'

    def sql_table(self, name: str) -> str:
        """Return quoted table name, quoting each part of schema.table."""
        return ".".join(self.sql_name(part) for part in name.split("."))

    def placeholder_for(self, name: str) -> str:
        """Return placeholder for named parameter in :name style."""
        return f":{name}"

    def convert_placeholders(self, query: str) -> str:
        """Convert :name placeholders to the driver style."""
        if self.placeholder == ":name":
            return query
        replacement = self.placeholder.replace("name", r"\1")
        return _PLACEHOLDER_RE.sub(replacement, query)

    def insert_sql(self, table: str, columns: Sequence[str]) -> str:
        """Return INSERT statement for columns."""
        col_list = ", ".join(self.sql_name(c) for c in columns)
        placeholders = ", ".join(self.placeholder_for(c) for c in columns)
        return f"INSERT INTO {table} ({col_list}) VALUES ({placeholders})"

    def upsert_sql(self, table: str, columns: Sequence[str], pkey: str) -> str:
        """Return an atomic insert-or-update statement keyed on pkey.

        Default uses ON CONFLICT (SQLite, PostgreSQL). On conflict every
        column except pkey is overwritten with the incoming value.
        """
        updates = [
            f"{self.sql_name(c)} = {self.excluded}.{self.sql_name(c)}"
            for c in columns
            if c != pkey
        ]
        action = f"DO UPDATE SET {', '.join(updates)}" if updates else "DO NOTHING"
        return f"{self.insert_sql(table, columns)} ON CONFLICT ({self.sql_name(pkey)}) {action}"

    def update_sql(self, table: str, columns: Sequence[str], criteria: str) -> str:
        """Return UPDATE ... SET for columns restricted by a WHERE criteria.

        SET values are bound as :__set_<column> (see set_param()), so they
        never collide with placeholders used inside criteria.
        """
        assignments = ", ".join(
            f"{self.sql_name(c)} = {self.placeholder_for(self.set_param(c))}" for c in columns
        )
        return f"UPDATE {table} SET {assignments} WHERE {criteria}"

    @staticmethod
    def set_param(column: str) -> str:
        """Parameter name carrying the new value of column in update_sql()."""
        return f"__set_{column}"

# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""MySQL async adapter using aiomysql.

Each connection runs in autocommit mode with the session character set
forced by an init command (SET NAMES).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..errors import ConnectionFailed
from .base import DbAdapter

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..config import DbConfig


class MysqlAdapter(DbAdapter):
    """MySQL async adapter.

    Uses :name placeholders converted to %(name)s. Identifiers are quoted
    with backticks. The upsert statement is INSERT ... ON DUPLICATE KEY
    UPDATE, so a conflict on any unique key updates the row in place.
    """

    name = "mysql"
    placeholder = "%(name)s"

    def __init__(self) -> None:
        # Verify aiomysql is available at init time
        try:
            import aiomysql  # noqa: F401
        except ImportError as e:
            raise ImportError(
                "MySQL support requires aiomysql. "
                "Install with: pip install sqlbase[mysql]"
            ) from e

    @property
    def statement_errors(self) -> tuple[type[BaseException], ...]:
        import pymysql

        return (pymysql.err.MySQLError,)

    def connect_args(self, config: DbConfig) -> dict[str, Any]:
        args: dict[str, Any] = {
            "db": config.dbname,
            "user": config.username,
            "password": config.password,
            "charset": config.charset,
            "init_command": f"SET NAMES {config.charset}",
            "autocommit": True,
        }
        if config.socket:
            args["unix_socket"] = config.socket
        else:
            args["host"] = config.host
            if config.port:
                args["port"] = int(config.port)
        return args

    async def connect(self, config: DbConfig) -> Any:
        """Open an autocommit connection."""
        import aiomysql

        try:
            return await aiomysql.connect(**self.connect_args(config))
        except Exception as e:
            raise ConnectionFailed(
                f"MySQL connection failed: {e}", dsn=config.dsn()
            ) from e

    async def close(self, raw: Any) -> None:
        """Close connection."""
        raw.close()

    async def run(
        self, raw: Any, query: str, params: dict[str, Any] | None = None
    ) -> tuple[list[dict[str, Any]], int]:
        """Execute query, return rows as dicts and affected row count."""
        import aiomysql

        query = self.convert_placeholders(query)
        async with raw.cursor(aiomysql.DictCursor) as cur:
            rowcount = await cur.execute(query, params or None)
            if cur.description is None:
                return [], rowcount
            return list(await cur.fetchall()), rowcount

    def sql_name(self, name: str) -> str:
        return f"`{name}`"

    def upsert_sql(self, table: str, columns: Sequence[str], pkey: str) -> str:
        """INSERT ... ON DUPLICATE KEY UPDATE f1=:f1, f2=:f2, ..."""
        updates = [
            f"{self.sql_name(c)} = {self.placeholder_for(c)}" for c in columns if c != pkey
        ]
        if not updates:
            updates = [f"{self.sql_name(pkey)} = {self.sql_name(pkey)}"]
        return f"{self.insert_sql(table, columns)} ON DUPLICATE KEY UPDATE {', '.join(updates)}"

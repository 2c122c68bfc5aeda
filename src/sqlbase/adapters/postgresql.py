# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""PostgreSQL async adapter using psycopg3.

One autocommit AsyncConnection per handle, no pool.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..errors import ConnectionFailed
from .base import DbAdapter

if TYPE_CHECKING:
    from ..config import DbConfig

# MySQL charset names that map to a PostgreSQL client_encoding
_ENCODINGS = {"utf8mb4": "UTF8", "utf8": "UTF8", "latin1": "LATIN1"}


class PostgresAdapter(DbAdapter):
    """PostgreSQL async adapter.

    Uses :name placeholders converted to %(name)s. A socket path in the
    configuration is passed to libpq as host (socket directory addressing).
    """

    name = "postgresql"
    placeholder = "%(name)s"
    excluded = "EXCLUDED"

    def __init__(self) -> None:
        # Verify psycopg is available at init time
        try:
            import psycopg  # noqa: F401
        except ImportError as e:
            raise ImportError(
                "PostgreSQL support requires psycopg. "
                "Install with: pip install sqlbase[postgresql]"
            ) from e

    @property
    def statement_errors(self) -> tuple[type[BaseException], ...]:
        import psycopg

        return (psycopg.Error,)

    def connect_args(self, config: DbConfig) -> dict[str, Any]:
        args: dict[str, Any] = {
            "dbname": config.dbname,
            "user": config.username,
            "password": config.password,
            "client_encoding": _ENCODINGS.get(config.charset.lower(), config.charset),
            "autocommit": True,
        }
        if config.socket:
            args["host"] = config.socket
        else:
            args["host"] = config.host
            if config.port:
                args["port"] = config.port
        return args

    async def connect(self, config: DbConfig) -> Any:
        """Open an autocommit connection."""
        import psycopg

        try:
            return await psycopg.AsyncConnection.connect(**self.connect_args(config))
        except Exception as e:
            raise ConnectionFailed(
                f"PostgreSQL connection failed: {e}", dsn=config.dsn()
            ) from e

    async def close(self, raw: Any) -> None:
        """Close connection."""
        await raw.close()

    async def run(
        self, raw: Any, query: str, params: dict[str, Any] | None = None
    ) -> tuple[list[dict[str, Any]], int]:
        """Execute query, return rows as dicts and affected row count."""
        from psycopg.rows import dict_row

        query = self.convert_placeholders(query)
        async with raw.cursor(row_factory=dict_row) as cur:
            await cur.execute(query, params or {})
            if cur.description is None:
                return [], cur.rowcount
            return await cur.fetchall(), cur.rowcount

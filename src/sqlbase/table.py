# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Table base class with whitelisted upsert and read helpers (async version)."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from . import executor
from .connection import get_default_provider, resolve_connection
from .ids import new_id

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .connection import Connection, ConnectionProvider
    from .executor import LogCallback, StatementResult

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")
_LEADING_WHERE_RE = re.compile(r"^\s*where\s+", re.IGNORECASE)
_ORDER_TERM = r"[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)?(?:\s+(?:ASC|DESC))?"
_ORDER_BY_RE = re.compile(rf"^\s*{_ORDER_TERM}(?:\s*,\s*{_ORDER_TERM})*\s*$", re.IGNORECASE)


def check_identifier(name: str) -> str:
    """Return name if it is a plain (optionally table-qualified) identifier.

    Raises:
        ValueError: If name could carry anything but an identifier.
    """
    if not isinstance(name, str) or not _IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


def check_order_by(clause: str) -> str:
    """Return clause if it is a list of columns, each optionally ASC or DESC.

    Raises:
        ValueError: If clause holds anything but column names and directions.
    """
    if not isinstance(clause, str) or not _ORDER_BY_RE.match(clause):
        raise ValueError(f"Invalid ORDER BY clause: {clause!r}")
    return clause.strip()


class Table:
    """Base class for async table adapters.

    Subclasses declare the table and its write whitelist as class
    attributes and add domain-specific operations.

    Attributes:
        name: Table name in database.
        pkey: Identifier column name.
        prefix: Prefix of generated identifiers.
        fields: Permitted field names. Only these are ever written.
        email_field: Column looked up by get_by_email().

    Example::

        class ContactsTable(Table):
            name = "contact"
            prefix = "con"
            fields = ("id", "email", "name", "date")

        contacts = ContactsTable(connection=conn)
        written = await contacts.update({"email": "a@b.c", "name": "A"})
        contact = await contacts.get_by_id(written["id"])
    """

    name: str
    pkey: str = "id"
    prefix: str = ""
    fields: tuple[str, ...] = ()
    email_field: str = "email"

    def __init__(
        self,
        connection: Connection | None = None,
        provider: ConnectionProvider | None = None,
        logger: LogCallback | None = None,
    ) -> None:
        if not getattr(self, "name", None):
            raise ValueError(f"{type(self).__name__} must define 'name'")
        self._connection = connection
        self.provider = provider or get_default_provider()
        self.logger = logger or executor.get_default_logger()

    # -------------------------------------------------------------------------
    # Connection and logging
    # -------------------------------------------------------------------------

    @property
    def connection(self) -> Connection | None:
        """Connection set on this instance (None means use the provider)."""
        return self._connection

    def set_connection(self, connection: Connection | None) -> None:
        self._connection = connection

    async def ensure_connection(self) -> Connection:
        """Resolve the connection: instance, then provider, then lazy build.

        Raises:
            NoConnectionConfigured: If nothing is configured.
            InvalidConfiguration: If the lazy build finds a bad configuration.
            ConnectionFailed: If the lazy build cannot connect.
        """
        return await resolve_connection(self._connection, self.provider)

    async def sql_table(self, table: str | None = None) -> str:
        """Return table (default: this table) quoted for the current backend."""
        name = check_identifier(table or self.name)
        connection = await self.ensure_connection()
        return connection.adapter.sql_table(name)

    def log(self, message: str, title: str = "") -> None:
        """Send (message, title) to the logging callback."""
        (self.logger or executor.log_to_logging)(message, title)

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    async def execute_statement(
        self, sql: str, params: dict[str, Any] | None = None
    ) -> StatementResult:
        """Run one statement. Driver errors come back as a failed result."""
        connection = await self.ensure_connection()
        return await executor.execute_statement(connection, sql, params, self.log)

    async def query(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Execute a read, return all rows ([] when the statement failed)."""
        result = await self.execute_statement(sql, params)
        return result.rows if result else []

    async def execute(self, sql: str, params: dict[str, Any] | None = None) -> StatementResult:
        """Execute a write, return the StatementResult (falsy on failure)."""
        return await self.execute_statement(sql, params)

    async def get_one(self, sql: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Return the first row of a read, or {}."""
        rows = await self.query(sql, params)
        return rows[0] if rows else {}

    async def first_value(
        self,
        sql: str,
        params: dict[str, Any] | None = None,
        key: str | None = None,
        default: Any = 0,
    ) -> Any:
        """Return one value from the first row.

        Args:
            key: Column to read. None means the first column.
            default: Returned when there is no row or no such column.
        """
        row = await self.get_one(sql, params)
        if not row:
            return default
        if key is not None:
            return row.get(key, default)
        return next(iter(row.values()), default)

    # -------------------------------------------------------------------------
    # Record hooks
    # -------------------------------------------------------------------------

    def process_record(self, record: dict[str, Any]) -> dict[str, Any]:
        """Override to post-process each row returned by the read helpers."""
        return record

    def process_records(self, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return [self.process_record(record) for record in records]

    def expand_record(self, record: dict[str, Any]) -> dict[str, Any]:
        """Override to derive extra fields for a new record before it is written."""
        return record

    # -------------------------------------------------------------------------
    # Query composition
    # -------------------------------------------------------------------------

    def build_date_range_clause(
        self,
        date_from: Any = "",
        date_to: Any = "",
        field: str = "date",
        from_param: str = "__from",
        to_param: str = "__to",
    ) -> tuple[str, dict[str, Any]]:
        """Return (" WHERE field >= :from [AND field <= :to]", params).

        Each bound is optional. With no bound the clause is "" and params {}.
        """
        check_identifier(field)
        parts: list[str] = []
        values: dict[str, Any] = {}
        if date_from:
            parts.append(f"{field} >= :{from_param}")
            values[from_param] = date_from
        if date_to:
            parts.append(f"{field} <= :{to_param}")
            values[to_param] = date_to
        clause = " WHERE " + " AND ".join(parts) if parts else ""
        return clause, values

    def append_date_range_to_sql(
        self,
        sql: str,
        date_from: Any = "",
        date_to: Any = "",
        field: str = "date",
        from_param: str = "__from",
        to_param: str = "__to",
    ) -> tuple[str, dict[str, Any]]:
        """Append a date-range filter to caller-supplied SQL.

        Uses AND when sql already contains " where " (case-insensitive),
        WHERE otherwise. The check is a plain substring search: a " where "
        inside a string literal or a subquery is taken as an existing WHERE.
        """
        clause, values = self.build_date_range_clause(
            date_from, date_to, field, from_param, to_param
        )
        if not clause:
            return sql, {}
        if " where " in sql.lower():
            clause = _LEADING_WHERE_RE.sub(" AND ", clause)
        return sql + clause, values

    def build_in_clause(
        self, field: str, values: Any, param_base: str = "in"
    ) -> tuple[str, dict[str, Any]]:
        """Return ("field IN (:in0, :in1, ...)", params).

        Empty or non-list input gives ("", {}), meaning no filter at all.
        """
        if not isinstance(values, (list, tuple)) or not values:
            return "", {}
        check_identifier(field)
        params = {f"{param_base}{i}": value for i, value in enumerate(values)}
        placeholders = ", ".join(f":{name}" for name in params)
        return f"{field} IN ({placeholders})", params

    # -------------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------------

    async def get_by(
        self, key: str, value: Any, multiple: bool = True
    ) -> list[dict[str, Any]] | dict[str, Any]:
        """Select rows where key = value.

        Returns:
            All matching rows, or with multiple=False the first one ({} if none).
        """
        check_identifier(key)
        table = await self.sql_table()
        rows = await self.query(f"SELECT * FROM {table} WHERE {key} = :value", {"value": value})
        rows = self.process_records(rows)
        if not multiple:
            return rows[0] if rows else {}
        return rows

    async def get_by_id(self, id: Any) -> dict[str, Any]:
        return await self.get_by(self.pkey, id, multiple=False)  # type: ignore[return-value]

    async def get_by_email(self, email: str) -> dict[str, Any]:
        """Return the row whose email_field matches. Override for other lookups."""
        return await self.get_by(self.email_field, email, multiple=False)  # type: ignore[return-value]

    async def get_all(
        self,
        date_from: Any = "",
        date_to: Any = "",
        date_field: str = "date",
        order_by: str = "",
    ) -> list[dict[str, Any]]:
        """Return every row, or the rows within a date range when a bound is given.

        Args:
            date_from: Inclusive lower bound on date_field.
            date_to: Inclusive upper bound on date_field.
            date_field: Column the bounds apply to.
            order_by: ORDER BY clause used with a date range. Only column
                names, each optionally followed by ASC or DESC, are accepted.

        Raises:
            ValueError: If date_field or order_by is not made of identifiers.
        """
        if date_from or date_to:
            return await self.get_all_by_date_range(date_from, date_to, date_field, order_by)
        table = await self.sql_table()
        return self.process_records(await self.query(f"SELECT * FROM {table}"))

    async def get_all_by_date_range(
        self,
        date_from: Any = "",
        date_to: Any = "",
        date_field: str = "date",
        order_by: str = "",
    ) -> list[dict[str, Any]]:
        where, values = self.build_date_range_clause(date_from, date_to, date_field)
        table = await self.sql_table()
        sql = f"SELECT * FROM {table}{where}"
        if order_by:
            sql += f" ORDER BY {check_order_by(order_by)}"
        return self.process_records(await self.query(sql, values))

    # -------------------------------------------------------------------------
    # Upsert
    # -------------------------------------------------------------------------

    async def upsert_record(
        self,
        fields: Iterable[str],
        record: dict[str, Any],
        table: str | None = None,
        prefix: str | None = None,
        pkey: str | None = None,
        criteria: str = "",
        criteria_params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Write the whitelisted part of record.

        Only keys of record listed in fields are written. Without criteria
        the row is written with one atomic insert-or-update statement keyed
        on pkey; a missing or empty pkey gets a generated identifier. With
        criteria a plain UPDATE ... WHERE criteria is run instead, which
        never generates an identifier and never sets pkey.

        Args:
            fields: Permitted field names.
            record: Incoming values.
            table: Target table (default: self.name).
            prefix: Prefix of a generated identifier (default: self.prefix).
            pkey: Identifier column (default: self.pkey).
            criteria: WHERE expression for an update-by-criteria.
            criteria_params: Values for placeholders used in criteria. SET
                values are bound under their own names, so criteria may use
                a placeholder named like a written column.

        Returns:
            The written field mapping, including a generated identifier,
            or {} if nothing was permitted or the statement failed.
        """
        prefix = self.prefix if prefix is None else prefix
        pkey = pkey or self.pkey

        written = {key: record[key] for key in fields if key in record}
        if not written:
            return written

        table = await self.sql_table(table)
        connection = await self.ensure_connection()
        adapter = connection.adapter

        if criteria:
            written.pop(pkey, None)
            if not written:
                return {}
            sql = adapter.update_sql(table, list(written), criteria)
            params = {adapter.set_param(key): value for key, value in written.items()}
            params.update(criteria_params or {})
        else:
            if record.get(pkey):
                written[pkey] = record[pkey]
            else:
                written = {pkey: new_id(prefix), **{k: v for k, v in written.items() if k != pkey}}
            sql = adapter.upsert_sql(table, list(written), pkey)
            params = written

        result = await executor.execute_statement(connection, sql, params, self.log)
        if not result:
            return {}
        return written

    async def insert_record(
        self,
        fields: Iterable[str],
        record: dict[str, Any],
        table: str | None = None,
        prefix: str | None = None,
        pkey: str | None = None,
    ) -> dict[str, Any]:
        """Older name of upsert_record() without criteria."""
        return await self.upsert_record(fields, record, table, prefix, pkey)

    async def update(self, record: dict[str, Any]) -> dict[str, Any]:
        """Create or update a row of this table from record.

        Without an identifier, an existing row with the same email_field
        value is reused when the table has that field. New records go
        through expand_record() first.

        Returns:
            The written field mapping (with the identifier), or {} on failure.
        """
        record = dict(record)
        self.log(f"{type(self).__name__}.update(): {sorted(record)}")
        pkey = self.pkey
        email = record.get(self.email_field)
        if not record.get(pkey) and email and self.email_field in self.fields:
            existing = await self.get_by_email(email)
            if existing.get(pkey):
                record[pkey] = existing[pkey]
        if not record.get(pkey):
            record = self.expand_record(record)
        return await self.upsert_record(self.fields, record, self.name, self.prefix, pkey)

    async def create(self, record: dict[str, Any]) -> dict[str, Any]:
        """Override to add defaults for new rows. Default: update()."""
        return await self.update(record)

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    async def delete(self, id: Any) -> StatementResult:
        return await self.delete_by(self.pkey, id)

    async def delete_by(self, key: str, value: Any) -> StatementResult:
        """Delete rows where key = value. rowcount tells how many."""
        check_identifier(key)
        table = await self.sql_table()
        return await self.execute(f"DELETE FROM {table} WHERE {key} = :value", {"value": value})


__all__ = ["Table", "check_identifier", "check_order_by"]

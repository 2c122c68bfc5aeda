# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exception hierarchy for the database access layer.

Configuration, random-source and connectivity errors are raised to the
caller. StatementFailed is never raised by the query/execute paths: it is
carried inside a failed StatementResult (see sqlbase.executor).
"""

from __future__ import annotations

from typing import Any


class SqlBaseError(Exception):
    """Base class for all sqlbase errors."""

    pass


class RandomSourceUnavailable(SqlBaseError):
    """Raised when no cryptographically secure random source is available."""

    pass


class InvalidConfiguration(SqlBaseError):
    """Raised when the database configuration is missing or invalid.

    Attributes:
        key: Name of the offending configuration key, if any.
    """

    def __init__(self, message: str, key: str | None = None):
        self.key = key
        super().__init__(message)


class ConnectionFailed(SqlBaseError):
    """Raised when the driver handshake fails. The transport error is __cause__."""

    def __init__(self, message: str, dsn: str | None = None):
        self.dsn = dsn
        super().__init__(message)


class NoConnectionConfigured(SqlBaseError):
    """Raised when neither a connection nor a configuration is available."""

    pass


class StatementFailed(SqlBaseError):
    """A statement error recovered at the executor boundary."""

    def __init__(self, message: str, sql: str = "", params: dict[str, Any] | None = None):
        self.message = message
        self.sql = sql
        self.params = params
        super().__init__(message)


__all__ = [
    "SqlBaseError",
    "RandomSourceUnavailable",
    "InvalidConfiguration",
    "ConnectionFailed",
    "NoConnectionConfigured",
    "StatementFailed",
]

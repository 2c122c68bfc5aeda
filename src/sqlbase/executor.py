# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Statement execution with fail-soft error capture and logging.

Every statement is logged with its bound values before it runs. A driver
error raised by the statement is logged under the "error" title and
returned as a failed StatementResult instead of propagating; callers
decide whether that means "not found" or "write failed".

Logging callback contract:
    A callable accepting (message, title). Install a process-wide one with
    set_default_logger(); without one, messages go to this module's
    logging logger ("error" at ERROR level, everything else at DEBUG).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .errors import StatementFailed

if TYPE_CHECKING:
    from .connection import Connection

logger = logging.getLogger(__name__)

LogCallback = Callable[[str, str], None]

_default_logger: LogCallback | None = None


def set_default_logger(callback: LogCallback | None) -> None:
    """Install the process-wide logging callback (None restores logging)."""
    global _default_logger
    _default_logger = callback


def get_default_logger() -> LogCallback | None:
    return _default_logger


def log_to_logging(message: str, title: str = "") -> None:
    """Default sink: forward (message, title) to the module logger."""
    if title == "error":
        logger.error(message)
    elif title:
        logger.debug("%s: %s", title, message)
    else:
        logger.debug(message)


@dataclass
class StatementResult:
    """Outcome of one statement.

    Attributes:
        rows: Result rows (empty for writes and failures).
        rowcount: Affected row count reported by the driver.
        error: StatementFailed when the statement did not run.
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    rowcount: int = 0
    error: StatementFailed | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def failed(cls, error: StatementFailed) -> StatementResult:
        return cls(error=error)


async def execute_statement(
    connection: Connection,
    sql: str,
    params: dict[str, Any] | None = None,
    log: LogCallback | None = None,
) -> StatementResult:
    """Run sql with params bound by the driver.

    Args:
        connection: Open connection.
        sql: Statement with :name placeholders. Values are never formatted
            into it.
        params: Placeholder name to value mapping.
        log: Logging callback; defaults to the process-wide one.

    Returns:
        StatementResult, failed if the driver rejected the statement.
    """
    log = log or _default_logger or log_to_logging
    log(f"{sql}, {params!r}", "")
    try:
        rows, rowcount = await connection.run(sql, params or None)
    except connection.adapter.statement_errors as e:
        log(str(e), "error")
        return StatementResult.failed(StatementFailed(str(e), sql=sql, params=params))
    return StatementResult(rows=rows, rowcount=rowcount)


__all__ = [
    "LogCallback",
    "StatementResult",
    "execute_statement",
    "get_default_logger",
    "log_to_logging",
    "set_default_logger",
]

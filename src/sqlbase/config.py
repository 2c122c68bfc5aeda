# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Database configuration dataclass and loaders.

This module defines DbConfig, the mapping consumed when a connection is
built lazily, plus two factories that produce it:

- config_from_env(): reads SQLBASE_DB_* environment variables
- config_from_file(): reads the [database] section of an INI file

Configuration via environment variables:
    SQLBASE_DB_DRIVER: mysql (default), postgresql or sqlite
    SQLBASE_DB_HOST: Server host (default: localhost)
    SQLBASE_DB_NAME: Database name (SQLite: file path or :memory:)
    SQLBASE_DB_USER: Username
    SQLBASE_DB_PASSWORD: Password
    SQLBASE_DB_PORT: Server port
    SQLBASE_DB_SOCKET: Unix socket path (takes precedence over host/port)
    SQLBASE_DB_CHARSET: Session character set (default: utf8mb4)
    SQLBASE_TEST_DB: Overrides the database name (test runs)

INI file layout::

    [database]
    driver = mysql
    host = db.internal
    dbname = app
    username = app
    password = secret
    port = 3306
"""

from __future__ import annotations

import configparser
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from .errors import InvalidConfiguration

DEFAULT_DRIVER = "mysql"
DEFAULT_CHARSET = "utf8mb4"
REQUIRED_KEYS = ("host", "dbname", "username", "password", "port")

# Alternative spellings accepted by from_mapping()
_ALIASES = {
    "database": "dbname",
    "db_name": "dbname",
    "user": "username",
    "db_user": "username",
    "db_host": "host",
    "db_pass": "password",
    "db_password": "password",
    "db_port": "port",
    "db_socket": "socket",
    "unix_socket": "socket",
    "db_driver": "driver",
}


@dataclass
class DbConfig:
    """Connection parameters for one database.

    Attributes:
        driver: Adapter name (mysql, postgresql, sqlite).
        host: Server host name.
        dbname: Database name, or file path for SQLite.
        username: Login user.
        password: Login password.
        port: Server port.
        socket: Unix socket path. When set, host/port addressing is not used.
        charset: Session character set, enforced at connect time.
    """

    driver: str = DEFAULT_DRIVER
    host: str = ""
    dbname: str = ""
    username: str = ""
    password: str = ""
    port: int | None = None
    socket: str | None = None
    charset: str = DEFAULT_CHARSET

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> DbConfig:
        """Build a DbConfig from a plain mapping, accepting key aliases.

        Unknown keys are ignored. Empty values leave the default in place.
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in mapping.items():
            name = _ALIASES.get(key, key)
            if name not in known or value in (None, ""):
                continue
            values.setdefault(name, value)
        if "port" in values:
            values["port"] = _parse_port(values["port"])
        return cls(**values)

    def validate(self, required: Iterable[str] = REQUIRED_KEYS) -> None:
        """Check that every required key has a truthy value.

        Raises:
            InvalidConfiguration: Naming the first missing key.
        """
        for key in required:
            if not getattr(self, key, None):
                raise InvalidConfiguration(
                    f"Missing required database configuration key: '{key}'", key=key
                )

    def dsn(self) -> str:
        """Return a display DSN with the password redacted.

        Socket addressing is selected when socket is set, host/port otherwise.
        """
        if self.driver == "sqlite":
            return f"sqlite:{self.dbname}"
        user = f"{self.username}:***@" if self.username else ""
        if self.socket:
            location = f"unix_socket={self.socket}"
        elif self.port:
            location = f"{self.host}:{self.port}"
        else:
            location = self.host
        return f"{self.driver}://{user}{location}/{self.dbname}?charset={self.charset}"


def _parse_port(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"Invalid database port: {value!r}", key="port") from None


def config_from_env(
    overrides: Mapping[str, Any] | None = None, prefix: str = "SQLBASE_DB_"
) -> DbConfig:
    """Build DbConfig from environment variables.

    Args:
        overrides: Values taking precedence over the environment
            (same keys as DbConfig, aliases accepted).
        prefix: Environment variable prefix.

    Returns:
        DbConfig populated from the environment.
    """
    env = os.environ
    values: dict[str, Any] = {
        "driver": env.get(f"{prefix}DRIVER", DEFAULT_DRIVER),
        "host": env.get(f"{prefix}HOST", "localhost"),
        "dbname": env.get("SQLBASE_TEST_DB") or env.get(f"{prefix}NAME", ""),
        "username": env.get(f"{prefix}USER", ""),
        "password": env.get(f"{prefix}PASSWORD", ""),
        "port": env.get(f"{prefix}PORT"),
        "socket": env.get(f"{prefix}SOCKET"),
        "charset": env.get(f"{prefix}CHARSET", DEFAULT_CHARSET),
    }
    for key, value in (overrides or {}).items():
        if value not in (None, ""):
            values[_ALIASES.get(key, key)] = value
    return DbConfig.from_mapping(values)


def config_from_file(path: str | Path, dbname_override: str | None = None) -> DbConfig:
    """Build DbConfig from the [database] section of an INI file.

    Args:
        path: Path of the INI file.
        dbname_override: Database name taking precedence over the file
            (SQLBASE_TEST_DB takes precedence over the file as well).

    Raises:
        InvalidConfiguration: If the file cannot be read or has no
            [database] section.
    """
    config_file = Path(path)
    if not config_file.is_file() or not os.access(config_file, os.R_OK):
        raise InvalidConfiguration(f"Config file not readable: {config_file}")

    parser = configparser.ConfigParser()
    parser.read(config_file)
    if not parser.has_section("database"):
        raise InvalidConfiguration(
            f"Config file {config_file} has no [database] section", key="database"
        )

    values: dict[str, Any] = dict(parser.items("database"))
    dbname = dbname_override or os.environ.get("SQLBASE_TEST_DB")
    if dbname:
        values["dbname"] = dbname
        values.pop("database", None)
        values.pop("db_name", None)
    return DbConfig.from_mapping(values)


__all__ = ["DbConfig", "config_from_env", "config_from_file", "REQUIRED_KEYS"]

# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""User table adapter.

Login accounts keyed by a generated id. The username column holds the
e-mail address. Passwords are stored as salted PBKDF2-HMAC-SHA256 hashes;
legacy plaintext values are still accepted by check_password().
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Any

from ...table import Table

HASH_SCHEME = "pbkdf2-sha256"


def hash_password(password: str, iterations: int = 600_000) -> str:
    """Return "$pbkdf2-sha256$<iterations>$<salt hex>$<hash hex>"."""
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, iterations)
    return f"${HASH_SCHEME}${iterations}${salt.hex()}${digest.hex()}"


def is_hashed(value: str) -> bool:
    return value.startswith("$")


def check_password(password: str, stored: str) -> bool:
    """Verify password against a stored hash (or legacy plaintext) in constant time."""
    if not is_hashed(stored):
        return hmac.compare_digest(stored.encode(), password.encode())
    try:
        _, scheme, iterations, salt, expected = stored.split("$")
        if scheme != HASH_SCHEME:
            return False
        digest = hashlib.pbkdf2_hmac(
            "sha256", password.encode(), bytes.fromhex(salt), int(iterations)
        )
    except ValueError:
        return False
    return hmac.compare_digest(digest.hex(), expected)


class UsersTable(Table):
    """User accounts with hashed passwords and an active flag.

    Schema: id, username (e-mail), password (hash), active, tenant, app,
    created, modified.
    """

    name = "user"
    pkey = "id"
    prefix = "usr"
    fields = ("id", "username", "password", "active", "tenant", "app", "created", "modified")
    email_field = "username"
    hash_iterations = 600_000

    def _hash_if_plain(self, record: dict[str, Any]) -> dict[str, Any]:
        password = record.get("password")
        if password and not is_hashed(password):
            record["password"] = hash_password(password, self.hash_iterations)
        return record

    async def get_by_email(self, email: str) -> dict[str, Any]:
        """Return the user whose username is email, or {}."""
        self.log(f"UsersTable.get_by_email(): ({email})")
        table = await self.sql_table()
        user = await self.get_one(
            f"SELECT * FROM {table} WHERE {self.email_field} = :email LIMIT 1",
            {"email": email},
        )
        self.log(f"UsersTable.get_by_email(): {'1 record found' if user else 'no records found'}")
        return self.process_record(user) if user else {}

    async def verify_password(self, email: str, password: str) -> bool:
        user = await self.get_by_email(email)
        stored = user.get("password")
        if not stored:
            return False
        return check_password(password, stored)

    async def is_active(self, email: str) -> bool:
        """True if the user exists and is active. A NULL flag counts as active."""
        user = await self.get_by_email(email)
        if not user:
            return False
        active = user.get("active")
        return active is None or int(active) == 1

    async def update(self, record: dict[str, Any]) -> dict[str, Any]:
        """Hash a plaintext password, then create or update the user."""
        return await super().update(self._hash_if_plain(dict(record)))

    async def create(self, record: dict[str, Any]) -> dict[str, Any]:
        """Create a user, active unless stated otherwise."""
        record = dict(record)
        record.setdefault("active", 1)
        self._hash_if_plain(record)
        return await self.upsert_record(self.fields, record)


__all__ = ["UsersTable", "check_password", "hash_password"]

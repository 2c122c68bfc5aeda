# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for UsersTable and password helpers."""

from __future__ import annotations

import pytest
import pytest_asyncio

from sqlbase.entities.user import UsersTable, check_password, hash_password

USER_DDL = (
    "CREATE TABLE user (id TEXT PRIMARY KEY, username TEXT, password TEXT, "
    "active INTEGER, tenant TEXT, app TEXT, created TEXT, modified TEXT)"
)


class FastUsersTable(UsersTable):
    hash_iterations = 1_000


@pytest_asyncio.fixture
async def users(sqlite_conn, log_callback) -> FastUsersTable:
    await sqlite_conn.execute(USER_DDL)
    return FastUsersTable(connection=sqlite_conn, logger=log_callback)


class TestPasswordHelpers:
    """Tests for hash_password() and check_password()."""

    def test_hash_format(self):
        """$scheme$iterations$salt$hash."""
        stored = hash_password("s3cret", iterations=1_000)
        _, scheme, iterations, salt, digest = stored.split("$")
        assert scheme == "pbkdf2-sha256"
        assert iterations == "1000"
        assert len(salt) == 32
        assert len(digest) == 64

    def test_salted(self):
        """Two hashes of the same password differ."""
        assert hash_password("s3cret", 1_000) != hash_password("s3cret", 1_000)

    def test_check_hashed(self):
        """Right password passes, wrong one fails."""
        stored = hash_password("s3cret", 1_000)
        assert check_password("s3cret", stored)
        assert not check_password("other", stored)

    def test_check_legacy_plaintext(self):
        """Plaintext values are compared as they are."""
        assert check_password("s3cret", "s3cret")
        assert not check_password("s3cret", "S3cret")

    @pytest.mark.parametrize("stored", ["$md5$x", "$bcrypt$1$00$00", "$pbkdf2-sha256$x$zz$00"])
    def test_unknown_or_malformed(self, stored):
        """Unknown schemes and broken values never match."""
        assert not check_password("s3cret", stored)


class TestUsersTable:
    """Tests for UsersTable."""

    async def test_create_defaults_active_and_hashes(self, users):
        """create() sets active=1 and stores a hash."""
        created = await users.create({"username": "a@b.c", "password": "s3cret"})
        assert created["id"].startswith("usr")
        row = await users.get_by_id(created["id"])
        assert row["active"] == 1
        assert row["password"].startswith("$pbkdf2-sha256$1000$")
        assert row["password"] != "s3cret"

    async def test_create_keeps_explicit_inactive(self, users):
        """An explicit active flag is kept."""
        created = await users.create({"username": "a@b.c", "active": 0})
        assert (await users.get_by_id(created["id"]))["active"] == 0

    async def test_get_by_email(self, users, log_records):
        """Lookup by username, logging the outcome."""
        created = await users.create({"username": "a@b.c"})
        assert (await users.get_by_email("a@b.c"))["id"] == created["id"]
        assert log_records[-1] == ("UsersTable.get_by_email(): 1 record found", "")
        assert await users.get_by_email("nobody@b.c") == {}
        assert log_records[-1] == ("UsersTable.get_by_email(): no records found", "")

    async def test_verify_password(self, users):
        """Correct password verifies, wrong or unknown user does not."""
        await users.create({"username": "a@b.c", "password": "s3cret"})
        assert await users.verify_password("a@b.c", "s3cret")
        assert not await users.verify_password("a@b.c", "wrong")
        assert not await users.verify_password("nobody@b.c", "s3cret")

    async def test_verify_legacy_plaintext_row(self, users):
        """Rows written before hashing still verify."""
        await users.execute(
            "INSERT INTO user (id, username, password) VALUES ('usr1', 'old@b.c', 'plain')"
        )
        assert await users.verify_password("old@b.c", "plain")

    async def test_is_active(self, users):
        """Active flag, NULL counting as active, missing user inactive."""
        await users.create({"username": "on@b.c"})
        await users.create({"username": "off@b.c", "active": 0})
        await users.execute("INSERT INTO user (id, username) VALUES ('usr2', 'null@b.c')")
        assert await users.is_active("on@b.c")
        assert not await users.is_active("off@b.c")
        assert await users.is_active("null@b.c")
        assert not await users.is_active("nobody@b.c")

    async def test_update_by_email_rehashes(self, users):
        """update() finds the user by username and hashes the new password."""
        created = await users.create({"username": "a@b.c", "password": "old"})
        updated = await users.update({"username": "a@b.c", "password": "new"})
        assert updated["id"] == created["id"]
        assert await users.verify_password("a@b.c", "new")
        assert not await users.verify_password("a@b.c", "old")

    async def test_update_keeps_existing_hash(self, users):
        """An already hashed password is stored unchanged."""
        stored = hash_password("s3cret", 1_000)
        created = await users.update({"username": "a@b.c", "password": stored})
        assert (await users.get_by_id(created["id"]))["password"] == stored

    async def test_unlisted_fields_ignored(self, users):
        """Keys outside the user fields are never written."""
        created = await users.update({"username": "a@b.c", "role": "admin"})
        assert "role" not in created
        assert "role" not in await users.get_by_id(created["id"])

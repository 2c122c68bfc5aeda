# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""User entity (login accounts)."""

from .table import UsersTable, check_password, hash_password

__all__ = ["UsersTable", "check_password", "hash_password"]

# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Short random identifiers for new records."""

from __future__ import annotations

import math
import secrets

from .errors import RandomSourceUnavailable

DEFAULT_ID_LENGTH = 13


def new_id(prefix: str = "", length: int = DEFAULT_ID_LENGTH) -> str:
    """Return prefix followed by `length` random hex characters.

    The suffix comes from secrets.token_bytes(ceil(length / 2)), so it is
    opaque and carries no ordering meaning.

    Raises:
        RandomSourceUnavailable: If the OS provides no secure random source.
        ValueError: If length is smaller than 1.
    """
    if length < 1:
        raise ValueError(f"Identifier length must be positive, got {length}")
    try:
        raw = secrets.token_bytes(math.ceil(length / 2))
    except NotImplementedError as e:
        raise RandomSourceUnavailable(
            "No cryptographically secure random source available"
        ) from e
    return prefix + raw.hex()[:length]


__all__ = ["new_id", "DEFAULT_ID_LENGTH"]

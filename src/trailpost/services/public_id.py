"""Externally-safe identifiers for newly created flags and comments."""

from __future__ import annotations

import secrets
from collections.abc import Callable

PUBLIC_ID_BYTES = 12

PublicIdGenerator = Callable[[str | None], str]


def generate_public_id(prefix: str | None = None) -> str:
    """Return a fresh URL-safe identifier, optionally prefixed (``cm_...``)."""
    token = secrets.token_urlsafe(PUBLIC_ID_BYTES)
    return f"{prefix}_{token}" if prefix else token

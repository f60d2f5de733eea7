"""Namespace identifier generation."""

from __future__ import annotations

import secrets

NAMESPACE_BYTES = 12


def generate_namespace_id() -> str:
    """Return a 24-character lowercase hex token drawn from the OS CSPRNG."""
    return secrets.token_hex(NAMESPACE_BYTES)


def is_namespace_id(value: str) -> bool:
    if len(value) != NAMESPACE_BYTES * 2:
        return False
    return all(ch in "0123456789abcdef" for ch in value)

"""Shared-secret checks for the queue trigger endpoints."""
from __future__ import annotations

import secrets


def secret_matches(provided: str | None, expected: str | None) -> bool:
    """Compare a caller-supplied secret against the configured one.

    Args:
        provided: Value supplied with the request (query parameter).
        expected: Configured secret. When unset, nothing matches.

    Returns:
        True only if both values are non-empty and equal.
    """
    if not provided or not expected:
        return False
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))

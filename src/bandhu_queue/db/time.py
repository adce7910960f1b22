"""Timestamps for queue bookkeeping.

All stored timestamps are timezone-aware UTC. Claim expiry and retention
cutoffs are computed here so that every comparison in SQL uses the same clock.
"""

from datetime import UTC, datetime, timedelta


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def lock_expiry(seconds: int) -> datetime:
    """Deadline for a claim taken now and held for `seconds`."""
    return utcnow() + timedelta(seconds=seconds)


def days_ago(days: int) -> datetime:
    """Retention cutoff `days` before now."""
    return utcnow() - timedelta(days=days)

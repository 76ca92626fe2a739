"""Server clock helpers. Sync cursors are whole Unix seconds."""

from __future__ import annotations

from datetime import UTC, datetime


def now_utc() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(UTC)


def now_timestamp() -> int:
    """Return the current server time as Unix seconds."""
    return int(now_utc().timestamp())

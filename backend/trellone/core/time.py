"""Time helpers shared by models and services."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def utc_datetime_type() -> DateTime:
    """Column type for every stored timestamp."""
    return DateTime(timezone=True)

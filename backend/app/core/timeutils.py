"""Timestamp helpers shared by the models and the realtime services."""

from __future__ import annotations

from datetime import datetime, timezone

_UNITS = (
    ("year", 365 * 24 * 3600),
    ("month", 30 * 24 * 3600),
    ("week", 7 * 24 * 3600),
    ("day", 24 * 3600),
    ("hour", 3600),
    ("minute", 60),
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Return ``value`` as an aware UTC datetime.

    SQLite drops tzinfo on round trip, so naive values read back from the
    database are taken to already be UTC.
    """

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat(value: datetime | None) -> str | None:
    normalized = as_utc(value)
    return normalized.isoformat() if normalized is not None else None


def format_time_ago(value: datetime, now: datetime | None = None) -> str:
    """Render ``value`` relative to ``now``, e.g. ``"5 minutes ago"``."""

    reference = as_utc(now) if now is not None else utcnow()
    elapsed = int((reference - as_utc(value)).total_seconds())
    if elapsed < 60:
        return "just now"
    for unit, seconds in _UNITS:
        count = elapsed // seconds
        if count >= 1:
            suffix = "" if count == 1 else "s"
            return f"{count} {unit}{suffix} ago"
    return "just now"

"""Core utilities for the ByteLearn realtime backend."""

from .timeutils import as_utc, format_time_ago, isoformat, utcnow

__all__ = ["utcnow", "as_utc", "isoformat", "format_time_ago"]

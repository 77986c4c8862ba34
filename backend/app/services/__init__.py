"""Application service helpers."""

from .errors import (
    InvalidInputError,
    NoLongerFriendsError,
    NotAllowedError,
    NotFoundError,
    RealtimeError,
)

__all__ = [
    "InvalidInputError",
    "NoLongerFriendsError",
    "NotAllowedError",
    "NotFoundError",
    "RealtimeError",
]

from __future__ import annotations

from enum import Enum


class FriendRequestStatus(str, Enum):
    """Lifecycle states for friend request notifications."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class MessageStatus(str, Enum):
    """Delivery state of a direct message.

    ``DELIVERED`` is part of the stored vocabulary but no code path sets it yet;
    messages move from ``SENT`` straight to ``READ``.
    """

    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"

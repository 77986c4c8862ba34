"""Schemas for friend request notifications."""

from __future__ import annotations

from datetime import datetime

from app.models.enums import FriendRequestStatus
from app.schemas.base import CamelModel
from app.schemas.users import UserSummary


class NotificationRead(CamelModel):
    """Full notification as stored for the receiver."""

    id: int
    sender_id: int
    receiver_id: int
    content: str
    brief_content: str
    is_seen: bool
    request_status: FriendRequestStatus
    sent_at: datetime
    sender: UserSummary | None = None


class NotificationSender(CamelModel):
    """Payload of ``changed-to-seen``: who sent the request and what it said."""

    full_name: str
    avatar: str
    email: str
    content: str

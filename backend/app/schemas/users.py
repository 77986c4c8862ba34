"""Schemas related to accounts and friendships."""

from datetime import datetime

from app.schemas.base import CamelModel


class UserSummary(CamelModel):
    """Display fields of an account shown next to chats and requests."""

    id: int
    full_name: str
    avatar: str
    is_online: bool = False
    bio: str | None = None


class FriendRead(UserSummary):
    last_seen: datetime | None = None


class UnreadCount(CamelModel):
    sender_id: int
    count: int

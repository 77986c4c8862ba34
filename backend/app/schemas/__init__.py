"""Pydantic schemas for API and realtime payloads."""

from .events import EVENT_PAYLOADS, EventFrame, EventPayload, UnknownEventError, parse_event
from .messages import (
    ChatRoomDetail,
    DirectMessageRead,
    FeedbackAuthor,
    FeedbackMessageRead,
    MessageParticipant,
)
from .notifications import NotificationRead, NotificationSender
from .users import FriendRead, UnreadCount, UserSummary

__all__ = [
    "EVENT_PAYLOADS",
    "EventFrame",
    "EventPayload",
    "UnknownEventError",
    "parse_event",
    "ChatRoomDetail",
    "DirectMessageRead",
    "FeedbackAuthor",
    "FeedbackMessageRead",
    "MessageParticipant",
    "NotificationRead",
    "NotificationSender",
    "FriendRead",
    "UnreadCount",
    "UserSummary",
]

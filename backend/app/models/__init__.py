"""Database models package."""

from .base import Base
from .chat import (
    DEFAULT_AVATAR_URL,
    FEEDBACK_ROOM_PREFIX,
    ChatRoom,
    Course,
    FeedbackMessage,
    FeedbackMessageLike,
    FeedbackRoom,
    Message,
    Notification,
    User,
    feedback_room_key,
    user_friends,
)
from .enums import FriendRequestStatus, MessageStatus

__all__ = [
    "Base",
    "DEFAULT_AVATAR_URL",
    "FEEDBACK_ROOM_PREFIX",
    "User",
    "Course",
    "Notification",
    "ChatRoom",
    "Message",
    "FeedbackRoom",
    "FeedbackMessage",
    "FeedbackMessageLike",
    "feedback_room_key",
    "user_friends",
    "FriendRequestStatus",
    "MessageStatus",
]

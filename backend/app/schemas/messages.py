"""Schemas related to direct and feedback messages."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from app.models.enums import MessageStatus
from app.schemas.base import CamelModel
from app.schemas.users import UserSummary


class MessageParticipant(CamelModel):
    """Lightweight author information for displaying messages."""

    id: int
    full_name: str
    avatar: str


class DirectMessageRead(CamelModel):
    id: int
    room_id: str
    sender: MessageParticipant
    receiver: MessageParticipant
    status: MessageStatus
    content: str | None = None
    image_url: str | None = None
    sent_at: datetime
    delivered_at: datetime | None = None
    read_at: datetime | None = None


class ChatRoomDetail(CamelModel):
    """Payload of ``chat-room-found`` / ``chat-room-created``."""

    information: UserSummary
    messages: list[DirectMessageRead] = Field(default_factory=list)
    room_id: str


class FeedbackAuthor(CamelModel):
    id: int
    full_name: str
    profile_picture: str


class FeedbackMessageRead(CamelModel):
    """Rendered feedback message.

    ``created_at`` carries the relative "time ago" string the client shows;
    ``sent_at`` keeps the absolute timestamp.
    """

    id: int
    course_id: int
    sender: FeedbackAuthor
    text: str
    created_at: str
    sent_at: datetime
    is_edited: bool = False
    edited_at: datetime | None = None
    edit_window: datetime | None = None
    likes: int = Field(default=0, ge=0)
    liked_by: list[int] = Field(default_factory=list)

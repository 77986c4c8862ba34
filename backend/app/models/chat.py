from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.timeutils import utcnow
from app.models.base import Base
from app.models.enums import FriendRequestStatus, MessageStatus

DEFAULT_AVATAR_URL = (
    "https://www.shutterstock.com/image-vector/"
    "default-avatar-profile-icon-social-600nw-1677509740.jpg"
)


# Friendship is symmetric: accepting a request stores one row per direction.
user_friends = Table(
    "user_friends",
    Base.metadata,
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("friend_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
)


class User(Base):
    """Platform account as seen by the realtime layer."""

    __tablename__ = "users"
    __table_args__ = (Index("ix_users_full_name", "full_name"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    avatar_url: Mapped[str] = mapped_column(String(1024), default=DEFAULT_AVATAR_URL, nullable=False)
    bio: Mapped[str] = mapped_column(String(512), default="Hello Bytelearn!", nullable=False)
    is_online: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_seen: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    friends: Mapped[list["User"]] = relationship(
        secondary=user_friends,
        primaryjoin=lambda: User.id == user_friends.c.user_id,
        secondaryjoin=lambda: User.id == user_friends.c.friend_id,
        viewonly=True,
        order_by=lambda: User.full_name,
    )
    notifications: Mapped[list["Notification"]] = relationship(
        back_populates="receiver",
        foreign_keys="Notification.receiver_id",
        cascade="all, delete-orphan",
        order_by="Notification.sent_at",
    )


class Course(Base):
    """Course identity; authoring lives outside the realtime layer."""

    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    feedback_room: Mapped["FeedbackRoom | None"] = relationship(
        back_populates="course", cascade="all, delete-orphan", uselist=False
    )


class Notification(Base):
    """Directed friend request notification from ``sender`` to ``receiver``."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_receiver", "receiver_id", "sent_at"),
        Index("ix_notifications_pair", "sender_id", "receiver_id", "request_status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    sender_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    receiver_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    brief_content: Mapped[str] = mapped_column(String(255), nullable=False)
    is_seen: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    request_status: Mapped[FriendRequestStatus] = mapped_column(
        SAEnum(
            FriendRequestStatus,
            name="friend_request_status",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        default=FriendRequestStatus.PENDING,
        nullable=False,
    )
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    sender: Mapped[User] = relationship(foreign_keys=[sender_id])
    receiver: Mapped[User] = relationship(back_populates="notifications", foreign_keys=[receiver_id])


class ChatRoom(Base):
    """Direct chat room between exactly two accounts."""

    __tablename__ = "chat_rooms"
    __table_args__ = (
        UniqueConstraint("user_a_id", "user_b_id", name="uq_chat_room_pair"),
        UniqueConstraint("room_key", name="uq_chat_room_key"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    room_key: Mapped[str] = mapped_column(String(128), nullable=False)
    # user_a_id < user_b_id so an unordered pair maps to exactly one row.
    user_a_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    user_b_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    user_a: Mapped[User] = relationship(foreign_keys=[user_a_id])
    user_b: Mapped[User] = relationship(foreign_keys=[user_b_id])
    messages: Mapped[list["Message"]] = relationship(
        back_populates="room",
        cascade="all, delete-orphan",
        order_by="[Message.created_at, Message.id]",
    )

    def has_user(self, user_id: int) -> bool:
        return user_id in (self.user_a_id, self.user_b_id)


class Message(Base):
    """Direct message exchanged inside a chat room."""

    __tablename__ = "chat_messages"
    __table_args__ = (
        Index("ix_chat_messages_room", "chat_room_id", "created_at"),
        Index("ix_chat_messages_unread", "receiver_id", "sender_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    chat_room_id: Mapped[int] = mapped_column(
        ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    receiver_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str | None] = mapped_column(Text)
    image_url: Mapped[str | None] = mapped_column(String(1024))
    status: Mapped[MessageStatus] = mapped_column(
        SAEnum(
            MessageStatus,
            name="message_status",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        default=MessageStatus.SENT,
        nullable=False,
    )
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    room: Mapped[ChatRoom] = relationship(back_populates="messages")
    sender: Mapped[User] = relationship(foreign_keys=[sender_id])
    receiver: Mapped[User] = relationship(foreign_keys=[receiver_id])


class FeedbackRoom(Base):
    """Per-course discussion thread."""

    __tablename__ = "feedback_rooms"
    __table_args__ = (UniqueConstraint("course_id", name="uq_feedback_room_course"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    course_id: Mapped[int] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    course: Mapped[Course] = relationship(back_populates="feedback_room")
    messages: Mapped[list["FeedbackMessage"]] = relationship(
        back_populates="room",
        cascade="all, delete-orphan",
        order_by="[FeedbackMessage.created_at, FeedbackMessage.id]",
    )

    @property
    def room_key(self) -> str:
        return feedback_room_key(self.course_id)


class FeedbackMessage(Base):
    """Message posted to a course feedback room."""

    __tablename__ = "feedback_messages"
    __table_args__ = (Index("ix_feedback_messages_room", "feedback_room_id", "created_at"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    feedback_room_id: Mapped[int] = mapped_column(
        ForeignKey("feedback_rooms.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    is_edited: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    edited_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    edit_window_ends_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    likes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Removal from the room list is soft; the row itself stays.
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    room: Mapped[FeedbackRoom] = relationship(back_populates="messages")
    sender: Mapped[User] = relationship()
    likers: Mapped[list["FeedbackMessageLike"]] = relationship(
        back_populates="message",
        cascade="all, delete-orphan",
        order_by="FeedbackMessageLike.id",
    )

    @property
    def liked_by(self) -> list[int]:
        return [entry.user_id for entry in self.likers]


class FeedbackMessageLike(Base):
    """Membership row of the set of accounts that liked a feedback message."""

    __tablename__ = "feedback_message_likes"
    __table_args__ = (
        UniqueConstraint("message_id", "user_id", name="uq_feedback_message_like"),
        Index("ix_feedback_message_likes_message", "message_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    message_id: Mapped[int] = mapped_column(
        ForeignKey("feedback_messages.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    message: Mapped[FeedbackMessage] = relationship(back_populates="likers")
    user: Mapped[User] = relationship()


FEEDBACK_ROOM_PREFIX = "feedback-"


def feedback_room_key(course_id: int) -> str:
    """Broadcast group shared by every socket following a course's feedback."""

    return f"{FEEDBACK_ROOM_PREFIX}{course_id}"

"""Per-course feedback threads with edit windows and like counters."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.config import get_settings
from app.core.timeutils import as_utc, format_time_ago, utcnow
from app.models import Course, FeedbackMessage, FeedbackMessageLike, FeedbackRoom, User
from app.schemas import FeedbackAuthor, FeedbackMessageRead
from app.services.errors import NotAllowedError, NotFoundError

settings = get_settings()

logger = logging.getLogger(__name__)


def _edit_window() -> timedelta:
    return timedelta(minutes=settings.feedback_edit_window_minutes)


def _check_length(text: str) -> None:
    if len(text) > settings.chat_message_max_length:
        raise NotAllowedError(
            f"Message is too long (max {settings.chat_message_max_length} characters)"
        )


def get_feedback_room(db: Session, course_id: int) -> FeedbackRoom:
    stmt = select(FeedbackRoom).where(FeedbackRoom.course_id == course_id)
    room = db.execute(stmt).scalar_one_or_none()
    if room is None:
        raise NotFoundError("Feedback room was not found")
    return room


def course_exists(db: Session, course_id: int) -> bool:
    return db.get(Course, course_id) is not None


def _live_messages_stmt(room_id: int):
    return (
        select(FeedbackMessage)
        .options(selectinload(FeedbackMessage.sender), selectinload(FeedbackMessage.likers))
        .where(FeedbackMessage.feedback_room_id == room_id, FeedbackMessage.deleted_at.is_(None))
    )


def _find_live_message(db: Session, room_id: int, message_id: int) -> FeedbackMessage | None:
    stmt = _live_messages_stmt(room_id).where(FeedbackMessage.id == message_id)
    return db.execute(stmt).scalar_one_or_none()


def serialize_feedback(
    message: FeedbackMessage,
    course_id: int,
    now: datetime | None = None,
) -> FeedbackMessageRead:
    sender = message.sender
    return FeedbackMessageRead(
        id=message.id,
        course_id=course_id,
        sender=FeedbackAuthor(id=sender.id, full_name=sender.full_name, profile_picture=sender.avatar_url),
        text=message.content,
        created_at=format_time_ago(message.created_at, now),
        sent_at=as_utc(message.created_at),
        is_edited=message.is_edited,
        edited_at=as_utc(message.edited_at),
        edit_window=as_utc(message.edit_window_ends_at),
        likes=max(message.likes, 0),
        liked_by=message.liked_by,
    )


def post_feedback(db: Session, sender_id: int, course_id: int | None, text: str | None) -> FeedbackMessage:
    """Append a message to the course thread, editable for the configured window."""

    if not course_id or not text:
        raise NotAllowedError("A course Id and a message must be provided")
    _check_length(text)

    room = get_feedback_room(db, course_id)
    now = utcnow()
    message = FeedbackMessage(
        feedback_room_id=room.id,
        sender_id=sender_id,
        content=text,
        created_at=now,
        edit_window_ends_at=now + _edit_window(),
        likes=0,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def feedback_history(db: Session, course_id: int | None) -> list[FeedbackMessage]:
    if not course_id:
        raise NotAllowedError("A course Id must be provided")
    room = get_feedback_room(db, course_id)
    stmt = _live_messages_stmt(room.id).order_by(
        FeedbackMessage.created_at.desc(), FeedbackMessage.id.desc()
    )
    return list(db.execute(stmt).scalars())


def edit_feedback(
    db: Session,
    editor_id: int,
    course_id: int | None,
    message_id: int | None,
    new_content: str | None,
    *,
    now: datetime | None = None,
) -> FeedbackMessage:
    if not message_id or not course_id or not new_content:
        raise NotAllowedError(
            "Please provide a message id a course id and some new content for the message"
        )
    _check_length(new_content)

    room = get_feedback_room(db, course_id)
    message = _find_live_message(db, room.id, message_id)
    if message is None:
        raise NotFoundError("The message you are trying to edit does not exist")
    if message.sender_id != editor_id:
        raise NotAllowedError("You can only edit your own messages")

    now = now or utcnow()
    deadline = as_utc(message.edit_window_ends_at)
    if deadline is not None and now > deadline:
        raise NotAllowedError("Edit window has expired")
    if deadline is None:
        message.edit_window_ends_at = now + _edit_window()

    message.content = new_content
    message.is_edited = True
    message.edited_at = now
    db.commit()
    db.refresh(message)
    return message


def delete_feedback(
    db: Session,
    user_id: int,
    course_id: int | None,
    message_id: int | None = None,
) -> FeedbackMessage:
    """Remove one of the caller's messages from the thread.

    Without ``message_id`` the caller's most recent live message is removed.
    """

    if not course_id:
        raise NotAllowedError("Course id must be provided")

    room = get_feedback_room(db, course_id)
    stmt = _live_messages_stmt(room.id).where(FeedbackMessage.sender_id == user_id)
    if message_id:
        stmt = stmt.where(FeedbackMessage.id == message_id)
    stmt = stmt.order_by(FeedbackMessage.created_at.desc(), FeedbackMessage.id.desc()).limit(1)
    message = db.execute(stmt).scalar_one_or_none()
    if message is None:
        raise NotFoundError("Feedback message was not found")

    message.deleted_at = utcnow()
    db.commit()
    logger.info("Feedback message %s removed by %s", message.id, user_id)
    return message


def like_feedback(
    db: Session,
    caller_id: int,
    course_id: int,
    message_id: int,
    user_id: int,
    like: bool,
) -> FeedbackMessage:
    """Like or unlike a message.

    The liker row and the counter change in one transaction; the counter is
    only touched through SQL expressions so concurrent likes never lose an
    update. Liking twice or unliking a message the user never liked leaves
    both unchanged.
    """

    if user_id != caller_id:
        raise NotAllowedError("You can only like messages as yourself")

    room = get_feedback_room(db, course_id)
    message = _find_live_message(db, room.id, message_id)
    if message is None:
        raise NotFoundError("Message not found")
    if db.get(User, user_id) is None:
        raise NotFoundError("User not found")

    if like:
        if user_id not in message.liked_by:
            db.add(FeedbackMessageLike(message_id=message.id, user_id=user_id, created_at=utcnow()))
            try:
                db.flush()
                db.execute(
                    update(FeedbackMessage)
                    .where(FeedbackMessage.id == message.id)
                    .values(likes=FeedbackMessage.likes + 1)
                    .execution_options(synchronize_session=False)
                )
                db.commit()
            except IntegrityError:
                # Same user liked concurrently; their row already counts.
                db.rollback()
    else:
        if message.likes <= 0:
            raise NotAllowedError("Like count cannot be negative")
        result = db.execute(
            delete(FeedbackMessageLike)
            .where(FeedbackMessageLike.message_id == message.id, FeedbackMessageLike.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            db.execute(
                update(FeedbackMessage)
                .where(FeedbackMessage.id == message.id, FeedbackMessage.likes > 0)
                .values(likes=FeedbackMessage.likes - 1)
                .execution_options(synchronize_session=False)
            )
        db.commit()

    db.expire_all()
    return _find_live_message(db, room.id, message_id) or message

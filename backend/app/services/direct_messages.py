"""Direct chat rooms between two friends and their message state machine."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.config import get_settings
from app.core.timeutils import as_utc, utcnow
from app.models import ChatRoom, Message, MessageStatus, User
from app.schemas import ChatRoomDetail, DirectMessageRead, MessageParticipant
from app.services.errors import NoLongerFriendsError, NotAllowedError, NotFoundError
from app.services.notifications import serialize_user
from app.services.presence import are_friends

settings = get_settings()

logger = logging.getLogger(__name__)


def _normalize_pair(user_id: int, other_id: int) -> tuple[int, int]:
    return (user_id, other_id) if user_id < other_id else (other_id, user_id)


def get_room_for_pair(db: Session, user_id: int, other_id: int) -> ChatRoom | None:
    user_a_id, user_b_id = _normalize_pair(user_id, other_id)
    stmt = select(ChatRoom).where(ChatRoom.user_a_id == user_a_id, ChatRoom.user_b_id == user_b_id)
    return db.execute(stmt).scalar_one_or_none()


def get_room_by_key(db: Session, room_key: str) -> ChatRoom | None:
    stmt = select(ChatRoom).where(ChatRoom.room_key == room_key)
    return db.execute(stmt).scalar_one_or_none()


def open_room(
    db: Session,
    user_id: int,
    participant_id: int | None,
    room_key: str | None,
) -> tuple[ChatRoom, User, bool]:
    """Find or lazily create the room shared with ``participant_id``.

    Returns ``(room, friend, created)``. The client-supplied ``room_key`` is
    only used when no room exists for the pair yet.
    """

    if not room_key or not participant_id:
        raise NotAllowedError("A roomId and a participant id must be provided")

    friend = db.get(User, participant_id)
    if friend is None:
        raise NotFoundError("Friend was not found")
    if not are_friends(db, user_id, friend.id):
        raise NoLongerFriendsError()

    room = get_room_for_pair(db, user_id, friend.id)
    if room is not None:
        return room, friend, False

    user_a_id, user_b_id = _normalize_pair(user_id, friend.id)
    room = ChatRoom(room_key=room_key, user_a_id=user_a_id, user_b_id=user_b_id, created_at=utcnow())
    db.add(room)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        room = get_room_for_pair(db, user_id, friend.id)
        if room is not None:
            # The peer created the room at the same time.
            return room, friend, False
        raise NotAllowedError("This room id is already in use") from None

    db.refresh(room)
    logger.info("Chat room %s created for users %s and %s", room.room_key, user_a_id, user_b_id)
    return room, friend, True


def room_history(db: Session, room: ChatRoom, limit: int | None = None) -> list[Message]:
    """Return the latest ``limit`` messages of the room, oldest first."""

    stmt = (
        select(Message)
        .options(selectinload(Message.sender), selectinload(Message.receiver))
        .where(Message.chat_room_id == room.id)
        .order_by(Message.created_at.desc(), Message.id.desc())
        .limit(limit or settings.chat_history_max_limit)
    )
    messages = list(db.execute(stmt).scalars())
    messages.reverse()
    return messages


def _serialize_participant(user: User) -> MessageParticipant:
    return MessageParticipant(id=user.id, full_name=user.full_name, avatar=user.avatar_url)


def serialize_message(message: Message, room_key: str) -> DirectMessageRead:
    return DirectMessageRead(
        id=message.id,
        room_id=room_key,
        sender=_serialize_participant(message.sender),
        receiver=_serialize_participant(message.receiver),
        status=message.status,
        content=message.content,
        image_url=message.image_url,
        sent_at=as_utc(message.sent_at),
        delivered_at=as_utc(message.delivered_at),
        read_at=as_utc(message.read_at),
    )


def room_detail(db: Session, room: ChatRoom, friend: User) -> ChatRoomDetail:
    return ChatRoomDetail(
        information=serialize_user(friend),
        messages=[serialize_message(message, room.room_key) for message in room_history(db, room)],
        room_id=room.room_key,
    )


def send_message(
    db: Session,
    sender_id: int,
    receiver_id: int | None,
    content: str | None,
    image_url: str | None,
) -> tuple[Message, ChatRoom]:
    """Persist a message in the existing room of the pair.

    Rooms are never created here; ``create-room`` must have run first.
    """

    content = content or None
    image_url = image_url or None
    if not receiver_id or (content is None and image_url is None):
        raise NotAllowedError("A receiverId and content or image must be provided")
    if content is not None and len(content) > settings.chat_message_max_length:
        raise NotAllowedError(
            f"Message is too long (max {settings.chat_message_max_length} characters)"
        )

    receiver = db.get(User, receiver_id)
    if receiver is None:
        raise NotFoundError("Receiver was not found")

    room = get_room_for_pair(db, sender_id, receiver.id)
    if room is None:
        raise NotFoundError("Room was not found")

    now = utcnow()
    message = Message(
        chat_room_id=room.id,
        sender_id=sender_id,
        receiver_id=receiver.id,
        content=content,
        image_url=image_url,
        status=MessageStatus.SENT,
        sent_at=now,
        created_at=now,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return message, room


def mark_as_read(
    db: Session,
    reader_id: int,
    room_key: str | None,
    friend_id: int | None,
) -> tuple[ChatRoom, list[int], datetime]:
    """Move every unread message from ``friend_id`` to ``reader_id`` to ``read``.

    Returns the room, the ids that changed and the shared ``read_at`` stamp.
    """

    if not room_key or not friend_id:
        raise NotAllowedError("A roomId and a friendId must be provided")

    room = get_room_by_key(db, room_key)
    if room is None or not room.has_user(reader_id) or not room.has_user(friend_id):
        raise NotFoundError("Room was not found")

    conditions = (
        Message.chat_room_id == room.id,
        Message.sender_id == friend_id,
        Message.receiver_id == reader_id,
        Message.status != MessageStatus.READ,
    )
    message_ids = list(db.execute(select(Message.id).where(*conditions).order_by(Message.id)).scalars())
    read_at = utcnow()
    if message_ids:
        db.execute(
            update(Message)
            .where(Message.id.in_(message_ids), Message.status != MessageStatus.READ)
            .values(status=MessageStatus.READ, read_at=read_at)
        )
        db.commit()
    return room, message_ids, read_at


def unread_counts(db: Session, receiver_id: int) -> list[tuple[int, int]]:
    stmt = (
        select(Message.sender_id, func.count(Message.id))
        .where(Message.receiver_id == receiver_id, Message.status != MessageStatus.READ)
        .group_by(Message.sender_id)
        .order_by(Message.sender_id)
    )
    return [(sender_id, count) for sender_id, count in db.execute(stmt)]

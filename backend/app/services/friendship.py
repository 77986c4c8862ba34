"""Friend request state machine: pending -> accepted | rejected."""

from __future__ import annotations

import logging

from sqlalchemy import and_, delete, insert, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.timeutils import utcnow
from app.models import ChatRoom, FriendRequestStatus, Message, Notification, User, user_friends
from app.services.errors import NotAllowedError, NotFoundError
from app.services.notifications import create_friend_request, render_friend_request
from app.services.presence import are_friends

logger = logging.getLogger(__name__)


def find_by_full_name(db: Session, first_name: str, last_name: str) -> User | None:
    """Resolve an account by exact ``"<first> <last>"`` match.

    Accounts sharing a full name collide; the oldest one wins.
    """

    full_name = f"{first_name} {last_name}"
    stmt = select(User).where(User.full_name == full_name).order_by(User.id).limit(1)
    return db.execute(stmt).scalar_one_or_none()


def _pending_between(db: Session, user_id: int, other_id: int) -> Notification | None:
    stmt = select(Notification).where(
        Notification.request_status == FriendRequestStatus.PENDING,
        or_(
            and_(Notification.sender_id == user_id, Notification.receiver_id == other_id),
            and_(Notification.sender_id == other_id, Notification.receiver_id == user_id),
        ),
    )
    return db.execute(stmt.limit(1)).scalar_one_or_none()


def request_friendship(
    db: Session,
    requester_id: int,
    first_name: str | None,
    last_name: str | None,
) -> tuple[User, User, Notification]:
    """Create a pending request from ``requester_id`` to the named account.

    Returns ``(requester, target, notification)``; the notification is
    committed before the caller emits anything.
    """

    if not first_name or not last_name:
        raise NotAllowedError("A first name and a last name must be provided")

    requester = db.get(User, requester_id)
    if requester is None:
        raise NotFoundError("Account was not found")

    target = find_by_full_name(db, first_name, last_name)
    if target is None:
        raise NotFoundError("Person you are trying to add does not exist")
    if target.id == requester.id:
        raise NotAllowedError("You cannot add yourself as a friend")
    if are_friends(db, requester.id, target.id):
        raise NotAllowedError(f"You and {target.full_name} are already friends")
    if _pending_between(db, requester.id, target.id) is not None:
        raise NotAllowedError(f"A friend request between you and {target.full_name} is already pending")

    notification = create_friend_request(db, requester, target)
    logger.info("Friend request %s: %s -> %s", notification.id, requester.id, target.id)
    return requester, target, notification


def _ensure_edge(db: Session, user_id: int, friend_id: int) -> None:
    stmt = select(user_friends.c.user_id).where(
        user_friends.c.user_id == user_id,
        user_friends.c.friend_id == friend_id,
    )
    if db.execute(stmt).first() is not None:
        return
    db.execute(insert(user_friends).values(user_id=user_id, friend_id=friend_id, created_at=utcnow()))
    try:
        db.commit()
    except IntegrityError:
        # A concurrent accept stored the same edge first.
        db.rollback()


def respond_to_request(
    db: Session,
    receiver_id: int,
    sender_id: int | None,
    notification_id: int | None,
    *,
    accept: bool,
) -> tuple[User, Notification]:
    """Accept or reject a pending request addressed to ``receiver_id``.

    The status change is a single conditional UPDATE so two concurrent
    answers cannot both win. A missing notification and one addressed to
    somebody else are reported the same way.
    """

    if not sender_id or not notification_id:
        raise NotAllowedError("Please provide a senderId and notificationId")

    receiver = db.get(User, receiver_id)
    sender = db.get(User, sender_id)
    if receiver is None or sender is None:
        raise NotFoundError("Notification not found or unauthorized")

    new_status = FriendRequestStatus.ACCEPTED if accept else FriendRequestStatus.REJECTED
    result = db.execute(
        update(Notification)
        .where(
            Notification.id == notification_id,
            Notification.receiver_id == receiver_id,
            Notification.sender_id == sender_id,
            Notification.request_status == FriendRequestStatus.PENDING,
        )
        .values(
            request_status=new_status,
            is_seen=True,
            content=render_friend_request(sender.full_name, sender.id, new_status),
        )
    )
    if not result.rowcount:
        db.rollback()
        raise NotFoundError("Notification not found or unauthorized")
    db.commit()

    if accept:
        _ensure_edge(db, receiver_id, sender_id)
        _ensure_edge(db, sender_id, receiver_id)

    notification = db.get(Notification, notification_id, populate_existing=True)
    logger.info("Friend request %s %s by %s", notification_id, new_status.value, receiver_id)
    return receiver, notification


def remove_friend(db: Session, user_id: int, friend_id: int) -> tuple[bool, str | None]:
    """Drop both friend edges plus the pair's chat room and messages.

    Returns ``(removed, room_key)``: ``removed`` is ``False`` when the two
    accounts were not friends, ``room_key`` is the key of the deleted chat
    room, if there was one.
    """

    result = db.execute(
        delete(user_friends).where(
            or_(
                and_(user_friends.c.user_id == user_id, user_friends.c.friend_id == friend_id),
                and_(user_friends.c.user_id == friend_id, user_friends.c.friend_id == user_id),
            )
        )
    )
    removed = bool(result.rowcount)

    db.execute(
        delete(Message).where(
            or_(
                and_(Message.sender_id == user_id, Message.receiver_id == friend_id),
                and_(Message.sender_id == friend_id, Message.receiver_id == user_id),
            )
        )
    )
    user_a_id, user_b_id = sorted((user_id, friend_id))
    room_key = db.execute(
        select(ChatRoom.room_key).where(ChatRoom.user_a_id == user_a_id, ChatRoom.user_b_id == user_b_id)
    ).scalar_one_or_none()
    if room_key is not None:
        db.execute(delete(ChatRoom).where(ChatRoom.room_key == room_key))
    db.commit()
    return removed, room_key

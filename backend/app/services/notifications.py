"""Friend request notification store and its rendered content."""

from __future__ import annotations

import html

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from app.core.timeutils import as_utc, utcnow
from app.models import FriendRequestStatus, Notification, User
from app.schemas import NotificationRead, NotificationSender, UserSummary
from app.services.errors import NotAllowedError, NotFoundError

_BUTTON_STYLE = (
    "padding: 10px 16px; border-radius: 6px; font-weight: 500; font-size: 14px; "
    "border: none; display: flex; align-items: center; justify-content: center;"
)

_PENDING_ACTIONS = """
      <div class="letter-actions">
        <button id="accept-btn-{sender_id}" class="accept-btn" data-sender="{sender_id}"
          style="{style} background: #10b981; color: white; flex: 1;">Accept</button>
        <button id="reject-btn-{sender_id}" class="reject-btn" data-sender="{sender_id}"
          style="{style} background: white; color: #6b7280; flex: 1; border: 1px solid #e5e7eb;">Decline</button>
      </div>"""

_ACCEPTED_ACTIONS = """
      <div class="letter-actions">
        <button style="{style} background: #059669; color: white; width: 100%; cursor: not-allowed;"
          disabled>&#10003; Accepted</button>
      </div>"""

_REJECTED_ACTIONS = """
      <div class="letter-actions">
        <button style="{style} background: #f3f4f6; color: #6b7280; width: 100%; cursor: not-allowed;"
          disabled>&#10007; Declined</button>
      </div>"""

_LETTER = """
    <div class="friend-request-letter">
      <div class="letter-header">
        <h2>Friendship Request</h2>
        <p>From: {full_name}</p>
      </div>
      <div class="letter-body">
        <p>Dear Friend,</p>
        <p>I came across your profile and was genuinely impressed.
        I'd love the chance to connect and share experiences.</p>
      </div>{actions}
      <div class="letter-closing">
        <p>Warm regards,</p>
        <p>{full_name}</p>
      </div>
    </div>"""

_ACTIONS = {
    FriendRequestStatus.PENDING: _PENDING_ACTIONS,
    FriendRequestStatus.ACCEPTED: _ACCEPTED_ACTIONS,
    FriendRequestStatus.REJECTED: _REJECTED_ACTIONS,
}


def render_friend_request(
    full_name: str,
    sender_id: int,
    request_status: FriendRequestStatus = FriendRequestStatus.PENDING,
) -> str:
    """Render the letter shown for a friend request in its current state.

    Pending requests carry accept/decline buttons bound to ``sender_id``;
    answered ones show a disabled badge instead.
    """

    actions = _ACTIONS[request_status].format(sender_id=int(sender_id), style=_BUTTON_STYLE)
    return _LETTER.format(full_name=html.escape(full_name), actions=actions)


def brief_friend_request(full_name: str) -> str:
    return f"{full_name} wants to be friends!"


def create_friend_request(db: Session, sender: User, receiver: User) -> Notification:
    notification = Notification(
        sender_id=sender.id,
        receiver_id=receiver.id,
        content=render_friend_request(sender.full_name, sender.id),
        brief_content=brief_friend_request(sender.full_name),
        is_seen=False,
        request_status=FriendRequestStatus.PENDING,
        sent_at=utcnow(),
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


def serialize_user(user: User) -> UserSummary:
    return UserSummary(
        id=user.id,
        full_name=user.full_name,
        avatar=user.avatar_url,
        is_online=user.is_online,
        bio=user.bio,
    )


def serialize_notification(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=notification.id,
        sender_id=notification.sender_id,
        receiver_id=notification.receiver_id,
        content=notification.content,
        brief_content=notification.brief_content,
        is_seen=notification.is_seen,
        request_status=notification.request_status,
        sent_at=as_utc(notification.sent_at),
        sender=serialize_user(notification.sender) if notification.sender is not None else None,
    )


def _sender_view(notification: Notification) -> NotificationSender:
    sender = notification.sender
    return NotificationSender(
        full_name=sender.full_name,
        avatar=sender.avatar_url,
        email=sender.email,
        content=notification.content,
    )


def mark_seen(db: Session, receiver_id: int, notification_id: int) -> NotificationSender:
    """Mark a notification addressed to ``receiver_id`` as seen.

    Viewing twice is rejected with the same sender payload the first view
    returned, so clients can render either response the same way.
    """

    notification = db.get(Notification, notification_id)
    if notification is None or notification.receiver_id != receiver_id:
        raise NotFoundError("Notification was not found")

    view = _sender_view(notification)
    if notification.is_seen:
        raise NotAllowedError(
            "Notification was already seen",
            extra={"notifSender": view.to_wire()},
        )

    notification.is_seen = True
    db.commit()
    return view


def list_notifications(db: Session, receiver_id: int) -> list[Notification]:
    stmt = (
        select(Notification)
        .options(selectinload(Notification.sender))
        .where(Notification.receiver_id == receiver_id)
        .order_by(Notification.sent_at.desc(), Notification.id.desc())
    )
    return list(db.execute(stmt).scalars())


def delete_notification(db: Session, receiver_id: int, notification_id: int) -> bool:
    result = db.execute(
        delete(Notification).where(
            Notification.id == notification_id,
            Notification.receiver_id == receiver_id,
        )
    )
    db.commit()
    return bool(result.rowcount)


def clear_notifications(db: Session, receiver_id: int) -> int:
    result = db.execute(delete(Notification).where(Notification.receiver_id == receiver_id))
    db.commit()
    return int(result.rowcount or 0)

"""REST companions of the realtime socket: friends, notifications, unread counters."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from bytelearn.realtime import events, get_room_manager, personal_room

from app.api.deps import get_current_user
from app.core.timeutils import as_utc
from app.database import get_db
from app.models import User
from app.schemas import FriendRead, NotificationRead, UnreadCount
from app.services import direct_messages, friendship, notifications

router = APIRouter(prefix="/chat", tags=["chat"])

logger = logging.getLogger(__name__)

rooms = get_room_manager()


@router.get("/friends", response_model=list[FriendRead])
def list_friends(current_user: User = Depends(get_current_user)) -> list[FriendRead]:
    return [
        FriendRead(
            id=friend.id,
            full_name=friend.full_name,
            avatar=friend.avatar_url,
            is_online=friend.is_online,
            bio=friend.bio,
            last_seen=as_utc(friend.last_seen),
        )
        for friend in current_user.friends
    ]


@router.delete("/friends/{friend_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_friend(
    friend_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    """Unfriend ``friend_id`` and drop the pair's chat history."""

    user_id = current_user.id
    removed, room_key = friendship.remove_friend(db, user_id, friend_id)
    if room_key is not None:
        # The key is free for reuse now; no socket may stay subscribed to it.
        await rooms.evict(room_key)
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Friend was not found")

    logger.info("User %s removed friend %s", user_id, friend_id)
    await rooms.broadcast(personal_room(user_id), events.REMOVED_FRIEND_NOTIFICATION, {"friendId": friend_id})
    await rooms.broadcast(personal_room(friend_id), events.REMOVED_FRIEND, {"friendId": user_id})


@router.get("/notifications", response_model=list[NotificationRead])
def list_notifications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[NotificationRead]:
    return [
        notifications.serialize_notification(notification)
        for notification in notifications.list_notifications(db, current_user.id)
    ]


@router.delete("/notifications/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    if not notifications.delete_notification(db, current_user.id, notification_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification was not found")


@router.delete("/notifications")
def clear_notifications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict[str, int]:
    return {"deleted": notifications.clear_notifications(db, current_user.id)}


@router.get("/unread-messages", response_model=list[UnreadCount])
def unread_messages(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[UnreadCount]:
    return [
        UnreadCount(sender_id=sender_id, count=count)
        for sender_id, count in direct_messages.unread_counts(db, current_user.id)
    ]

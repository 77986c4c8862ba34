"""Handlers for the events accepted on the ``/ws/events`` socket.

Every handler receives the connection's :class:`ConnectionContext` and the
already validated payload. Rule violations are raised as
:class:`~app.services.errors.RealtimeError` and reported by the dispatcher;
handlers only emit on success.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Dict

from sqlalchemy.orm import Session

from bytelearn.realtime import ConnectionContext, get_room_manager, personal_room
from bytelearn.realtime import events

from app.config import get_settings
from app.core.timeutils import isoformat
from app.database import get_db_session
from app.models import FEEDBACK_ROOM_PREFIX, feedback_room_key
from app.schemas import events as schemas
from app.services import NotAllowedError, NotFoundError
from app.services import direct_messages, feedback, friendship, notifications

settings = get_settings()

logger = logging.getLogger(__name__)

rooms = get_room_manager()

Handler = Callable[[ConnectionContext, Any], Awaitable[None]]

HANDLERS: Dict[str, Handler] = {}


def handles(event: str) -> Callable[[Handler], Handler]:
    def register(func: Handler) -> Handler:
        HANDLERS[event] = func
        return func

    return register


# ---------------------------------------------------------------------------
# Room membership
# ---------------------------------------------------------------------------


def _may_join(db: Session, user_id: int, room: str) -> bool:
    if room == personal_room(user_id):
        return True
    if room.startswith(FEEDBACK_ROOM_PREFIX):
        course_id = room[len(FEEDBACK_ROOM_PREFIX):]
        return course_id.isdigit() and feedback.course_exists(db, int(course_id))
    chat_room = direct_messages.get_room_by_key(db, room)
    return chat_room is not None and chat_room.has_user(user_id)


@handles(events.JOIN_ROOM)
async def join_room(context: ConnectionContext, payload: schemas.RoomPayload) -> None:
    if not payload.room:
        raise NotAllowedError("A room must be provided")
    with get_db_session() as db:
        allowed = _may_join(db, context.user_id, payload.room)
    if not allowed:
        raise NotAllowedError("You are not allowed to join this room")
    await rooms.join(context, payload.room)
    logger.debug("User %s joined %s", context.user_id, payload.room)


@handles(events.LEAVE_ROOM)
async def leave_room(context: ConnectionContext, payload: schemas.RoomPayload) -> None:
    if payload.room:
        await rooms.leave(context, payload.room)


# ---------------------------------------------------------------------------
# Friendship protocol
# ---------------------------------------------------------------------------


@handles(events.ADD_FRIEND)
async def add_friend(context: ConnectionContext, payload: schemas.AddFriendPayload) -> None:
    with get_db_session() as db:
        requester, target, notification = friendship.request_friendship(
            db, context.user_id, payload.first_name, payload.last_name
        )
        requester_name = requester.full_name
        target_id = target.id
        target_name = target.full_name
        notification_data = notifications.serialize_notification(notification).to_wire()

    await context.emit(
        events.NEW_NOTIFICATION,
        {"success": True, "msg": f"A friend request has been sent to {target_name}"},
    )
    # Delayed so the alert does not race the target's own connection setup.
    rooms.broadcast_later(
        settings.friend_request_alert_delay_seconds,
        personal_room(target_id),
        events.SEND_NOTIFICATION,
        {
            "success": True,
            "msg": f"{requester_name} sent you a friend request",
            "notification": notification_data,
        },
    )


async def _answer_friend_request(
    context: ConnectionContext,
    payload: schemas.FriendRequestDecisionPayload,
    *,
    accept: bool,
) -> None:
    with get_db_session() as db:
        receiver, notification = friendship.respond_to_request(
            db, context.user_id, payload.sender_id, payload.notification_id, accept=accept
        )
        receiver_name = receiver.full_name
        sender_id = notification.sender_id
        notification_data = notifications.serialize_notification(notification).to_wire()

    if accept:
        own_event = events.FRIEND_REQUEST_ACCEPTED
        peer_event = events.FRIEND_REQUEST_ACCEPTED_NOTIFICATION
        message = f"{receiver_name} accepted your friend request!"
    else:
        own_event = events.FRIEND_REQUEST_REJECTED
        peer_event = events.FRIEND_REQUEST_REJECTED_NOTIFICATION
        message = f"{receiver_name} declined your friend request"

    await context.emit(own_event, {"success": True, "notification": notification_data})
    await rooms.broadcast(
        personal_room(sender_id),
        peer_event,
        {"success": True, "message": message, "notification": notification_data},
    )


@handles(events.ACCEPT_FRIEND_REQUEST)
async def accept_friend_request(
    context: ConnectionContext, payload: schemas.FriendRequestDecisionPayload
) -> None:
    await _answer_friend_request(context, payload, accept=True)


@handles(events.REJECT_FRIEND_REQUEST)
async def reject_friend_request(
    context: ConnectionContext, payload: schemas.FriendRequestDecisionPayload
) -> None:
    await _answer_friend_request(context, payload, accept=False)


@handles(events.SEEN_NOTIFICATION)
async def seen_notification(context: ConnectionContext, payload: schemas.SeenNotificationPayload) -> None:
    if not payload.notif_id:
        raise NotAllowedError("Notification ID must be provided")
    with get_db_session() as db:
        view = notifications.mark_seen(db, context.user_id, payload.notif_id)
    await context.emit(events.CHANGED_TO_SEEN, {"success": True, "notifSender": view.to_wire()})


# ---------------------------------------------------------------------------
# Direct messages
# ---------------------------------------------------------------------------


@handles(events.CREATE_ROOM)
async def create_room(context: ConnectionContext, payload: schemas.CreateRoomPayload) -> None:
    with get_db_session() as db:
        room, friend, created = direct_messages.open_room(
            db, context.user_id, payload.participant_id, payload.room_id
        )
        room_key = room.room_key
        detail = direct_messages.room_detail(db, room, friend).to_wire()

    await rooms.join(context, room_key)
    await context.emit(events.CHAT_ROOM_CREATED if created else events.CHAT_ROOM_FOUND, detail)


@handles(events.SEND_MESSAGE)
async def send_message(context: ConnectionContext, payload: schemas.SendMessagePayload) -> None:
    with get_db_session() as db:
        message, room = direct_messages.send_message(
            db, context.user_id, payload.receiver_id, payload.content, payload.image_url
        )
        room_key = room.room_key
        data = {
            "message": direct_messages.serialize_message(message, room_key).to_wire(),
            "room": room_key,
        }
    await rooms.broadcast(room_key, events.RECEIVED_MESSAGE, data)


async def _relay_typing(context: ConnectionContext, payload: schemas.TypingPayload, event: str) -> None:
    if not payload.receiver_id:
        raise NotAllowedError("A receiverId must be provided")
    await rooms.broadcast(
        personal_room(payload.receiver_id),
        event,
        {"senderId": context.user_id},
        exclude=[context.websocket],
    )


@handles(events.TYPING)
async def typing(context: ConnectionContext, payload: schemas.TypingPayload) -> None:
    await _relay_typing(context, payload, events.TYPING)


@handles(events.STOP_TYPING)
async def stop_typing(context: ConnectionContext, payload: schemas.TypingPayload) -> None:
    await _relay_typing(context, payload, events.STOP_TYPING)


@handles(events.MARK_MESSAGES_AS_READ)
async def mark_messages_as_read(
    context: ConnectionContext, payload: schemas.MarkMessagesReadPayload
) -> None:
    with get_db_session() as db:
        room, message_ids, read_at = direct_messages.mark_as_read(
            db, context.user_id, payload.room_id, payload.friend_id
        )
        room_key = room.room_key
    await rooms.broadcast(
        room_key,
        events.MESSAGES_MARKED_AS_READ,
        {
            "friendId": payload.friend_id,
            "readerId": context.user_id,
            "roomId": room_key,
            "messageIds": message_ids,
            "readAt": isoformat(read_at),
        },
    )


# ---------------------------------------------------------------------------
# Course feedback
# ---------------------------------------------------------------------------


@handles(events.SEND_FEEDBACK)
async def send_feedback(context: ConnectionContext, payload: schemas.SendFeedbackPayload) -> None:
    with get_db_session() as db:
        message = feedback.post_feedback(db, context.user_id, payload.course_id, payload.msg)
        data = feedback.serialize_feedback(message, payload.course_id).to_wire()
    await rooms.broadcast(feedback_room_key(payload.course_id), events.FEEDBACK_SENT, data)


@handles(events.GET_FEEDBACK_HISTORY)
async def get_feedback_history(context: ConnectionContext, payload: schemas.CourseRoomPayload) -> None:
    with get_db_session() as db:
        history = [
            feedback.serialize_feedback(message, payload.course_id).to_wire()
            for message in feedback.feedback_history(db, payload.course_id)
        ]
    await rooms.join(context, feedback_room_key(payload.course_id))
    await context.emit(events.FEEDBACK_HISTORY_SENT, history)


@handles(events.JOIN_COURSE_ROOM)
async def join_course_room(context: ConnectionContext, payload: schemas.CourseRoomPayload) -> None:
    if not payload.course_id:
        raise NotAllowedError("A course Id must be provided")
    with get_db_session() as db:
        exists = feedback.course_exists(db, payload.course_id)
    if not exists:
        raise NotFoundError("Course was not found")
    await rooms.join(context, feedback_room_key(payload.course_id))


@handles(events.LEAVE_COURSE_ROOM)
async def leave_course_room(context: ConnectionContext, payload: schemas.CourseRoomPayload) -> None:
    if payload.course_id:
        await rooms.leave(context, feedback_room_key(payload.course_id))


@handles(events.EDIT_MESSAGE)
async def edit_message(context: ConnectionContext, payload: schemas.EditMessagePayload) -> None:
    with get_db_session() as db:
        message = feedback.edit_feedback(
            db, context.user_id, payload.course_id, payload.message_id, payload.new_content
        )
        data = feedback.serialize_feedback(message, payload.course_id).to_wire()
    await context.emit(events.MESSAGE_EDITED, {"success": True, "msg": "Message Edited", "message": data})
    await rooms.broadcast(
        feedback_room_key(payload.course_id),
        events.FEEDBACK_MESSAGE_UPDATED,
        data,
        exclude=[context.websocket],
    )


@handles(events.DELETE_FEEDBACK_MESSAGE)
async def delete_feedback_message(context: ConnectionContext, payload: schemas.DeleteFeedbackPayload) -> None:
    with get_db_session() as db:
        message = feedback.delete_feedback(db, context.user_id, payload.course_id, payload.message_id)
        message_id = message.id
    await context.emit(
        events.DELETED_FEEDBACK_MESSAGE,
        {"success": True, "msg": "Feedback message deleted", "messageId": message_id},
    )
    await rooms.broadcast(
        feedback_room_key(payload.course_id),
        events.FEEDBACK_MESSAGE_DELETED,
        {"messageId": message_id, "courseId": payload.course_id},
        exclude=[context.websocket],
    )


@handles(events.LIKE_FEEDBACK_MESSAGE)
async def like_feedback_message(context: ConnectionContext, payload: schemas.LikeFeedbackPayload) -> None:
    with get_db_session() as db:
        message = feedback.like_feedback(
            db, context.user_id, payload.course_id, payload.message_id, payload.user_id, payload.like
        )
        likes = message.likes
    await rooms.broadcast(
        feedback_room_key(payload.course_id),
        events.FEEDBACK_MESSAGE_LIKED,
        {
            "messageId": payload.message_id,
            "likes": likes,
            "liked": payload.like,
            "userId": payload.user_id,
        },
    )

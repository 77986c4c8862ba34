"""Tagged request payloads accepted on the realtime socket.

Each inbound frame is ``{"type": <event>, "data": {...}}``. ``data`` is
validated against the model registered for ``type`` in :data:`EVENT_PAYLOADS`
before any handler runs. Business fields are optional on purpose: a missing
value is a rule violation reported by the handler, while a value of the wrong
shape fails validation here.
"""

from __future__ import annotations

from typing import Any, Dict, Type

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bytelearn.realtime import events


class EventPayload(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


class EventFrame(BaseModel):
    """Outer envelope of every inbound frame."""

    type: str = Field(min_length=1)
    data: Dict[str, Any] = Field(default_factory=dict)


class AuthPayload(EventPayload):
    token: str | None = None


class RoomPayload(EventPayload):
    room: str | None = None


class EmptyPayload(EventPayload):
    pass


class AddFriendPayload(EventPayload):
    first_name: str | None = None
    last_name: str | None = None


class FriendRequestDecisionPayload(EventPayload):
    sender_id: int | None = None
    notification_id: int | None = None


class SeenNotificationPayload(EventPayload):
    notif_id: int | None = None


class CreateRoomPayload(EventPayload):
    room_id: str | None = None
    participant_id: int | None = None


class SendMessagePayload(EventPayload):
    receiver_id: int | None = None
    content: str | None = None
    image_url: str | None = None


class TypingPayload(EventPayload):
    receiver_id: int | None = None


class MarkMessagesReadPayload(EventPayload):
    room_id: str | None = None
    friend_id: int | None = None


class SendFeedbackPayload(EventPayload):
    course_id: int | None = None
    msg: str | None = None


class CourseRoomPayload(EventPayload):
    course_id: int | None = None


class EditMessagePayload(EventPayload):
    # Older clients send the id as ``msgToEdit``.
    message_id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("messageId", "msgToEdit", "message_id"),
    )
    course_id: int | None = None
    new_content: str | None = None


class DeleteFeedbackPayload(EventPayload):
    course_id: int | None = None
    message_id: int | None = None


class LikeFeedbackPayload(EventPayload):
    message_id: int
    course_id: int
    user_id: int
    like: bool


EVENT_PAYLOADS: Dict[str, Type[EventPayload]] = {
    events.PING: EmptyPayload,
    events.PONG: EmptyPayload,
    events.JOIN_ROOM: RoomPayload,
    events.LEAVE_ROOM: RoomPayload,
    events.ADD_FRIEND: AddFriendPayload,
    events.ACCEPT_FRIEND_REQUEST: FriendRequestDecisionPayload,
    events.REJECT_FRIEND_REQUEST: FriendRequestDecisionPayload,
    events.SEEN_NOTIFICATION: SeenNotificationPayload,
    events.CREATE_ROOM: CreateRoomPayload,
    events.SEND_MESSAGE: SendMessagePayload,
    events.TYPING: TypingPayload,
    events.STOP_TYPING: TypingPayload,
    events.MARK_MESSAGES_AS_READ: MarkMessagesReadPayload,
    events.SEND_FEEDBACK: SendFeedbackPayload,
    events.GET_FEEDBACK_HISTORY: CourseRoomPayload,
    events.JOIN_COURSE_ROOM: CourseRoomPayload,
    events.LEAVE_COURSE_ROOM: CourseRoomPayload,
    events.EDIT_MESSAGE: EditMessagePayload,
    events.DELETE_FEEDBACK_MESSAGE: DeleteFeedbackPayload,
    events.LIKE_FEEDBACK_MESSAGE: LikeFeedbackPayload,
}


class UnknownEventError(LookupError):
    """Raised for a frame whose ``type`` has no registered payload."""


def parse_event(raw: Any) -> tuple[str, EventPayload]:
    """Validate an already JSON-decoded frame.

    Raises :class:`pydantic.ValidationError` for a malformed envelope or
    payload and :class:`UnknownEventError` for an unregistered event name.
    """

    frame = EventFrame.model_validate(raw)
    model = EVENT_PAYLOADS.get(frame.type)
    if model is None:
        raise UnknownEventError(frame.type)
    return frame.type, model.model_validate(frame.data)

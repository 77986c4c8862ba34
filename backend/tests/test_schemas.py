"""Unit tests validating Pydantic schema constraints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from app.core.timeutils import format_time_ago
from app.models import FriendRequestStatus
from app.schemas import NotificationRead, UserSummary, parse_event
from app.schemas.events import (
    AddFriendPayload,
    EditMessagePayload,
    LikeFeedbackPayload,
    SendFeedbackPayload,
    UnknownEventError,
)


def test_payload_fields_are_camel_case_and_stripped():
    event, payload = parse_event(
        {"type": "add-friend", "data": {"firstName": "  Grace ", "lastName": "Hopper"}}
    )

    assert event == "add-friend"
    assert isinstance(payload, AddFriendPayload)
    assert (payload.first_name, payload.last_name) == ("Grace", "Hopper")


def test_missing_data_defaults_to_empty_payload():
    _, payload = parse_event({"type": "send-feedback"})

    assert isinstance(payload, SendFeedbackPayload)
    assert payload.course_id is None
    assert payload.msg is None


def test_numeric_strings_are_accepted_for_ids():
    _, payload = parse_event({"type": "seen-notification", "data": {"notifId": "42"}})

    assert payload.notif_id == 42


@pytest.mark.parametrize("field", ["messageId", "msgToEdit"])
def test_edit_message_accepts_both_id_names(field):
    _, payload = parse_event(
        {"type": "edit-message", "data": {field: 5, "courseId": 3, "newContent": " better "}}
    )

    assert isinstance(payload, EditMessagePayload)
    assert payload.message_id == 5
    assert payload.new_content == "better"


def test_like_payload_requires_every_field():
    with pytest.raises(ValidationError):
        parse_event({"type": "like-feedback-message", "data": {"messageId": 1, "courseId": 2}})

    _, payload = parse_event(
        {
            "type": "like-feedback-message",
            "data": {"messageId": 1, "courseId": 2, "userId": 3, "like": False},
        }
    )
    assert isinstance(payload, LikeFeedbackPayload)
    assert payload.like is False


def test_wrong_field_type_is_rejected():
    with pytest.raises(ValidationError):
        parse_event({"type": "create-room", "data": {"roomId": "r1", "participantId": "Grace"}})


def test_unknown_event_name():
    with pytest.raises(UnknownEventError):
        parse_event({"type": "launch-rocket", "data": {}})


@pytest.mark.parametrize("raw", [{"type": ""}, {"data": {}}, ["add-friend"], {"type": "ping", "data": []}])
def test_malformed_envelope(raw):
    with pytest.raises(ValidationError):
        parse_event(raw)


def test_notification_wire_form():
    sent_at = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)
    notification = NotificationRead(
        id=1,
        sender_id=2,
        receiver_id=3,
        content="<div></div>",
        brief_content="Ada Lovelace wants to be friends!",
        is_seen=False,
        request_status=FriendRequestStatus.PENDING,
        sent_at=sent_at,
        sender=UserSummary(id=2, full_name="Ada Lovelace", avatar="https://cdn.bytelearn.test/ada.png"),
    )

    wire = notification.to_wire()

    assert wire["requestStatus"] == "pending"
    assert wire["briefContent"] == "Ada Lovelace wants to be friends!"
    assert wire["sender"]["fullName"] == "Ada Lovelace"
    assert wire["sentAt"].startswith("2026-10-19T09:30:00")


@pytest.mark.parametrize(
    "elapsed,expected",
    [
        (timedelta(seconds=5), "just now"),
        (timedelta(minutes=1), "1 minute ago"),
        (timedelta(minutes=45), "45 minutes ago"),
        (timedelta(hours=3), "3 hours ago"),
        (timedelta(days=1), "1 day ago"),
        (timedelta(days=15), "2 weeks ago"),
        (timedelta(days=400), "1 year ago"),
    ],
)
def test_format_time_ago(elapsed, expected):
    now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

    assert format_time_ago(now - elapsed, now) == expected


def test_format_time_ago_treats_naive_values_as_utc():
    now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

    assert format_time_ago(datetime(2026, 10, 19, 11, 0), now) == "1 hour ago"

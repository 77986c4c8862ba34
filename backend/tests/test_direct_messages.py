"""Direct chat rooms: lazy creation, delivery and read receipts."""

from __future__ import annotations

import pytest
from sqlalchemy import select

from app.models import ChatRoom, Message, MessageStatus
from app.services import NoLongerFriendsError, NotAllowedError, NotFoundError
from app.services import direct_messages

from conftest import connect, receive_event, send_event


@pytest.fixture()
def friends(make_user, befriend) -> tuple[int, int]:
    ada = make_user("Ada Lovelace")
    grace = make_user("Grace Hopper")
    befriend(ada, grace)
    return ada, grace


def test_open_room_creates_once_per_pair(db_session, friends):
    ada, grace = friends

    room, friend, created = direct_messages.open_room(db_session, ada, grace, "ada-grace")
    assert created is True
    assert friend.id == grace
    assert room.room_key == "ada-grace"

    again, _, created_again = direct_messages.open_room(db_session, grace, ada, "grace-ada")
    assert created_again is False
    assert again.id == room.id
    assert again.room_key == "ada-grace"
    assert len(db_session.execute(select(ChatRoom)).scalars().all()) == 1


def test_open_room_requires_friendship(db_session, make_user):
    ada = make_user("Ada Lovelace")
    stranger = make_user("Alan Turing")

    with pytest.raises(NoLongerFriendsError) as exc:
        direct_messages.open_room(db_session, ada, stranger, "ada-alan")

    assert exc.value.to_payload() == {
        "success": False,
        "msg": "You are no longer friends",
        "isFriends": False,
    }


def test_open_room_rejects_key_of_another_pair(db_session, friends, make_user, befriend):
    ada, grace = friends
    alan = make_user("Alan Turing")
    befriend(ada, alan)
    direct_messages.open_room(db_session, ada, grace, "shared-key")

    with pytest.raises(NotAllowedError) as exc:
        direct_messages.open_room(db_session, ada, alan, "shared-key")

    assert exc.value.msg == "This room id is already in use"


def test_open_room_with_unknown_participant(db_session, make_user):
    ada = make_user("Ada Lovelace")

    with pytest.raises(NotFoundError):
        direct_messages.open_room(db_session, ada, 999, "ada-ghost")


def test_send_message_needs_an_existing_room(db_session, friends):
    ada, grace = friends

    with pytest.raises(NotFoundError) as exc:
        direct_messages.send_message(db_session, ada, grace, "Hello", None)

    assert exc.value.msg == "Room was not found"
    assert db_session.execute(select(Message)).first() is None


@pytest.mark.parametrize("content,image_url", [(None, None), ("", "")])
def test_send_message_requires_content_or_image(db_session, friends, content, image_url):
    ada, grace = friends
    direct_messages.open_room(db_session, ada, grace, "ada-grace")

    with pytest.raises(NotAllowedError):
        direct_messages.send_message(db_session, ada, grace, content, image_url)


def test_send_message_rejects_oversized_content(db_session, friends, monkeypatch):
    ada, grace = friends
    direct_messages.open_room(db_session, ada, grace, "ada-grace")
    monkeypatch.setattr(direct_messages.settings, "chat_message_max_length", 5)

    with pytest.raises(NotAllowedError):
        direct_messages.send_message(db_session, ada, grace, "much too long", None)


def test_send_image_only_message(db_session, friends):
    ada, grace = friends
    direct_messages.open_room(db_session, ada, grace, "ada-grace")

    message, room = direct_messages.send_message(
        db_session, ada, grace, None, "https://cdn.bytelearn.test/cat.png"
    )

    assert message.content is None
    assert message.status == MessageStatus.SENT
    assert room.room_key == "ada-grace"


def test_mark_as_read_only_touches_incoming_messages(db_session, friends):
    ada, grace = friends
    direct_messages.open_room(db_session, ada, grace, "ada-grace")
    incoming_one, _ = direct_messages.send_message(db_session, ada, grace, "Hi Grace", None)
    incoming_two, _ = direct_messages.send_message(db_session, ada, grace, "Are you there?", None)
    outgoing, _ = direct_messages.send_message(db_session, grace, ada, "Hi Ada", None)
    incoming_ids = [incoming_one.id, incoming_two.id]
    outgoing_id = outgoing.id

    assert direct_messages.unread_counts(db_session, grace) == [(ada, 2)]

    _, message_ids, read_at = direct_messages.mark_as_read(db_session, grace, "ada-grace", ada)

    assert message_ids == incoming_ids
    db_session.expire_all()
    for message_id in incoming_ids:
        message = db_session.get(Message, message_id)
        assert message.status == MessageStatus.READ
        assert message.read_at is not None
    assert db_session.get(Message, outgoing_id).status == MessageStatus.SENT
    assert direct_messages.unread_counts(db_session, grace) == []

    _, second_pass, _ = direct_messages.mark_as_read(db_session, grace, "ada-grace", ada)
    assert second_pass == []


def test_mark_as_read_by_outsider(db_session, friends, make_user):
    ada, grace = friends
    alan = make_user("Alan Turing")
    direct_messages.open_room(db_session, ada, grace, "ada-grace")

    with pytest.raises(NotFoundError):
        direct_messages.mark_as_read(db_session, alan, "ada-grace", ada)


def test_chat_flow_over_the_socket(client, friends, session_factory):
    ada, grace = friends

    with connect(client, ada) as ada_ws, connect(client, grace) as grace_ws:
        send_event(ada_ws, "create-room", {"roomId": "ada-grace", "participantId": grace})
        created = receive_event(ada_ws, "chat-room-created")
        assert created["data"]["roomId"] == "ada-grace"
        assert created["data"]["information"]["fullName"] == "Grace Hopper"
        assert created["data"]["messages"] == []

        send_event(grace_ws, "create-room", {"roomId": "grace-ada", "participantId": ada})
        found = receive_event(grace_ws, "chat-room-found")
        assert found["data"]["roomId"] == "ada-grace"

        send_event(ada_ws, "send-message", {"receiverId": grace, "content": "Hi Grace"})
        for connection in (ada_ws, grace_ws):
            delivered = receive_event(connection, "received-message")
            assert delivered["data"]["room"] == "ada-grace"
            assert delivered["data"]["message"]["content"] == "Hi Grace"
            assert delivered["data"]["message"]["status"] == "sent"
        message_id = delivered["data"]["message"]["id"]

        send_event(grace_ws, "typing", {"receiverId": ada})
        assert receive_event(ada_ws, "typing")["data"] == {"senderId": grace}
        send_event(grace_ws, "stop-typing", {"receiverId": ada})
        assert receive_event(ada_ws, "stop-typing")["data"] == {"senderId": grace}

        send_event(grace_ws, "mark-messages-as-read", {"roomId": "ada-grace", "friendId": ada})
        receipt = receive_event(ada_ws, "messages-marked-as-read")
        assert receipt["data"]["messageIds"] == [message_id]
        assert receipt["data"]["readerId"] == grace
        assert receipt["data"]["friendId"] == ada
        assert receipt["data"]["readAt"]

    with session_factory() as session:
        assert session.get(Message, message_id).status == MessageStatus.READ


def test_send_before_create_room_over_the_socket(client, friends):
    ada, grace = friends

    with connect(client, ada) as ada_ws:
        send_event(ada_ws, "send-message", {"receiverId": grace, "content": "Hi"})
        assert receive_event(ada_ws, "not-found")["data"]["msg"] == "Room was not found"


def test_create_room_with_stranger_over_the_socket(client, make_user):
    ada = make_user("Ada Lovelace")
    alan = make_user("Alan Turing")

    with connect(client, ada) as ada_ws:
        send_event(ada_ws, "create-room", {"roomId": "ada-alan", "participantId": alan})
        rejected = receive_event(ada_ws, "no-longer-friends")
        assert rejected["data"]["isFriends"] is False


def test_room_history_keeps_the_latest_messages(db_session, friends):
    ada, grace = friends
    room, _, _ = direct_messages.open_room(db_session, ada, grace, "ada-grace")
    for index in range(5):
        direct_messages.send_message(db_session, ada, grace, f"message {index}", None)

    history = direct_messages.room_history(db_session, room, limit=3)

    assert [message.content for message in history] == ["message 2", "message 3", "message 4"]

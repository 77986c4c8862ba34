"""REST endpoints that sit next to the realtime socket."""

from __future__ import annotations

from sqlalchemy import select

from app.models import ChatRoom, Message
from app.services import direct_messages, friendship

from conftest import connect, receive_event, send_event, token_for


def _auth(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_for(user_id)}"}


def test_endpoints_require_a_token(client):
    assert client.get("/api/chat/friends").status_code == 401
    assert client.get("/api/chat/notifications", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_list_friends(client, make_user, befriend):
    ada = make_user("Ada Lovelace")
    grace = make_user("Grace Hopper", bio="COBOL")
    befriend(ada, grace)

    response = client.get("/api/chat/friends", headers=_auth(ada))

    assert response.status_code == 200
    [friend] = response.json()
    assert friend["id"] == grace
    assert friend["fullName"] == "Grace Hopper"
    assert friend["bio"] == "COBOL"
    assert friend["isOnline"] is False
    assert friend["lastSeen"]


def test_notifications_lifecycle(client, make_user, session_factory):
    ada = make_user("Ada Lovelace")
    alan = make_user("Alan Turing")
    grace = make_user("Grace Hopper")
    with session_factory() as session:
        first_id = friendship.request_friendship(session, ada, "Grace", "Hopper")[2].id
        second_id = friendship.request_friendship(session, alan, "Grace", "Hopper")[2].id

    listed = client.get("/api/chat/notifications", headers=_auth(grace))
    assert listed.status_code == 200
    assert [entry["id"] for entry in listed.json()] == [second_id, first_id]
    assert listed.json()[0]["sender"]["fullName"] == "Alan Turing"

    assert client.delete(f"/api/chat/notifications/{first_id}", headers=_auth(ada)).status_code == 404
    assert client.delete(f"/api/chat/notifications/{first_id}", headers=_auth(grace)).status_code == 204

    cleared = client.delete("/api/chat/notifications", headers=_auth(grace))
    assert cleared.json() == {"deleted": 1}
    assert client.get("/api/chat/notifications", headers=_auth(grace)).json() == []


def test_unread_message_counts(client, make_user, befriend, session_factory):
    ada = make_user("Ada Lovelace")
    grace = make_user("Grace Hopper")
    befriend(ada, grace)
    with session_factory() as session:
        direct_messages.open_room(session, ada, grace, "ada-grace")
        direct_messages.send_message(session, ada, grace, "one", None)
        direct_messages.send_message(session, ada, grace, "two", None)

    response = client.get("/api/chat/unread-messages", headers=_auth(grace))

    assert response.json() == [{"senderId": ada, "count": 2}]
    assert client.get("/api/chat/unread-messages", headers=_auth(ada)).json() == []


def test_remove_friend_notifies_both_sides(client, make_user, befriend, session_factory):
    ada = make_user("Ada Lovelace")
    grace = make_user("Grace Hopper")
    befriend(ada, grace)
    with session_factory() as session:
        direct_messages.open_room(session, ada, grace, "ada-grace")
        direct_messages.send_message(session, ada, grace, "bye?", None)

    with connect(client, ada) as ada_ws, connect(client, grace) as grace_ws:
        send_event(grace_ws, "ping")
        receive_event(grace_ws, "pong")

        response = client.delete(f"/api/chat/friends/{grace}", headers=_auth(ada))
        assert response.status_code == 204

        assert receive_event(ada_ws, "removed-friend-notification")["data"] == {"friendId": grace}
        assert receive_event(grace_ws, "removed-friend")["data"] == {"friendId": ada}

    with session_factory() as session:
        assert session.execute(select(ChatRoom)).first() is None
        assert session.execute(select(Message)).first() is None

    assert client.delete(f"/api/chat/friends/{grace}", headers=_auth(ada)).status_code == 404
    assert client.get("/api/chat/friends", headers=_auth(grace)).json() == []


def test_unfriending_frees_the_room_key_for_other_pairs(client, make_user, befriend):
    ada = make_user("Ada Lovelace")
    grace = make_user("Grace Hopper")
    alan = make_user("Alan Turing")
    bob = make_user("Bob Kahn")
    befriend(ada, grace)
    befriend(alan, bob)

    with connect(client, ada) as ada_ws, connect(client, grace) as grace_ws:
        send_event(ada_ws, "create-room", {"roomId": "shared-key", "participantId": grace})
        receive_event(ada_ws, "chat-room-created")
        send_event(grace_ws, "create-room", {"roomId": "shared-key", "participantId": ada})
        receive_event(grace_ws, "chat-room-found")

        assert client.delete(f"/api/chat/friends/{grace}", headers=_auth(ada)).status_code == 204
        receive_event(ada_ws, "removed-friend-notification")

        with connect(client, alan) as alan_ws, connect(client, bob) as bob_ws:
            send_event(alan_ws, "create-room", {"roomId": "shared-key", "participantId": bob})
            receive_event(alan_ws, "chat-room-created")
            send_event(bob_ws, "create-room", {"roomId": "shared-key", "participantId": alan})
            receive_event(bob_ws, "chat-room-found")

            send_event(alan_ws, "send-message", {"receiverId": bob, "content": "private to bob"})
            delivered = receive_event(bob_ws, "received-message")
            assert delivered["data"]["message"]["content"] == "private to bob"

        # Anything leaked into Ada's socket would be queued ahead of this pong.
        send_event(ada_ws, "ping")
        frames = []
        while True:
            frame = ada_ws.receive_json()
            if frame["type"] == "pong":
                break
            frames.append(frame)
        assert all(frame["type"] != "received-message" for frame in frames)

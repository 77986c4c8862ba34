"""Rule violations raised by the realtime services.

The socket dispatcher turns each of these into a ``{"success": false,
"msg": ...}`` frame named after :attr:`RealtimeError.event`; they never
reach other connections.
"""

from __future__ import annotations

from typing import Any, Dict

from bytelearn.realtime import events


class RealtimeError(Exception):
    event = events.SERVER_ERROR

    def __init__(self, msg: str, *, extra: Dict[str, Any] | None = None) -> None:
        super().__init__(msg)
        self.msg = msg
        self.extra = extra or {}

    def to_payload(self) -> Dict[str, Any]:
        return {"success": False, "msg": self.msg, **self.extra}


class NotFoundError(RealtimeError):
    event = events.NOT_FOUND


class NotAllowedError(RealtimeError):
    event = events.NOT_ALLOWED


class InvalidInputError(RealtimeError):
    event = events.INVALID_INPUT


class NoLongerFriendsError(RealtimeError):
    event = events.NO_LONGER_FRIENDS

    def __init__(self, msg: str = "You are no longer friends") -> None:
        super().__init__(msg, extra={"isFriends": False})

"""Realtime helpers for websocket room coordination."""

from .managers import (  # noqa: F401
    ConnectionContext,
    RoomConnectionManager,
    build_frame,
    get_room_manager,
    personal_room,
    safe_send_json,
    shutdown_realtime,
)

__all__ = [
    "ConnectionContext",
    "RoomConnectionManager",
    "build_frame",
    "get_room_manager",
    "personal_room",
    "safe_send_json",
    "shutdown_realtime",
]

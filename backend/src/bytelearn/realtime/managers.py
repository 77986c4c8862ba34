"""In-process broadcast groups for the realtime socket."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Set

from fastapi.websockets import WebSocket, WebSocketDisconnect, WebSocketState

logger = logging.getLogger(__name__)


async def safe_send_json(websocket: WebSocket, data: dict[str, Any]) -> bool:
    """Safely send JSON data through websocket, handling disconnections gracefully.

    Returns True if message was sent successfully, False otherwise.
    """
    if websocket.application_state != WebSocketState.CONNECTED:
        return False
    try:
        await websocket.send_json(data)
        return True
    except (WebSocketDisconnect, RuntimeError) as e:
        logger.debug("Failed to send websocket message: %s", e)
        return False


def build_frame(event: str, data: Any = None) -> dict[str, Any]:
    frame: dict[str, Any] = {"type": event}
    if data is not None:
        frame["data"] = data
    return frame


def personal_room(user_id: int) -> str:
    """Room key every connection of ``user_id`` joins right after the gate."""

    return str(user_id)


@dataclass
class ConnectionContext:
    """State owned by one authenticated socket for its whole lifetime."""

    user_id: int
    full_name: str
    websocket: WebSocket
    rooms: Set[str] = field(default_factory=set)

    @property
    def personal_room(self) -> str:
        return personal_room(self.user_id)

    async def emit(self, event: str, data: Any = None) -> bool:
        return await safe_send_json(self.websocket, build_frame(event, data))


# ---------------------------------------------------------------------------
# Room manager
# ---------------------------------------------------------------------------


class RoomConnectionManager:
    """Track which sockets are joined to which room keys."""

    def __init__(self) -> None:
        self._connections: Dict[str, Set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()
        self._pending: Set[asyncio.Task[None]] = set()
        self._contexts: Dict[WebSocket, ConnectionContext] = {}

    async def join(self, context: ConnectionContext, room: str) -> None:
        async with self._lock:
            self._connections[room].add(context.websocket)
            self._contexts[context.websocket] = context
            context.rooms.add(room)

    async def leave(self, context: ConnectionContext, room: str) -> None:
        async with self._lock:
            self._discard_locked(room, context.websocket)
            context.rooms.discard(room)

    async def leave_all(self, context: ConnectionContext) -> None:
        async with self._lock:
            for room in list(context.rooms):
                self._discard_locked(room, context.websocket)
            context.rooms.clear()
            self._contexts.pop(context.websocket, None)

    async def evict(self, room: str) -> int:
        """Drop every socket from ``room`` and return how many were removed.

        Used when the record behind a room key is deleted, so a later room
        reusing the key starts with no members.
        """

        async with self._lock:
            connections = self._connections.pop(room, set())
            for websocket in connections:
                context = self._contexts.get(websocket)
                if context is not None:
                    context.rooms.discard(room)
        return len(connections)

    def _discard_locked(self, room: str, websocket: WebSocket) -> None:
        connections = self._connections.get(room)
        if connections and websocket in connections:
            connections.remove(websocket)
            if not connections:
                self._connections.pop(room, None)

    def members(self, room: str) -> int:
        return len(self._connections.get(room, ()))

    def is_member(self, room: str, websocket: WebSocket) -> bool:
        return websocket in self._connections.get(room, ())

    async def broadcast(
        self,
        room: str,
        event: str,
        data: Any = None,
        *,
        exclude: Iterable[WebSocket] | None = None,
    ) -> int:
        """Send ``event`` to every socket joined to ``room``.

        Returns the number of sockets that accepted the frame.
        """

        async with self._lock:
            connections = list(self._connections.get(room, ()))
        exclude_set = set(exclude or [])
        payload = build_frame(event, data)
        delivered = 0
        for connection in connections:
            if connection in exclude_set:
                continue
            if await safe_send_json(connection, payload):
                delivered += 1
        return delivered

    def broadcast_later(self, delay_seconds: float, room: str, event: str, data: Any = None) -> asyncio.Task[None]:
        """Schedule a broadcast after ``delay_seconds``; the caller does not wait for it."""

        async def runner() -> None:
            if delay_seconds > 0:
                await asyncio.sleep(delay_seconds)
            await self.broadcast(room, event, data)

        task = asyncio.create_task(runner())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for every scheduled broadcast to finish."""

        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._pending):
            task.cancel()
        await self.drain()
        async with self._lock:
            self._connections.clear()
            self._contexts.clear()


# ---------------------------------------------------------------------------
# Module level lifecycle helpers
# ---------------------------------------------------------------------------


room_manager = RoomConnectionManager()


async def shutdown_realtime() -> None:
    await room_manager.close()


def get_room_manager() -> RoomConnectionManager:
    return room_manager


__all__ = [
    "ConnectionContext",
    "RoomConnectionManager",
    "build_frame",
    "get_room_manager",
    "personal_room",
    "safe_send_json",
    "shutdown_realtime",
]

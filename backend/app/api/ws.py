"""WebSocket endpoint carrying every realtime event of an account."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Dict, TypeVar

from fastapi import APIRouter, WebSocket, status
from fastapi.exceptions import HTTPException
from fastapi.websockets import WebSocketDisconnect, WebSocketState
from pydantic import ValidationError

from bytelearn.realtime import ConnectionContext, build_frame, get_room_manager, personal_room, safe_send_json
from bytelearn.realtime import events

from app.api.ws_events import HANDLERS
from app.config import get_settings
from app.core.security import subject_from_token
from app.database import get_db_session
from app.schemas.events import AuthPayload, UnknownEventError, parse_event
from app.services import RealtimeError, presence

router = APIRouter(prefix="/ws", tags=["ws"])

settings = get_settings()

logger = logging.getLogger(__name__)

rooms = get_room_manager()

T = TypeVar("T")


async def iter_keepalive_messages(
    websocket: WebSocket,
    receiver: Callable[[], Awaitable[T]],
    *,
    timeout_seconds: float | int | None,
    ping_interval_seconds: float | int | None,
    ping_payload: Dict[str, Any] | None = None,
) -> AsyncIterator[T]:
    """Yield messages from *receiver* while sending keepalive pings when idle."""

    ping_payload = ping_payload or {"type": events.PING}
    timeout = float(timeout_seconds) if timeout_seconds else 0.0
    interval = float(ping_interval_seconds) if ping_interval_seconds else 0.0
    last_activity = time.monotonic()
    last_ping_sent: float | None = None

    while True:
        try:
            if timeout > 0:
                message = await asyncio.wait_for(receiver(), timeout=timeout)
            else:
                message = await receiver()
        except asyncio.TimeoutError:
            if websocket.application_state != WebSocketState.CONNECTED:
                break

            now = time.monotonic()
            should_ping = False
            if interval <= 0:
                should_ping = True
            else:
                if now - last_activity >= interval and (
                    last_ping_sent is None or now - last_ping_sent >= interval
                ):
                    should_ping = True

            if should_ping:
                if not await safe_send_json(websocket, ping_payload):
                    break
                last_ping_sent = now
            continue
        except asyncio.CancelledError:  # pragma: no cover - cooperative cancellation
            raise
        except (RuntimeError, WebSocketDisconnect):
            break
        else:
            last_activity = time.monotonic()
            last_ping_sent = None
            yield message


async def _receive_frame(websocket: WebSocket) -> str | None:
    """Return the next text frame, or ``None`` for a binary one."""

    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", status.WS_1000_NORMAL_CLOSURE))
    return message.get("text")


async def _signal(websocket: WebSocket, event: str, msg: str) -> None:
    await safe_send_json(websocket, build_frame(event, {"success": False, "msg": msg}))


def _handshake_token(websocket: WebSocket) -> str | None:
    token = websocket.query_params.get("token")
    if not token:
        auth_header = websocket.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            token = auth_header.removeprefix("Bearer ").strip()
    return token or None


async def _auth_frame_token(websocket: WebSocket) -> str | None:
    """Wait for a leading ``{"type": "auth", "data": {"token": ...}}`` frame."""

    try:
        raw = await asyncio.wait_for(
            _receive_frame(websocket), timeout=settings.websocket_auth_timeout_seconds
        )
    except asyncio.TimeoutError:
        return None
    if raw is None:
        return None
    try:
        frame = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(frame, dict) or frame.get("type") != events.AUTH:
        return None
    try:
        return AuthPayload.model_validate(frame.get("data") or {}).token
    except ValidationError:
        return None


async def _authenticate(websocket: WebSocket) -> int | None:
    """Resolve the account id behind the connection or close it.

    The socket must already be accepted so the rejection signal can be
    delivered before the close frame.
    """

    token = _handshake_token(websocket)
    if token is None:
        token = await _auth_frame_token(websocket)
    if not token:
        await _signal(websocket, events.UNAUTHORIZED_ACCESS, "Unauthorized Access")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Missing token")
        return None

    try:
        return subject_from_token(token)
    except HTTPException:
        await _signal(websocket, events.INVALID_TOKEN, "Token is not Valid")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid token")
        return None


async def _announce_presence(user_id: int, is_online: bool, friend_ids: list[int]) -> None:
    payload = {"userId": user_id, "isOnline": is_online}
    for friend_id in friend_ids:
        await rooms.broadcast(personal_room(friend_id), events.PRESENCE_CHANGED, payload)


async def dispatch(context: ConnectionContext, raw_message: str) -> None:
    """Validate one inbound frame and run its handler.

    Failures are reported to this connection only.
    """

    try:
        frame = json.loads(raw_message)
    except json.JSONDecodeError:
        await context.emit(events.INVALID_INPUT, {"success": False, "msg": "Payload must be valid JSON"})
        return

    try:
        event, payload = parse_event(frame)
    except UnknownEventError as exc:
        await context.emit(events.INVALID_INPUT, {"success": False, "msg": f"Unknown event: {exc}"})
        return
    except ValidationError as exc:
        fields = [".".join(str(part) for part in error["loc"]) for error in exc.errors()]
        await context.emit(
            events.INVALID_INPUT,
            {"success": False, "msg": "Invalid input parameters", "fields": fields},
        )
        return

    if event == events.PING:
        await safe_send_json(context.websocket, {"type": events.PONG})
        return
    if event == events.PONG:
        return

    handler = HANDLERS[event]
    try:
        await handler(context, payload)
    except RealtimeError as exc:
        await context.emit(exc.event, exc.to_payload())
    except Exception:
        logger.exception("Failed to handle %s for user %s", event, context.user_id)
        await context.emit(events.SERVER_ERROR, {"success": False, "msg": "Server Error"})


@router.websocket("/events")
async def websocket_events(websocket: WebSocket) -> None:
    """Authenticate once, then serve every realtime event of the account."""

    await websocket.accept()
    try:
        user_id = await _authenticate(websocket)
    except WebSocketDisconnect:
        return
    if user_id is None:
        return

    with get_db_session() as db:
        user = presence.mark_online(db, user_id)
        full_name = user.full_name if user is not None else ""
        friend_ids = presence.friend_ids(db, user_id) if user is not None else []
    if user is None:
        await _signal(websocket, events.NOT_FOUND, "Account was not found")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Unknown account")
        return

    context = ConnectionContext(user_id=user_id, full_name=full_name, websocket=websocket)
    await rooms.join(context, context.personal_room)
    logger.info("%s (%s) connected", full_name, user_id)
    await _announce_presence(user_id, True, friend_ids)

    try:
        async for raw_message in iter_keepalive_messages(
            websocket,
            lambda: _receive_frame(websocket),
            timeout_seconds=settings.websocket_keepalive_timeout_seconds,
            ping_interval_seconds=settings.websocket_keepalive_ping_interval_seconds,
        ):
            if raw_message is None:
                await context.emit(
                    events.INVALID_INPUT, {"success": False, "msg": "Payload must be a text frame"}
                )
                continue
            if not raw_message:
                continue
            normalized = raw_message.strip().lower()
            if normalized == events.PING:
                await safe_send_json(websocket, {"type": events.PONG})
                continue
            if normalized == events.PONG:
                continue
            await dispatch(context, raw_message)
    finally:
        await rooms.leave_all(context)
        with get_db_session() as db:
            presence.mark_offline(db, user_id)
            friend_ids = presence.friend_ids(db, user_id)
        await _announce_presence(user_id, False, friend_ids)
        logger.info("%s (%s) disconnected", full_name, user_id)

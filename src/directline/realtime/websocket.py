"""WebSocket endpoint — live delivery of new messages to online users.

Learn: A client connects to /ws and announces who it is:

    → {"type": "register", "userId": 2}
    ← {"type": "registered", "userId": 2}

From then on, every message sent to user 2 is pushed down this socket as
the same JSON the sender got back from POST /messages. The handler turns
inbound frames into lifecycle events for a LiveConnection; the connection
keeps the registry in sync. When the socket drops, the Closed event
removes every registry entry pointing at it.

Frames may arrive as text or binary; binary frames must hold UTF-8 JSON.
"""

import json
from typing import Any

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from directline.realtime.connection import Closed, LiveConnection, Opened, Registered
from directline.realtime.registry import connection_registry

logger = structlog.get_logger()
router = APIRouter()


def _parse_user_id(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        digits = value.strip()
        # str.isdigit() also accepts "²" and other non-ASCII digits
        if digits.isascii() and digits.isdigit():
            return int(digits)
    return None


def handle_frame(connection: LiveConnection, raw: str | bytes) -> dict:
    """Apply one inbound frame to `connection` and return the reply frame."""
    try:
        frame = json.loads(raw)
    except ValueError:
        # JSONDecodeError, or UnicodeDecodeError for a non-UTF-8 binary frame
        return {"type": "error", "detail": "Frame is not valid JSON"}
    if not isinstance(frame, dict):
        return {"type": "error", "detail": "Frame must be a JSON object"}

    frame_type = frame.get("type")
    if frame_type == "register":
        user_id = _parse_user_id(frame.get("userId", frame.get("user_id")))
        if user_id is None:
            return {"type": "error", "detail": "register requires an integer userId"}
        connection.apply(Registered(user_id))
        return {"type": "registered", "userId": user_id}
    if frame_type == "ping":
        return {"type": "pong"}
    return {"type": "error", "detail": f"Unknown frame type: {frame_type!r}"}


@router.websocket("/ws")
async def live_updates(websocket: WebSocket):
    """One task per client: read frames until the socket closes."""
    await websocket.accept()
    connection = LiveConnection(websocket, connection_registry)
    connection.apply(Opened())
    logger.info("connection.opened")

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            reply = handle_frame(connection, raw)
            # A failed push may have dropped the connection meanwhile
            if not connection.writable:
                break
            await websocket.send_text(json.dumps(reply))
    except WebSocketDisconnect:
        pass
    finally:
        connection.apply(Closed())
        if (
            websocket.client_state == WebSocketState.CONNECTED
            and websocket.application_state == WebSocketState.CONNECTED
        ):
            await websocket.close()

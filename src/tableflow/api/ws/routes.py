from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from tableflow.api.ws.manager import ConnectionManager
from tableflow.application.notifications.audiences import (
    KITCHEN,
    MANAGER,
    customer,
    is_valid_audience,
)

router = APIRouter()
logger = logging.getLogger(__name__)

_ROLE_ROOMS = {"manager": MANAGER, "kitchen": KITCHEN}
_ACKS = {"join": "joined", "leave": "left"}


def _initial_room(role: str, session_id: str | None) -> str | None:
    if role == "customer":
        return customer(session_id) if session_id else None
    return _ROLE_ROOMS.get(role)


async def _handle_client_message(
    manager: ConnectionManager,
    websocket: WebSocket,
    raw: str,
) -> None:
    try:
        message = json.loads(raw)
    except json.JSONDecodeError:
        await websocket.send_json({"type": "error", "message": "messages must be JSON"})
        return

    action = message.get("action") if isinstance(message, dict) else None
    room = message.get("room") if isinstance(message, dict) else None
    if action == "ping":
        await websocket.send_json({"type": "pong"})
        return
    if action not in {"join", "leave"} or not isinstance(room, str) or not is_valid_audience(room):
        await websocket.send_json({"type": "error", "message": "unsupported message"})
        return

    if action == "join":
        await manager.join(websocket, room)
    else:
        await manager.leave(websocket, room)
    await websocket.send_json({"type": _ACKS[action], "room": room})


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    role = websocket.query_params.get("role", "").lower()
    session_id = websocket.query_params.get("session_id")
    room = _initial_room(role, session_id)
    if room is None:
        await websocket.close(
            code=1008,
            reason="role must be manager, kitchen or customer (with session_id)",
        )
        return

    manager: ConnectionManager = websocket.app.state.ws_manager
    await manager.register(websocket=websocket, room=room, role=role)
    try:
        while True:
            await _handle_client_message(manager, websocket, await websocket.receive_text())
    except WebSocketDisconnect:
        await manager.unregister(websocket)
    except Exception:
        logger.exception("ws_connection_error", extra={"room": room, "role": role})
        await manager.unregister(websocket)

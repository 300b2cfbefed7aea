from __future__ import annotations

import asyncio
import logging
from collections import defaultdict

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Room registry for realtime subscribers.

    A socket may sit in several rooms (`manager`, `kitchen`, `customer:{sid}`).
    Delivery is best effort to whoever is connected right now; nothing is
    buffered for sockets that are gone.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, set[WebSocket]] = defaultdict(set)
        self._socket_rooms: dict[WebSocket, set[str]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def register(self, websocket: WebSocket, room: str, role: str) -> None:
        await websocket.accept()
        await self.join(websocket, room)
        logger.info("ws_client_connected", extra={"room": room, "role": role})

    async def join(self, websocket: WebSocket, room: str) -> None:
        async with self._lock:
            self._rooms[room].add(websocket)
            self._socket_rooms[websocket].add(room)

    async def leave(self, websocket: WebSocket, room: str) -> None:
        async with self._lock:
            self._discard(websocket, room)
            rooms = self._socket_rooms.get(websocket)
            if rooms is not None:
                rooms.discard(room)

    async def unregister(self, websocket: WebSocket) -> None:
        async with self._lock:
            rooms = self._socket_rooms.pop(websocket, None)
            if rooms is None:
                return
            for room in rooms:
                self._discard(websocket, room)
        logger.info("ws_client_disconnected", extra={"room": ",".join(sorted(rooms))})

    def room_size(self, room: str) -> int:
        return len(self._rooms.get(room, ()))

    async def broadcast(self, room: str, message_json_str: str) -> int:
        async with self._lock:
            targets = list(self._rooms.get(room, set()))

        delivered = 0
        stale: list[WebSocket] = []
        for websocket in targets:
            try:
                await websocket.send_text(message_json_str)
                delivered += 1
            except Exception:
                stale.append(websocket)

        for websocket in stale:
            await self.unregister(websocket)
        return delivered

    def _discard(self, websocket: WebSocket, room: str) -> None:
        sockets = self._rooms.get(room)
        if not sockets:
            return
        sockets.discard(websocket)
        if not sockets:
            self._rooms.pop(room, None)

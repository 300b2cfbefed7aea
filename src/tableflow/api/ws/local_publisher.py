from __future__ import annotations

import asyncio
import logging

from tableflow.api.ws.manager import ConnectionManager
from tableflow.application.notifications.audiences import audience_from_channel
from tableflow.application.ports.publisher import EventPublisher

logger = logging.getLogger(__name__)


class InProcessEventPublisher(EventPublisher):
    """Publishes straight into this process's rooms when no Redis is configured.

    Request handlers run in the threadpool, so the broadcast is scheduled onto
    the app's event loop and not awaited.
    """

    def __init__(self, manager: ConnectionManager, loop: asyncio.AbstractEventLoop) -> None:
        self._manager = manager
        self._loop = loop

    def publish(self, channel: str, message: str) -> None:
        room = audience_from_channel(channel)
        if room is None:
            raise ValueError(f"not an event channel: {channel}")
        asyncio.run_coroutine_threadsafe(
            self._manager.broadcast(room=room, message_json_str=message),
            self._loop,
        )

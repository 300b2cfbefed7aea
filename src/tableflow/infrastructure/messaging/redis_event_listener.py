from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from redis import asyncio as redis_asyncio

from tableflow.application.notifications.audiences import CHANNEL_PREFIX, audience_from_channel
from tableflow.infrastructure.messaging.redis_client import redis_url

logger = logging.getLogger(__name__)

MIN_RECONNECT_DELAY = 1.0
MAX_RECONNECT_DELAY = 5.0


class RoomBroadcaster(Protocol):
    async def broadcast(self, room: str, message_json_str: str) -> int: ...


def _decode_value(value: bytes | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


async def relay_message(broadcaster: RoomBroadcaster, message: dict[str, Any]) -> bool:
    channel = _decode_value(message.get("channel"))
    payload = _decode_value(message.get("data"))
    if not channel or not payload:
        return False

    audience = audience_from_channel(channel)
    if audience is None:
        logger.warning("redis_fanout_invalid_channel", extra={"channel": channel})
        return False

    await broadcaster.broadcast(room=audience, message_json_str=payload)
    return True


async def _pump(broadcaster: RoomBroadcaster, url: str, pattern: str) -> None:
    client = redis_asyncio.from_url(url)
    pubsub = client.pubsub()
    try:
        await pubsub.psubscribe(pattern)
        logger.info("redis_fanout_subscribed", extra={"pattern": pattern})
        async for message in pubsub.listen():
            if message.get("type") == "pmessage":
                await relay_message(broadcaster, message)
    finally:
        await pubsub.aclose()
        await client.aclose()


async def start_redis_fanout(broadcaster: RoomBroadcaster) -> None:
    """Relay every ``events:*`` message to the matching local room until cancelled."""
    url = redis_url()
    if not url:
        logger.warning("redis_fanout_not_started", extra={"reason": "REDIS_URL missing"})
        return

    pattern = f"{CHANNEL_PREFIX}*"
    delay = MIN_RECONNECT_DELAY
    while True:
        try:
            await _pump(broadcaster, url, pattern)
            delay = MIN_RECONNECT_DELAY
        except asyncio.CancelledError:
            logger.info("redis_fanout_cancelled")
            raise
        except Exception:
            logger.exception("redis_fanout_error", extra={"backoff_seconds": delay})
            await asyncio.sleep(delay)
            delay = min(delay * 2, MAX_RECONNECT_DELAY)

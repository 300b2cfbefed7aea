from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from tableflow.api.ws.local_publisher import InProcessEventPublisher
from tableflow.api.ws.manager import ConnectionManager


class FakeSocket:
    def __init__(self, fail: bool = False) -> None:
        self.accepted = False
        self.fail = fail
        self.received: list[str] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.received.append(data)


def test_broadcast_reaches_only_room_members() -> None:
    async def scenario() -> None:
        manager = ConnectionManager()
        kitchen, waiter = FakeSocket(), FakeSocket()
        await manager.register(kitchen, "kitchen", role="kitchen")
        await manager.register(waiter, "manager", role="manager")

        delivered = await manager.broadcast("kitchen", '{"n":1}')

        assert kitchen.accepted
        assert delivered == 1
        assert kitchen.received == ['{"n":1}']
        assert waiter.received == []

    asyncio.run(scenario())


def test_socket_can_join_and_leave_extra_rooms() -> None:
    async def scenario() -> None:
        manager = ConnectionManager()
        socket = FakeSocket()
        await manager.register(socket, "manager", role="manager")
        await manager.join(socket, "customer:sess-1")

        assert await manager.broadcast("customer:sess-1", "a") == 1

        await manager.leave(socket, "customer:sess-1")
        assert await manager.broadcast("customer:sess-1", "b") == 0
        assert await manager.broadcast("manager", "c") == 1
        assert socket.received == ["a", "c"]

    asyncio.run(scenario())


def test_stale_sockets_are_dropped_from_every_room() -> None:
    async def scenario() -> None:
        manager = ConnectionManager()
        dead, alive = FakeSocket(fail=True), FakeSocket()
        await manager.register(dead, "kitchen", role="kitchen")
        await manager.join(dead, "manager")
        await manager.register(alive, "kitchen", role="kitchen")

        assert await manager.broadcast("kitchen", "x") == 1
        assert manager.room_size("kitchen") == 1
        assert manager.room_size("manager") == 0

    asyncio.run(scenario())


def test_unregister_unknown_socket_is_a_no_op() -> None:
    async def scenario() -> None:
        manager = ConnectionManager()
        await manager.unregister(FakeSocket())
        assert await manager.broadcast("manager", "x") == 0

    asyncio.run(scenario())


def test_in_process_publisher_routes_channel_to_room() -> None:
    async def scenario() -> None:
        manager = ConnectionManager()
        socket = FakeSocket()
        await manager.register(socket, "kitchen", role="kitchen")
        publisher = InProcessEventPublisher(manager, asyncio.get_running_loop())

        await asyncio.to_thread(publisher.publish, "events:kitchen", "hello")
        for _ in range(50):
            if socket.received:
                break
            await asyncio.sleep(0.01)

        assert socket.received == ["hello"]
        with pytest.raises(ValueError):
            publisher.publish("orders:kitchen", "nope")

    asyncio.run(scenario())

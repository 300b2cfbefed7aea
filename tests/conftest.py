from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy import Engine, create_engine

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from tableflow.application.notifications.dispatcher import NotificationDispatcher
from tableflow.application.use_cases.context import TraceContext
from tableflow.domain.common.ids import MenuItemId
from tableflow.domain.common.money import Money
from tableflow.domain.menu.entities import MenuItem
from tableflow.infrastructure.db.models.base import Base
from tableflow.infrastructure.db.models.menu import MenuItemModel  # noqa: F401
from tableflow.infrastructure.db.models.order import OrderModel  # noqa: F401
from tableflow.infrastructure.memory.repositories import (
    InMemoryMenuRepository,
    InMemoryOrderRepository,
)


class RecordingPublisher:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def publish(self, channel: str, message: str) -> None:
        self.messages.append((channel, message))

    def channels(self) -> list[str]:
        return [channel for channel, _ in self.messages]


class FailingPublisher:
    def __init__(self) -> None:
        self.attempts = 0

    def publish(self, channel: str, message: str) -> None:
        self.attempts += 1
        raise ConnectionError("redis unavailable")


PIZZA = MenuItem(
    item_id=MenuItemId("itm_pizza"),
    name="Margherita Pizza",
    price_money=Money(amount_cents=1000, currency="USD"),
    is_available=True,
    category="mains",
)
SALAD = MenuItem(
    item_id=MenuItemId("itm_salad"),
    name="Side Salad",
    price_money=Money(amount_cents=500, currency="USD"),
    is_available=True,
    category="sides",
)
SOLD_OUT = MenuItem(
    item_id=MenuItemId("itm_soldout"),
    name="Tiramisu",
    price_money=Money(amount_cents=850, currency="USD"),
    is_available=False,
    category="desserts",
)


@pytest.fixture
def menu_repository() -> InMemoryMenuRepository:
    return InMemoryMenuRepository([PIZZA, SALAD, SOLD_OUT])


@pytest.fixture
def order_repository() -> InMemoryOrderRepository:
    return InMemoryOrderRepository()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def failing_publisher() -> FailingPublisher:
    return FailingPublisher()


@pytest.fixture
def dispatcher(publisher: RecordingPublisher) -> NotificationDispatcher:
    return NotificationDispatcher(publisher=publisher)


@pytest.fixture
def trace_ctx() -> TraceContext:
    return TraceContext(trace_id=None, request_id="req-test")


@pytest.fixture
def engine(tmp_path: Path) -> Iterator[Engine]:
    sqlite_engine = create_engine(f"sqlite:///{tmp_path / 'tableflow.db'}")
    Base.metadata.create_all(sqlite_engine)
    yield sqlite_engine
    sqlite_engine.dispose()

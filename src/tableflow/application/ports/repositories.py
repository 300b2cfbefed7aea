from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from tableflow.domain.common.ids import CustomerSessionId, MenuItemId, OrderId
from tableflow.domain.menu.entities import MenuItem
from tableflow.domain.order.entities import Order, OrderStatusChange
from tableflow.domain.order.status import OrderStatus

TOP_ITEMS_LIMIT = 5


@dataclass(frozen=True)
class OrderStatisticsSnapshot:
    """Aggregates over orders created at or after ``since`` (all orders when None).

    Cancelled orders are counted in ``status_counts`` only; revenue, top items
    and ``order_count`` cover the rest.
    """

    since: datetime | None
    order_count: int = 0
    status_counts: dict[OrderStatus, int] = field(default_factory=dict)
    revenue_cents: dict[str, int] = field(default_factory=dict)
    average_prep_seconds: float | None = None
    top_items: list[tuple[str, int]] = field(default_factory=list)


class MenuRepository(Protocol):
    def get_items(self, item_ids: Sequence[MenuItemId]) -> dict[MenuItemId, MenuItem]: ...


class OrderRepository(Protocol):
    def add(self, order: Order) -> None: ...

    def get(self, order_id: OrderId) -> Order | None: ...

    def update_status_with_version(
        self,
        order: Order,
        expected_status: OrderStatus,
        expected_version: int,
        occurred_at: datetime,
        note: str | None = None,
    ) -> Order: ...

    def list_by_status(
        self,
        statuses: Sequence[OrderStatus],
        limit: int,
    ) -> list[Order]: ...

    def list_kitchen_queue(self, limit: int) -> list[Order]:
        """In-progress orders first, then approved ones, each by approval time."""
        ...

    def list_recent(
        self,
        statuses: Sequence[OrderStatus] | None,
        limit: int,
    ) -> list[Order]: ...

    def list_for_customer(
        self,
        customer_session_id: CustomerSessionId,
        limit: int,
    ) -> list[Order]: ...

    def list_history(self, order_id: OrderId) -> list[OrderStatusChange]: ...

    def statistics(self, since: datetime | None) -> OrderStatisticsSnapshot: ...


class OptimisticConcurrencyError(Exception):
    pass


class DuplicateOrderNumberError(Exception):
    pass

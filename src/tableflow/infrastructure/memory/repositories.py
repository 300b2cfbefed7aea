"""Process-local repositories for tests and single-process demos.

They honour the same contract as the SQL repositories, including the
compare-and-set on status and version.
"""

from __future__ import annotations

import threading
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import datetime

from tableflow.application.ports.repositories import (
    TOP_ITEMS_LIMIT,
    DuplicateOrderNumberError,
    MenuRepository,
    OptimisticConcurrencyError,
    OrderRepository,
    OrderStatisticsSnapshot,
)
from tableflow.domain.common.ids import CustomerSessionId, MenuItemId, OrderId
from tableflow.domain.menu.entities import MenuItem
from tableflow.domain.order.entities import Order, OrderStatusChange
from tableflow.domain.order.status import ACTIVE_KITCHEN_STATUSES, OrderStatus


class InMemoryMenuRepository(MenuRepository):
    def __init__(self, items: Iterable[MenuItem] = ()) -> None:
        self._items: dict[MenuItemId, MenuItem] = {item.item_id: item for item in items}

    def put(self, item: MenuItem) -> None:
        self._items[item.item_id] = item

    def get_items(self, item_ids: Sequence[MenuItemId]) -> dict[MenuItemId, MenuItem]:
        return {item_id: self._items[item_id] for item_id in item_ids if item_id in self._items}


class InMemoryOrderRepository(OrderRepository):
    def __init__(self) -> None:
        self._orders: dict[OrderId, Order] = {}
        self._history: dict[OrderId, list[OrderStatusChange]] = {}
        self._lock = threading.Lock()

    def add(self, order: Order) -> None:
        with self._lock:
            if any(
                existing.order_number == order.order_number for existing in self._orders.values()
            ):
                raise DuplicateOrderNumberError(
                    f"order number {order.order_number} already exists"
                )
            self._orders[order.order_id] = order
            self._history[order.order_id] = [
                OrderStatusChange(
                    order_id=order.order_id,
                    from_status=None,
                    to_status=order.status,
                    kitchen_status=order.kitchen_status,
                    occurred_at=order.created_at,
                )
            ]

    def get(self, order_id: OrderId) -> Order | None:
        with self._lock:
            return self._orders.get(order_id)

    def update_status_with_version(
        self,
        order: Order,
        expected_status: OrderStatus,
        expected_version: int,
        occurred_at: datetime,
        note: str | None = None,
    ) -> Order:
        with self._lock:
            current = self._orders.get(order.order_id)
            if (
                current is None
                or current.status != expected_status
                or current.version != expected_version
            ):
                raise OptimisticConcurrencyError(
                    f"order {order.order_id} is no longer {expected_status.value}"
                    f" at version {expected_version}"
                )
            stored = replace(order, version=current.version + 1)
            self._orders[order.order_id] = stored
            self._history[order.order_id].append(
                OrderStatusChange(
                    order_id=order.order_id,
                    from_status=expected_status,
                    to_status=stored.status,
                    kitchen_status=stored.kitchen_status,
                    occurred_at=occurred_at,
                    note=note,
                )
            )
            return stored

    def list_by_status(
        self,
        statuses: Sequence[OrderStatus],
        limit: int,
    ) -> list[Order]:
        with self._lock:
            matching = [order for order in self._orders.values() if order.status in statuses]
        matching.sort(key=lambda order: (order.created_at, str(order.order_id)))
        return matching[:limit]

    def list_kitchen_queue(self, limit: int) -> list[Order]:
        with self._lock:
            matching = [
                order for order in self._orders.values() if order.status in ACTIVE_KITCHEN_STATUSES
            ]
        matching.sort(
            key=lambda order: (
                order.status != OrderStatus.IN_PROGRESS,
                order.approved_at or order.created_at,
                str(order.order_id),
            )
        )
        return matching[:limit]

    def list_recent(
        self,
        statuses: Sequence[OrderStatus] | None,
        limit: int,
    ) -> list[Order]:
        with self._lock:
            matching = [
                order
                for order in self._orders.values()
                if statuses is None or order.status in statuses
            ]
        matching.sort(key=lambda order: (order.created_at, str(order.order_id)), reverse=True)
        return matching[:limit]

    def list_for_customer(
        self,
        customer_session_id: CustomerSessionId,
        limit: int,
    ) -> list[Order]:
        with self._lock:
            matching = [
                order
                for order in self._orders.values()
                if order.customer_session_id == customer_session_id
            ]
        matching.sort(key=lambda order: (order.created_at, str(order.order_id)), reverse=True)
        return matching[:limit]

    def list_history(self, order_id: OrderId) -> list[OrderStatusChange]:
        with self._lock:
            return list(self._history.get(order_id, []))

    def statistics(self, since: datetime | None) -> OrderStatisticsSnapshot:
        with self._lock:
            orders = [
                order
                for order in self._orders.values()
                if since is None or order.created_at >= since
            ]

        status_counts = Counter(order.status for order in orders)
        kept = [order for order in orders if order.status != OrderStatus.CANCELLED]
        revenue: Counter[str] = Counter()
        quantities: Counter[str] = Counter()
        prep_seconds: list[float] = []
        for order in kept:
            revenue[order.total.currency] += order.total.amount_cents
            for item in order.items:
                quantities[item.name] += item.quantity
            if order.approved_at is not None and order.ready_at is not None:
                prep_seconds.append((order.ready_at - order.approved_at).total_seconds())

        top_items = sorted(quantities.items(), key=lambda entry: (-entry[1], entry[0]))
        return OrderStatisticsSnapshot(
            since=since,
            order_count=len(kept),
            status_counts=dict(status_counts),
            revenue_cents=dict(revenue),
            average_prep_seconds=sum(prep_seconds) / len(prep_seconds) if prep_seconds else None,
            top_items=top_items[:TOP_ITEMS_LIMIT],
        )

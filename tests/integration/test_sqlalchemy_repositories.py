from __future__ import annotations

import sys
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from sqlalchemy.orm import Session

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from tableflow.application.errors import ConflictError, InvalidTransitionError
from tableflow.application.notifications.dispatcher import NotificationDispatcher
from tableflow.application.ports.repositories import (
    DuplicateOrderNumberError,
    OptimisticConcurrencyError,
)
from tableflow.application.use_cases.approve_order import ApproveOrder
from tableflow.application.use_cases.context import TraceContext
from tableflow.application.use_cases.reject_order import RejectOrder
from tableflow.domain.common.ids import CustomerSessionId, MenuItemId, OrderId, OrderNumber
from tableflow.domain.common.money import Money
from tableflow.domain.order.entities import Order, OrderItem, create_pending_order
from tableflow.domain.order.status import KitchenStatus, OrderStatus, PaymentMethod
from tableflow.infrastructure.db.models.menu import MenuItemModel
from tableflow.infrastructure.db.repositories.menu_repo import SqlAlchemyMenuRepository
from tableflow.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository

NOW = datetime(2026, 10, 2, 20, 15, 30, 123456, tzinfo=timezone.utc)
TRACE = TraceContext(trace_id=None, request_id=None)


def _order(suffix: str = "01", session: str = "sess-db", minutes: int = 0) -> Order:
    return create_pending_order(
        order_id=OrderId(f"ord_0000000000{suffix}"),
        order_number=OrderNumber(f"ORD-20261002201530-00{suffix}"),
        table_number=11,
        customer_session_id=CustomerSessionId(session),
        payment_method=PaymentMethod.CARD,
        items=[
            OrderItem(
                menu_item_id=MenuItemId("itm_001"),
                name="Margherita Pizza",
                unit_price=Money(amount_cents=1450, currency="USD"),
                quantity=2,
                special_instructions="extra basil",
            ),
            OrderItem(
                menu_item_id=MenuItemId("itm_003"),
                name="Caesar Salad",
                unit_price=Money(amount_cents=990, currency="USD"),
                quantity=1,
            ),
        ],
        now=NOW + timedelta(minutes=minutes),
    )


def test_add_and_get_round_trip(engine) -> None:
    repository = SqlAlchemyOrderRepository(engine)
    order = _order()

    repository.add(order)

    assert repository.get(order.order_id) == order
    assert repository.get(OrderId("ord_missing")) is None


def test_duplicate_order_number_is_reported(engine) -> None:
    repository = SqlAlchemyOrderRepository(engine)
    repository.add(_order("01"))
    clash = create_pending_order(
        order_id=OrderId("ord_0000000000ff"),
        order_number=OrderNumber("ORD-20261002201530-0001"),
        table_number=2,
        customer_session_id=CustomerSessionId("other"),
        payment_method=PaymentMethod.CASH,
        items=_order().items,
        now=NOW,
    )

    with pytest.raises(DuplicateOrderNumberError):
        repository.add(clash)
    assert repository.get(clash.order_id) is None


def test_update_status_with_version_bumps_version_and_mirrors_items(engine) -> None:
    repository = SqlAlchemyOrderRepository(engine)
    order = _order()
    repository.add(order)

    approved = repository.update_status_with_version(
        order.approve(NOW, 20),
        expected_status=OrderStatus.PENDING_APPROVAL,
        expected_version=1,
        occurred_at=NOW,
        note="estimated 20 min",
    )

    assert approved.status == OrderStatus.APPROVED
    assert approved.kitchen_status == KitchenStatus.PENDING
    assert approved.version == 2
    assert approved.expected_completion_at == NOW + timedelta(minutes=20)
    assert [item.status for item in approved.items] == [KitchenStatus.PENDING] * 2

    history = repository.list_history(order.order_id)
    assert [(change.from_status, change.to_status) for change in history] == [
        (None, OrderStatus.PENDING_APPROVAL),
        (OrderStatus.PENDING_APPROVAL, OrderStatus.APPROVED),
    ]
    assert history[1].note == "estimated 20 min"
    assert history[1].occurred_at == approved.approved_at == NOW


def test_stale_write_is_rejected_and_leaves_row_untouched(engine) -> None:
    repository = SqlAlchemyOrderRepository(engine)
    order = _order()
    repository.add(order)
    repository.update_status_with_version(
        order.approve(NOW, 20),
        expected_status=OrderStatus.PENDING_APPROVAL,
        expected_version=1,
        occurred_at=NOW,
    )

    with pytest.raises(OptimisticConcurrencyError):
        repository.update_status_with_version(
            order.reject(NOW, "too late"),
            expected_status=OrderStatus.PENDING_APPROVAL,
            expected_version=1,
            occurred_at=NOW,
        )

    stored = repository.get(order.order_id)
    assert stored.status == OrderStatus.APPROVED
    assert stored.cancellation_reason is None
    assert len(repository.list_history(order.order_id)) == 2


def test_listing_queries(engine) -> None:
    repository = SqlAlchemyOrderRepository(engine)
    repository.add(_order("03", session="sess-a", minutes=3))
    repository.add(_order("01", session="sess-a", minutes=1))
    repository.add(_order("02", session="sess-b", minutes=2))

    pending = repository.list_by_status([OrderStatus.PENDING_APPROVAL], limit=2)
    assert [str(order.order_id) for order in pending] == ["ord_000000000001", "ord_000000000002"]

    mine = repository.list_for_customer(CustomerSessionId("sess-a"), limit=10)
    assert [str(order.order_id) for order in mine] == ["ord_000000000003", "ord_000000000001"]

    assert repository.list_by_status([OrderStatus.APPROVED], limit=10) == []



def _advance(repository, order: Order, changed: Order) -> Order:
    return repository.update_status_with_version(
        changed,
        expected_status=order.status,
        expected_version=order.version,
        occurred_at=NOW,
    )


def test_kitchen_queue_orders_before_limiting(engine) -> None:
    repository = SqlAlchemyOrderRepository(engine)
    approved = []
    for minutes, suffix in enumerate(("01", "02", "03"), start=1):
        order = _order(suffix, minutes=minutes)
        repository.add(order)
        approved.append(_advance(repository, order, order.approve(order.created_at, 15)))
    newest = approved[-1]
    _advance(
        repository,
        newest,
        newest.advance_kitchen(NOW + timedelta(minutes=9), KitchenStatus.PREPARING),
    )

    queue = repository.list_kitchen_queue(limit=2)

    assert [(str(order.order_id), order.status) for order in queue] == [
        ("ord_000000000003", OrderStatus.IN_PROGRESS),
        ("ord_000000000001", OrderStatus.APPROVED),
    ]


def test_list_recent_is_newest_first(engine) -> None:
    repository = SqlAlchemyOrderRepository(engine)
    first = _order("01", minutes=1)
    second = _order("02", minutes=2)
    repository.add(first)
    repository.add(second)
    _advance(repository, first, first.approve(NOW, 10))

    everything = repository.list_recent(statuses=None, limit=10)
    approved = repository.list_recent(statuses=[OrderStatus.APPROVED], limit=10)

    assert [str(order.order_id) for order in everything] == [
        "ord_000000000002",
        "ord_000000000001",
    ]
    assert [str(order.order_id) for order in approved] == ["ord_000000000001"]


def test_statistics_aggregate_in_the_database(engine) -> None:
    repository = SqlAlchemyOrderRepository(engine)
    old = _order("01", minutes=-60 * 24)
    cooked = _order("02", minutes=1)
    dropped = _order("03", minutes=2)
    for order in (old, cooked, dropped):
        repository.add(order)
    approved = _advance(repository, cooked, cooked.approve(NOW, 20))
    preparing = _advance(
        repository,
        approved,
        approved.advance_kitchen(NOW + timedelta(minutes=4), KitchenStatus.PREPARING),
    )
    _advance(
        repository,
        preparing,
        preparing.advance_kitchen(NOW + timedelta(minutes=12), KitchenStatus.READY),
    )
    _advance(repository, dropped, dropped.reject(NOW, None))

    today = repository.statistics(since=NOW - timedelta(hours=1))
    all_time = repository.statistics(since=None)

    assert today.order_count == 1
    assert today.status_counts == {OrderStatus.READY: 1, OrderStatus.CANCELLED: 1}
    assert today.revenue_cents == {"USD": 3890}
    assert today.average_prep_seconds == 12 * 60
    assert today.top_items == [("Margherita Pizza", 2), ("Caesar Salad", 1)]

    assert all_time.order_count == 2
    assert all_time.status_counts[OrderStatus.PENDING_APPROVAL] == 1
    assert all_time.revenue_cents == {"USD": 7780}
    assert all_time.top_items == [("Margherita Pizza", 4), ("Caesar Salad", 2)]

def test_menu_repository_returns_requested_items(engine) -> None:
    with Session(engine) as session:
        session.add_all(
            [
                MenuItemModel(
                    id="itm_001",
                    name="Margherita Pizza",
                    category="mains",
                    price_cents=1450,
                    currency="USD",
                    is_available=True,
                ),
                MenuItemModel(
                    id="itm_004",
                    name="Tiramisu",
                    category="desserts",
                    price_cents=850,
                    currency="USD",
                    is_available=False,
                ),
            ]
        )
        session.commit()

    items = SqlAlchemyMenuRepository(engine).get_items(
        [MenuItemId("itm_001"), MenuItemId("itm_004"), MenuItemId("itm_missing")]
    )

    assert set(items) == {"itm_001", "itm_004"}
    assert items[MenuItemId("itm_001")].price_money == Money(amount_cents=1450, currency="USD")
    assert items[MenuItemId("itm_004")].is_available is False
    assert SqlAlchemyMenuRepository(engine).get_items([]) == {}


class RecordingPublisher:
    def __init__(self) -> None:
        self.channels: list[str] = []

    def publish(self, channel: str, message: str) -> None:
        self.channels.append(channel)


class LockstepSqlOrderRepository(SqlAlchemyOrderRepository):
    def __init__(self, engine, parties: int) -> None:
        super().__init__(engine)
        self._barrier = threading.Barrier(parties)
        self._reads = 0
        self._reads_lock = threading.Lock()

    def get(self, order_id):
        order = super().get(order_id)
        with self._reads_lock:
            self._reads += 1
            wait = self._reads <= self._barrier.parties
        if wait:
            self._barrier.wait(timeout=5)
        return order


def test_concurrent_approve_and_reject_against_database(engine) -> None:
    SqlAlchemyOrderRepository(engine).add(_order())
    repository = LockstepSqlOrderRepository(engine, parties=2)
    dispatcher = NotificationDispatcher(RecordingPublisher())
    order_id = OrderId("ord_000000000001")
    results: list[object] = []
    results_lock = threading.Lock()
    approve = ApproveOrder(repository, dispatcher)
    reject = RejectOrder(repository, dispatcher)

    def run(action) -> None:
        try:
            outcome = action()
        except (ConflictError, InvalidTransitionError) as exc:
            outcome = exc
        with results_lock:
            results.append(outcome)

    threads = [
        threading.Thread(
            target=run,
            args=(lambda: approve.execute(order_id, trace_ctx=TRACE),),
        ),
        threading.Thread(
            target=run,
            args=(lambda: reject.execute(order_id, trace_ctx=TRACE),),
        ),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=15)

    errors = [result for result in results if isinstance(result, Exception)]
    winners = [result for result in results if not isinstance(result, Exception)]
    assert len(errors) == 1
    assert len(winners) == 1

    stored = SqlAlchemyOrderRepository(engine).get(order_id)
    assert stored.status.value == winners[0].status
    assert stored.version == 2
    assert len(SqlAlchemyOrderRepository(engine).list_history(order_id)) == 2

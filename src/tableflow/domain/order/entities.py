from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from tableflow.domain.common.ids import CustomerSessionId, MenuItemId, OrderId, OrderNumber
from tableflow.domain.common.money import Money
from tableflow.domain.order.state_machine import (
    InvalidTransitionError,
    OrderEvent,
    OrderState,
    kitchen_event,
    next_state,
)
from tableflow.domain.order.status import (
    ACTIVE_KITCHEN_STATUSES,
    KITCHEN_STATUS_BY_ORDER_STATUS,
    KitchenStatus,
    OrderStatus,
    PaymentMethod,
)


@dataclass(frozen=True)
class OrderItem:
    menu_item_id: MenuItemId
    name: str
    unit_price: Money
    quantity: int
    special_instructions: str | None = None
    status: KitchenStatus | None = None

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")

    @property
    def line_total(self) -> Money:
        return self.unit_price.times(self.quantity)


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    order_number: OrderNumber
    table_number: int
    customer_session_id: CustomerSessionId
    payment_method: PaymentMethod
    status: OrderStatus
    kitchen_status: KitchenStatus | None
    items: list[OrderItem]
    total: Money
    created_at: datetime
    approved_at: datetime | None = None
    expected_completion_at: datetime | None = None
    preparing_at: datetime | None = None
    ready_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    version: int = 1

    def __post_init__(self) -> None:
        if not self.items:
            raise ValueError("order must contain at least one item")
        currency = self.items[0].unit_price.currency
        if any(item.unit_price.currency != currency for item in self.items):
            raise ValueError("order items must share one currency")
        if self.total.currency != currency:
            raise ValueError("order total currency must match item currency")
        expected_total = sum(item.line_total.amount_cents for item in self.items)
        if self.total.amount_cents != expected_total:
            raise ValueError("order total must equal sum of item totals")
        if self.kitchen_status != KITCHEN_STATUS_BY_ORDER_STATUS[self.status]:
            raise ValueError(
                f"kitchen_status={self.kitchen_status}"
                f" is inconsistent with status={self.status.value}"
            )

    @property
    def state(self) -> OrderState:
        return OrderState(status=self.status, kitchen_status=self.kitchen_status)

    def approve(self, now: datetime, estimated_minutes: int) -> Order:
        target = next_state(self.state, OrderEvent.APPROVE)
        return self._move_to(
            target,
            approved_at=now,
            expected_completion_at=now + timedelta(minutes=estimated_minutes),
        )

    def reject(self, now: datetime, reason: str | None) -> Order:
        target = next_state(self.state, OrderEvent.REJECT)
        return self._move_to(target, cancelled_at=now, cancellation_reason=reason)

    def cancel(self, now: datetime, reason: str | None) -> Order:
        target = next_state(self.state, OrderEvent.CANCEL)
        return self._move_to(target, cancelled_at=now, cancellation_reason=reason)

    def advance_kitchen(self, now: datetime, requested: KitchenStatus) -> Order:
        target = next_state(self.state, kitchen_event(self.state, requested))
        if target.kitchen_status == KitchenStatus.PREPARING:
            return self._move_to(target, preparing_at=now)
        return self._move_to(target, ready_at=now)

    def revise_estimate(self, now: datetime, estimated_minutes: int) -> Order:
        if self.status not in ACTIVE_KITCHEN_STATUSES:
            raise InvalidTransitionError(self.state, "revise_estimate")
        return replace(
            self,
            expected_completion_at=now + timedelta(minutes=estimated_minutes),
        )

    def complete(self, now: datetime) -> Order:
        target = next_state(self.state, OrderEvent.COMPLETE)
        return self._move_to(target, completed_at=now)

    def elapsed_minutes(self, now: datetime) -> int:
        end = self.completed_at or self.cancelled_at or now
        return max(int((end - self.created_at).total_seconds() // 60), 0)

    def minutes_remaining(self, now: datetime) -> int | None:
        if self.expected_completion_at is None or self.status.is_terminal:
            return None
        return int((self.expected_completion_at - now).total_seconds() // 60)

    def _move_to(self, target: OrderState, **timestamps: object) -> Order:
        # Per-item status only mirrors the order-level kitchen status.
        items = [replace(item, status=target.kitchen_status) for item in self.items]
        return replace(
            self,
            status=target.status,
            kitchen_status=target.kitchen_status,
            items=items,
            **timestamps,
        )


@dataclass(frozen=True)
class OrderStatusChange:
    order_id: OrderId
    from_status: OrderStatus | None
    to_status: OrderStatus
    kitchen_status: KitchenStatus | None
    occurred_at: datetime
    note: str | None = None


def create_pending_order(
    order_id: OrderId,
    order_number: OrderNumber,
    table_number: int,
    customer_session_id: CustomerSessionId,
    payment_method: PaymentMethod,
    items: list[OrderItem],
    now: datetime,
) -> Order:
    if not items:
        raise ValueError("order must contain at least one item")

    total = Money(
        amount_cents=sum(item.line_total.amount_cents for item in items),
        currency=items[0].unit_price.currency,
    )
    return Order(
        order_id=order_id,
        order_number=order_number,
        table_number=table_number,
        customer_session_id=customer_session_id,
        payment_method=payment_method,
        status=OrderStatus.PENDING_APPROVAL,
        kitchen_status=None,
        items=items,
        total=total,
        created_at=now,
    )


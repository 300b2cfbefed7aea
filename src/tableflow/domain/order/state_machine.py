"""Order lifecycle transitions.

The machine is a pure function of (current state, event). It holds no state of
its own; the persisted order row is the only source of truth.

    pending_approval --approve--> approved --start_preparing--> in_progress
    in_progress --mark_ready--> ready --complete--> completed
    pending_approval --reject--> cancelled
    <any non-terminal> --cancel--> cancelled
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from tableflow.domain.order.status import KitchenStatus, OrderStatus


class OrderEvent(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    START_PREPARING = "start_preparing"
    MARK_READY = "mark_ready"
    COMPLETE = "complete"
    CANCEL = "cancel"


@dataclass(frozen=True)
class OrderState:
    status: OrderStatus
    kitchen_status: KitchenStatus | None = None


class InvalidTransitionError(Exception):
    def __init__(self, current: OrderState, attempted: OrderEvent | str) -> None:
        self.current = current
        self.attempted = attempted.value if isinstance(attempted, OrderEvent) else attempted
        kitchen = current.kitchen_status.value if current.kitchen_status else None
        super().__init__(
            f"cannot apply {self.attempted} to order with status={current.status.value}"
            f" kitchen_status={kitchen}"
        )

    @property
    def details(self) -> dict[str, Any]:
        kitchen = self.current.kitchen_status
        return {
            "currentStatus": self.current.status.value,
            "currentKitchenStatus": kitchen.value if kitchen else None,
            "attempted": self.attempted,
        }


_TRANSITIONS: dict[tuple[OrderStatus, OrderEvent], OrderState] = {
    (OrderStatus.PENDING_APPROVAL, OrderEvent.APPROVE): OrderState(
        OrderStatus.APPROVED, KitchenStatus.PENDING
    ),
    (OrderStatus.PENDING_APPROVAL, OrderEvent.REJECT): OrderState(OrderStatus.CANCELLED),
    (OrderStatus.APPROVED, OrderEvent.START_PREPARING): OrderState(
        OrderStatus.IN_PROGRESS, KitchenStatus.PREPARING
    ),
    (OrderStatus.IN_PROGRESS, OrderEvent.MARK_READY): OrderState(
        OrderStatus.READY, KitchenStatus.READY
    ),
    (OrderStatus.READY, OrderEvent.COMPLETE): OrderState(OrderStatus.COMPLETED),
}

_KITCHEN_EVENTS: dict[KitchenStatus, OrderEvent] = {
    KitchenStatus.PREPARING: OrderEvent.START_PREPARING,
    KitchenStatus.READY: OrderEvent.MARK_READY,
}


def next_state(current: OrderState, event: OrderEvent) -> OrderState:
    if event == OrderEvent.CANCEL:
        if current.status.is_terminal:
            raise InvalidTransitionError(current, event)
        return OrderState(OrderStatus.CANCELLED)

    target = _TRANSITIONS.get((current.status, event))
    if target is None:
        raise InvalidTransitionError(current, event)
    return target


def kitchen_event(current: OrderState, requested: KitchenStatus) -> OrderEvent:
    """Map a requested kitchen status onto the event that would reach it.

    `pending` is only ever entered through approval, so asking the kitchen to
    move an order to `pending` is always a backward transition.
    """
    event = _KITCHEN_EVENTS.get(requested)
    if event is None:
        raise InvalidTransitionError(current, f"kitchen_status={requested.value}")
    return event


def allowed_events(status: OrderStatus) -> list[OrderEvent]:
    events = [event for (source, event) in _TRANSITIONS if source == status]
    if not status.is_terminal:
        events.append(OrderEvent.CANCEL)
    return events

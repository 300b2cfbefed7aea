from __future__ import annotations

from enum import Enum


class OrderStatus(str, Enum):
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    IN_PROGRESS = "in_progress"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)


class KitchenStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    ONLINE = "online"


# The kitchen sub-status each order status implies.
KITCHEN_STATUS_BY_ORDER_STATUS: dict[OrderStatus, KitchenStatus | None] = {
    OrderStatus.PENDING_APPROVAL: None,
    OrderStatus.APPROVED: KitchenStatus.PENDING,
    OrderStatus.IN_PROGRESS: KitchenStatus.PREPARING,
    OrderStatus.READY: KitchenStatus.READY,
    OrderStatus.COMPLETED: None,
    OrderStatus.CANCELLED: None,
}

ACTIVE_KITCHEN_STATUSES = (OrderStatus.APPROVED, OrderStatus.IN_PROGRESS)

from __future__ import annotations

from enum import Enum

from tableflow.domain.order.entities import Order
from tableflow.domain.order.status import OrderStatus

MANAGER = "manager"
KITCHEN = "kitchen"
CUSTOMER_PREFIX = "customer:"

CHANNEL_PREFIX = "events:"


class OrderEventType(str, Enum):
    NEW_ORDER = "new-order"
    ORDER_STATUS_UPDATE = "order-status-update"


def customer(session_id: str) -> str:
    return f"{CUSTOMER_PREFIX}{session_id}"


def channel_for(audience: str) -> str:
    return f"{CHANNEL_PREFIX}{audience}"


def audience_from_channel(channel: str) -> str | None:
    prefix, _, audience = channel.partition(":")
    if f"{prefix}:" != CHANNEL_PREFIX or not audience:
        return None
    return audience


def is_valid_audience(audience: str) -> bool:
    if audience in (MANAGER, KITCHEN):
        return True
    return audience.startswith(CUSTOMER_PREFIX) and len(audience) > len(CUSTOMER_PREFIX)


def audiences_for(
    event_type: OrderEventType,
    order: Order,
    previous_status: OrderStatus | None = None,
) -> list[str]:
    if event_type == OrderEventType.NEW_ORDER:
        return [MANAGER]

    audiences = [MANAGER]
    # The kitchen never saw an order that was cancelled straight out of approval.
    if previous_status != OrderStatus.PENDING_APPROVAL or order.status != OrderStatus.CANCELLED:
        audiences.append(KITCHEN)
    audiences.append(customer(str(order.customer_session_id)))
    return audiences

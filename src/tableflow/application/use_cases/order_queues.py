"""Pull queries used by clients to (re)build their view of current state."""

from __future__ import annotations

from datetime import datetime, timezone

from tableflow.application.dto.responses import OrderListResponse
from tableflow.application.errors import ValidationError
from tableflow.application.mappers.order_mapper import to_order_response
from tableflow.application.metrics.order_lifecycle import record_queue_size
from tableflow.application.ports.repositories import OrderRepository
from tableflow.domain.common.ids import CustomerSessionId
from tableflow.domain.order.status import OrderStatus

MAX_LIMIT = 200


def _check_limit(limit: int) -> None:
    if limit < 1 or limit > MAX_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_LIMIT}", field="limit")


class PendingOrders:
    """Manager queue: orders awaiting approval, oldest first."""

    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, limit: int = 100) -> OrderListResponse:
        _check_limit(limit)
        orders = self._order_repository.list_by_status(
            statuses=[OrderStatus.PENDING_APPROVAL],
            limit=limit,
        )
        record_queue_size("pending", len(orders))
        now = datetime.now(timezone.utc)
        return OrderListResponse(orders=[to_order_response(order, now) for order in orders])


class ActiveKitchenOrders:
    """Kitchen queue: in-progress orders first, then approved ones by approval time."""

    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, limit: int = 100) -> OrderListResponse:
        _check_limit(limit)
        orders = self._order_repository.list_kitchen_queue(limit=limit)
        record_queue_size("kitchen", len(orders))
        now = datetime.now(timezone.utc)
        return OrderListResponse(orders=[to_order_response(order, now) for order in orders])


class CustomerOrders:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, customer_session_id: str, limit: int = 50) -> OrderListResponse:
        _check_limit(limit)
        if not customer_session_id.strip():
            raise ValidationError("customerSessionId is required", field="customerSessionId")
        orders = self._order_repository.list_for_customer(
            CustomerSessionId(customer_session_id.strip()),
            limit=limit,
        )
        now = datetime.now(timezone.utc)
        return OrderListResponse(orders=[to_order_response(order, now) for order in orders])


class AllOrders:
    """Manager history view, newest first, optionally narrowed to some statuses."""

    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, statuses: list[str] | None = None, limit: int = 100) -> OrderListResponse:
        _check_limit(limit)
        wanted = [_parse_status(value) for value in statuses] if statuses else None
        orders = self._order_repository.list_recent(statuses=wanted, limit=limit)
        now = datetime.now(timezone.utc)
        return OrderListResponse(orders=[to_order_response(order, now) for order in orders])


def _parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(status.value for status in OrderStatus)
        raise ValidationError(
            f"invalid order status: {value} (expected one of: {allowed})",
            field="status",
        ) from exc

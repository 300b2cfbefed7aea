from __future__ import annotations

from datetime import datetime, timezone

from tableflow.application.dto.responses import (
    MoneyResponse,
    OrderItemResponse,
    OrderResponse,
    OrderStatusChangeResponse,
    OrderTimelineResponse,
)
from tableflow.domain.common.ids import OrderId
from tableflow.domain.common.money import Money
from tableflow.domain.order.entities import Order, OrderStatusChange


def _money(value: Money) -> MoneyResponse:
    return MoneyResponse(amountCents=value.amount_cents, currency=value.currency)


def to_order_response(order: Order, now: datetime | None = None) -> OrderResponse:
    current = now or datetime.now(timezone.utc)
    return OrderResponse(
        orderId=str(order.order_id),
        orderNumber=str(order.order_number),
        tableNumber=order.table_number,
        customerSessionId=str(order.customer_session_id),
        paymentMethod=order.payment_method.value,
        status=order.status.value,
        kitchenStatus=order.kitchen_status.value if order.kitchen_status else None,
        items=[
            OrderItemResponse(
                menuItemId=str(item.menu_item_id),
                name=item.name,
                quantity=item.quantity,
                unitPrice=_money(item.unit_price),
                lineTotal=_money(item.line_total),
                specialInstructions=item.special_instructions,
                status=item.status.value if item.status else None,
            )
            for item in order.items
        ],
        totalAmount=_money(order.total),
        createdAt=order.created_at,
        approvedAt=order.approved_at,
        expectedCompletionAt=order.expected_completion_at,
        preparingAt=order.preparing_at,
        readyAt=order.ready_at,
        completedAt=order.completed_at,
        cancelledAt=order.cancelled_at,
        cancellationReason=order.cancellation_reason,
        elapsedMinutes=order.elapsed_minutes(current),
        minutesRemaining=order.minutes_remaining(current),
        version=order.version,
    )


def to_timeline_response(
    order_id: OrderId,
    changes: list[OrderStatusChange],
) -> OrderTimelineResponse:
    return OrderTimelineResponse(
        orderId=str(order_id),
        changes=[
            OrderStatusChangeResponse(
                fromStatus=change.from_status.value if change.from_status else None,
                toStatus=change.to_status.value,
                kitchenStatus=change.kitchen_status.value if change.kitchen_status else None,
                note=change.note,
                occurredAt=change.occurred_at,
            )
            for change in changes
        ],
    )

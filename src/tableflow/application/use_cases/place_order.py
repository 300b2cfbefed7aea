from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import uuid4

from tableflow.application.dto.requests import PlaceOrderRequest
from tableflow.application.dto.responses import OrderResponse
from tableflow.application.errors import NotFoundError, ValidationError
from tableflow.application.mappers.order_mapper import to_order_response
from tableflow.application.metrics.order_lifecycle import record_order_status
from tableflow.application.notifications.dispatcher import NotificationDispatcher
from tableflow.application.ports.repositories import (
    DuplicateOrderNumberError,
    MenuRepository,
    OrderRepository,
)
from tableflow.application.use_cases.context import TraceContext
from tableflow.domain.common.ids import CustomerSessionId, MenuItemId, OrderId, OrderNumber
from tableflow.domain.order.entities import Order, OrderItem, create_pending_order
from tableflow.domain.order.status import PaymentMethod

logger = logging.getLogger(__name__)

DEFAULT_TABLE_NUMBERS = range(1, 23)
_ORDER_NUMBER_ATTEMPTS = 3
# Totals are stored in a 32-bit integer column.
MAX_ORDER_TOTAL_CENTS = 2**31 - 1


def generate_order_number(now: datetime) -> OrderNumber:
    return OrderNumber(f"ORD-{now:%Y%m%d%H%M%S}-{uuid4().hex[:4].upper()}")


class PlaceOrder:
    def __init__(
        self,
        menu_repository: MenuRepository,
        order_repository: OrderRepository,
        dispatcher: NotificationDispatcher,
        table_numbers: range = DEFAULT_TABLE_NUMBERS,
    ) -> None:
        self._menu_repository = menu_repository
        self._order_repository = order_repository
        self._dispatcher = dispatcher
        self._table_numbers = table_numbers

    def execute(self, request_dto: PlaceOrderRequest, trace_ctx: TraceContext) -> OrderResponse:
        if request_dto.table_number not in self._table_numbers:
            raise ValidationError(
                f"table number {request_dto.table_number} is outside the valid range "
                f"{self._table_numbers.start}-{self._table_numbers.stop - 1}",
                field="tableNumber",
            )
        session_id = request_dto.customer_session_id.strip()
        if not session_id:
            raise ValidationError("customerSessionId is required", field="customerSessionId")
        try:
            payment_method = PaymentMethod(request_dto.payment_method.strip().lower())
        except ValueError as exc:
            allowed = ", ".join(method.value for method in PaymentMethod)
            raise ValidationError(
                f"invalid payment method: {request_dto.payment_method}"
                f" (expected one of: {allowed})",
                field="paymentMethod",
            ) from exc
        if not request_dto.items:
            raise ValidationError("order must contain at least one item", field="items")

        requested_ids = [MenuItemId(line.menu_item_id) for line in request_dto.items]
        menu_items = self._menu_repository.get_items(requested_ids)

        order_items: list[OrderItem] = []
        for request_line in request_dto.items:
            if request_line.quantity < 1:
                raise ValidationError("quantity must be >= 1", field="quantity")

            menu_item = menu_items.get(MenuItemId(request_line.menu_item_id))
            if menu_item is None:
                raise NotFoundError(
                    f"menu item {request_line.menu_item_id} does not exist",
                    "menu_item",
                    request_line.menu_item_id,
                )
            if not menu_item.is_available:
                raise ValidationError(
                    f"menu item {menu_item.name!r} is not available",
                    field="menuItemId",
                )

            order_items.append(
                OrderItem(
                    menu_item_id=menu_item.item_id,
                    name=menu_item.name,
                    unit_price=menu_item.price_money,
                    quantity=request_line.quantity,
                    special_instructions=request_line.special_instructions,
                )
            )

        if len({item.unit_price.currency for item in order_items}) > 1:
            raise ValidationError("menu items are priced in different currencies", field="items")
        if sum(item.line_total.amount_cents for item in order_items) > MAX_ORDER_TOTAL_CENTS:
            raise ValidationError("order total exceeds the maximum allowed amount", field="items")

        order = self._persist(
            table_number=request_dto.table_number,
            customer_session_id=CustomerSessionId(session_id),
            payment_method=payment_method,
            items=order_items,
        )

        record_order_status(order)
        logger.info(
            "order_placed",
            extra={
                "order_id": str(order.order_id),
                "order_number": str(order.order_number),
                "status": order.status.value,
            },
        )
        self._dispatcher.order_placed(order, trace_ctx=trace_ctx)
        return to_order_response(order)

    def _persist(
        self,
        table_number: int,
        customer_session_id: CustomerSessionId,
        payment_method: PaymentMethod,
        items: list[OrderItem],
    ) -> Order:
        for attempt in range(1, _ORDER_NUMBER_ATTEMPTS + 1):
            now = datetime.now(timezone.utc)
            order = create_pending_order(
                order_id=OrderId(f"ord_{uuid4().hex[:12]}"),
                order_number=generate_order_number(now),
                table_number=table_number,
                customer_session_id=customer_session_id,
                payment_method=payment_method,
                items=items,
                now=now,
            )
            try:
                self._order_repository.add(order)
            except DuplicateOrderNumberError:
                if attempt == _ORDER_NUMBER_ATTEMPTS:
                    raise
                logger.warning(
                    "order_number_collision",
                    extra={"order_number": str(order.order_number), "attempt": attempt},
                )
                continue
            return order
        raise RuntimeError("unreachable")

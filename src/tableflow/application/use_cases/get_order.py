from __future__ import annotations

from tableflow.application.dto.responses import OrderResponse, OrderTimelineResponse
from tableflow.application.errors import NotFoundError
from tableflow.application.mappers.order_mapper import to_order_response, to_timeline_response
from tableflow.application.ports.repositories import OrderRepository
from tableflow.domain.common.ids import OrderId


class GetOrder:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, order_id: OrderId) -> OrderResponse:
        order = self._order_repository.get(order_id)
        if order is None:
            raise NotFoundError(f"order {order_id} not found", "order", str(order_id))
        return to_order_response(order)


class OrderTimeline:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, order_id: OrderId) -> OrderTimelineResponse:
        if self._order_repository.get(order_id) is None:
            raise NotFoundError(f"order {order_id} not found", "order", str(order_id))
        return to_timeline_response(order_id, self._order_repository.list_history(order_id))

from __future__ import annotations

from tableflow.application.dto.responses import OrderResponse
from tableflow.application.mappers.order_mapper import to_order_response
from tableflow.application.use_cases.context import TraceContext
from tableflow.application.use_cases.order_transition import OrderTransition
from tableflow.domain.common.ids import OrderId


class CompleteOrder(OrderTransition):
    attempted = "complete"

    def execute(self, order_id: OrderId, trace_ctx: TraceContext) -> OrderResponse:
        _, completed = self._apply(
            order_id,
            lambda order, now: order.complete(now),
            trace_ctx,
        )
        return to_order_response(completed)

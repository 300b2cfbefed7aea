from __future__ import annotations

from tableflow.application.dto.responses import OrderResponse
from tableflow.application.mappers.order_mapper import to_order_response
from tableflow.application.use_cases.context import TraceContext
from tableflow.application.use_cases.order_transition import OrderTransition
from tableflow.domain.common.ids import OrderId


class RejectOrder(OrderTransition):
    attempted = "reject"

    def execute(
        self,
        order_id: OrderId,
        trace_ctx: TraceContext,
        reason: str | None = None,
    ) -> OrderResponse:
        reason = reason.strip() if reason and reason.strip() else None
        _, rejected = self._apply(
            order_id,
            lambda order, now: order.reject(now, reason),
            trace_ctx,
            note=reason,
        )
        return to_order_response(rejected)

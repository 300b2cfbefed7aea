from __future__ import annotations

from tableflow.application.dto.responses import OrderResponse
from tableflow.application.mappers.order_mapper import to_order_response
from tableflow.application.use_cases.approve_order import check_estimated_minutes
from tableflow.application.use_cases.context import TraceContext
from tableflow.application.use_cases.order_transition import OrderTransition
from tableflow.domain.common.ids import OrderId


class ReviseExpectedCompletion(OrderTransition):
    """Kitchen moves the promised ready time of an approved or in-progress order.

    Status stays as it is; the version still advances and subscribers get an
    `order-status-update` carrying the new `expectedCompletionAt`.
    """

    attempted = "revise_estimate"

    def execute(
        self,
        order_id: OrderId,
        estimated_minutes: int,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        check_estimated_minutes(estimated_minutes)
        _, revised = self._apply(
            order_id,
            lambda order, now: order.revise_estimate(now, estimated_minutes),
            trace_ctx,
            note=f"expected completion revised to {estimated_minutes} min",
        )
        return to_order_response(revised)

from __future__ import annotations

from tableflow.application.dto.responses import OrderResponse
from tableflow.application.errors import ValidationError
from tableflow.application.mappers.order_mapper import to_order_response
from tableflow.application.metrics.order_lifecycle import record_time_to_approve
from tableflow.application.use_cases.context import TraceContext
from tableflow.application.use_cases.order_transition import OrderTransition
from tableflow.domain.common.ids import OrderId

DEFAULT_ESTIMATED_MINUTES = 25
MAX_ESTIMATED_MINUTES = 240


def check_estimated_minutes(estimated_minutes: int) -> None:
    if estimated_minutes < 1 or estimated_minutes > MAX_ESTIMATED_MINUTES:
        raise ValidationError(
            f"estimatedMinutes must be between 1 and {MAX_ESTIMATED_MINUTES}",
            field="estimatedMinutes",
        )


class ApproveOrder(OrderTransition):
    attempted = "approve"

    def execute(
        self,
        order_id: OrderId,
        trace_ctx: TraceContext,
        estimated_minutes: int = DEFAULT_ESTIMATED_MINUTES,
    ) -> OrderResponse:
        # The estimate is shown to the customer only; nothing is scheduled from it.
        check_estimated_minutes(estimated_minutes)

        _, approved = self._apply(
            order_id,
            lambda order, now: order.approve(now, estimated_minutes),
            trace_ctx,
            note=f"estimated {estimated_minutes} min",
        )
        record_time_to_approve(approved, now=approved.approved_at)
        return to_order_response(approved)

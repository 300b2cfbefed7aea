from __future__ import annotations

from tableflow.application.dto.responses import OrderResponse
from tableflow.application.errors import ValidationError
from tableflow.application.mappers.order_mapper import to_order_response
from tableflow.application.metrics.order_lifecycle import record_time_to_ready
from tableflow.application.use_cases.context import TraceContext
from tableflow.application.use_cases.order_transition import OrderTransition
from tableflow.domain.common.ids import OrderId
from tableflow.domain.order.status import KitchenStatus


def parse_kitchen_status(value: str) -> KitchenStatus:
    try:
        return KitchenStatus(value.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(status.value for status in KitchenStatus)
        raise ValidationError(
            f"invalid kitchen status: {value} (expected one of: {allowed})",
            field="kitchenStatus",
        ) from exc


class AdvanceKitchenStatus(OrderTransition):
    attempted = "advance_kitchen_status"

    def execute(
        self,
        order_id: OrderId,
        kitchen_status: KitchenStatus | str,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        requested = (
            kitchen_status
            if isinstance(kitchen_status, KitchenStatus)
            else parse_kitchen_status(kitchen_status)
        )
        _, advanced = self._apply(
            order_id,
            lambda order, now: order.advance_kitchen(now, requested),
            trace_ctx,
        )
        if advanced.kitchen_status == KitchenStatus.READY:
            record_time_to_ready(advanced, now=advanced.ready_at)
        return to_order_response(advanced)

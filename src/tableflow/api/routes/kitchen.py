from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from tableflow.api.dependencies import (
    active_kitchen_orders_use_case,
    advance_kitchen_status_use_case,
    get_trace_context,
    revise_expected_completion_use_case,
)
from tableflow.application.dto.requests import (
    KitchenStatusRequest,
    ReviseExpectedCompletionRequest,
)
from tableflow.application.dto.responses import OrderListResponse, OrderResponse
from tableflow.application.use_cases.advance_kitchen_status import AdvanceKitchenStatus
from tableflow.application.use_cases.context import TraceContext
from tableflow.application.use_cases.order_queues import ActiveKitchenOrders
from tableflow.application.use_cases.revise_expected_completion import ReviseExpectedCompletion
from tableflow.domain.common.ids import OrderId

router = APIRouter(prefix="/v1/kitchen/orders")


@router.get("/active", response_model=OrderListResponse)
def list_active_orders(
    limit: int = Query(default=100),
    use_case: ActiveKitchenOrders = Depends(active_kitchen_orders_use_case),
) -> OrderListResponse:
    return use_case.execute(limit=limit)


@router.post("/{order_id}/status", response_model=OrderResponse)
def advance_kitchen_status(
    order_id: str,
    request_dto: KitchenStatusRequest,
    use_case: AdvanceKitchenStatus = Depends(advance_kitchen_status_use_case),
    trace_ctx: TraceContext = Depends(get_trace_context),
) -> OrderResponse:
    return use_case.execute(
        order_id=OrderId(order_id),
        kitchen_status=request_dto.kitchen_status,
        trace_ctx=trace_ctx,
    )


@router.put("/{order_id}/expected-time", response_model=OrderResponse)
def revise_expected_completion(
    order_id: str,
    request_dto: ReviseExpectedCompletionRequest,
    use_case: ReviseExpectedCompletion = Depends(revise_expected_completion_use_case),
    trace_ctx: TraceContext = Depends(get_trace_context),
) -> OrderResponse:
    return use_case.execute(
        order_id=OrderId(order_id),
        estimated_minutes=request_dto.estimated_minutes,
        trace_ctx=trace_ctx,
    )

from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Query

from tableflow.api.dependencies import (
    all_orders_use_case,
    approve_order_use_case,
    cancel_order_use_case,
    complete_order_use_case,
    get_trace_context,
    pending_orders_use_case,
    reject_order_use_case,
)
from tableflow.application.dto.requests import (
    ApproveOrderRequest,
    CancelOrderRequest,
    RejectOrderRequest,
)
from tableflow.application.dto.responses import OrderListResponse, OrderResponse
from tableflow.application.use_cases.approve_order import ApproveOrder
from tableflow.application.use_cases.cancel_order import CancelOrder
from tableflow.application.use_cases.complete_order import CompleteOrder
from tableflow.application.use_cases.context import TraceContext
from tableflow.application.use_cases.order_queues import AllOrders, PendingOrders
from tableflow.application.use_cases.reject_order import RejectOrder
from tableflow.domain.common.ids import OrderId

router = APIRouter(prefix="/v1/manager/orders")


@router.get("", response_model=OrderListResponse)
def list_all_orders(
    status: list[str] | None = Query(default=None),
    limit: int = Query(default=100),
    use_case: AllOrders = Depends(all_orders_use_case),
) -> OrderListResponse:
    return use_case.execute(statuses=status, limit=limit)


@router.get("/pending", response_model=OrderListResponse)
def list_pending_orders(
    limit: int = Query(default=100),
    use_case: PendingOrders = Depends(pending_orders_use_case),
) -> OrderListResponse:
    return use_case.execute(limit=limit)


@router.post("/{order_id}/approve", response_model=OrderResponse)
def approve_order(
    order_id: str,
    request_dto: ApproveOrderRequest | None = Body(default=None),
    use_case: ApproveOrder = Depends(approve_order_use_case),
    trace_ctx: TraceContext = Depends(get_trace_context),
) -> OrderResponse:
    request_dto = request_dto or ApproveOrderRequest()
    return use_case.execute(
        order_id=OrderId(order_id),
        trace_ctx=trace_ctx,
        estimated_minutes=request_dto.estimated_minutes,
    )


@router.post("/{order_id}/reject", response_model=OrderResponse)
def reject_order(
    order_id: str,
    request_dto: RejectOrderRequest | None = Body(default=None),
    use_case: RejectOrder = Depends(reject_order_use_case),
    trace_ctx: TraceContext = Depends(get_trace_context),
) -> OrderResponse:
    return use_case.execute(
        order_id=OrderId(order_id),
        trace_ctx=trace_ctx,
        reason=request_dto.reason if request_dto else None,
    )


@router.post("/{order_id}/complete", response_model=OrderResponse)
def complete_order(
    order_id: str,
    use_case: CompleteOrder = Depends(complete_order_use_case),
    trace_ctx: TraceContext = Depends(get_trace_context),
) -> OrderResponse:
    return use_case.execute(order_id=OrderId(order_id), trace_ctx=trace_ctx)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: str,
    request_dto: CancelOrderRequest | None = Body(default=None),
    use_case: CancelOrder = Depends(cancel_order_use_case),
    trace_ctx: TraceContext = Depends(get_trace_context),
) -> OrderResponse:
    return use_case.execute(
        order_id=OrderId(order_id),
        trace_ctx=trace_ctx,
        reason=request_dto.reason if request_dto else None,
    )

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from tableflow.api.dependencies import (
    customer_orders_use_case,
    get_order_use_case,
    get_trace_context,
    order_timeline_use_case,
    place_order_use_case,
)
from tableflow.application.dto.requests import PlaceOrderRequest
from tableflow.application.dto.responses import (
    OrderListResponse,
    OrderResponse,
    OrderTimelineResponse,
)
from tableflow.application.use_cases.context import TraceContext
from tableflow.application.use_cases.get_order import GetOrder, OrderTimeline
from tableflow.application.use_cases.order_queues import CustomerOrders
from tableflow.application.use_cases.place_order import PlaceOrder
from tableflow.domain.common.ids import OrderId

router = APIRouter()


@router.post(
    "/v1/orders",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
)
def place_order(
    request_dto: PlaceOrderRequest,
    use_case: PlaceOrder = Depends(place_order_use_case),
    trace_ctx: TraceContext = Depends(get_trace_context),
) -> OrderResponse:
    return use_case.execute(request_dto=request_dto, trace_ctx=trace_ctx)


@router.get("/v1/orders/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    use_case: GetOrder = Depends(get_order_use_case),
) -> OrderResponse:
    return use_case.execute(order_id=OrderId(order_id))


@router.get("/v1/orders/{order_id}/timeline", response_model=OrderTimelineResponse)
def get_order_timeline(
    order_id: str,
    use_case: OrderTimeline = Depends(order_timeline_use_case),
) -> OrderTimelineResponse:
    return use_case.execute(order_id=OrderId(order_id))


@router.get("/v1/sessions/{session_id}/orders", response_model=OrderListResponse)
def list_session_orders(
    session_id: str,
    limit: int = Query(default=50),
    use_case: CustomerOrders = Depends(customer_orders_use_case),
) -> OrderListResponse:
    return use_case.execute(customer_session_id=session_id, limit=limit)

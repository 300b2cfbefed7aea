"""Request-scoped wiring of use cases to their ports.

Every provider here is a FastAPI dependency, so tests swap the repositories
or the publisher through `app.dependency_overrides`.
"""

from __future__ import annotations

from fastapi import Depends, Request

from tableflow.api.middleware.request_id import get_request_id
from tableflow.application.notifications.dispatcher import NotificationDispatcher
from tableflow.application.ports.publisher import EventPublisher
from tableflow.application.ports.repositories import MenuRepository, OrderRepository
from tableflow.application.use_cases.advance_kitchen_status import AdvanceKitchenStatus
from tableflow.application.use_cases.approve_order import ApproveOrder
from tableflow.application.use_cases.cancel_order import CancelOrder
from tableflow.application.use_cases.complete_order import CompleteOrder
from tableflow.application.use_cases.context import TraceContext
from tableflow.application.use_cases.get_order import GetOrder, OrderTimeline
from tableflow.application.use_cases.order_queues import (
    ActiveKitchenOrders,
    AllOrders,
    CustomerOrders,
    PendingOrders,
)
from tableflow.application.use_cases.order_statistics import OrderStatistics
from tableflow.application.use_cases.place_order import PlaceOrder
from tableflow.application.use_cases.reject_order import RejectOrder
from tableflow.application.use_cases.revise_expected_completion import ReviseExpectedCompletion
from tableflow.infrastructure.db.repositories.menu_repo import SqlAlchemyMenuRepository
from tableflow.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from tableflow.infrastructure.observability.otel import current_trace_id
from tableflow.infrastructure.settings import table_numbers


def get_order_repository() -> OrderRepository:
    return SqlAlchemyOrderRepository()


def get_menu_repository() -> MenuRepository:
    return SqlAlchemyMenuRepository()


def get_publisher(request: Request) -> EventPublisher:
    return request.app.state.publisher


def get_dispatcher(publisher: EventPublisher = Depends(get_publisher)) -> NotificationDispatcher:
    return NotificationDispatcher(publisher=publisher)


def get_trace_context() -> TraceContext:
    return TraceContext(trace_id=current_trace_id(), request_id=get_request_id())


def place_order_use_case(
    menu_repository: MenuRepository = Depends(get_menu_repository),
    order_repository: OrderRepository = Depends(get_order_repository),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> PlaceOrder:
    return PlaceOrder(
        menu_repository=menu_repository,
        order_repository=order_repository,
        dispatcher=dispatcher,
        table_numbers=table_numbers(),
    )


def approve_order_use_case(
    order_repository: OrderRepository = Depends(get_order_repository),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> ApproveOrder:
    return ApproveOrder(order_repository=order_repository, dispatcher=dispatcher)


def reject_order_use_case(
    order_repository: OrderRepository = Depends(get_order_repository),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> RejectOrder:
    return RejectOrder(order_repository=order_repository, dispatcher=dispatcher)


def cancel_order_use_case(
    order_repository: OrderRepository = Depends(get_order_repository),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> CancelOrder:
    return CancelOrder(order_repository=order_repository, dispatcher=dispatcher)


def complete_order_use_case(
    order_repository: OrderRepository = Depends(get_order_repository),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> CompleteOrder:
    return CompleteOrder(order_repository=order_repository, dispatcher=dispatcher)


def advance_kitchen_status_use_case(
    order_repository: OrderRepository = Depends(get_order_repository),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> AdvanceKitchenStatus:
    return AdvanceKitchenStatus(order_repository=order_repository, dispatcher=dispatcher)


def revise_expected_completion_use_case(
    order_repository: OrderRepository = Depends(get_order_repository),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> ReviseExpectedCompletion:
    return ReviseExpectedCompletion(order_repository=order_repository, dispatcher=dispatcher)


def get_order_use_case(
    order_repository: OrderRepository = Depends(get_order_repository),
) -> GetOrder:
    return GetOrder(order_repository=order_repository)


def order_timeline_use_case(
    order_repository: OrderRepository = Depends(get_order_repository),
) -> OrderTimeline:
    return OrderTimeline(order_repository=order_repository)


def pending_orders_use_case(
    order_repository: OrderRepository = Depends(get_order_repository),
) -> PendingOrders:
    return PendingOrders(order_repository=order_repository)


def active_kitchen_orders_use_case(
    order_repository: OrderRepository = Depends(get_order_repository),
) -> ActiveKitchenOrders:
    return ActiveKitchenOrders(order_repository=order_repository)


def customer_orders_use_case(
    order_repository: OrderRepository = Depends(get_order_repository),
) -> CustomerOrders:
    return CustomerOrders(order_repository=order_repository)


def all_orders_use_case(
    order_repository: OrderRepository = Depends(get_order_repository),
) -> AllOrders:
    return AllOrders(order_repository=order_repository)


def order_statistics_use_case(
    order_repository: OrderRepository = Depends(get_order_repository),
) -> OrderStatistics:
    return OrderStatistics(order_repository=order_repository)

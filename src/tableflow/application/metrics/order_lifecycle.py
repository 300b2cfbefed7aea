from __future__ import annotations

from datetime import datetime, timezone

from prometheus_client import Counter, Gauge, Histogram

from tableflow.domain.order.entities import Order
from tableflow.domain.order.status import OrderStatus

ORDERS_TOTAL = Counter(
    "tableflow_orders_total",
    "Total number of orders observed by status.",
    ["status"],
)

ORDER_TRANSITION_TOTAL = Counter(
    "tableflow_order_transition_total",
    "Total number of order lifecycle transitions.",
    ["from", "to"],
)

ORDER_CONFLICT_TOTAL = Counter(
    "tableflow_order_conflict_total",
    "Total number of status updates lost to a concurrent writer.",
    ["attempted"],
)

ORDER_TIME_TO_APPROVE_SECONDS = Histogram(
    "tableflow_order_time_to_approve_seconds",
    "Time between order placement and approval.",
)

ORDER_TIME_TO_READY_SECONDS = Histogram(
    "tableflow_order_time_to_ready_seconds",
    "Time between order placement and readiness.",
)

ORDER_QUEUE_SIZE = Gauge(
    "tableflow_order_queue_size",
    "Number of orders returned by the last queue query.",
    ["queue"],
)

NOTIFICATIONS_PUBLISHED_TOTAL = Counter(
    "tableflow_notifications_published_total",
    "Total number of realtime events handed to the transport.",
    ["event_type", "audience"],
)

NOTIFICATION_FAILURES_TOTAL = Counter(
    "tableflow_notification_failures_total",
    "Total number of realtime events the transport failed to accept.",
    ["event_type", "audience"],
)


def record_order_status(order: Order) -> None:
    ORDERS_TOTAL.labels(status=order.status.value).inc()


def record_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_conflict(attempted: str) -> None:
    ORDER_CONFLICT_TOTAL.labels(attempted=attempted).inc()


def record_time_to_approve(order: Order, now: datetime | None = None) -> None:
    current = now or datetime.now(timezone.utc)
    ORDER_TIME_TO_APPROVE_SECONDS.observe(max((current - order.created_at).total_seconds(), 0.0))


def record_time_to_ready(order: Order, now: datetime | None = None) -> None:
    current = now or datetime.now(timezone.utc)
    ORDER_TIME_TO_READY_SECONDS.observe(max((current - order.created_at).total_seconds(), 0.0))


def record_queue_size(queue: str, size: int) -> None:
    ORDER_QUEUE_SIZE.labels(queue=queue).set(size)


def record_notification(event_type: str, audience: str, *, failed: bool = False) -> None:
    # customer:{session} would explode label cardinality
    audience_label = audience.split(":", 1)[0]
    counter = NOTIFICATION_FAILURES_TOTAL if failed else NOTIFICATIONS_PUBLISHED_TOTAL
    counter.labels(event_type=event_type, audience=audience_label).inc()

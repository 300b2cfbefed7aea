"""Best-effort fan-out of order lifecycle events.

Persist first, then notify: by the time the dispatcher runs, the order row is
already committed and authoritative. Publishing is fire-and-forget; a failure
is logged and counted, never raised, so a dropped notification can never undo
or fail a state change. Clients that miss an event recover by pulling the
current state on reconnect; nothing is buffered or replayed here.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from tableflow.application.mappers.event_envelope import serialize_order_event
from tableflow.application.metrics.order_lifecycle import record_notification
from tableflow.application.notifications.audiences import (
    OrderEventType,
    audiences_for,
    channel_for,
)
from tableflow.application.ports.publisher import EventPublisher
from tableflow.application.use_cases.context import TraceContext
from tableflow.domain.order.entities import Order
from tableflow.domain.order.status import OrderStatus

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    def __init__(self, publisher: EventPublisher) -> None:
        self._publisher = publisher

    def order_placed(self, order: Order, trace_ctx: TraceContext) -> None:
        self._dispatch(OrderEventType.NEW_ORDER, order, None, trace_ctx)

    def order_status_changed(
        self,
        order: Order,
        previous_status: OrderStatus,
        trace_ctx: TraceContext,
    ) -> None:
        self._dispatch(OrderEventType.ORDER_STATUS_UPDATE, order, previous_status, trace_ctx)

    def _dispatch(
        self,
        event_type: OrderEventType,
        order: Order,
        previous_status: OrderStatus | None,
        trace_ctx: TraceContext,
    ) -> None:
        occurred_at = datetime.now(timezone.utc)
        for audience in audiences_for(event_type, order, previous_status):
            try:
                message = serialize_order_event(
                    event_type=event_type.value,
                    occurred_at=occurred_at,
                    audience=audience,
                    order=order,
                    trace_id=trace_ctx.trace_id,
                    request_id=trace_ctx.request_id,
                )
                self._publisher.publish(channel=channel_for(audience), message=message)
            except Exception:
                record_notification(event_type.value, audience, failed=True)
                logger.exception(
                    "notification_dispatch_failed",
                    extra={
                        "event_type": event_type.value,
                        "audience": audience,
                        "order_id": str(order.order_id),
                    },
                )
                continue
            record_notification(event_type.value, audience)

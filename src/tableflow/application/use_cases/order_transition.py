from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from tableflow.application.errors import ConflictError, NotFoundError
from tableflow.application.metrics.order_lifecycle import (
    record_conflict,
    record_order_status,
    record_transition,
)
from tableflow.application.notifications.dispatcher import NotificationDispatcher
from tableflow.application.ports.repositories import OptimisticConcurrencyError, OrderRepository
from tableflow.application.use_cases.context import TraceContext
from tableflow.domain.common.ids import OrderId
from tableflow.domain.order.entities import Order

logger = logging.getLogger(__name__)


class OrderTransition:
    """Shared write path for every status-changing use case.

    read -> state machine -> compare-and-set -> notify. The compare-and-set is
    keyed on the status and version that were read, so of two concurrent
    writers exactly one lands and the other gets `ConflictError`.
    """

    attempted = "transition"

    def __init__(
        self,
        order_repository: OrderRepository,
        dispatcher: NotificationDispatcher,
    ) -> None:
        self._order_repository = order_repository
        self._dispatcher = dispatcher

    def _load(self, order_id: OrderId) -> Order:
        order = self._order_repository.get(order_id)
        if order is None:
            raise NotFoundError(f"order {order_id} not found", "order", str(order_id))
        return order

    def _apply(
        self,
        order_id: OrderId,
        change: Callable[[Order, datetime], Order],
        trace_ctx: TraceContext,
        note: str | None = None,
    ) -> tuple[Order, Order]:
        order = self._load(order_id)
        now = datetime.now(timezone.utc)
        updated = change(order, now)

        try:
            persisted = self._order_repository.update_status_with_version(
                order=updated,
                expected_status=order.status,
                expected_version=order.version,
                occurred_at=now,
                note=note,
            )
        except OptimisticConcurrencyError as exc:
            record_conflict(self.attempted)
            current = self._order_repository.get(order_id)
            logger.warning(
                "order_update_conflict",
                extra={
                    "order_id": str(order_id),
                    "attempted": self.attempted,
                    "status": current.status.value if current else None,
                },
            )
            raise ConflictError(
                f"order {order_id} changed while applying {self.attempted}",
                current_status=current.status if current else None,
            ) from exc

        record_transition(from_status=order.status, to_status=persisted.status)
        record_order_status(persisted)
        logger.info(
            "order_status_changed",
            extra={
                "order_id": str(persisted.order_id),
                "attempted": self.attempted,
                "from_status": order.status.value,
                "status": persisted.status.value,
            },
        )
        self._dispatcher.order_status_changed(
            persisted,
            previous_status=order.status,
            trace_ctx=trace_ctx,
        )
        return order, persisted

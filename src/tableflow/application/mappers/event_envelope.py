from __future__ import annotations

import json
from datetime import datetime
from uuid import uuid4

from tableflow.application.mappers.order_mapper import to_order_response
from tableflow.domain.order.entities import Order


def serialize_order_event(
    *,
    event_type: str,
    occurred_at: datetime,
    audience: str,
    order: Order,
    trace_id: str | None,
    request_id: str | None,
) -> str:
    """Render one outbound order event as compact JSON.

    Subscribers replace their local copy with the full order record carried
    in ``payload``, never a diff.
    """
    order_snapshot = to_order_response(order, now=occurred_at).model_dump(mode="json")
    return json.dumps(
        {
            "event_id": uuid4().hex,
            "event_type": event_type,
            "audience": audience,
            "occurred_at": occurred_at.isoformat(),
            "trace_id": trace_id,
            "request_id": request_id,
            "payload": order_snapshot,
        },
        separators=(",", ":"),
        ensure_ascii=False,
    )

"""Dashboard figures for the manager and the kitchen.

Windows are keyed on ``created_at``; "today" starts at midnight UTC.
"""

from __future__ import annotations

from datetime import datetime, time, timezone

from tableflow.application.dto.responses import (
    MoneyResponse,
    OrderStatisticsResponse,
    OrderStatisticsWindow,
    TopItemResponse,
)
from tableflow.application.ports.repositories import OrderRepository, OrderStatisticsSnapshot


def start_of_day(now: datetime) -> datetime:
    return datetime.combine(now.astimezone(timezone.utc).date(), time.min, tzinfo=timezone.utc)


def _to_window(snapshot: OrderStatisticsSnapshot) -> OrderStatisticsWindow:
    prep = snapshot.average_prep_seconds
    return OrderStatisticsWindow(
        since=snapshot.since,
        orderCount=snapshot.order_count,
        statusCounts={status.value: count for status, count in snapshot.status_counts.items()},
        revenue=[
            MoneyResponse(amountCents=cents, currency=currency)
            for currency, cents in sorted(snapshot.revenue_cents.items())
        ],
        averagePrepMinutes=round(prep / 60, 1) if prep is not None else None,
        topItems=[
            TopItemResponse(name=name, quantity=quantity) for name, quantity in snapshot.top_items
        ],
    )


class OrderStatistics:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def _today(self, now: datetime | None) -> OrderStatisticsWindow:
        since = start_of_day(now or datetime.now(timezone.utc))
        return _to_window(self._order_repository.statistics(since=since))

    def today(self, now: datetime | None = None) -> OrderStatisticsResponse:
        return OrderStatisticsResponse(today=self._today(now))

    def execute(self, now: datetime | None = None) -> OrderStatisticsResponse:
        return OrderStatisticsResponse(
            today=self._today(now),
            allTime=_to_window(self._order_repository.statistics(since=None)),
        )

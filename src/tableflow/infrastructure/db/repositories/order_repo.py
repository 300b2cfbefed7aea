from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy import Engine, Select, case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from tableflow.application.ports.repositories import (
    TOP_ITEMS_LIMIT,
    DuplicateOrderNumberError,
    OptimisticConcurrencyError,
    OrderRepository,
    OrderStatisticsSnapshot,
)
from tableflow.domain.common.ids import CustomerSessionId, MenuItemId, OrderId, OrderNumber
from tableflow.domain.common.money import Money
from tableflow.domain.order.entities import Order, OrderItem, OrderStatusChange
from tableflow.domain.order.status import (
    ACTIVE_KITCHEN_STATUSES,
    KitchenStatus,
    OrderStatus,
    PaymentMethod,
)
from tableflow.infrastructure.db.models.order import (
    OrderItemModel,
    OrderModel,
    OrderStatusHistoryModel,
)
from tableflow.infrastructure.db.session import get_engine


class SqlAlchemyOrderRepository(OrderRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, order: Order) -> None:
        with Session(self._engine) as session:
            session.add(self._to_model(order))
            try:
                session.flush()
            except IntegrityError as exc:
                session.rollback()
                if self._order_number_taken(session, order.order_number):
                    raise DuplicateOrderNumberError(
                        f"order number {order.order_number} already exists"
                    ) from exc
                raise
            session.add(
                OrderStatusHistoryModel(
                    order_id=str(order.order_id),
                    from_status=None,
                    to_status=order.status.value,
                    kitchen_status=None,
                    note=None,
                    occurred_at=order.created_at,
                )
            )
            session.commit()

    def get(self, order_id: OrderId) -> Order | None:
        statement = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.id == str(order_id))
            .limit(1)
        )
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            if model is None:
                return None
            return self._to_domain(model)

    def update_status_with_version(
        self,
        order: Order,
        expected_status: OrderStatus,
        expected_version: int,
        occurred_at: datetime,
        note: str | None = None,
    ) -> Order:
        statement = (
            update(OrderModel)
            .where(
                OrderModel.id == str(order.order_id),
                OrderModel.status == expected_status.value,
                OrderModel.version == expected_version,
            )
            .values(
                status=order.status.value,
                kitchen_status=order.kitchen_status.value if order.kitchen_status else None,
                approved_at=order.approved_at,
                expected_completion_at=order.expected_completion_at,
                preparing_at=order.preparing_at,
                ready_at=order.ready_at,
                completed_at=order.completed_at,
                cancelled_at=order.cancelled_at,
                cancellation_reason=order.cancellation_reason,
                version=OrderModel.version + 1,
            )
        )
        item_status = order.kitchen_status.value if order.kitchen_status else None
        with Session(self._engine) as session:
            result = session.execute(statement)
            if result.rowcount != 1:
                session.rollback()
                raise OptimisticConcurrencyError(
                    f"order {order.order_id} is no longer {expected_status.value}"
                    f" at version {expected_version}"
                )
            session.execute(
                update(OrderItemModel)
                .where(OrderItemModel.order_id == str(order.order_id))
                .values(status=item_status)
            )
            session.add(
                OrderStatusHistoryModel(
                    order_id=str(order.order_id),
                    from_status=expected_status.value,
                    to_status=order.status.value,
                    kitchen_status=order.kitchen_status.value if order.kitchen_status else None,
                    note=note,
                    occurred_at=occurred_at,
                )
            )
            session.commit()

        updated = self.get(order.order_id)
        if updated is None:
            raise RuntimeError(f"order {order.order_id} not found after status update")
        return updated

    def list_by_status(
        self,
        statuses: Sequence[OrderStatus],
        limit: int,
    ) -> list[Order]:
        statement = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.status.in_([status.value for status in statuses]))
            .order_by(OrderModel.created_at.asc(), OrderModel.id.asc())
            .limit(limit)
        )
        return self._fetch(statement)

    def list_kitchen_queue(self, limit: int) -> list[Order]:
        in_progress_first = case((OrderModel.status == OrderStatus.IN_PROGRESS.value, 0), else_=1)
        statement = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.status.in_([status.value for status in ACTIVE_KITCHEN_STATUSES]))
            .order_by(
                in_progress_first,
                func.coalesce(OrderModel.approved_at, OrderModel.created_at).asc(),
                OrderModel.id.asc(),
            )
            .limit(limit)
        )
        return self._fetch(statement)

    def list_recent(
        self,
        statuses: Sequence[OrderStatus] | None,
        limit: int,
    ) -> list[Order]:
        statement = select(OrderModel).options(selectinload(OrderModel.items))
        if statuses is not None:
            statement = statement.where(
                OrderModel.status.in_([status.value for status in statuses])
            )
        statement = statement.order_by(OrderModel.created_at.desc(), OrderModel.id.desc()).limit(
            limit
        )
        return self._fetch(statement)

    def list_for_customer(
        self,
        customer_session_id: CustomerSessionId,
        limit: int,
    ) -> list[Order]:
        statement = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.customer_session_id == str(customer_session_id))
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .limit(limit)
        )
        return self._fetch(statement)

    def list_history(self, order_id: OrderId) -> list[OrderStatusChange]:
        statement = (
            select(OrderStatusHistoryModel)
            .where(OrderStatusHistoryModel.order_id == str(order_id))
            .order_by(OrderStatusHistoryModel.id.asc())
        )
        with Session(self._engine) as session:
            rows = session.execute(statement).scalars().all()
            return [
                OrderStatusChange(
                    order_id=OrderId(row.order_id),
                    from_status=OrderStatus(row.from_status) if row.from_status else None,
                    to_status=OrderStatus(row.to_status),
                    kitchen_status=(
                        KitchenStatus(row.kitchen_status) if row.kitchen_status else None
                    ),
                    occurred_at=_utc(row.occurred_at),
                    note=row.note,
                )
                for row in rows
            ]

    def statistics(self, since: datetime | None) -> OrderStatisticsSnapshot:
        in_window = [] if since is None else [OrderModel.created_at >= since]
        kept = [*in_window, OrderModel.status != OrderStatus.CANCELLED.value]

        status_rows = select(OrderModel.status, func.count()).where(*in_window)
        revenue_rows = (
            select(OrderModel.currency, func.sum(OrderModel.total_cents))
            .where(*kept)
            .group_by(OrderModel.currency)
        )
        prep_rows = select(OrderModel.approved_at, OrderModel.ready_at).where(
            *kept,
            OrderModel.approved_at.is_not(None),
            OrderModel.ready_at.is_not(None),
        )
        quantity = func.sum(OrderItemModel.quantity)
        top_item_rows = (
            select(OrderItemModel.name, quantity)
            .join(OrderModel, OrderItemModel.order_id == OrderModel.id)
            .where(*kept)
            .group_by(OrderItemModel.name)
            .order_by(quantity.desc(), OrderItemModel.name.asc())
            .limit(TOP_ITEMS_LIMIT)
        )

        with Session(self._engine) as session:
            status_counts = {
                OrderStatus(status): count
                for status, count in session.execute(status_rows.group_by(OrderModel.status))
            }
            revenue = {currency: int(total) for currency, total in session.execute(revenue_rows)}
            prep_seconds = [
                (_utc(ready_at) - _utc(approved_at)).total_seconds()
                for approved_at, ready_at in session.execute(prep_rows)
            ]
            top_items = [(name, int(total)) for name, total in session.execute(top_item_rows)]

        return OrderStatisticsSnapshot(
            since=since,
            order_count=sum(
                count for status, count in status_counts.items() if status != OrderStatus.CANCELLED
            ),
            status_counts=status_counts,
            revenue_cents=revenue,
            average_prep_seconds=sum(prep_seconds) / len(prep_seconds) if prep_seconds else None,
            top_items=top_items,
        )

    def _fetch(self, statement: Select[tuple[OrderModel]]) -> list[Order]:
        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
            return [self._to_domain(model) for model in models]

    def _order_number_taken(self, session: Session, order_number: OrderNumber) -> bool:
        statement = select(OrderModel.id).where(OrderModel.order_number == str(order_number))
        return session.execute(statement).first() is not None

    def _to_model(self, order: Order) -> OrderModel:
        order_model = OrderModel(
            id=str(order.order_id),
            order_number=str(order.order_number),
            table_number=order.table_number,
            customer_session_id=str(order.customer_session_id),
            payment_method=order.payment_method.value,
            status=order.status.value,
            kitchen_status=order.kitchen_status.value if order.kitchen_status else None,
            total_cents=order.total.amount_cents,
            currency=order.total.currency,
            created_at=order.created_at,
            approved_at=order.approved_at,
            expected_completion_at=order.expected_completion_at,
            preparing_at=order.preparing_at,
            ready_at=order.ready_at,
            completed_at=order.completed_at,
            cancelled_at=order.cancelled_at,
            cancellation_reason=order.cancellation_reason,
            version=order.version,
        )
        order_model.items = [
            OrderItemModel(
                order_id=str(order.order_id),
                position=position,
                menu_item_id=str(item.menu_item_id),
                name=item.name,
                quantity=item.quantity,
                unit_price_cents=item.unit_price.amount_cents,
                currency=item.unit_price.currency,
                special_instructions=item.special_instructions,
                status=item.status.value if item.status else None,
            )
            for position, item in enumerate(order.items)
        ]
        return order_model

    def _to_domain(self, model: OrderModel) -> Order:
        items = [
            OrderItem(
                menu_item_id=MenuItemId(item.menu_item_id),
                name=item.name,
                unit_price=Money(amount_cents=item.unit_price_cents, currency=item.currency),
                quantity=item.quantity,
                special_instructions=item.special_instructions,
                status=KitchenStatus(item.status) if item.status else None,
            )
            for item in model.items
        ]
        return Order(
            order_id=OrderId(model.id),
            order_number=OrderNumber(model.order_number),
            table_number=model.table_number,
            customer_session_id=CustomerSessionId(model.customer_session_id),
            payment_method=PaymentMethod(model.payment_method),
            status=OrderStatus(model.status),
            kitchen_status=KitchenStatus(model.kitchen_status) if model.kitchen_status else None,
            items=items,
            total=Money(amount_cents=model.total_cents, currency=model.currency),
            created_at=_utc(model.created_at),
            approved_at=_utc_or_none(model.approved_at),
            expected_completion_at=_utc_or_none(model.expected_completion_at),
            preparing_at=_utc_or_none(model.preparing_at),
            ready_at=_utc_or_none(model.ready_at),
            completed_at=_utc_or_none(model.completed_at),
            cancelled_at=_utc_or_none(model.cancelled_at),
            cancellation_reason=model.cancellation_reason,
            version=model.version,
        )


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _utc_or_none(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return _utc(value)

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from tableflow.application.ports.repositories import MenuRepository
from tableflow.domain.common.ids import MenuItemId
from tableflow.domain.common.money import Money
from tableflow.domain.menu.entities import MenuItem
from tableflow.infrastructure.db.models.menu import MenuItemModel
from tableflow.infrastructure.db.session import get_engine


class SqlAlchemyMenuRepository(MenuRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get_items(self, item_ids: Sequence[MenuItemId]) -> dict[MenuItemId, MenuItem]:
        if not item_ids:
            return {}
        statement = select(MenuItemModel).where(
            MenuItemModel.id.in_({str(item_id) for item_id in item_ids})
        )
        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()

        return {
            MenuItemId(model.id): MenuItem(
                item_id=MenuItemId(model.id),
                name=model.name,
                price_money=Money(amount_cents=model.price_cents, currency=model.currency),
                is_available=model.is_available,
                category=model.category,
            )
            for model in models
        }

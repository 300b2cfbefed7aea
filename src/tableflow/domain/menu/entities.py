from __future__ import annotations

from dataclasses import dataclass

from tableflow.domain.common.ids import MenuItemId
from tableflow.domain.common.money import Money


@dataclass(frozen=True)
class MenuItem:
    item_id: MenuItemId
    name: str
    price_money: Money
    is_available: bool
    category: str | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")

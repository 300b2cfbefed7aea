from __future__ import annotations

from sqlalchemy import inspect
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from tableflow.infrastructure.db.models.menu import MenuItemModel
from tableflow.infrastructure.db.session import get_engine

MENU_ITEMS = [
    {
        "id": "itm_001",
        "name": "Margherita Pizza",
        "category": "Mains",
        "price_cents": 1450,
        "currency": "USD",
        "is_available": True,
    },
    {
        "id": "itm_002",
        "name": "Beef Burger",
        "category": "Mains",
        "price_cents": 899,
        "currency": "USD",
        "is_available": True,
    },
    {
        "id": "itm_003",
        "name": "Caesar Salad",
        "category": "Starters",
        "price_cents": 990,
        "currency": "USD",
        "is_available": True,
    },
    {
        "id": "itm_004",
        "name": "Tiramisu",
        "category": "Desserts",
        "price_cents": 850,
        "currency": "USD",
        "is_available": False,
    },
]


def main() -> None:
    engine = get_engine(timeout_seconds=2.0)
    if "menu_items" not in inspect(engine).get_table_names():
        print("no schema yet")
        return

    with Session(engine) as session:
        for item in MENU_ITEMS:
            session.execute(
                insert(MenuItemModel)
                .values(**item)
                .on_conflict_do_update(
                    index_elements=[MenuItemModel.id],
                    set_={key: value for key, value in item.items() if key != "id"},
                )
            )
        session.commit()
        print("seed complete")


if __name__ == "__main__":
    main()

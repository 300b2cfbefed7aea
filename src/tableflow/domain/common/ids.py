from __future__ import annotations

from typing import NewType

MenuItemId = NewType("MenuItemId", str)
OrderId = NewType("OrderId", str)
OrderNumber = NewType("OrderNumber", str)
CustomerSessionId = NewType("CustomerSessionId", str)

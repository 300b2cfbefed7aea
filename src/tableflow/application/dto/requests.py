from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

MAX_ITEM_QUANTITY = 100
MAX_SESSION_ID_LENGTH = 100


def _to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


class CamelBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class PlaceOrderItemRequest(CamelBaseModel):
    menu_item_id: str = Field(min_length=1, max_length=50)
    quantity: int = Field(ge=1, le=MAX_ITEM_QUANTITY)
    special_instructions: str | None = Field(default=None, max_length=500)


class PlaceOrderRequest(CamelBaseModel):
    table_number: int
    customer_session_id: str = Field(min_length=1, max_length=MAX_SESSION_ID_LENGTH)
    payment_method: str
    items: list[PlaceOrderItemRequest] = Field(default_factory=list)


class ApproveOrderRequest(CamelBaseModel):
    estimated_minutes: int = 25


class RejectOrderRequest(CamelBaseModel):
    reason: str | None = Field(default=None, max_length=500)


class CancelOrderRequest(CamelBaseModel):
    reason: str | None = Field(default=None, max_length=500)


class KitchenStatusRequest(CamelBaseModel):
    kitchen_status: str


class ReviseExpectedCompletionRequest(CamelBaseModel):
    estimated_minutes: int

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class MoneyResponse(BaseModel):
    amountCents: int
    currency: str


class OrderItemResponse(BaseModel):
    menuItemId: str
    name: str
    quantity: int
    unitPrice: MoneyResponse
    lineTotal: MoneyResponse
    specialInstructions: str | None = None
    status: str | None = None


class OrderResponse(BaseModel):
    orderId: str
    orderNumber: str
    tableNumber: int
    customerSessionId: str
    paymentMethod: str
    status: str
    kitchenStatus: str | None = None
    items: list[OrderItemResponse] = Field(default_factory=list)
    totalAmount: MoneyResponse
    createdAt: datetime
    approvedAt: datetime | None = None
    expectedCompletionAt: datetime | None = None
    preparingAt: datetime | None = None
    readyAt: datetime | None = None
    completedAt: datetime | None = None
    cancelledAt: datetime | None = None
    cancellationReason: str | None = None
    elapsedMinutes: int
    minutesRemaining: int | None = None
    version: int


class OrderListResponse(BaseModel):
    orders: list[OrderResponse] = Field(default_factory=list)


class OrderStatusChangeResponse(BaseModel):
    fromStatus: str | None = None
    toStatus: str
    kitchenStatus: str | None = None
    note: str | None = None
    occurredAt: datetime


class OrderTimelineResponse(BaseModel):
    orderId: str
    changes: list[OrderStatusChangeResponse] = Field(default_factory=list)


class TopItemResponse(BaseModel):
    name: str
    quantity: int


class OrderStatisticsWindow(BaseModel):
    since: datetime | None = None
    orderCount: int
    statusCounts: dict[str, int] = Field(default_factory=dict)
    revenue: list[MoneyResponse] = Field(default_factory=list)
    averagePrepMinutes: float | None = None
    topItems: list[TopItemResponse] = Field(default_factory=list)


class OrderStatisticsResponse(BaseModel):
    today: OrderStatisticsWindow
    allTime: OrderStatisticsWindow | None = None

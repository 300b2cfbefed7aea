"""Errors the order core raises to its callers.

`InvalidTransitionError` lives with the state machine in the domain layer and
is re-exported here so callers import the whole taxonomy from one place.
"""

from __future__ import annotations

from typing import Any

from tableflow.domain.order.state_machine import InvalidTransitionError
from tableflow.domain.order.status import OrderStatus

__all__ = [
    "ConflictError",
    "InvalidTransitionError",
    "NotFoundError",
    "ValidationError",
]


class ValidationError(Exception):
    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field

    @property
    def details(self) -> dict[str, Any]:
        return {"field": self.field} if self.field else {}


class NotFoundError(Exception):
    def __init__(self, message: str, resource: str, resource_id: str) -> None:
        super().__init__(message)
        self.resource = resource
        self.resource_id = resource_id

    @property
    def details(self) -> dict[str, Any]:
        return {"resource": self.resource, "id": self.resource_id}


class ConflictError(Exception):
    """The order changed between read and write; re-fetch and decide again."""

    def __init__(self, message: str, current_status: OrderStatus | None) -> None:
        super().__init__(message)
        self.current_status = current_status

    @property
    def details(self) -> dict[str, Any]:
        return {
            "currentStatus": self.current_status.value if self.current_status else None,
        }

"""Maps application errors onto the JSON error envelope.

    {"error": {"code": ..., "message": ..., "details": {...}}, "requestId": ...}
"""

from __future__ import annotations

from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tableflow.api.middleware.request_id import get_request_id
from tableflow.application.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)

ERROR_CODES: dict[type[Exception], tuple[int, str]] = {
    ValidationError: (400, "VALIDATION_ERROR"),
    NotFoundError: (404, "NOT_FOUND"),
    InvalidTransitionError: (409, "INVALID_ORDER_TRANSITION"),
    ConflictError: (409, "CONFLICT"),
}

_HTTP_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def error_body(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "error": {"code": code, "message": message, "details": details or {}},
        "requestId": get_request_id(),
    }


async def _application_error(_: Request, exc: Exception) -> JSONResponse:
    status_code, code = next(
        (mapping for cls, mapping in ERROR_CODES.items() if isinstance(exc, cls)),
        (500, "INTERNAL_ERROR"),
    )
    details = getattr(exc, "details", None)
    return JSONResponse(
        status_code=status_code,
        content=error_body(code, str(exc), details if isinstance(details, dict) else None),
    )


async def _http_error(_: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)
    return JSONResponse(
        status_code=http_exc.status_code,
        content=error_body(
            _HTTP_CODES.get(http_exc.status_code, "HTTP_ERROR"),
            str(http_exc.detail) if http_exc.detail else "request failed",
        ),
        headers=getattr(http_exc, "headers", None),
    )


async def _request_validation_error(_: Request, exc: Exception) -> JSONResponse:
    validation_exc = cast(RequestValidationError, exc)
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in validation_exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=error_body(
            "INVALID_REQUEST",
            "request validation failed",
            {"errors": jsonable_encoder(errors)},
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    for exc_cls in ERROR_CODES:
        app.add_exception_handler(exc_cls, _application_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)

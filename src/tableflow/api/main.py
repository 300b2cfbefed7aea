from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tableflow.api.error_handling import register_exception_handlers
from tableflow.api.middleware.access_log import AccessLogMiddleware
from tableflow.api.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware
from tableflow.api.routes.health import router as health_router
from tableflow.api.routes.kitchen import router as kitchen_router
from tableflow.api.routes.manager import router as manager_router
from tableflow.api.routes.metrics import router as metrics_router
from tableflow.api.routes.orders import router as orders_router
from tableflow.api.routes.statistics import router as statistics_router
from tableflow.api.ws.local_publisher import InProcessEventPublisher
from tableflow.api.ws.manager import ConnectionManager
from tableflow.api.ws.routes import router as ws_router
from tableflow.infrastructure.messaging.redis_client import redis_url
from tableflow.infrastructure.messaging.redis_event_listener import start_redis_fanout
from tableflow.infrastructure.messaging.redis_publisher import RedisEventPublisher
from tableflow.infrastructure.observability.logging_config import configure_logging
from tableflow.infrastructure.observability.otel import configure_otel
from tableflow.infrastructure.settings import app_env

logger = logging.getLogger(__name__)

ROUTERS = (
    health_router,
    metrics_router,
    orders_router,
    manager_router,
    kitchen_router,
    statistics_router,
    ws_router,
)


def _cors_allow_origins() -> list[str]:
    # Outside dev/test only the explicit allowlist is served.
    if app_env() in {"dev", "test"}:
        return ["*"]
    raw_value = os.getenv("CORS_ALLOW_ORIGINS", "")
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    rooms = ConnectionManager()
    app.state.ws_manager = rooms

    if not redis_url():
        logger.warning("redis_not_configured_using_in_process_events")
        app.state.publisher = InProcessEventPublisher(rooms, asyncio.get_running_loop())
        yield
        return

    app.state.publisher = RedisEventPublisher()
    relay = asyncio.create_task(start_redis_fanout(rooms))
    try:
        yield
    finally:
        relay.cancel()
        with suppress(asyncio.CancelledError):
            await relay


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="Tableflow Backend", version="0.1.0", lifespan=lifespan)
    register_exception_handlers(app)
    for router in ROUTERS:
        app.include_router(router)

    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    configure_otel(app)
    return app


app = create_app()

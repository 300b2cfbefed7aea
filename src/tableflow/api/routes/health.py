from __future__ import annotations

from fastapi import APIRouter, Response, status

from tableflow.infrastructure.db.session import ping_database
from tableflow.infrastructure.messaging.redis_client import ping_redis, redis_url

router = APIRouter()


@router.get("/health/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
def ready(response: Response) -> dict[str, object]:
    checks = {"postgres": ping_database(timeout_seconds=1.0)}
    # Without REDIS_URL events stay in-process, so Redis is not a dependency.
    if redis_url():
        checks["redis"] = ping_redis(timeout_seconds=1.0)

    if all(checks.values()):
        return {"status": "ok", "checks": checks}

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"status": "unavailable", "checks": checks}

from __future__ import annotations

import os
from functools import lru_cache

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url


def database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set")
    return url


@lru_cache(maxsize=8)
def _engine_for(url: str, connect_timeout: int) -> Engine:
    backend = make_url(url).get_backend_name()
    if backend == "sqlite":
        return create_engine(url)
    return create_engine(
        url,
        pool_pre_ping=True,
        connect_args={"connect_timeout": connect_timeout},
    )


def get_engine(timeout_seconds: float = 1.0) -> Engine:
    return _engine_for(database_url(), max(1, int(timeout_seconds)))


def ping_database(timeout_seconds: float = 1.0) -> bool:
    try:
        engine = get_engine(timeout_seconds)
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except Exception:
        return False
    return True

from __future__ import annotations

import os


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc


def table_numbers() -> range:
    low = _int_env("TABLE_NUMBER_MIN", 1)
    high = _int_env("TABLE_NUMBER_MAX", 22)
    if high < low:
        raise RuntimeError("TABLE_NUMBER_MAX must be >= TABLE_NUMBER_MIN")
    return range(low, high + 1)


def app_env() -> str:
    return os.getenv("APP_ENV", "dev").lower()

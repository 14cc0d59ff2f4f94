"""Helpers for resolving query polling settings from options and environment."""

from __future__ import annotations

import os
from typing import Any, Optional

from pydantic import BaseModel, field_validator

DEFAULT_POLL_INTERVAL = 1.0

POLL_INTERVAL_ENV = "ATHENA_TABLES_POLL_INTERVAL"
POLL_TIMEOUT_ENV = "ATHENA_TABLES_POLL_TIMEOUT"


class PollSettings(BaseModel):
    interval: float = DEFAULT_POLL_INTERVAL
    timeout: Optional[float] = None  # None = poll until a terminal state

    @field_validator("interval")
    def _validate_interval(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("poll interval must be a positive number of seconds")
        return value

    @field_validator("timeout")
    def _validate_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError("poll timeout must be a positive number of seconds")
        return value


def _coerce_float(value: Any, source: str) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{source} must be a number of seconds, got {value!r}") from None


def resolve_poll_settings(
    interval: Optional[Any] = None,
    timeout: Optional[Any] = None,
) -> PollSettings:
    """Merge explicit values, then environment variables, then defaults.

    Raises:
        ValueError: If a value is not a number or not positive
    """
    interval_value = _coerce_float(interval, "poll interval")
    if interval_value is None:
        interval_value = _coerce_float(os.environ.get(POLL_INTERVAL_ENV), POLL_INTERVAL_ENV)

    timeout_value = _coerce_float(timeout, "poll timeout")
    if timeout_value is None:
        timeout_value = _coerce_float(os.environ.get(POLL_TIMEOUT_ENV), POLL_TIMEOUT_ENV)

    return PollSettings(
        interval=interval_value if interval_value is not None else DEFAULT_POLL_INTERVAL,
        timeout=timeout_value,
    )


__all__ = [
    "DEFAULT_POLL_INTERVAL",
    "PollSettings",
    "resolve_poll_settings",
]

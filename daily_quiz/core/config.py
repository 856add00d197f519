"""Runtime configuration resolved from constants and environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

from daily_quiz.constants.network_constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_CDN_TIMEOUT_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
)


def _float_from_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}.") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}.")
    return value


@dataclass(frozen=True, slots=True)
class ClientConfig:
    api_base_url: str = DEFAULT_API_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    cdn_timeout_seconds: float = DEFAULT_CDN_TIMEOUT_SECONDS
    token: str | None = None

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Build a config from ``DAILY_QUIZ_*`` variables, falling back to defaults."""
        return cls(
            api_base_url=(os.getenv("DAILY_QUIZ_API_URL") or DEFAULT_API_BASE_URL).rstrip("/"),
            timeout_seconds=_float_from_env("DAILY_QUIZ_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
            cdn_timeout_seconds=_float_from_env(
                "DAILY_QUIZ_CDN_TIMEOUT_SECONDS", DEFAULT_CDN_TIMEOUT_SECONDS
            ),
            token=os.getenv("DAILY_QUIZ_TOKEN") or None,
        )

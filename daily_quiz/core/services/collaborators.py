"""Interfaces for the external collaborators the client depends on."""

from __future__ import annotations

import logging
from typing import Protocol

from daily_quiz.core.errors import DailyQuizError

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    """Issues bearer tokens for authenticated calls (refreshing them if needed)."""

    async def get_token(self) -> str | None:
        ...


class ErrorNotifier(Protocol):
    """Presents an error to the user (alert, toast, modal...)."""

    def notify(self, error: DailyQuizError) -> None:
        ...


class StaticTokenIdentity:
    """Identity provider backed by a token known up front (scripts, tests)."""

    def __init__(self, token: str | None) -> None:
        self._token = token

    async def get_token(self) -> str | None:
        return self._token


class LoggingErrorNotifier:
    """Default notifier for headless use: user-facing alerts become warnings."""

    def notify(self, error: DailyQuizError) -> None:
        logger.warning("Daily quiz alert [%s]: %s", error.type.value, error.message)

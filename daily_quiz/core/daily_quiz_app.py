"""Composition root wiring transport, services and orchestrator together."""

from __future__ import annotations

import logging

import httpx

from daily_quiz.core.config import ClientConfig
from daily_quiz.core.quiz_orchestrator import QuizOrchestrator
from daily_quiz.core.services.attempt_client import AttemptClient
from daily_quiz.core.services.availability_service import AvailabilityService
from daily_quiz.core.services.collaborators import ErrorNotifier, IdentityProvider, StaticTokenIdentity
from daily_quiz.core.services.http_client import ApiHttpClient

logger = logging.getLogger(__name__)


class DailyQuizApp:
    """Owns one explicitly constructed instance of each component."""

    def __init__(
        self,
        http: ApiHttpClient,
        availability: AvailabilityService,
        attempts: AttemptClient,
        orchestrator: QuizOrchestrator,
    ) -> None:
        self.http = http
        self.availability = availability
        self.attempts = attempts
        self.orchestrator = orchestrator

    async def aclose(self) -> None:
        self.orchestrator.clear_current_session()
        await self.http.aclose()

    async def __aenter__(self) -> DailyQuizApp:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def build_app(
    config: ClientConfig | None = None,
    identity: IdentityProvider | None = None,
    notifier: ErrorNotifier | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> DailyQuizApp:
    """Create the client graph. ``identity`` defaults to the configured static token."""
    config = config or ClientConfig()
    if identity is None and config.token:
        identity = StaticTokenIdentity(config.token)

    http = ApiHttpClient(
        config.api_base_url,
        identity=identity,
        timeout=config.timeout_seconds,
        transport=transport,
    )
    availability = AvailabilityService(http, notifier=notifier, cdn_timeout=config.cdn_timeout_seconds)
    attempts = AttemptClient(http)
    orchestrator = QuizOrchestrator(availability, attempts)
    logger.debug("Daily quiz client configured for %s", config.api_base_url)
    return DailyQuizApp(http, availability, attempts, orchestrator)

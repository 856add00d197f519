from __future__ import annotations

import itertools
from datetime import date

import httpx
import pytest
import pytest_asyncio

from daily_quiz.core.errors import DailyQuizError
from daily_quiz.core.quiz_orchestrator import QuizOrchestrator
from daily_quiz.core.services.attempt_client import AttemptClient
from daily_quiz.core.services.availability_service import AvailabilityService
from daily_quiz.core.services.collaborators import StaticTokenIdentity
from daily_quiz.core.services.http_client import ApiHttpClient
from fake_backend import API_BASE_URL, TEST_TOKEN, FakeDailyQuizBackend, create_fake_backend_app

FIXED_TODAY = date(2026, 10, 18)


class RecordingNotifier:
    def __init__(self) -> None:
        self.errors: list[DailyQuizError] = []

    def notify(self, error: DailyQuizError) -> None:
        self.errors.append(error)


@pytest.fixture
def backend() -> FakeDailyQuizBackend:
    return FakeDailyQuizBackend()


@pytest.fixture
def transport(backend: FakeDailyQuizBackend) -> httpx.ASGITransport:
    return httpx.ASGITransport(app=create_fake_backend_app(backend))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def http_client(transport: httpx.ASGITransport):
    client = ApiHttpClient(API_BASE_URL, identity=StaticTokenIdentity(TEST_TOKEN), transport=transport)
    yield client
    await client.aclose()


@pytest.fixture
def clock_ms():
    counter = itertools.count(1_760_000_000_000)
    return lambda: next(counter)


@pytest.fixture
def availability(http_client: ApiHttpClient, notifier: RecordingNotifier) -> AvailabilityService:
    return AvailabilityService(http_client, notifier=notifier)


@pytest.fixture
def attempt_client(http_client: ApiHttpClient, clock_ms) -> AttemptClient:
    return AttemptClient(http_client, clock_ms=clock_ms, today=lambda: FIXED_TODAY)


@pytest.fixture
def orchestrator(availability: AvailabilityService, attempt_client: AttemptClient) -> QuizOrchestrator:
    return QuizOrchestrator(availability, attempt_client)

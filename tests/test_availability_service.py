"""Tests for the daily quiz availability gate."""

from __future__ import annotations

import httpx
import pytest

from daily_quiz.core.errors import DailyQuizError, DailyQuizErrorType
from daily_quiz.core.models import AvailabilityDecision
from daily_quiz.core.services.availability_service import AvailabilityService
from daily_quiz.core.services.collaborators import StaticTokenIdentity
from daily_quiz.core.services.http_client import ApiHttpClient
from fake_backend import API_BASE_URL, TEMPLATE_URL, TEST_TOKEN


@pytest.mark.asyncio
async def test_can_start_when_quiz_is_live(availability, notifier) -> None:
    decision = await availability.can_start_quiz()
    assert decision.can_start
    assert decision.reason is None
    assert notifier.errors == []


@pytest.mark.asyncio
async def test_expired_window_is_silent_and_reports_next_drop(availability, backend, notifier) -> None:
    """A closed window is routine while polling: no alert, and the next drop is attached."""
    backend.fail("GET /daily", 410, "Join window has closed")

    decision = await availability.can_start_quiz()

    assert not decision.can_start
    assert decision.reason == "Quiz window expired"
    assert decision.next_available_time == "2026-10-19T18:00:00Z"
    assert notifier.errors == []
    assert backend.routes_called() == ["GET /daily", "GET /daily/next"]


@pytest.mark.asyncio
async def test_not_yet_available_is_silent(availability, backend, notifier) -> None:
    backend.fail("GET /daily", 403, "Quiz drops at 18:00")
    decision = await availability.can_start_quiz()
    assert decision.reason == "Quiz not yet available"
    assert decision.next_available_time == "2026-10-19T18:00:00Z"
    assert notifier.errors == []


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (404, DailyQuizErrorType.NO_UPCOMING_QUIZ),
        (500, DailyQuizErrorType.UNKNOWN_ERROR),
    ],
)
@pytest.mark.asyncio
async def test_next_drop_failure_while_polling_is_silent(availability, backend, notifier, status, expected) -> None:
    backend.fail("GET /daily", 403, "Quiz drops at 18:00")
    backend.fail("GET /daily/next", status, "No upcoming quiz")

    decision = await availability.can_start_quiz()

    assert not decision.can_start
    assert decision.next_available_time is None
    assert notifier.errors == []

    with pytest.raises(DailyQuizError) as excinfo:
        await availability.get_next_quiz_drop_time()
    assert excinfo.value.type is expected
    assert notifier.errors == [excinfo.value]


@pytest.mark.asyncio
async def test_template_not_ready(availability, backend) -> None:
    backend.fail("GET /daily", 503, "Template is being generated")

    decision = await availability.can_start_quiz()
    assert decision.reason == "Quiz is preparing, try again in a few minutes"

    with pytest.raises(DailyQuizError) as excinfo:
        await availability.get_todays_quiz()
    assert excinfo.value.type is DailyQuizErrorType.TEMPLATE_NOT_READY
    assert excinfo.value.retry_after == 300
    assert excinfo.value.is_retryable


@pytest.mark.asyncio
async def test_no_quiz_today(availability, backend) -> None:
    backend.fail("GET /daily", 404, "Not found")
    decision = await availability.can_start_quiz()
    assert decision == AvailabilityDecision(can_start=False, reason="No quiz available today")


@pytest.mark.asyncio
async def test_unsuppressed_errors_notify_once(availability, backend, notifier) -> None:
    backend.fail("GET /daily", 410, "Join window has closed")
    with pytest.raises(DailyQuizError) as excinfo:
        await availability.get_todays_quiz()
    assert not excinfo.value.silent
    assert notifier.errors == [excinfo.value]


@pytest.mark.asyncio
async def test_suppression_keeps_the_error_type(availability, backend, notifier) -> None:
    backend.fail("GET /daily", 403, "Quiz drops at 18:00")
    with pytest.raises(DailyQuizError) as excinfo:
        await availability.get_todays_quiz(suppress_notifications=True)
    assert excinfo.value.silent
    assert excinfo.value.type is DailyQuizErrorType.NOT_YET_AVAILABLE
    assert notifier.errors == []


@pytest.mark.asyncio
async def test_todays_quiz_fields(availability) -> None:
    quiz = await availability.get_todays_quiz()
    assert quiz.local_date == "2026-10-18"
    assert quiz.template_url == TEMPLATE_URL
    assert quiz.window.end == "2026-10-18T18:30:00Z"
    assert quiz.template_version == 3


@pytest.mark.asyncio
async def test_daily_status(availability) -> None:
    status = await availability.get_daily_quiz_status()
    assert status.is_available
    assert status.quiz.template_url == TEMPLATE_URL
    assert status.next_drop.time_until_drop == 86400
    assert status.attempt_id is None


@pytest.mark.asyncio
async def test_fetch_template_flattens_envelope(availability, backend) -> None:
    template = await availability.fetch_quiz_template(TEMPLATE_URL)
    assert template.id == "dq-2026-10-18"
    assert [q.id for q in template.questions] == ["q1", "q2", "q3", "q4"]
    assert template.get_question("q1").choices == ("Red", "Blue", "Green", "Gold")
    assert backend.routes_called() == ["GET /templates"]


@pytest.mark.parametrize(
    "document",
    [
        {"dailyQuizId": "dq", "version": 1},
        {"dailyQuizId": "dq", "questions": []},
        {"dailyQuizId": "dq", "questions": [{"qid": "q1"}]},
        "<html>not json</html>",
    ],
)
@pytest.mark.asyncio
async def test_malformed_template_is_cdn_error(availability, backend, notifier, document) -> None:
    backend.template_document = document
    with pytest.raises(DailyQuizError) as excinfo:
        await availability.fetch_quiz_template(TEMPLATE_URL)
    assert excinfo.value.type is DailyQuizErrorType.CDN_ERROR
    assert excinfo.value.retry_after == 30
    assert notifier.errors == [excinfo.value]


@pytest.mark.asyncio
async def test_cdn_http_failure_is_cdn_error(availability, backend) -> None:
    backend.fail("GET /templates", 404, "NoSuchKey")
    with pytest.raises(DailyQuizError) as excinfo:
        await availability.fetch_quiz_template(TEMPLATE_URL)
    assert excinfo.value.type is DailyQuizErrorType.CDN_ERROR
    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_cdn_timeout_has_longer_retry_hint(notifier) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("slow cdn", request=request)

    http = ApiHttpClient(API_BASE_URL, transport=httpx.MockTransport(handler))
    try:
        with pytest.raises(DailyQuizError) as excinfo:
            await AvailabilityService(http, notifier=notifier).fetch_quiz_template(TEMPLATE_URL)
    finally:
        await http.aclose()
    assert excinfo.value.type is DailyQuizErrorType.CDN_ERROR
    assert excinfo.value.status_code == 408
    assert excinfo.value.retry_after == 60


@pytest.mark.asyncio
async def test_network_failure_never_escapes_can_start(notifier) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    http = ApiHttpClient(
        API_BASE_URL,
        identity=StaticTokenIdentity(TEST_TOKEN),
        transport=httpx.MockTransport(handler),
    )
    service = AvailabilityService(http, notifier=notifier)
    try:
        decision = await service.can_start_quiz()
        with pytest.raises(DailyQuizError) as excinfo:
            await service.get_todays_quiz()
    finally:
        await http.aclose()

    assert not decision.can_start
    assert decision.reason == "Network connection failed"
    assert excinfo.value.type is DailyQuizErrorType.NETWORK_ERROR
    assert excinfo.value.status_code == 0
    assert excinfo.value.retry_after == 30

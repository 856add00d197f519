"""Tests for the attempt lifecycle client."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from daily_quiz.core.errors import DailyQuizError, DailyQuizErrorType
from daily_quiz.core.models import AttemptStatus
from daily_quiz.core.services.attempt_client import (
    AttemptClient,
    build_idempotency_key,
    format_time_remaining,
    get_time_remaining,
    is_time_up,
)
from daily_quiz.core.services.collaborators import StaticTokenIdentity
from daily_quiz.core.services.http_client import ApiHttpClient
from fake_backend import API_BASE_URL, TEST_TOKEN

NOW = datetime(2026, 10, 18, 18, 5, 0, tzinfo=timezone.utc)


def test_time_remaining_counts_down_and_never_goes_negative() -> None:
    deadline = NOW + timedelta(seconds=65)
    assert get_time_remaining(deadline, NOW) == 65
    assert get_time_remaining("2026-10-18T18:06:05Z", NOW) == 65
    assert get_time_remaining(deadline, NOW + timedelta(seconds=120)) == 0
    assert not is_time_up(deadline, NOW)
    assert is_time_up(deadline, deadline)


def test_partial_second_is_not_time_up() -> None:
    deadline = NOW + timedelta(milliseconds=300)
    assert get_time_remaining(deadline, NOW) == 1
    assert not is_time_up(deadline, NOW)


def test_format_time_remaining() -> None:
    assert format_time_remaining(65) == "01:05"
    assert format_time_remaining(3) == "00:03"
    assert format_time_remaining(0) == "00:00"
    assert format_time_remaining(-4) == "00:00"
    assert AttemptClient.format_time_remaining(600) == "10:00"


def test_idempotency_key_embeds_attempt_question_and_time() -> None:
    assert build_idempotency_key("attempt-1", "q3", 1760000000123) == "attempt-1-q3-1760000000123"


@pytest.mark.asyncio
async def test_start_attempt_sends_local_date(attempt_client, backend) -> None:
    """The start body carries only the device-local calendar date."""
    attempt = await attempt_client.start_attempt()

    assert attempt.attempt_id == "attempt-1"
    assert attempt.seed == 424242
    assert attempt.status is AttemptStatus.ACTIVE
    assert attempt.deadline > attempt.server_start_at
    assert backend.calls[-1] == ("POST", "/attempts/start", {"localDate": "2026-10-18"})


@pytest.mark.asyncio
async def test_second_start_is_already_attempted(attempt_client) -> None:
    await attempt_client.start_attempt()
    with pytest.raises(DailyQuizError) as excinfo:
        await attempt_client.start_attempt()
    assert excinfo.value.type is DailyQuizErrorType.ALREADY_ATTEMPTED
    assert excinfo.value.status_code == 409
    assert not excinfo.value.is_retryable


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (403, DailyQuizErrorType.NOT_YET_AVAILABLE),
        (410, DailyQuizErrorType.WINDOW_EXPIRED),
        (404, DailyQuizErrorType.NO_QUIZ_TODAY),
        (500, DailyQuizErrorType.UNKNOWN_ERROR),
    ],
)
@pytest.mark.asyncio
async def test_start_attempt_status_mapping(attempt_client, backend, status, expected) -> None:
    backend.fail("POST /attempts/start", status, "nope")
    with pytest.raises(DailyQuizError) as excinfo:
        await attempt_client.start_attempt()
    assert excinfo.value.type is expected


@pytest.mark.asyncio
async def test_submit_answer_body(attempt_client, backend) -> None:
    attempt = await attempt_client.start_attempt()
    result = await attempt_client.submit_answer(attempt.attempt_id, "q1", {"choiceIndex": 2}, 4200)

    assert result == {"status": "saved"}
    method, path, body = backend.calls[-1]
    assert (method, path) == ("POST", "/attempts/answer")
    assert body["questionId"] == "q1"
    assert body["answer"] == {"choiceIndex": 2}
    assert body["timeSpentMs"] == 4200
    assert body["idempotencyKey"].startswith("attempt-1-q1-")


@pytest.mark.asyncio
async def test_resubmission_gets_a_fresh_key_and_overwrites(attempt_client, backend) -> None:
    """Retries of the same answer are not deduplicated by key; the server keeps the latest."""
    attempt = await attempt_client.start_attempt()
    await attempt_client.submit_answer(attempt.attempt_id, "q1", {"choiceIndex": 0}, 1000)
    await attempt_client.submit_answer(attempt.attempt_id, "q1", {"choiceIndex": 3}, 2000)

    keys = [body["idempotencyKey"] for method, path, body in backend.calls if path == "/attempts/answer"]
    assert len(keys) == 2
    assert keys[0] != keys[1]
    assert backend.stored_answers() == {"q1": {"choiceIndex": 3}}


@pytest.mark.asyncio
async def test_finish_returns_breakdown_and_blocks_further_answers(attempt_client, backend) -> None:
    attempt = await attempt_client.start_attempt()
    await attempt_client.submit_answer(attempt.attempt_id, "q1", {"choiceIndex": 0}, 1000)
    result = await attempt_client.finish_attempt(attempt.attempt_id)

    assert result.score == 2450
    assert result.breakdown.speed_bonus == 350
    assert result.finish_time_sec == 185
    assert [q.question_id for q in result.questions] == ["q1"]
    assert backend.calls[-1] == ("POST", "/attempts/finish", None)
    assert attempt_client.is_finished(attempt.attempt_id)

    calls_before = len(backend.calls)
    with pytest.raises(DailyQuizError) as excinfo:
        await attempt_client.submit_answer(attempt.attempt_id, "q2", {"orderedItems": ["a"]}, 10)
    assert excinfo.value.type is DailyQuizErrorType.SUBMISSION_FAILED
    assert len(backend.calls) == calls_before


@pytest.mark.asyncio
async def test_finish_twice_replays_stored_result(attempt_client, backend) -> None:
    attempt = await attempt_client.start_attempt()
    await attempt_client.submit_answer(attempt.attempt_id, "q1", {"choiceIndex": 0}, 1000)
    first = await attempt_client.finish_attempt(attempt.attempt_id)
    second = await attempt_client.finish_attempt(attempt.attempt_id, [{"questionId": "q2", "answer": {}}])

    assert second == first
    assert backend.stored_answers() == {"q1": {"choiceIndex": 0}}


@pytest.mark.asyncio
async def test_finish_conflict_is_already_attempted(attempt_client, backend) -> None:
    attempt = await attempt_client.start_attempt()
    backend.fail("POST /attempts/finish", 409, "Attempt already finished")
    with pytest.raises(DailyQuizError) as excinfo:
        await attempt_client.finish_attempt(attempt.attempt_id)
    assert excinfo.value.type is DailyQuizErrorType.ALREADY_ATTEMPTED
    assert excinfo.value.status_code == 409


@pytest.mark.asyncio
async def test_answer_and_finish_after_deadline_are_expired(attempt_client, backend) -> None:
    backend.attempt_deadline = datetime.now(timezone.utc) - timedelta(seconds=1)
    attempt = await attempt_client.start_attempt()

    with pytest.raises(DailyQuizError) as answer_error:
        await attempt_client.submit_answer(attempt.attempt_id, "q1", {"choiceIndex": 0}, 1000)
    with pytest.raises(DailyQuizError) as finish_error:
        await attempt_client.finish_attempt(attempt.attempt_id)

    assert answer_error.value.type is DailyQuizErrorType.ATTEMPT_EXPIRED
    assert finish_error.value.type is DailyQuizErrorType.ATTEMPT_EXPIRED
    assert finish_error.value.status_code == 422
    assert backend.stored_answers() == {}
    assert not attempt_client.is_finished(attempt.attempt_id)


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (404, DailyQuizErrorType.ATTEMPT_NOT_FOUND),
        (410, DailyQuizErrorType.ATTEMPT_EXPIRED),
        (422, DailyQuizErrorType.ATTEMPT_EXPIRED),
        (500, DailyQuizErrorType.SUBMISSION_FAILED),
    ],
)
@pytest.mark.asyncio
async def test_answer_status_mapping(attempt_client, backend, status, expected) -> None:
    attempt = await attempt_client.start_attempt()
    backend.fail("POST /attempts/answer", status, "rejected")
    with pytest.raises(DailyQuizError) as excinfo:
        await attempt_client.submit_answer(attempt.attempt_id, "q1", {"choiceIndex": 0}, 1000)
    assert excinfo.value.type is expected
    assert excinfo.value.status_code == status


@pytest.mark.asyncio
async def test_today_attempt_status(attempt_client) -> None:
    status = await attempt_client.get_today_attempt_status()
    assert not status.has_attempt
    assert status.attempt is None

    attempt = await attempt_client.start_attempt()
    status = await attempt_client.get_today_attempt_status()
    assert status.has_attempt
    assert status.attempt.id == attempt.attempt_id
    assert status.attempt.status is AttemptStatus.ACTIVE


@pytest.mark.asyncio
async def test_identity_failure_is_authentication_error(transport) -> None:
    class BrokenIdentity:
        async def get_token(self) -> str | None:
            raise RuntimeError("refresh token revoked")

    http = ApiHttpClient(API_BASE_URL, identity=BrokenIdentity(), transport=transport)
    try:
        with pytest.raises(DailyQuizError) as excinfo:
            await AttemptClient(http).get_today_attempt_status()
    finally:
        await http.aclose()
    assert excinfo.value.type is DailyQuizErrorType.AUTHENTICATION_ERROR
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_rejected_token_is_authentication_error(transport) -> None:
    http = ApiHttpClient(API_BASE_URL, identity=StaticTokenIdentity("stale"), transport=transport)
    try:
        with pytest.raises(DailyQuizError) as excinfo:
            await AttemptClient(http).start_attempt()
    finally:
        await http.aclose()
    assert excinfo.value.type is DailyQuizErrorType.AUTHENTICATION_ERROR


@pytest.mark.asyncio
async def test_timeout_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    http = ApiHttpClient(
        API_BASE_URL,
        identity=StaticTokenIdentity(TEST_TOKEN),
        transport=httpx.MockTransport(handler),
    )
    try:
        with pytest.raises(DailyQuizError) as excinfo:
            await AttemptClient(http).start_attempt()
    finally:
        await http.aclose()
    assert excinfo.value.type is DailyQuizErrorType.NETWORK_ERROR
    assert excinfo.value.status_code == 408
    assert excinfo.value.retry_after == 30
    assert excinfo.value.is_retryable

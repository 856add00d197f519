"""Command-line entry point: report whether today's quiz can be started."""

from __future__ import annotations

import asyncio

from dotenv import load_dotenv

from daily_quiz.core.config import ClientConfig
from daily_quiz.core.daily_quiz_app import build_app
from daily_quiz.core.errors import DailyQuizError
from daily_quiz.utils.logging_config import configure_logging


async def _run(config: ClientConfig) -> int:
    logger = configure_logging()
    logger.info("Checking today's quiz at %s", config.api_base_url)

    async with build_app(config) as app:
        decision = await app.availability.can_start_quiz()
        if not decision.can_start:
            logger.info("Quiz cannot be started: %s", decision.reason)
            if decision.next_available_time:
                logger.info("Next drop at %s", decision.next_available_time)
            return 1

        logger.info("Today's quiz is open and can be started.")
        try:
            status = await app.attempts.get_today_attempt_status()
        except DailyQuizError as error:
            logger.error("Could not read today's attempt: %s", error.message)
            return 1
        if status.attempt is not None:
            logger.info(
                "Attempt %s is %s (score: %s)",
                status.attempt.id,
                status.attempt.status.value,
                status.attempt.score,
            )
        else:
            logger.info("No attempt yet today.")
        return 0


def main() -> None:
    """Load .env, initialize logging and check today's quiz availability."""
    load_dotenv()
    raise SystemExit(asyncio.run(_run(ClientConfig.from_env())))


if __name__ == "__main__":
    main()

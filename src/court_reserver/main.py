"""Entry point for the court reserver."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from typing import Callable, Optional

import httpx
import structlog

from .clock import await_instant, now_in_timezone
from .config import Settings
from .date_window import build_run_profile, compute_target_date
from .models import BookingOutcome, ReservationState, RunProfile, RunResult
from .orchestrator import ReservationOrchestrator
from .playwright_client import ReservationBrowser
from .telegram import format_message, post_to_telegram


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structlog + stdlib logging."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stdout,
    )
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


LOGGER = structlog.get_logger(__name__)


async def wait_for_claim_instant(settings: Settings, profile: RunProfile) -> None:
    """Hold a live run until the claim instant; rehearsals go straight through."""
    if profile.test_mode:
        LOGGER.info("gate.bypassed", reason="rehearsal")
        return
    await await_instant(
        settings.claim_hour,
        settings.claim_minute,
        settings.claim_second,
        clock=lambda: now_in_timezone(settings.timezone),
        poll_interval=settings.poll_interval_ms / 1000,
    )


async def run(
    settings: Settings,
    *,
    wait: bool = True,
    now: Optional[datetime] = None,
    browser_factory: Callable[[Settings], ReservationBrowser] = ReservationBrowser,
) -> RunResult:
    """Resolve targets, hold for the claim instant and drive one reservation."""
    profile = build_run_profile(
        settings.test_mode,
        court_candidates=settings.court_candidates,
        time_slot_candidates=settings.time_slot_candidates,
    )
    target = compute_target_date(now or now_in_timezone(settings.timezone), profile.test_mode)
    orchestrator: Optional[ReservationOrchestrator] = None

    try:
        async with browser_factory(settings) as browser:
            if wait:
                await wait_for_claim_instant(settings, profile)
            orchestrator = ReservationOrchestrator(browser.driver, settings, profile, target)
            result = await orchestrator.run()
    except Exception as exc:
        if orchestrator is not None and orchestrator.result is not None:
            failure = orchestrator.result
        else:
            # The session never reached the orchestrator.
            failure = RunResult(
                booking_outcome=BookingOutcome.FAILED,
                test_mode=profile.test_mode,
                target_date=target.label,
                failed_step=ReservationState.INIT,
                error_kind=type(exc).__name__,
                error_message=str(exc),
            )
        await notify(settings, failure)
        raise

    await notify(settings, result)
    return result


async def notify(settings: Settings, result: RunResult) -> None:
    """Post the result to Telegram when configured; never masks the run outcome."""
    if not settings.telegram_enabled:
        return
    try:
        await post_to_telegram(settings, format_message(result))
    except (httpx.HTTPError, RuntimeError) as exc:
        LOGGER.warning("telegram.notify_failed", error=str(exc))


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """CLI argument parsing."""
    parser = argparse.ArgumentParser(description="Reserve a court the moment booking opens.")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--test-mode",
        dest="test_mode",
        action="store_true",
        default=None,
        help="Rehearse against low-stakes slots and cancel the booking at the end.",
    )
    mode.add_argument(
        "--live",
        dest="test_mode",
        action="store_false",
        help="Book for real, overriding TEST_MODE.",
    )
    parser.add_argument(
        "--no-wait",
        action="store_true",
        help="Start immediately instead of waiting for the claim instant.",
    )
    return parser.parse_args(argv)


def cli(argv: Optional[list[str]] = None) -> None:
    """Console script entrypoint."""
    args = parse_args(argv)
    configure_logging()

    try:
        settings = Settings()
    except Exception as exc:  # pragma: no cover - startup validation
        LOGGER.exception("settings.error", error=str(exc))
        raise SystemExit(2) from exc

    if args.test_mode is not None:
        settings = settings.model_copy(update={"test_mode": args.test_mode})

    try:
        result = asyncio.run(run(settings, wait=not args.no_wait))
    except Exception as exc:  # pragma: no cover - top level
        LOGGER.exception("reservation.failed", error=str(exc))
        raise SystemExit(1) from exc

    print(json.dumps(result.to_payload()))


if __name__ == "__main__":  # pragma: no cover
    cli()

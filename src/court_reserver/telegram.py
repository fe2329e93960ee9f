"""Telegram messaging helper for run results."""

from __future__ import annotations

from typing import Optional

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .config import Settings
from .models import BookingOutcome, RunResult

LOGGER = structlog.get_logger(__name__)

HEADLINES = {
    BookingOutcome.CONFIRMED: "Court reserved",
    BookingOutcome.CANCELLED: "Rehearsal passed (booking cancelled)",
    BookingOutcome.FAILED: "Reservation failed",
}


def format_message(result: RunResult) -> str:
    """Build a human-friendly message for Telegram."""
    mode = "rehearsal" if result.test_mode else "live"
    lines: list[str] = [f"{HEADLINES[result.booking_outcome]} ({mode})"]

    if result.target_date:
        lines.append(f"Date: {result.target_date}")
    if result.court:
        lines.append(f"Court: {result.court}")
    if result.selected_slots:
        lines.append(f"Slots: {', '.join(result.selected_slots)}")
    if not result.succeeded:
        step = result.failed_step.value if result.failed_step else "unknown"
        lines.append(f"Failed at: {step}")
        lines.append(f"{result.error_kind}: {result.error_message}")

    return "\n".join(lines)


async def post_to_telegram(
    settings: Settings,
    text: str,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    attempts: int = 3,
) -> None:
    """Send the composed message to Telegram, retrying transport errors."""
    payload = {
        "chat_id": settings.telegram_chat_id,
        "text": text,
        "disable_web_page_preview": True,
    }

    url = f"{settings.telegram_api_endpoint}/sendMessage"
    LOGGER.info("telegram.send.start")

    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type(httpx.TransportError),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        stop=stop_after_attempt(attempts),
        reraise=True,
    ):
        with attempt:
            async with httpx.AsyncClient(timeout=15.0, transport=transport) as client:
                response = await client.post(url, json=payload)
    if response.is_success:
        LOGGER.info("telegram.send.success")
        return
    LOGGER.error("telegram.send.failed", status_code=response.status_code, body=response.text)
    raise RuntimeError(f"Telegram send failed with {response.status_code}: {response.text}")

"""Tests for run-result formatting."""

import json

import httpx
import pytest
from tenacity import wait_none

from court_reserver import telegram
from court_reserver.models import BookingOutcome, ReservationState, RunResult
from court_reserver.telegram import format_message, post_to_telegram
from tests.fakes import make_settings


def test_confirmed_message() -> None:
    result = RunResult(
        BookingOutcome.CONFIRMED,
        test_mode=False,
        target_date="Mon 19",
        selected_slots=["-7:30pm", ":30-8pm"],
        court="PB Court 25",
    )

    assert format_message(result) == "\n".join(
        [
            "Court reserved (live)",
            "Date: Mon 19",
            "Court: PB Court 25",
            "Slots: -7:30pm, :30-8pm",
        ]
    )


def test_failure_message_names_step() -> None:
    result = RunResult(
        BookingOutcome.FAILED,
        test_mode=True,
        target_date="Mon 19",
        failed_step=ReservationState.SLOTS_SELECTED,
        error_kind="NoSlotsAvailable",
        error_message="No time slots available",
    )

    message = format_message(result)

    assert message.startswith("Reservation failed (rehearsal)")
    assert "Failed at: slots_selected" in message
    assert "NoSlotsAvailable: No time slots available" in message


@pytest.mark.asyncio
async def test_post_sends_message() -> None:
    """Test the request sent to the Bot API."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    settings = make_settings(telegram_bot_token="123:abc", telegram_chat_id="42")

    await post_to_telegram(settings, "hello", transport=httpx.MockTransport(handler))

    (request,) = seen
    assert str(request.url) == "https://api.telegram.org/bot123:abc/sendMessage"
    assert json.loads(request.content) == {"chat_id": "42", "text": "hello", "disable_web_page_preview": True}


@pytest.mark.asyncio
async def test_post_rejected_raises() -> None:
    """Test that an API error response is raised rather than retried."""
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(400, json={"ok": False, "description": "chat not found"})

    settings = make_settings(telegram_bot_token="123:abc", telegram_chat_id="42")

    with pytest.raises(RuntimeError):
        await post_to_telegram(settings, "hello", transport=httpx.MockTransport(handler))
    assert len(calls) == 1


@pytest.fixture
def no_backoff(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(telegram, "wait_exponential", lambda **kwargs: wait_none())


@pytest.mark.asyncio
async def test_post_retries_transport_errors(no_backoff: None) -> None:
    """Test that dropped connections are retried until the API answers."""
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) < 3:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"ok": True})

    settings = make_settings(telegram_bot_token="123:abc", telegram_chat_id="42")

    await post_to_telegram(settings, "hello", transport=httpx.MockTransport(handler))

    assert len(calls) == 3


@pytest.mark.asyncio
async def test_post_gives_up_after_last_attempt(no_backoff: None) -> None:
    """Test that the transport error is re-raised once the attempts run out."""
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    settings = make_settings(telegram_bot_token="123:abc", telegram_chat_id="42")

    with pytest.raises(httpx.ConnectError):
        await post_to_telegram(settings, "hello", transport=httpx.MockTransport(handler))
    assert len(calls) == 3

"""Finishing steps: add a participant, book, then confirm or roll back."""

from __future__ import annotations

import asyncio
from contextlib import suppress
from typing import Optional

import structlog

from . import site
from .config import Timings
from .driver import DocumentScope, Landmark, PageDriver
from .errors import ConfirmationFailure, DriverTimeout
from .interaction import ResilientClicker, Sleeper
from .models import BookingOutcome, ClickOutcome

LOGGER = structlog.get_logger(__name__)


class ConfirmationFlow:
    """Drives the booking summary screens once a court has been chosen."""

    def __init__(
        self,
        driver: PageDriver,
        clicker: ResilientClicker,
        *,
        timings: Timings,
        test_mode: bool,
        add_participant: bool = True,
        reservations_url_pattern: str = "**/reservations**",
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._driver = driver
        self._clicker = clicker
        self._timings = timings
        self._test_mode = test_mode
        self._add_participant = add_participant
        self._reservations_url_pattern = reservations_url_pattern
        self._sleep = sleep

    async def add_participant(self) -> None:
        if not self._add_participant:
            LOGGER.info("participant.skipped")
            return
        await self._press(site.ADD_USERS_BUTTON)
        await self._pause()
        await self._press(site.ADD_USER_BUTTON)
        await self._pause()
        LOGGER.info("participant.added")

    async def submit(self) -> None:
        """Advance past the participant screen and press Book."""
        await self._press(site.NEXT_BUTTON)
        await self._pause()
        if await self._press(site.BOOK_BUTTON, check_notice=True) is ClickOutcome.UNAVAILABLE:
            raise ConfirmationFailure("Booking was rejected: the slot is no longer available")
        LOGGER.info("booking.submitted")

    async def finalize(self) -> BookingOutcome:
        """Commit a live booking, or cancel a rehearsal one."""
        if self._test_mode:
            await self._cancel()
            return BookingOutcome.CANCELLED
        await self._confirm()
        return BookingOutcome.CONFIRMED

    async def _confirm(self) -> None:
        await self._press(site.CONFIRM_BUTTON)
        with suppress(DriverTimeout):
            await self._driver.wait_for_load_state("networkidle", timeout_ms=self._timings.action_timeout_ms)
        LOGGER.info("booking.confirmed", url=self._driver.url)

    async def _cancel(self) -> None:
        LOGGER.info("booking.cancelling", reason="rehearsal")
        await self._press(site.CANCEL_BUTTON)
        await self._pause()

        # The "are you sure" prompt is rendered inside its own frame.
        dialog = self._driver.embedded_document(site.CANCEL_DIALOG_FRAME)
        await self._press(site.CANCEL_DIALOG_CONFIRM, scope=dialog)

        try:
            await self._driver.wait_for_url(
                self._reservations_url_pattern,
                timeout_ms=self._timings.action_timeout_ms,
            )
        except DriverTimeout as exc:
            raise ConfirmationFailure(
                f"Cancellation did not return to the reservations listing (at {self._driver.url})"
            ) from exc
        LOGGER.info("booking.cancelled", url=self._driver.url)

    async def _press(
        self,
        landmark: Landmark,
        *,
        scope: Optional[DocumentScope] = None,
        check_notice: bool = False,
    ) -> ClickOutcome:
        element = (scope or self._driver).locate(landmark)
        try:
            await element.wait_for("visible", timeout_ms=self._timings.action_timeout_ms)
        except DriverTimeout as exc:
            raise ConfirmationFailure(f"{landmark.describe()} never appeared") from exc
        return await self._clicker.click(element, landmark.describe(), check_notice=check_notice)

    async def _pause(self) -> None:
        if self._timings.step_pause_ms:
            await self._sleep(self._timings.step_pause_ms / 1000)

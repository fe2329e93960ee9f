"""Step-by-step driver for a single reservation run."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import structlog

from . import site
from .config import Settings
from .confirmation import ConfirmationFlow
from .driver import ElementHandle, PageDriver
from .errors import (
    AuthenticationFailure,
    DriverTimeout,
    NoCourtAvailable,
    NoSlotsAvailable,
    PageLoadTimeout,
    ReservationError,
    TransientUnavailable,
)
from .interaction import ResilientClicker, Sleeper, stabilise
from .models import (
    BookingOutcome,
    ReservationState,
    RunProfile,
    RunResult,
    SkippedCandidate,
    SkipReason,
    SlotSelectionOutcome,
    TargetDate,
)
from .observer import RunObserver, StructlogObserver

LOGGER = structlog.get_logger(__name__)

T = TypeVar("T")


class ReservationOrchestrator:
    """
    Walks the booking site from sign-in to a finished booking.

    States are visited strictly in order and never revisited. A hard failure in
    any step ends the run; only the click ladder inside a step retries.
    """

    def __init__(
        self,
        driver: PageDriver,
        settings: Settings,
        profile: RunProfile,
        target: TargetDate,
        *,
        observer: Optional[RunObserver] = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._driver = driver
        self._settings = settings
        self._profile = profile
        self._target = target
        self._observer = observer or StructlogObserver()
        self._sleep = sleep
        self._timings = settings.timings()
        self._clicker = ResilientClicker(driver, self._timings, self._observer)
        self._confirmation = ConfirmationFlow(
            driver,
            self._clicker,
            timings=self._timings,
            test_mode=profile.test_mode,
            add_participant=settings.add_participant,
            reservations_url_pattern=settings.reservations_url_pattern,
            sleep=sleep,
        )
        self.state = ReservationState.INIT
        self.slot_outcome: Optional[SlotSelectionOutcome] = None
        self.court: Optional[str] = None
        self.result: Optional[RunResult] = None

    async def run(self) -> RunResult:
        """Execute every step; raises the first hard failure after reporting it."""
        LOGGER.info(
            "run.start",
            mode=self._profile.mode_name,
            target=self._target.label,
            courts=list(self._profile.court_candidates),
            slots=list(self._profile.time_slot_candidates),
        )
        try:
            await self._advance(ReservationState.AUTHENTICATED, self.authenticate)
            await self._advance(ReservationState.ON_RESERVATION_PAGE, self.open_reservation_page)
            await self._advance(ReservationState.DATE_SELECTED, self.select_date)
            await self._advance(ReservationState.SPORT_SELECTED, self.select_sport)
            await self._advance(ReservationState.SLOTS_SELECTED, self.select_slots)
            await self._advance(ReservationState.COURT_SELECTED, self.select_court)
            await self._advance(ReservationState.USERS_ADDED, self._confirmation.add_participant)
            await self._advance(ReservationState.BOOKED, self._confirmation.submit)
            outcome = await self._advance(ReservationState.FINALIZED, self._confirmation.finalize)
        except Exception as exc:
            self.result = self._result(BookingOutcome.FAILED, exc)
            self._observer.run_finished(self.result)
            raise

        self.result = self._result(outcome)
        self._observer.run_finished(self.result)
        return self.result

    async def _advance(self, step: ReservationState, action: Callable[[], Awaitable[T]]) -> T:
        self._observer.step_started(step)
        try:
            value = await action()
        except ReservationError as exc:
            if exc.step is None:
                exc.step = step
            raise
        self.state = step
        return value

    async def authenticate(self) -> None:
        """Sign in through the embedded credential form."""
        LOGGER.info("login.start", url=str(self._settings.booking_url))
        await self._driver.navigate(str(self._settings.booking_url))

        form = self._driver.embedded_document(site.LOGIN_FRAME)
        email_input = form.locate(site.EMAIL_INPUT)
        try:
            await email_input.wait_for("visible", timeout_ms=self._timings.action_timeout_ms)
        except DriverTimeout as exc:
            raise AuthenticationFailure("Sign-in form not found") from exc

        await email_input.fill(self._settings.reserve_email)
        await form.locate(site.PASSWORD_INPUT).fill(self._settings.reserve_password.get_secret_value())
        await self._clicker.click(form.locate(site.SIGN_IN_BUTTON), "sign in", check_notice=False)

        try:
            await self._driver.wait_for_load_state("networkidle", timeout_ms=self._timings.action_timeout_ms)
        except DriverTimeout:
            LOGGER.warning("login.network_busy")

        # Still looking at the form means the credentials were not accepted.
        try:
            await email_input.wait_for("hidden", timeout_ms=self._timings.action_timeout_ms)
        except DriverTimeout as exc:
            LOGGER.error("login.failed", current_url=self._driver.url)
            raise AuthenticationFailure("Still on the sign-in form after submitting credentials") from exc
        LOGGER.info("login.complete", redirected_to=self._driver.url)

    async def open_reservation_page(self) -> None:
        marker = self._driver.locate(site.RESERVATION_PAGE_MARKER)
        try:
            await marker.wait_for("visible", timeout_ms=self._timings.action_timeout_ms)
        except DriverTimeout as exc:
            raise PageLoadTimeout("Reservation page never finished loading") from exc
        LOGGER.info("reservation_page.loaded")

    async def select_date(self) -> None:
        day_button = self._driver.locate(site.calendar_day(self._target))
        try:
            await day_button.wait_for("visible", timeout_ms=self._timings.action_timeout_ms)
        except DriverTimeout as exc:
            raise PageLoadTimeout(f"{self._target.label} is not on the calendar") from exc
        await self._clicker.click(day_button, self._target.label, check_notice=False)
        LOGGER.info("date.selected", target=self._target.label)

    async def select_sport(self) -> None:
        """Select the sport, leaving it alone if it is already active."""
        sport = self._settings.sport_name
        option = self._driver.locate(site.sport_option(sport))
        try:
            await option.wait_for("visible", timeout_ms=self._timings.action_timeout_ms)
        except DriverTimeout as exc:
            raise PageLoadTimeout(f"{sport} option never appeared") from exc

        if await option.is_selected():
            LOGGER.info("sport.already_selected", sport=sport)
            return
        await self._clicker.click(option, sport, check_notice=False)
        LOGGER.info("sport.selected", sport=sport)

    async def select_slots(self) -> SlotSelectionOutcome:
        """
        Claim every usable label of the time block, in preference order.

        Unusable labels are skipped rather than retried. Any non-empty
        selection lets the run continue unless ``require_full_block`` is set.
        """
        candidates = self._profile.time_slot_candidates
        await stabilise(self._driver, self._timings, site.time_slot(candidates[0]), sleep=self._sleep)

        outcome = SlotSelectionOutcome()
        for label in candidates:
            element = self._driver.locate(site.time_slot(label))
            reason = await self._claim_candidate(element, label)
            if reason is None:
                outcome.selected.append(label)
                LOGGER.info("slot.selected", label=label)
                continue
            outcome.skipped.append(SkippedCandidate(label, reason))
            self._observer.candidate_skipped("slot", label, reason)

        self.slot_outcome = outcome
        if outcome.selected_count == 0:
            raise NoSlotsAvailable(f"No time slots available (tried {', '.join(candidates)})", outcome)
        if outcome.selected_count < len(candidates):
            if self._settings.require_full_block:
                raise NoSlotsAvailable(
                    f"Only {outcome.selected_count} of {len(candidates)} slots available",
                    outcome,
                )
            LOGGER.warning(
                "slot.partial_block",
                selected=outcome.selected,
                skipped=[item.label for item in outcome.skipped],
            )
        return outcome

    async def select_court(self) -> str:
        """Claim the first usable court in preference order."""
        candidates = self._profile.court_candidates
        await stabilise(self._driver, self._timings, site.court(candidates[0]), sleep=self._sleep)

        for name in candidates:
            element = self._driver.locate(site.court(name))
            reason = await self._claim_candidate(element, name)
            if reason is None:
                self.court = name
                LOGGER.info("court.selected", court=name)
                return name
            self._observer.candidate_skipped("court", name, reason)

        raise NoCourtAvailable(f"No court available (tried {', '.join(candidates)})")

    async def _claim_candidate(self, element: ElementHandle, label: str) -> Optional[SkipReason]:
        if not await element.is_visible():
            return SkipReason.NOT_VISIBLE
        if await element.is_disabled():
            return SkipReason.DISABLED
        try:
            await self._clicker.claim(element, label)
        except TransientUnavailable:
            return SkipReason.TRANSIENT_UNAVAILABLE
        return None

    def _result(self, outcome: BookingOutcome, error: Optional[BaseException] = None) -> RunResult:
        result = RunResult(
            booking_outcome=outcome,
            test_mode=self._profile.test_mode,
            target_date=self._target.label,
            selected_slots=list(self.slot_outcome.selected) if self.slot_outcome else [],
            court=self.court,
        )
        if error is not None:
            step = getattr(error, "step", None)
            result.failed_step = step if isinstance(step, ReservationState) else self._next_step()
            result.error_kind = type(error).__name__
            result.error_message = str(error)
        return result

    def _next_step(self) -> ReservationState:
        states = list(ReservationState)
        index = states.index(self.state)
        return states[min(index + 1, len(states) - 1)]

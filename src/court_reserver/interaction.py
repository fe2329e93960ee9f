"""Click escalation for a remote UI that may still be re-rendering."""

from __future__ import annotations

import asyncio
from contextlib import suppress
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence

import structlog

from . import site
from .config import Timings
from .driver import ElementHandle, Landmark, PageDriver
from .errors import DriverError, DriverTimeout, InteractionFailed, TransientUnavailable
from .models import ClickOutcome, InteractionAttempt, StrategyResult
from .observer import RunObserver

LOGGER = structlog.get_logger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class ClickStrategy:
    """One named way of clicking an element."""

    name: str
    perform: Callable[[ElementHandle, Timings], Awaitable[None]]


async def _forced_click(element: ElementHandle, timings: Timings) -> None:
    await element.click(force=True, timeout_ms=timings.click_timeout_ms)


async def _script_click(element: ElementHandle, timings: Timings) -> None:
    await element.script_click()


async def _patient_click(element: ElementHandle, timings: Timings) -> None:
    await element.click(timeout_ms=timings.extended_click_timeout_ms)


# Callers stabilise the page first, so skipping actionability checks is safe.
DEFAULT_LADDER: tuple[ClickStrategy, ...] = (
    ClickStrategy("forced_click", _forced_click),
    ClickStrategy("script_click", _script_click),
    ClickStrategy("patient_click", _patient_click),
)


async def attempt_in_order(
    label: str,
    attempts: Sequence[tuple[str, Callable[[], Awaitable[None]]]],
    *,
    on_failure: Optional[Callable[[str, BaseException], None]] = None,
) -> InteractionAttempt:
    """
    Run ``attempts`` in order until one completes without raising.

    Later attempts are never started once one succeeds. The returned record
    lists every attempt made; ``record.succeeded`` is false when all raised.
    """
    record = InteractionAttempt(label=label)
    for name, action in attempts:
        try:
            await action()
        except Exception as exc:
            record.results.append(StrategyResult(name, exc))
            if on_failure is not None:
                on_failure(name, exc)
            continue
        record.results.append(StrategyResult(name))
        break
    return record


class ResilientClicker:
    """Clicks through an escalating ladder and detects lost races."""

    def __init__(
        self,
        driver: PageDriver,
        timings: Timings,
        observer: RunObserver,
        *,
        strategies: Sequence[ClickStrategy] = DEFAULT_LADDER,
    ) -> None:
        self._driver = driver
        self._timings = timings
        self._observer = observer
        self._strategies = tuple(strategies)

    async def wait_out_overlay(self) -> None:
        """Give any open dialog a short grace period to close."""
        overlay = self._driver.locate(site.BLOCKING_OVERLAY)
        try:
            await overlay.wait_for("hidden", timeout_ms=self._timings.overlay_grace_ms)
        except DriverTimeout:
            LOGGER.warning("overlay.still_present", grace_ms=self._timings.overlay_grace_ms)
        except DriverError as exc:
            LOGGER.warning("overlay.unreadable", error=str(exc))

    async def click(
        self,
        element: ElementHandle,
        label: str,
        *,
        check_notice: bool = True,
        wait_overlay: bool = True,
    ) -> ClickOutcome:
        """
        Click ``element`` and report whether the click actually stuck.

        Raises ``InteractionFailed`` when every strategy raises (a hard
        failure). Returns ``ClickOutcome.UNAVAILABLE`` when a click went
        through but the site answered with a "no longer available" notice.
        Pass ``wait_overlay=False`` for controls that live on the overlay itself.
        """

        def bind(strategy: ClickStrategy) -> Callable[[], Awaitable[None]]:
            async def run() -> None:
                if wait_overlay:
                    await self.wait_out_overlay()
                await strategy.perform(element, self._timings)

            return run

        record = await attempt_in_order(
            label,
            [(strategy.name, bind(strategy)) for strategy in self._strategies],
            on_failure=lambda name, exc: self._observer.strategy_failed(label, name, exc),
        )
        if not record.succeeded:
            last_error = record.results[-1].error if record.results else None
            raise InteractionFailed(f"Could not click {label} with any strategy") from last_error

        LOGGER.debug("click.succeeded", label=label, strategy=record.winning_strategy)
        if check_notice and await self._dismiss_unavailable_notice(label):
            return ClickOutcome.UNAVAILABLE
        return ClickOutcome.CLAIMED

    async def claim(self, element: ElementHandle, label: str) -> None:
        """Click a contested candidate, raising ``TransientUnavailable`` if it was lost."""
        if await self.click(element, label) is ClickOutcome.UNAVAILABLE:
            raise TransientUnavailable(label)

    async def click_landmark(
        self,
        landmark: Landmark,
        *,
        check_notice: bool = False,
        wait_overlay: bool = True,
    ) -> ClickOutcome:
        return await self.click(
            self._driver.locate(landmark),
            landmark.describe(),
            check_notice=check_notice,
            wait_overlay=wait_overlay,
        )

    async def _dismiss_unavailable_notice(self, label: str) -> bool:
        # The notice is rendered only once the server has answered the click.
        notice = self._driver.locate(site.UNAVAILABLE_NOTICE)
        try:
            await notice.wait_for("visible", timeout_ms=self._timings.notice_grace_ms)
        except DriverTimeout:
            return False
        LOGGER.warning("click.lost_race", label=label)
        await self.click_landmark(site.NOTICE_DISMISS, wait_overlay=False)
        return True


async def stabilise(
    driver: PageDriver,
    timings: Timings,
    first_candidate: Optional[Landmark] = None,
    *,
    sleep: Sleeper = asyncio.sleep,
) -> None:
    """Wait for the availability grid to stop re-rendering, ignoring timeouts."""
    with suppress(DriverTimeout):
        await driver.wait_for_load_state("networkidle", timeout_ms=timings.action_timeout_ms)
    if first_candidate is not None:
        with suppress(DriverTimeout):
            await driver.locate(first_candidate).wait_for("attached", timeout_ms=timings.action_timeout_ms)
    if timings.settle_ms:
        await sleep(timings.settle_ms / 1000)

"""Wall-clock helpers for firing at the claim instant."""

from __future__ import annotations

import asyncio
from datetime import datetime, time
from typing import Awaitable, Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

LOGGER = structlog.get_logger(__name__)

Clock = Callable[[], datetime]
Sleeper = Callable[[float], Awaitable[None]]

DEFAULT_POLL_INTERVAL = 0.25


def get_zone(timezone_name: str) -> ZoneInfo:
    """Return a ZoneInfo instance, defaulting to UTC on failure."""
    try:
        return ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError):
        LOGGER.warning("clock.unknown_timezone", timezone=timezone_name, fallback="UTC")
        return ZoneInfo("UTC")


def now_in_timezone(timezone_name: str) -> datetime:
    """Current datetime in the configured timezone."""
    return datetime.now(tz=get_zone(timezone_name))


async def await_instant(
    hour: int,
    minute: int,
    second: int,
    *,
    clock: Optional[Clock] = None,
    sleep: Sleeper = asyncio.sleep,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> datetime:
    """
    Suspend until today's ``hour:minute:second`` on ``clock``.

    Polls at ``poll_interval`` rather than sleeping the whole gap so that clock
    adjustments while waiting are picked up. If the instant has already passed
    the gate opens immediately; a late run is better than no run. Returns the
    clock reading at release.
    """
    clock = clock or datetime.now
    target_time = time(hour, minute, second)
    now = clock()
    target = datetime.combine(now.date(), target_time, tzinfo=now.tzinfo)

    if now >= target:
        LOGGER.warning(
            "gate.already_passed",
            target=target.isoformat(),
            late_by_seconds=round((now - target).total_seconds(), 3),
        )
        return now

    LOGGER.info(
        "gate.waiting",
        target=target.isoformat(),
        remaining_seconds=round((target - now).total_seconds(), 3),
    )
    while now < target:
        await sleep(poll_interval)
        now = clock()

    LOGGER.info("gate.open", at=now.isoformat())
    return now

"""Tests for the wall-clock gate."""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import pytest

from court_reserver.clock import await_instant, get_zone, now_in_timezone


def ticking_clock(start: datetime, step: timedelta):
    """Clock that advances by ``step`` every time it is read."""
    state = {"now": start - step}

    def read() -> datetime:
        state["now"] += step
        return state["now"]

    return read


class TestAwaitInstant:
    """Tests for await_instant."""

    @pytest.mark.asyncio
    async def test_returns_immediately_when_past(self) -> None:
        """Test that a late gate opens at once instead of waiting for tomorrow."""
        sleep = AsyncMock()
        now = datetime(2026, 10, 19, 14, 0, 5)

        released = await await_instant(14, 0, 0, clock=lambda: now, sleep=sleep)

        assert released == now
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_returns_immediately_at_target(self) -> None:
        """Test that arriving exactly on the instant does not wait."""
        sleep = AsyncMock()
        now = datetime(2026, 10, 19, 14, 0, 0)

        await await_instant(14, 0, 0, clock=lambda: now, sleep=sleep)

        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_polls_until_target(self) -> None:
        """Test that the gate polls at the interval until the instant arrives."""
        sleep = AsyncMock()
        clock = ticking_clock(datetime(2026, 10, 19, 13, 59, 59), timedelta(milliseconds=250))

        released = await await_instant(14, 0, 0, clock=clock, sleep=sleep, poll_interval=0.25)

        assert released == datetime(2026, 10, 19, 14, 0, 0)
        assert sleep.await_count == 4
        sleep.assert_awaited_with(0.25)

    @pytest.mark.asyncio
    async def test_respects_clock_timezone(self) -> None:
        """Test that the target is taken in the clock's own timezone."""
        zone = ZoneInfo("America/Los_Angeles")
        now = datetime(2026, 10, 19, 14, 30, tzinfo=zone)
        sleep = AsyncMock()

        released = await await_instant(14, 0, 0, clock=lambda: now, sleep=sleep)

        assert released.tzinfo == zone
        sleep.assert_not_awaited()


class TestZones:
    """Tests for timezone helpers."""

    def test_unknown_zone_falls_back_to_utc(self) -> None:
        """Test that a bad timezone name does not crash the run."""
        assert get_zone("Not/AZone") == ZoneInfo("UTC")

    def test_now_is_zone_aware(self) -> None:
        """Test that now_in_timezone returns an aware datetime."""
        assert now_in_timezone("America/Los_Angeles").tzinfo is not None

"""Utilities for choosing the reservation date and candidate lists."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional, Sequence, Union

import structlog

from .models import RunProfile, TargetDate

LOGGER = structlog.get_logger(__name__)

DAY_ABBREVIATIONS = {
    0: "Mon",
    1: "Tue",
    2: "Wed",
    3: "Thu",
    4: "Fri",
    5: "Sat",
    6: "Sun",
}

# Days to add from today's weekday to reach the next Monday or Wednesday.
LIVE_OFFSETS = {
    0: 2,  # Monday -> Wednesday
    1: 1,  # Tuesday -> Wednesday
    2: 5,  # Wednesday -> Monday
    3: 4,  # Thursday -> Monday
    4: 3,  # Friday -> Monday
    5: 2,  # Saturday -> Monday
    6: 1,  # Sunday -> Monday
}

REHEARSAL_OFFSET_DAYS = 7

LIVE_COURTS = ("PB Court 25",)
LIVE_TIME_SLOTS = ("-7:30pm", ":30-8pm", "-8:30pm", ":30-9pm")

REHEARSAL_COURTS = ("PB Court 1",)
REHEARSAL_TIME_SLOTS = ("-2:30pm", ":30-3pm", "-3:30pm", ":30-4pm")


def target_calendar_date(now: Union[date, datetime], test_mode: bool) -> date:
    """Return the calendar date the run should book."""
    today = now.date() if isinstance(now, datetime) else now
    if test_mode:
        return today + timedelta(days=REHEARSAL_OFFSET_DAYS)
    return today + timedelta(days=LIVE_OFFSETS[today.weekday()])


def compute_target_date(now: Union[date, datetime], test_mode: bool) -> TargetDate:
    """
    Compute the day-name and day-number keys for the date picker.

    Rehearsal runs book the same weekday one week out. Live runs book the next
    Monday or Wednesday, which is when the facility releases prime slots.
    """
    value = target_calendar_date(now, test_mode)
    target = TargetDate(day_name=DAY_ABBREVIATIONS[value.weekday()], day_number=value.day)
    LOGGER.info(
        "target_date.resolved",
        mode="rehearsal" if test_mode else "live",
        date_iso=value.isoformat(),
        label=target.label,
    )
    return target


def build_run_profile(
    test_mode: bool,
    *,
    court_candidates: Optional[Sequence[str]] = None,
    time_slot_candidates: Optional[Sequence[str]] = None,
) -> RunProfile:
    """
    Freeze the candidate lists for this run.

    Overrides apply to live runs only; rehearsal always targets the low-stakes
    afternoon block so it can never collide with a real booking.
    """
    if test_mode:
        return RunProfile(
            test_mode=True,
            court_candidates=REHEARSAL_COURTS,
            time_slot_candidates=REHEARSAL_TIME_SLOTS,
        )
    return RunProfile(
        test_mode=False,
        court_candidates=tuple(court_candidates) if court_candidates else LIVE_COURTS,
        time_slot_candidates=tuple(time_slot_candidates) if time_slot_candidates else LIVE_TIME_SLOTS,
    )

"""Shared data models used across the court reserver."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ReservationState(str, Enum):
    """Steps of a reservation run, in the order they are reached."""

    INIT = "init"
    AUTHENTICATED = "authenticated"
    ON_RESERVATION_PAGE = "on_reservation_page"
    DATE_SELECTED = "date_selected"
    SPORT_SELECTED = "sport_selected"
    SLOTS_SELECTED = "slots_selected"
    COURT_SELECTED = "court_selected"
    USERS_ADDED = "users_added"
    BOOKED = "booked"
    FINALIZED = "finalized"


class BookingOutcome(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class SkipReason(str, Enum):
    NOT_VISIBLE = "not_visible"
    DISABLED = "disabled"
    TRANSIENT_UNAVAILABLE = "transient_unavailable"


class ClickOutcome(str, Enum):
    """Logical result of a click that did not raise."""

    CLAIMED = "claimed"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class RunProfile:
    """Per-run targets, computed once at entry and never re-derived."""

    test_mode: bool
    court_candidates: tuple[str, ...]
    time_slot_candidates: tuple[str, ...]

    @property
    def mode_name(self) -> str:
        return "rehearsal" if self.test_mode else "live"


@dataclass(frozen=True)
class TargetDate:
    """Calendar keys matched against the remote date picker."""

    day_name: str
    day_number: int

    @property
    def label(self) -> str:
        return f"{self.day_name} {self.day_number}"


@dataclass(frozen=True)
class SkippedCandidate:
    label: str
    reason: SkipReason


@dataclass
class SlotSelectionOutcome:
    """What happened to each time-slot candidate during selection."""

    selected: list[str] = field(default_factory=list)
    skipped: list[SkippedCandidate] = field(default_factory=list)

    @property
    def selected_count(self) -> int:
        return len(self.selected)


@dataclass(frozen=True)
class StrategyResult:
    strategy_name: str
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class InteractionAttempt:
    """Record of one pass through the click ladder."""

    label: str
    results: list[StrategyResult] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return bool(self.results) and self.results[-1].succeeded

    @property
    def winning_strategy(self) -> Optional[str]:
        if self.succeeded:
            return self.results[-1].strategy_name
        return None


@dataclass
class RunResult:
    """Terminal signal handed back to whoever triggered the run."""

    booking_outcome: BookingOutcome
    test_mode: bool
    target_date: Optional[str] = None
    selected_slots: list[str] = field(default_factory=list)
    court: Optional[str] = None
    failed_step: Optional[ReservationState] = None
    error_kind: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.booking_outcome is not BookingOutcome.FAILED

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "bookingOutcome": self.booking_outcome.value,
            "testMode": self.test_mode,
        }
        if self.target_date:
            payload["targetDate"] = self.target_date
        if self.selected_slots:
            payload["slots"] = list(self.selected_slots)
        if self.court:
            payload["court"] = self.court
        if not self.succeeded:
            payload["failedStep"] = self.failed_step.value if self.failed_step else None
            payload["errorKind"] = self.error_kind
            payload["error"] = self.error_message
        return payload

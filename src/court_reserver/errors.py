"""Error kinds raised by a reservation run."""

from __future__ import annotations

from typing import Optional

from .models import ReservationState, SlotSelectionOutcome


class ReservationError(Exception):
    """Base class for failures that end a run."""

    def __init__(self, message: str, *, step: Optional[ReservationState] = None) -> None:
        super().__init__(message)
        self.step = step

    @property
    def kind(self) -> str:
        return type(self).__name__


class AuthenticationFailure(ReservationError):
    pass


class PageLoadTimeout(ReservationError):
    pass


class NoSlotsAvailable(ReservationError):
    def __init__(self, message: str, outcome: SlotSelectionOutcome, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.outcome = outcome


class NoCourtAvailable(ReservationError):
    pass


class ConfirmationFailure(ReservationError):
    pass


class InteractionFailed(ReservationError):
    """Every click strategy raised for the same element."""


class DriverError(ReservationError):
    """The browser rejected an operation, for example an ambiguous locator."""


class DriverTimeout(DriverError):
    """A bounded remote operation ran out of time."""


class TransientUnavailable(Exception):
    """A click landed but the site reported the target as taken.

    Never escapes the orchestrator; the candidate is skipped instead.
    """

    def __init__(self, label: str) -> None:
        super().__init__(f"{label} was claimed by someone else")
        self.label = label

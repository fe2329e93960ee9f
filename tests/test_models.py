"""Tests for run result payloads."""

from court_reserver.models import BookingOutcome, ReservationState, RunResult, SlotSelectionOutcome


def test_success_payload_omits_error_fields() -> None:
    payload = RunResult(BookingOutcome.CANCELLED, test_mode=True, target_date="Sat 24").to_payload()

    assert payload == {"bookingOutcome": "cancelled", "testMode": True, "targetDate": "Sat 24"}


def test_failure_payload() -> None:
    result = RunResult(
        BookingOutcome.FAILED,
        test_mode=False,
        failed_step=ReservationState.AUTHENTICATED,
        error_kind="AuthenticationFailure",
        error_message="Sign-in form not found",
    )

    assert result.succeeded is False
    assert result.to_payload() == {
        "bookingOutcome": "failed",
        "testMode": False,
        "failedStep": "authenticated",
        "errorKind": "AuthenticationFailure",
        "error": "Sign-in form not found",
    }


def test_empty_selection() -> None:
    assert SlotSelectionOutcome().selected_count == 0

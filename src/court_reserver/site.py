"""Landmarks on the facility booking site."""

from __future__ import annotations

from .driver import Landmark
from .models import TargetDate

# Sign-in form, rendered inside an embedded frame on the booking page.
LOGIN_FRAME = Landmark.by_css('div:has-text("Enter your account") iframe')
EMAIL_INPUT = Landmark.by_role("textbox", "Email")
PASSWORD_INPUT = Landmark.by_role("textbox", "Password")
SIGN_IN_BUTTON = Landmark.by_role("button", "Sign in")

RESERVATION_PAGE_MARKER = Landmark.by_text("Select date and time")

# An open modal matches both selectors; only the first match is waited on.
BLOCKING_OVERLAY = Landmark.by_css(".ui.dimmer.active, .ui.modal.active").at(0)
UNAVAILABLE_NOTICE = Landmark.by_text("no longer available").at(0)
NOTICE_DISMISS = Landmark.by_role("button", "OK", exact=True)

ADD_USERS_BUTTON = Landmark.by_role("button", "Add Users")
# The first "Add" match is the "Add Users" toggle itself.
ADD_USER_BUTTON = Landmark.by_role("button", "Add").at(1)
NEXT_BUTTON = Landmark.by_role("button", "Next")
BOOK_BUTTON = Landmark.by_role("button", "Book", exact=True)
CONFIRM_BUTTON = Landmark.by_role("button", "Yes")
CANCEL_BUTTON = Landmark.by_css("button.ui.button.basic.black.tiny.fluid")
CANCEL_DIALOG_FRAME = Landmark.by_css("iframe").at(0)
CANCEL_DIALOG_CONFIRM = Landmark.by_role("button", "Yes")


def calendar_day(target: TargetDate) -> Landmark:
    return Landmark.by_css(
        ".day-container button"
        f':has(.day_name:text-is("{target.day_name}"))'
        f':has(.day_number:text-is("{target.day_number}"))'
    )


def sport_option(name: str) -> Landmark:
    return Landmark.by_css(f'button.ButtonOption:has-text("{name}")')


def time_slot(label: str) -> Landmark:
    return Landmark.by_role("button", label)


def court(name: str) -> Landmark:
    # Exact, so "PB Court 1" does not also match "PB Court 10".
    return Landmark.by_role("button", name, exact=True)

"""Shared fixtures for the court reserver tests."""

import pytest

from court_reserver.config import Settings
from court_reserver.date_window import build_run_profile
from court_reserver.models import RunProfile, TargetDate
from tests.fakes import FakeDriver, RecordingObserver, make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def target() -> TargetDate:
    return TargetDate(day_name="Mon", day_number=19)


@pytest.fixture
def live_profile() -> RunProfile:
    return build_run_profile(False)


@pytest.fixture
def rehearsal_profile() -> RunProfile:
    return build_run_profile(True)

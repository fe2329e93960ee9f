"""
Tests for the Playwright adapter and browser session.

Playwright itself is replaced with mocks; these check error translation and
that every part of the session is released on every exit path.
"""

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from court_reserver import playwright_client
from court_reserver.errors import DriverError, DriverTimeout
from court_reserver.playwright_client import PlaywrightElement, PlaywrightPageDriver, ReservationBrowser
from tests.fakes import make_settings


class SessionMocks:
    """The chain of objects ``async_playwright().start()`` hands back."""

    def __init__(self) -> None:
        self.page = MagicMock()
        self.page.screenshot = AsyncMock()
        self.context = MagicMock()
        self.context.new_page = AsyncMock(return_value=self.page)
        self.context.close = AsyncMock()
        self.browser = MagicMock()
        self.browser.new_context = AsyncMock(return_value=self.context)
        self.browser.close = AsyncMock()
        self.playwright = MagicMock()
        self.playwright.chromium.launch = AsyncMock(return_value=self.browser)
        self.playwright.chromium.connect = AsyncMock(return_value=self.browser)
        self.playwright.stop = AsyncMock()

    def assert_released(self) -> None:
        self.context.close.assert_awaited_once()
        self.browser.close.assert_awaited_once()
        self.playwright.stop.assert_awaited_once()


@pytest.fixture
def session(monkeypatch: pytest.MonkeyPatch) -> SessionMocks:
    mocks = SessionMocks()
    monkeypatch.setattr(
        playwright_client,
        "async_playwright",
        lambda: SimpleNamespace(start=AsyncMock(return_value=mocks.playwright)),
    )
    return mocks


class TestReservationBrowser:
    """Tests for session setup and teardown."""

    @pytest.mark.asyncio
    async def test_releases_after_success(self, session: SessionMocks) -> None:
        """Test that a clean run closes the context, browser and driver."""
        async with ReservationBrowser(make_settings()) as browser:
            assert isinstance(browser.driver, PlaywrightPageDriver)

        session.assert_released()
        session.page.screenshot.assert_not_awaited()
        assert session.playwright.chromium.launch.await_args.kwargs["headless"] is True

    @pytest.mark.asyncio
    async def test_failure_captures_screenshot_and_releases(self, session: SessionMocks, tmp_path: Path) -> None:
        """Test that a failed run is screenshotted before the session closes."""
        settings = make_settings(screenshot_dir=str(tmp_path))

        with pytest.raises(RuntimeError, match="slot grid vanished"):
            async with ReservationBrowser(settings):
                raise RuntimeError("slot grid vanished")

        path = session.page.screenshot.await_args.kwargs["path"]
        assert Path(path).parent == tmp_path
        assert Path(path).name.startswith("failure-")
        session.assert_released()

    @pytest.mark.asyncio
    async def test_unwritable_screenshot_dir_keeps_run_error(self, session: SessionMocks, tmp_path: Path) -> None:
        """Test that a bad screenshot directory neither hides the run error nor leaks the session."""
        blocker = tmp_path / "not-a-directory"
        blocker.write_text("")
        settings = make_settings(screenshot_dir=str(blocker / "shots"))

        with pytest.raises(RuntimeError, match="slot grid vanished"):
            async with ReservationBrowser(settings):
                raise RuntimeError("slot grid vanished")

        session.page.screenshot.assert_not_awaited()
        session.assert_released()

    @pytest.mark.asyncio
    async def test_screenshot_error_still_releases(self, session: SessionMocks, tmp_path: Path) -> None:
        session.page.screenshot.side_effect = PlaywrightError("Target page, context or browser has been closed")

        with pytest.raises(RuntimeError):
            async with ReservationBrowser(make_settings(screenshot_dir=str(tmp_path))):
                raise RuntimeError("boom")

        session.assert_released()

    @pytest.mark.asyncio
    async def test_failed_close_does_not_leak_browser(self, session: SessionMocks) -> None:
        """Test that a context that is already gone still lets the browser and driver close."""
        session.context.close.side_effect = PlaywrightError("Target closed")

        async with ReservationBrowser(make_settings()):
            pass

        session.assert_released()

    @pytest.mark.asyncio
    async def test_failed_setup_releases_what_was_opened(self, session: SessionMocks) -> None:
        session.browser.new_context.side_effect = PlaywrightError("Browser has been closed")

        with pytest.raises(PlaywrightError):
            async with ReservationBrowser(make_settings()):
                pass

        session.browser.close.assert_awaited_once()
        session.playwright.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_remote_connect_sends_api_key(self, session: SessionMocks) -> None:
        settings = make_settings(
            browser_ws_endpoint="wss://browsers.example.com/chromium",
            browser_api_key="secret-key",
        )

        async with ReservationBrowser(settings):
            pass

        call = session.playwright.chromium.connect.await_args
        assert call.args == ("wss://browsers.example.com/chromium",)
        assert call.kwargs["headers"] == {"Api-Key": "secret-key"}
        session.playwright.chromium.launch.assert_not_awaited()


class TestPlaywrightElement:
    """Tests for translating Playwright errors into driver errors."""

    @pytest.mark.asyncio
    async def test_timeout_becomes_driver_timeout(self) -> None:
        locator = MagicMock()
        locator.wait_for = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout 1500ms exceeded"))

        with pytest.raises(DriverTimeout):
            await PlaywrightElement(locator, "overlay").wait_for("hidden", timeout_ms=1500)

    @pytest.mark.asyncio
    async def test_ambiguous_locator_becomes_driver_error(self) -> None:
        """Test that a strict-mode rejection is a driver error, not a timeout."""
        locator = MagicMock()
        locator.wait_for = AsyncMock(
            side_effect=PlaywrightError("strict mode violation: locator resolved to 2 elements")
        )

        with pytest.raises(DriverError) as excinfo:
            await PlaywrightElement(locator, "overlay").wait_for("hidden")
        assert not isinstance(excinfo.value, DriverTimeout)

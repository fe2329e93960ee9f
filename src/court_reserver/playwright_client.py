"""Playwright implementation of the page-driving capability."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Union

import structlog
from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    FrameLocator,
    Locator,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from .config import Settings
from .driver import DocumentScope, ElementHandle, ElementState, Landmark, LoadState, PageDriver
from .errors import DriverError, DriverTimeout

LOGGER = structlog.get_logger(__name__)

REMOTE_CONNECT_TIMEOUT_MS = 60_000
VIEWPORT = {"width": 1280, "height": 900}
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

IS_SELECTED_SCRIPT = (
    "el => el.classList.contains('primary') || el.getAttribute('aria-pressed') === 'true'"
)


@contextmanager
def _timeouts_as_driver_errors(what: str) -> Iterator[None]:
    try:
        yield
    except PlaywrightTimeoutError as exc:
        raise DriverTimeout(f"Timed out on {what}") from exc
    except PlaywrightError as exc:
        raise DriverError(f"Browser rejected {what}: {exc.message}") from exc


class PlaywrightElement(ElementHandle):
    """ElementHandle backed by a Playwright locator."""

    def __init__(self, locator: Locator, description: str) -> None:
        self._locator = locator
        self._description = description

    async def is_visible(self) -> bool:
        with _timeouts_as_driver_errors(f"visibility check of {self._description}"):
            return await self._locator.is_visible()

    async def is_disabled(self) -> bool:
        with _timeouts_as_driver_errors(f"disabled check of {self._description}"):
            return await self._locator.is_disabled()

    async def is_selected(self) -> bool:
        with _timeouts_as_driver_errors(f"selected check of {self._description}"):
            return bool(await self._locator.evaluate(IS_SELECTED_SCRIPT))

    async def click(self, *, force: bool = False, timeout_ms: Optional[int] = None) -> None:
        with _timeouts_as_driver_errors(f"click on {self._description}"):
            await self._locator.click(force=force, timeout=timeout_ms)

    async def script_click(self) -> None:
        with _timeouts_as_driver_errors(f"script click on {self._description}"):
            await self._locator.evaluate("el => el.click()")

    async def fill(self, text: str) -> None:
        with _timeouts_as_driver_errors(f"fill of {self._description}"):
            await self._locator.fill(text)

    async def wait_for(self, state: ElementState = "visible", timeout_ms: Optional[int] = None) -> None:
        with _timeouts_as_driver_errors(f"{self._description} to be {state}"):
            await self._locator.wait_for(state=state, timeout=timeout_ms)

    def nth(self, index: int) -> "PlaywrightElement":
        return PlaywrightElement(self._locator.nth(index), f"{self._description}#{index}")


class _PlaywrightScope(DocumentScope):
    def __init__(self, root: Union[Page, FrameLocator]) -> None:
        self._root = root

    def find_by_role(self, role: str, name: Optional[str] = None, *, exact: bool = False) -> ElementHandle:
        locator = self._root.get_by_role(role, name=name, exact=exact)  # type: ignore[arg-type]
        return PlaywrightElement(locator, Landmark.by_role(role, name, exact=exact).describe())

    def find_by_text(self, text: str, *, exact: bool = False) -> ElementHandle:
        return PlaywrightElement(self._root.get_by_text(text, exact=exact), Landmark.by_text(text).describe())

    def find_by_css(self, selector: str) -> ElementHandle:
        return PlaywrightElement(self._root.locator(selector), Landmark.by_css(selector).describe())


class PlaywrightPageDriver(_PlaywrightScope, PageDriver):
    """PageDriver over a single Playwright page."""

    def __init__(self, page: Page) -> None:
        super().__init__(page)
        self._page = page

    @property
    def url(self) -> str:
        return self._page.url

    async def navigate(self, url: str) -> None:
        with _timeouts_as_driver_errors(f"navigation to {url}"):
            await self._page.goto(url, wait_until="domcontentloaded")

    async def wait_for_load_state(self, state: LoadState = "networkidle", timeout_ms: Optional[int] = None) -> None:
        with _timeouts_as_driver_errors(f"load state {state}"):
            await self._page.wait_for_load_state(state, timeout=timeout_ms)

    async def wait_for_url(self, pattern: str, timeout_ms: Optional[int] = None) -> None:
        with _timeouts_as_driver_errors(f"url {pattern}"):
            await self._page.wait_for_url(pattern, timeout=timeout_ms)

    def embedded_document(self, container: Landmark) -> DocumentScope:
        if not container.css:
            raise ValueError("embedded documents are located by css")
        frame = self._page.frame_locator(container.css)
        if container.nth is not None:
            frame = frame.nth(container.nth)
        return _PlaywrightScope(frame)

    async def screenshot(self, path: str) -> None:
        await self._page.screenshot(path=path, full_page=True)


class ReservationBrowser:
    """Owns the browser session for one run and always releases it."""

    def __init__(self, settings: Settings):
        self._settings = settings
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self.driver: Optional[PlaywrightPageDriver] = None

    async def __aenter__(self) -> "ReservationBrowser":
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._open_browser(self._playwright)
            self._context = await self._browser.new_context(
                viewport=VIEWPORT,
                user_agent=USER_AGENT,
                locale="en-US",
                timezone_id=self._settings.timezone,
            )
            self._page = await self._context.new_page()
            self._page.set_default_timeout(self._settings.timeout_seconds * 1000)
        except BaseException:
            await self._release()
            raise
        self.driver = PlaywrightPageDriver(self._page)
        LOGGER.info("browser.ready", remote=bool(self._settings.browser_ws_endpoint))
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if exc is not None and self.driver is not None:
                await self._capture_failure()
        finally:
            await self._release()

    async def _open_browser(self, playwright: Playwright) -> Browser:
        endpoint = self._settings.browser_ws_endpoint
        if endpoint:
            LOGGER.info("browser.connect", endpoint=endpoint)
            headers = {}
            if self._settings.browser_api_key:
                headers["Api-Key"] = self._settings.browser_api_key.get_secret_value()
            return await playwright.chromium.connect(
                endpoint,
                headers=headers,
                timeout=REMOTE_CONNECT_TIMEOUT_MS,
            )

        LOGGER.info("browser.launch", headless=self._settings.headless)
        return await playwright.chromium.launch(
            headless=self._settings.headless,
            args=[
                "--disable-dev-shm-usage",
                "--no-sandbox",
                "--disable-blink-features=AutomationControlled",
            ],
        )

    async def _capture_failure(self) -> None:
        directory = Path(self._settings.screenshot_dir)
        path = directory / f"failure-{datetime.now():%Y%m%d-%H%M%S}.png"
        try:
            directory.mkdir(parents=True, exist_ok=True)
            await self.driver.screenshot(str(path))
        except (PlaywrightError, OSError) as exc:
            LOGGER.warning("browser.screenshot_failed", error=str(exc))
            return
        LOGGER.info("browser.screenshot_saved", path=str(path))

    async def _release(self) -> None:
        """Close every part of the session, even when an earlier close fails."""
        closers = (
            ("context", self._context.close if self._context else None),
            ("browser", self._browser.close if self._browser else None),
            ("playwright", self._playwright.stop if self._playwright else None),
        )
        self._context = self._browser = self._playwright = None
        for resource, close in closers:
            if close is None:
                continue
            try:
                await close()
            except PlaywrightError as exc:
                LOGGER.warning("browser.close_failed", resource=resource, error=str(exc))
        LOGGER.info("browser.closed")

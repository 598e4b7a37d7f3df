from __future__ import annotations

import logging
from types import TracebackType
from typing import TYPE_CHECKING, Any, Callable

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from .config import InspectorConfig
from .driver import PlaywrightDriver
from .errors import SessionError
from .runtime_checks import _is_missing_browser_error, first_line

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page, Playwright

logger = logging.getLogger("uniqueselector.session")


class BrowserManager:
    """Owns one Chromium page for the lifetime of an inspection session.

    Use as ``async with BrowserManager(config) as driver``; the browser is
    released on every exit path. ``close`` is idempotent.
    """

    def __init__(
        self,
        config: InspectorConfig,
        *,
        playwright_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        self.config = config
        self._playwright_factory = playwright_factory
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._driver: PlaywrightDriver | None = None
        self._closed = False

    async def __aenter__(self) -> PlaywrightDriver:
        return await self.start()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.close()

    async def start(self) -> PlaywrightDriver:
        if self._driver is not None:
            return self._driver
        try:
            return await self._start()
        except BaseException:
            await self.close()
            raise

    async def _start(self) -> PlaywrightDriver:
        self._playwright = await self._playwright_factory().start()
        try:
            self._browser = await self._playwright.chromium.launch(
                headless=self.config.headless,
                slow_mo=self.config.slow_mo_ms,
                args=["--start-maximized"],
            )
        except PlaywrightError as exc:
            if _is_missing_browser_error(exc):
                raise SessionError("Chromium not installed. Run: python -m playwright install chromium") from exc
            raise SessionError(f"Failed to launch Chromium: {first_line(exc)}") from exc

        try:
            self._context = await self._browser.new_context(
                viewport={"width": self.config.viewport_width, "height": self.config.viewport_height}
            )
            self._page = await self._context.new_page()
        except PlaywrightError as exc:
            raise SessionError(f"Failed to create browser context: {first_line(exc)}") from exc

        driver = PlaywrightDriver(self._page, highlight_timeout_ms=self.config.wait_timeout_ms)
        await driver.install_page_hooks()
        self._driver = driver

        url = self._normalize_url(self.config.start_url)
        if url:
            await self.navigate(url)
        logger.info("Browser session started.")
        return driver

    async def navigate(self, url: str) -> None:
        if self._page is None:
            raise SessionError("Browser session is not started.")
        logger.info("Navigating to %s", url)
        try:
            await self._page.goto(url, wait_until="domcontentloaded", timeout=max(self.config.wait_timeout_ms, 30000))
        except PlaywrightError as exc:
            raise SessionError(f"Navigation to {url} failed: {first_line(exc)}") from exc

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for label, resource in (("page", self._page), ("context", self._context), ("browser", self._browser)):
            if resource is None:
                continue
            try:
                await resource.close()
            except PlaywrightError as exc:
                logger.debug("Ignoring %s close failure: %s", label, first_line(exc))
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except PlaywrightError as exc:
                logger.debug("Ignoring Playwright stop failure: %s", first_line(exc))
        self._page = None
        self._context = None
        self._browser = None
        self._playwright = None
        self._driver = None
        logger.info("Browser session closed.")

    @staticmethod
    def _normalize_url(raw_url: str) -> str:
        url = (raw_url or "").strip()
        if not url:
            return ""
        if url.startswith(("http://", "https://", "file://", "about:")):
            return url
        return f"https://{url}"

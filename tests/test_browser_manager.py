from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from uniqueselector.browser_manager import BrowserManager
from uniqueselector.config import InspectorConfig
from uniqueselector.driver import PICK_BINDING_NAME, PlaywrightDriver
from uniqueselector.errors import SessionError


def _fake_playwright(launch_error: Exception | None = None) -> tuple[MagicMock, MagicMock, MagicMock]:
    page = MagicMock()
    page.url = "about:blank"
    page.expose_binding = AsyncMock()
    page.add_init_script = AsyncMock()
    page.evaluate = AsyncMock()
    page.goto = AsyncMock()
    page.close = AsyncMock()

    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser, side_effect=launch_error)
    playwright.stop = AsyncMock()

    starter = MagicMock()
    starter.start = AsyncMock(return_value=playwright)
    return MagicMock(return_value=starter), playwright, page


@pytest.mark.asyncio
async def test_session_opens_page_installs_hooks_and_navigates() -> None:
    factory, playwright, page = _fake_playwright()
    config = InspectorConfig(start_url="www.saucedemo.com", headless=True, viewport_width=1280, viewport_height=720)

    async with BrowserManager(config, playwright_factory=factory) as driver:
        assert isinstance(driver, PlaywrightDriver)
        assert driver.page is page

    launch_kwargs = playwright.chromium.launch.await_args.kwargs
    assert launch_kwargs["headless"] is True
    assert launch_kwargs["slow_mo"] == config.slow_mo_ms
    assert page.expose_binding.await_args.args[0] == PICK_BINDING_NAME
    assert page.expose_binding.await_args.kwargs == {"handle": True}
    assert page.goto.await_args.args[0] == "https://www.saucedemo.com"
    page.close.assert_awaited_once()
    playwright.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_missing_browser_is_reported_with_install_hint() -> None:
    error = PlaywrightError("BrowserType.launch: Executable doesn't exist at /ms-playwright/chromium/chrome")
    factory, playwright, _page = _fake_playwright(launch_error=error)
    manager = BrowserManager(InspectorConfig(), playwright_factory=factory)

    with pytest.raises(SessionError) as excinfo:
        await manager.start()

    assert "playwright install chromium" in str(excinfo.value)
    playwright.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_navigation_failure_is_fatal() -> None:
    factory, playwright, page = _fake_playwright()
    page.goto.side_effect = PlaywrightError("net::ERR_NAME_NOT_RESOLVED at https://nowhere.invalid/")
    manager = BrowserManager(InspectorConfig(start_url="https://nowhere.invalid/"), playwright_factory=factory)

    with pytest.raises(SessionError) as excinfo:
        await manager.start()

    assert "ERR_NAME_NOT_RESOLVED" in str(excinfo.value)
    page.close.assert_awaited_once()
    playwright.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_close_is_idempotent_and_tolerates_close_failures() -> None:
    factory, playwright, page = _fake_playwright()
    page.close.side_effect = PlaywrightError("Target page, context or browser has been closed")
    manager = BrowserManager(InspectorConfig(), playwright_factory=factory)

    driver = await manager.start()
    assert isinstance(driver, PlaywrightDriver)
    await manager.close()
    await manager.close()

    page.close.assert_awaited_once()
    playwright.stop.assert_awaited_once()


def test_normalize_url() -> None:
    assert BrowserManager._normalize_url(" example.com ") == "https://example.com"
    assert BrowserManager._normalize_url("http://localhost:8000") == "http://localhost:8000"
    assert BrowserManager._normalize_url("about:blank") == "about:blank"
    assert BrowserManager._normalize_url("") == ""

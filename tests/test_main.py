import asyncio
import logging
import os
import signal

import pytest

from tests.helpers import FakeDriver, ScriptedConsole
from uniqueselector import __main__ as entry
from uniqueselector.config import InspectorConfig
from uniqueselector.controller import InspectorController
from uniqueselector.errors import SessionError
from uniqueselector.logging_config import resolve_level


@pytest.fixture
def quiet_entry(monkeypatch):
    monkeypatch.setattr("uniqueselector.logging_config.configure_logging", lambda level=None: None)
    monkeypatch.setattr(entry, "load_config", lambda: InspectorConfig())
    return monkeypatch


def test_session_failure_exits_non_zero(quiet_entry, capsys) -> None:
    async def failing(config: InspectorConfig) -> None:
        raise SessionError("Chromium not installed. Run: python -m playwright install chromium")

    quiet_entry.setattr(entry, "_run", failing)

    assert entry.main([]) == 1
    assert "playwright install chromium" in capsys.readouterr().err


def test_successful_session_exits_zero(quiet_entry) -> None:
    seen: list[str] = []

    async def done(config: InspectorConfig) -> None:
        seen.append(config.start_url)

    quiet_entry.setattr(entry, "_run", done)

    assert entry.main(["https://example.org"]) == 0
    assert seen == ["https://example.org"]


def test_resolve_level() -> None:
    assert resolve_level(None) == logging.WARNING
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level("10") == 10
    assert resolve_level("chatty") == logging.WARNING


class _FakeManager:
    def __init__(self, config: InspectorConfig) -> None:
        self.config = config
        self.driver = FakeDriver()
        self.close_calls = 0

    async def __aenter__(self) -> FakeDriver:
        return self.driver

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        self.close_calls += 1


@pytest.fixture
def fake_browser(monkeypatch):
    managers: list[_FakeManager] = []
    console = ScriptedConsole(["exit"])

    def build(config: InspectorConfig) -> _FakeManager:
        manager = _FakeManager(config)
        managers.append(manager)
        return manager

    monkeypatch.setattr("uniqueselector.browser_manager.BrowserManager", build)
    monkeypatch.setattr("uniqueselector.controller.TerminalConsole", lambda: console)
    return managers, console


@pytest.mark.asyncio
async def test_run_remembers_start_url_and_closes_browser(fake_browser, monkeypatch) -> None:
    managers, console = fake_browser
    remembered: list[str] = []

    def remember(url: str) -> tuple[bool, None]:
        remembered.append(url)
        return True, None

    monkeypatch.setattr(entry, "remember_start_url", remember)

    await entry._run(InspectorConfig(start_url="https://shop.example/"))

    assert remembered == ["https://shop.example/"]
    assert "Browser ready at https://shop.example/" in console.lines
    assert managers[0].close_calls >= 1


@pytest.mark.asyncio
async def test_run_continues_when_start_url_cannot_be_stored(fake_browser, monkeypatch, caplog) -> None:
    managers, _console = fake_browser
    monkeypatch.setattr(entry, "remember_start_url", lambda url: (False, "Could not write config: disk full"))

    with caplog.at_level(logging.WARNING, logger="uniqueselector"):
        await entry._run(InspectorConfig())

    assert "disk full" in caplog.text
    assert managers[0].close_calls >= 1


@pytest.mark.asyncio
async def test_interrupt_requests_exit() -> None:
    controller = InspectorController(FakeDriver(), ScriptedConsole([]))
    loop = asyncio.get_running_loop()

    assert entry._install_interrupt_handler(controller)
    try:
        os.kill(os.getpid(), signal.SIGINT)
        for _ in range(50):
            if controller.exit_requested:
                break
            await asyncio.sleep(0.01)
    finally:
        loop.remove_signal_handler(signal.SIGINT)

    assert controller.exit_requested

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Protocol

from .analysis import analyze_element, options_from_config
from .config import InspectorConfig
from .dom_extractor import describe_handles
from .driver import BrowsingDriver
from .element_groups import ELEMENT_GROUPS, parse_group_reference, resolve_group, scan_group
from .errors import (
    DocumentChangedError,
    DriverError,
    InvalidSelectorError,
    NoStableSelectorFound,
    NotFoundError,
    StaleElementError,
    WaitTimeoutError,
)
from .locator_recommendation import require_best
from .models import ElementAnalysis, ScannedElement
from .reporting import format_analysis, format_listing, screenshot_path

logger = logging.getLogger("uniqueselector.controller")

EXIT_COMMANDS = {"exit", "quit", "q"}


class SessionState(Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    LISTING = "listing"
    SELECTED = "selected"
    ANALYZING = "analyzing"
    HIGHLIGHTED = "highlighted"
    AWAITING_NEXT_ACTION = "awaiting_next_action"
    CLOSED = "closed"


class Console(Protocol):
    async def prompt(self, text: str) -> str | None: ...

    def write(self, text: str) -> None: ...


class ClosableSession(Protocol):
    async def close(self) -> None: ...


class TerminalConsole:
    """Console over stdin/stdout. End of input reads as ``None``.

    Lines are read on a daemon thread, so a cancelled prompt leaves nothing
    for interpreter shutdown to wait on.
    """

    async def prompt(self, text: str) -> str | None:
        loop = asyncio.get_running_loop()
        answer: asyncio.Future[str | None] = loop.create_future()

        def deliver(value: str | None, error: BaseException | None) -> None:
            if answer.done():
                return
            if error is not None:
                answer.set_exception(error)
            else:
                answer.set_result(value)

        def read() -> None:
            value: str | None = None
            error: BaseException | None = None
            try:
                value = input(text)
            except EOFError:
                value = None
            except Exception as exc:
                error = exc
            try:
                loop.call_soon_threadsafe(deliver, value, error)
            except RuntimeError:
                logger.debug("Input arrived after the event loop closed.")

        threading.Thread(target=read, name="uniqueselector-input", daemon=True).start()
        return await answer

    def write(self, text: str) -> None:
        print(text, flush=True)


@dataclass(frozen=True, slots=True)
class Selection:
    handle: Any
    index: int | None = None
    scope: str | None = None


class InspectorController:
    """Drives one interactive inspection session.

    Each state handler performs its work and returns the next state. The loop
    ends in ``CLOSED`` on ``exit``, on end of input, or after ``request_exit``;
    ``SessionError`` is not handled here and ends the session as well.
    """

    def __init__(
        self,
        driver: BrowsingDriver,
        console: Console,
        config: InspectorConfig | None = None,
        *,
        session: ClosableSession | None = None,
    ) -> None:
        self.driver = driver
        self.console = console
        self.config = config or InspectorConfig()
        self.session = session
        self.state = SessionState.IDLE
        self.items: list[ScannedElement] = []
        self.scope: str | None = None
        self.selection: Selection | None = None
        self.analysis: ElementAnalysis | None = None
        self._query: str = ""
        self._options = options_from_config(self.config)
        self._exit_requested = False
        self._pending_prompt: asyncio.Future[str | None] | None = None
        self._handlers: dict[SessionState, Callable[[], Awaitable[SessionState]]] = {
            SessionState.IDLE: self._on_idle,
            SessionState.SCANNING: self._on_scanning,
            SessionState.LISTING: self._on_listing,
            SessionState.SELECTED: self._on_selected,
            SessionState.ANALYZING: self._on_analyzing,
            SessionState.HIGHLIGHTED: self._on_highlighted,
            SessionState.AWAITING_NEXT_ACTION: self._on_awaiting_next_action,
        }

    @property
    def exit_requested(self) -> bool:
        return self._exit_requested

    def request_exit(self) -> None:
        """Stop the session at the next state boundary, abandoning any pending prompt."""
        self._exit_requested = True
        if self._pending_prompt is not None:
            self._pending_prompt.cancel()

    async def run(self) -> None:
        try:
            while self.state is not SessionState.CLOSED:
                if self._exit_requested:
                    break
                handler = self._handlers[self.state]
                next_state = await handler()
                logger.debug("State %s -> %s", self.state.value, next_state.value)
                self.state = next_state
        finally:
            self.state = SessionState.CLOSED
            if self.session is not None:
                await self.session.close()
            logger.info("Inspection session closed.")

    async def _prompt(self, text: str) -> str | None:
        if self._exit_requested:
            return None
        pending = asyncio.ensure_future(self.console.prompt(text))
        self._pending_prompt = pending
        try:
            return await pending
        except asyncio.CancelledError:
            # Only a cancellation from request_exit reads as end of input.
            task = asyncio.current_task()
            if self._exit_requested and pending.cancelled() and not (task and task.cancelling()):
                return None
            raise
        finally:
            self._pending_prompt = None

    async def _on_idle(self) -> SessionState:
        groups = " ".join(f"@{name}" for name in ELEMENT_GROUPS)
        line = await self._prompt(
            f"\nSelector ({groups}), Enter for a Ctrl/Cmd+click pick, or exit: "
        )
        if line is None:
            return SessionState.CLOSED
        text = line.strip()
        if text.lower() in EXIT_COMMANDS:
            return SessionState.CLOSED
        if not text:
            return await self._take_pointer_selection(fallback=SessionState.IDLE)
        self._query = text
        return SessionState.SCANNING

    async def _on_scanning(self) -> SessionState:
        query = self._query
        group_name = parse_group_reference(query)
        if group_name is not None:
            try:
                group = resolve_group(group_name)
            except NotFoundError as exc:
                self.console.write(str(exc))
                return SessionState.IDLE
            self.console.write(f"Scanning {group.title.lower()}...")
            items = await scan_group(self.driver, group)
            scope = f"@{group.name}"
        else:
            timeout_ms = self.config.wait_timeout_ms
            try:
                handles = await self.driver.wait_for_elements(query, timeout_ms)
            except WaitTimeoutError:
                self.console.write(f"No elements found for {query} within {timeout_ms}ms.")
                return SessionState.IDLE
            except (InvalidSelectorError, DriverError) as exc:
                self.console.write(f"Cannot use selector {query}: {exc}")
                return SessionState.IDLE
            items = await describe_handles(self.driver, handles, query)
            scope = query

        if not items:
            self.console.write(f"No elements found for {query}.")
            return SessionState.IDLE

        self.items = items
        self.scope = scope
        if len(items) == 1 and items[0].descriptor is not None:
            self.console.write(f"Exactly one element matches {scope}; analyzing it.")
            self.selection = self._selection_for(items[0])
            return SessionState.ANALYZING
        return SessionState.LISTING

    async def _on_listing(self) -> SessionState:
        await self._clear_marks()
        for line in format_listing(self.scope or "", self.items):
            self.console.write(line)
        try:
            await self.driver.mark_elements([item.handle for item in self.items])
        except (DriverError, StaleElementError) as exc:
            logger.info("Could not label listed elements: %s", exc)
        return SessionState.SELECTED

    async def _on_selected(self) -> SessionState:
        line = await self._prompt(
            "\nIndex, text to search, Enter for a Ctrl/Cmd+click pick, or back: "
        )
        if line is None:
            return SessionState.CLOSED
        text = line.strip()
        lowered = text.lower()
        if lowered in EXIT_COMMANDS:
            return SessionState.CLOSED
        if lowered == "back":
            await self._clear_marks()
            return SessionState.IDLE
        if not text:
            return await self._take_pointer_selection(fallback=SessionState.SELECTED)

        try:
            item = self._pick_item(text)
        except NotFoundError as exc:
            self.console.write(str(exc))
            return SessionState.SELECTED
        self.selection = self._selection_for(item)
        return SessionState.ANALYZING

    async def _on_analyzing(self) -> SessionState:
        selection = self.selection
        if selection is None:
            return SessionState.IDLE
        # Listing labels must be gone before the element text is read.
        await self._clear_marks()
        self.console.write("\nAnalyzing element...")
        try:
            analysis = await analyze_element(
                self.driver,
                selection.handle,
                index=selection.index,
                scope=selection.scope,
                options=self._options,
            )
        except StaleElementError:
            self.console.write("Element not found anymore; it was removed or re-rendered. Scan again.")
            self.selection = None
            return SessionState.IDLE
        except DocumentChangedError:
            self.console.write("The page kept changing during analysis. Scan again once it settles.")
            return SessionState.IDLE
        except DriverError as exc:
            self.console.write(f"Analysis failed: {exc}")
            return SessionState.IDLE

        self.analysis = analysis
        for line in format_analysis(analysis):
            self.console.write(line)
        try:
            require_best(analysis.recommendations)
        except NoStableSelectorFound as exc:
            logger.info("%s", exc)
            return SessionState.AWAITING_NEXT_ACTION
        return SessionState.HIGHLIGHTED

    async def _on_highlighted(self) -> SessionState:
        best = self.analysis.recommendations.best if self.analysis else None
        if best is None:
            return SessionState.AWAITING_NEXT_ACTION
        await self._clear_marks()
        try:
            await self.driver.highlight(best.selector)
        except (DriverError, InvalidSelectorError, StaleElementError) as exc:
            self.console.write(f"Could not highlight {best.selector}: {exc}")
        else:
            self.console.write(f"Highlighted {best.selector} in the page.")
        return SessionState.AWAITING_NEXT_ACTION

    async def _on_awaiting_next_action(self) -> SessionState:
        line = await self._prompt("\n[s] screenshot, [Enter/l] list again, or exit: ")
        if line is None:
            return SessionState.CLOSED
        command = line.strip().lower()
        if command in EXIT_COMMANDS:
            return SessionState.CLOSED
        if command == "s":
            await self._take_screenshot()
            return SessionState.AWAITING_NEXT_ACTION
        if command in {"", "l"}:
            return SessionState.LISTING if self.items else SessionState.IDLE
        self.console.write(f"Unknown command: {line.strip()}")
        return SessionState.AWAITING_NEXT_ACTION

    def _pick_item(self, text: str) -> ScannedElement:
        if text.isdigit():
            index = int(text)
            if index >= len(self.items):
                raise NotFoundError(f"Invalid index {index}; choose 0-{len(self.items) - 1}.")
            item = self.items[index]
            if item.descriptor is None:
                raise NotFoundError(f"Element {index} is unavailable: {item.error}")
            return item

        needle = text.lower()
        for item in self.items:
            if item.descriptor is not None and needle in item.descriptor.text.lower():
                return item
        raise NotFoundError(f'No listed element contains the text "{text}".')

    def _selection_for(self, item: ScannedElement) -> Selection:
        return Selection(handle=item.handle, index=item.scope_index, scope=item.scope)

    async def _take_pointer_selection(self, fallback: SessionState) -> SessionState:
        handle = self.driver.take_pointer_selection()
        if handle is None:
            self.console.write("No element picked yet. Ctrl/Cmd+click an element in the page first.")
            return fallback
        try:
            self.selection = await self._locate_pointer_selection(handle)
        except (StaleElementError, DriverError):
            self.console.write("The picked element is no longer in the page. Pick it again.")
            return fallback
        return SessionState.ANALYZING

    async def _locate_pointer_selection(self, handle: Any) -> Selection:
        # A picked element has no base selector; its tag serves as the scope.
        tag = await self.driver.tag_name(handle)
        try:
            peers = await self.driver.query(tag)
        except InvalidSelectorError:
            return Selection(handle=handle)
        for index, peer in enumerate(peers):
            if await self.driver.same_element(peer, handle):
                return Selection(handle=handle, index=index, scope=tag)
        return Selection(handle=handle)

    async def _take_screenshot(self) -> None:
        path = screenshot_path(Path(self.config.screenshot_dir))
        try:
            saved = await self.driver.screenshot(path, full_page=self.config.full_page_screenshot)
        except DriverError as exc:
            self.console.write(f"Screenshot failed: {exc}")
            return
        self.console.write(f"Screenshot saved: {saved}")

    async def _clear_marks(self) -> None:
        try:
            await self.driver.clear_marks()
        except DriverError as exc:
            logger.info("Could not clear page marks: %s", exc)

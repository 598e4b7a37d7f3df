from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .errors import (
    DriverError,
    InvalidSelectorError,
    SessionError,
    StaleElementError,
    WaitTimeoutError,
)
from .models import BoundingBox
from .runtime_checks import (
    first_line,
    is_closed_target_error,
    is_invalid_selector_error,
    is_stale_element_error,
)
from .selection_mailbox import SelectionMailbox

if TYPE_CHECKING:
    from playwright.async_api import ElementHandle, JSHandle, Page

logger = logging.getLogger("uniqueselector.driver")

PICK_BINDING_NAME = "__uniqueSelectorPick"
LABEL_COLORS = ("red", "blue", "green", "orange", "purple", "cyan")

PAGE_HOOKS_SCRIPT = r"""
(() => {
  if (window.__uniqueSelectorHooks) {
    return;
  }
  window.__uniqueSelectorHooks = true;
  window.__uniqueSelectorRevision = 0;

  const isOwnNode = (node) =>
    node && node.nodeType === Node.ELEMENT_NODE && node.hasAttribute('data-uniqueselector-label');

  const observer = new MutationObserver((records) => {
    for (const record of records) {
      const nodes = [...record.addedNodes, ...record.removedNodes];
      if (nodes.length && nodes.every(isOwnNode)) {
        continue;
      }
      window.__uniqueSelectorRevision += 1;
    }
  });
  const startObserving = () => {
    observer.observe(document.documentElement, { childList: true, subtree: true });
  };
  if (document.documentElement) {
    startObserving();
  } else {
    document.addEventListener('DOMContentLoaded', startObserving, { once: true });
  }

  let lastHovered = null;
  document.addEventListener('mouseover', (event) => {
    if (lastHovered && !lastHovered.hasAttribute('data-uniqueselector-marked')) {
      lastHovered.style.outline = '';
    }
    lastHovered = event.target;
    if (!lastHovered.hasAttribute('data-uniqueselector-marked')) {
      lastHovered.style.outline = '2px solid blue';
    }
  }, true);

  document.addEventListener('click', (event) => {
    if (!(event.ctrlKey || event.metaKey)) {
      return;
    }
    event.preventDefault();
    event.stopPropagation();
    const binding = window.__uniqueSelectorPick;
    if (typeof binding === 'function') {
      binding(event.target);
    }
  }, true);
})();
"""

REVISION_SCRIPT = "() => (typeof window.__uniqueSelectorRevision === 'number' ? window.__uniqueSelectorRevision : -1)"

HIGHLIGHT_SCRIPT = """
(el) => {
  el.setAttribute('data-uniqueselector-marked', 'best');
  el.style.outline = '4px solid green';
  el.style.backgroundColor = 'rgba(0, 255, 0, 0.2)';
  el.scrollIntoView({ behavior: 'smooth', block: 'center' });
}
"""

MARK_SCRIPT = """
(el, [index, color]) => {
  el.setAttribute('data-uniqueselector-marked', String(index));
  el.style.outline = `3px solid ${color}`;
  const rect = el.getBoundingClientRect();
  const label = document.createElement('div');
  label.setAttribute('data-uniqueselector-label', String(index));
  label.textContent = String(index);
  Object.assign(label.style, {
    position: 'absolute',
    top: `${Math.max(0, rect.top + window.scrollY - 10)}px`,
    left: `${Math.max(0, rect.left + window.scrollX - 10)}px`,
    background: color,
    color: 'white',
    padding: '2px 6px',
    borderRadius: '3px',
    fontSize: '12px',
    fontWeight: 'bold',
    zIndex: '2147483647',
    pointerEvents: 'none',
  });
  document.body.appendChild(label);
}
"""

CLEAR_MARKS_SCRIPT = """
() => {
  document.querySelectorAll('[data-uniqueselector-label]').forEach((node) => node.remove());
  document.querySelectorAll('[data-uniqueselector-marked]').forEach((node) => {
    node.removeAttribute('data-uniqueselector-marked');
    node.style.outline = '';
    node.style.backgroundColor = '';
  });
}
"""

ATTRIBUTES_SCRIPT = "(el) => Array.from(el.attributes, (attr) => [attr.name, attr.value])"

SIBLING_POSITIONS_SCRIPT = """
(el) => {
  const parent = el.parentElement;
  if (!parent) {
    return null;
  }
  const siblings = Array.from(parent.children);
  const sameType = siblings.filter((node) => node.tagName === el.tagName);
  return [siblings.indexOf(el) + 1, sameType.indexOf(el) + 1];
}
"""


class BrowsingDriver(Protocol):
    """Narrow view of one browsing context used by the selector engine."""

    async def query(self, selector: str) -> list[Any]: ...

    async def wait_for_elements(self, selector: str, timeout_ms: float) -> list[Any]: ...

    async def tag_name(self, handle: Any) -> str: ...

    async def get_attributes(self, handle: Any) -> dict[str, str]: ...

    async def get_text(self, handle: Any) -> str | None: ...

    async def is_visible(self, handle: Any) -> bool: ...

    async def is_enabled(self, handle: Any) -> bool: ...

    async def bounding_box(self, handle: Any) -> BoundingBox | None: ...

    async def sibling_positions(self, handle: Any) -> tuple[int, int] | None: ...

    async def same_element(self, first: Any, second: Any) -> bool | None: ...

    async def document_revision(self) -> int | None: ...

    async def highlight(self, selector: str) -> None: ...

    async def mark_elements(self, handles: Sequence[Any]) -> None: ...

    async def clear_marks(self) -> None: ...

    async def screenshot(self, path: Path, *, full_page: bool = True) -> Path: ...

    def take_pointer_selection(self) -> Any | None: ...


class PlaywrightDriver:
    def __init__(self, page: Page, *, highlight_timeout_ms: float = 2000) -> None:
        self._page = page
        self._highlight_timeout_ms = highlight_timeout_ms
        self.mailbox: SelectionMailbox[ElementHandle] = SelectionMailbox(on_discard=self._dispose_quietly)
        self._hooks_installed = False

    @property
    def page(self) -> Page:
        return self._page

    async def install_page_hooks(self) -> None:
        if self._hooks_installed:
            return
        try:
            await self._page.expose_binding(PICK_BINDING_NAME, self._on_pick, handle=True)
            await self._page.add_init_script(PAGE_HOOKS_SCRIPT)
            await self._page.evaluate(PAGE_HOOKS_SCRIPT)
        except PlaywrightError as exc:
            raise self._translate(exc) from exc
        self._hooks_installed = True
        logger.info("Page hooks installed on %s", self._page.url)

    def _on_pick(self, _source: Any, handle: JSHandle) -> None:
        element = handle.as_element()
        if element is None:
            return
        logger.info("Pointer selection received.")
        self.mailbox.post(element)

    def take_pointer_selection(self) -> ElementHandle | None:
        return self.mailbox.take()

    async def query(self, selector: str) -> list[ElementHandle]:
        try:
            return await self._page.query_selector_all(selector)
        except PlaywrightError as exc:
            raise self._query_error(selector, exc) from exc

    async def wait_for_elements(self, selector: str, timeout_ms: float) -> list[ElementHandle]:
        try:
            await self._page.wait_for_selector(selector, state="attached", timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise WaitTimeoutError(selector, timeout_ms) from exc
        except PlaywrightError as exc:
            raise self._query_error(selector, exc) from exc
        return await self.query(selector)

    async def tag_name(self, handle: ElementHandle) -> str:
        try:
            return str(await handle.evaluate("(el) => el.tagName.toLowerCase()"))
        except PlaywrightError as exc:
            raise self._translate(exc) from exc

    async def get_attributes(self, handle: ElementHandle) -> dict[str, str]:
        try:
            pairs = await handle.evaluate(ATTRIBUTES_SCRIPT)
        except PlaywrightError as exc:
            raise self._translate(exc) from exc
        return {str(name): str(value) for name, value in pairs}

    async def get_text(self, handle: ElementHandle) -> str | None:
        try:
            return await handle.text_content()
        except PlaywrightError as exc:
            raise self._translate(exc) from exc

    async def is_visible(self, handle: ElementHandle) -> bool:
        try:
            return bool(await handle.is_visible())
        except PlaywrightError as exc:
            raise self._translate(exc) from exc

    async def is_enabled(self, handle: ElementHandle) -> bool:
        try:
            return bool(await handle.is_enabled())
        except PlaywrightError as exc:
            raise self._translate(exc) from exc

    async def bounding_box(self, handle: ElementHandle) -> BoundingBox | None:
        try:
            box = await handle.bounding_box()
        except PlaywrightError as exc:
            raise self._translate(exc) from exc
        if not box:
            return None
        return BoundingBox(
            x=float(box["x"]),
            y=float(box["y"]),
            width=float(box["width"]),
            height=float(box["height"]),
        )

    async def sibling_positions(self, handle: ElementHandle) -> tuple[int, int] | None:
        try:
            positions = await handle.evaluate(SIBLING_POSITIONS_SCRIPT)
        except PlaywrightError as exc:
            raise self._translate(exc) from exc
        if not positions:
            return None
        child, of_type = positions
        return int(child), int(of_type)

    async def same_element(self, first: ElementHandle, second: ElementHandle) -> bool | None:
        try:
            return bool(await first.evaluate("(el, other) => el === other", second))
        except PlaywrightError as exc:
            raise self._translate(exc) from exc

    async def document_revision(self) -> int | None:
        try:
            value = await self._page.evaluate(REVISION_SCRIPT)
        except PlaywrightError as exc:
            raise self._translate(exc) from exc
        revision = int(value)
        return revision if revision >= 0 else None

    async def highlight(self, selector: str) -> None:
        try:
            await self._page.locator(selector).first.evaluate(
                HIGHLIGHT_SCRIPT,
                timeout=self._highlight_timeout_ms,
            )
        except PlaywrightError as exc:
            raise self._translate(exc) from exc

    async def mark_elements(self, handles: Sequence[ElementHandle]) -> None:
        for index, handle in enumerate(handles):
            color = LABEL_COLORS[index % len(LABEL_COLORS)]
            try:
                await handle.evaluate(MARK_SCRIPT, [index, color])
            except PlaywrightError as exc:
                if is_closed_target_error(exc):
                    raise SessionError(f"Page is no longer available: {first_line(exc)}") from exc
                logger.info("Could not label element %s: %s", index, first_line(exc))

    async def clear_marks(self) -> None:
        try:
            await self._page.evaluate(CLEAR_MARKS_SCRIPT)
        except PlaywrightError as exc:
            raise self._translate(exc) from exc

    async def screenshot(self, path: Path, *, full_page: bool = True) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            await self._page.screenshot(path=str(path), full_page=full_page)
        except PlaywrightError as exc:
            raise self._translate(exc) from exc
        return path

    @staticmethod
    def _query_error(selector: str, exc: PlaywrightError) -> Exception:
        if is_closed_target_error(exc):
            return SessionError(f"Page is no longer available: {first_line(exc)}")
        if is_invalid_selector_error(exc):
            return InvalidSelectorError(selector, first_line(exc))
        return DriverError(first_line(exc))

    @staticmethod
    def _translate(exc: PlaywrightError) -> Exception:
        if isinstance(exc, PlaywrightTimeoutError):
            return DriverError(f"Timed out: {first_line(exc)}")
        if is_closed_target_error(exc):
            return SessionError(f"Page is no longer available: {first_line(exc)}")
        if is_stale_element_error(exc):
            return StaleElementError(first_line(exc))
        return DriverError(first_line(exc))

    @staticmethod
    def _dispose_quietly(handle: ElementHandle) -> None:
        # Fire-and-forget; a failed dispose only leaks a remote reference.
        task = asyncio.ensure_future(handle.dispose())
        task.add_done_callback(lambda done: done.exception() if not done.cancelled() else None)

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from uniqueselector.errors import DriverError, InvalidSelectorError, StaleElementError, WaitTimeoutError
from uniqueselector.models import BoundingBox
from uniqueselector.selection_mailbox import SelectionMailbox


@dataclass(eq=False)
class FakeElement:
    tag: str
    text: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    visible: bool = True
    enabled: bool = True
    box: BoundingBox | None = None
    child_position: int | None = None
    type_position: int | None = None
    detached: bool = False


class FakeDriver:
    """In-memory browsing driver keyed by exact selector strings."""

    def __init__(
        self,
        matches: dict[str, list[FakeElement]] | None = None,
        *,
        invalid: set[str] | None = None,
        failing: set[str] | None = None,
    ) -> None:
        self.matches = matches or {}
        self.invalid = invalid or set()
        self.failing = failing or set()
        self.queries: list[str] = []
        self.revision = 0
        self.revision_steps: list[int] = []
        self.highlighted: list[str] = []
        self.marked: list[list[FakeElement]] = []
        self.clear_count = 0
        self.screenshots: list[Path] = []
        self.highlight_error: Exception | None = None
        self.supports_identity = True
        self.mailbox: SelectionMailbox[FakeElement] = SelectionMailbox()

    def _check(self, handle: FakeElement) -> FakeElement:
        if handle.detached:
            raise StaleElementError("Element is not attached to the DOM")
        return handle

    async def query(self, selector: str) -> list[FakeElement]:
        self.queries.append(selector)
        if selector in self.invalid:
            raise InvalidSelectorError(selector, f"{selector!r} is not a valid selector")
        if selector in self.failing:
            raise DriverError("Execution failed")
        return [item for item in self.matches.get(selector, []) if not item.detached]

    async def wait_for_elements(self, selector: str, timeout_ms: float) -> list[FakeElement]:
        found = await self.query(selector)
        if not found:
            raise WaitTimeoutError(selector, timeout_ms)
        return found

    async def tag_name(self, handle: FakeElement) -> str:
        return self._check(handle).tag

    async def get_attributes(self, handle: FakeElement) -> dict[str, str]:
        return dict(self._check(handle).attributes)

    async def get_text(self, handle: FakeElement) -> str | None:
        return self._check(handle).text

    async def is_visible(self, handle: FakeElement) -> bool:
        return self._check(handle).visible

    async def is_enabled(self, handle: FakeElement) -> bool:
        return self._check(handle).enabled

    async def bounding_box(self, handle: FakeElement) -> BoundingBox | None:
        return self._check(handle).box

    async def sibling_positions(self, handle: FakeElement) -> tuple[int, int] | None:
        element = self._check(handle)
        if element.child_position is None or element.type_position is None:
            return None
        return element.child_position, element.type_position

    async def same_element(self, first: FakeElement, second: FakeElement) -> bool | None:
        if not self.supports_identity:
            return None
        return first is second

    async def document_revision(self) -> int | None:
        if self.revision_steps:
            self.revision += self.revision_steps.pop(0)
        return self.revision

    async def highlight(self, selector: str) -> None:
        if self.highlight_error is not None:
            raise self.highlight_error
        self.highlighted.append(selector)

    async def mark_elements(self, handles: Sequence[FakeElement]) -> None:
        self.marked.append(list(handles))

    async def clear_marks(self) -> None:
        self.clear_count += 1

    async def screenshot(self, path: Path, *, full_page: bool = True) -> Path:
        self.screenshots.append(path)
        return path

    def take_pointer_selection(self) -> Any | None:
        return self.mailbox.take()


class ScriptedConsole:
    """Console that replays a fixed list of answers, then reports end of input."""

    def __init__(self, answers: Sequence[str]) -> None:
        self.answers = list(answers)
        self.prompts: list[str] = []
        self.lines: list[str] = []

    async def prompt(self, text: str) -> str | None:
        self.prompts.append(text)
        if not self.answers:
            return None
        return self.answers.pop(0)

    def write(self, text: str) -> None:
        self.lines.append(text)

    @property
    def output(self) -> str:
        return "\n".join(self.lines)


class FakeSession:
    def __init__(self) -> None:
        self.close_calls = 0

    async def close(self) -> None:
        self.close_calls += 1

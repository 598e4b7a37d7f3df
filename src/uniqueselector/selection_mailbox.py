from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


@dataclass(slots=True)
class SelectionMailbox(Generic[T]):
    """Single-slot handoff for pointer selections raised inside the page.

    The page side posts, the controller takes. A post overwrites any pending
    value that was never taken.
    """

    pending: T | None = None
    on_discard: Callable[[T], None] | None = None

    def post(self, value: T) -> None:
        previous = self.pending
        self.pending = value
        if previous is not None and previous is not value and self.on_discard:
            self.on_discard(previous)

    def take(self) -> T | None:
        value = self.pending
        self.pending = None
        return value

    def has_pending(self) -> bool:
        return self.pending is not None

    def clear(self) -> None:
        value = self.take()
        if value is not None and self.on_discard:
            self.on_discard(value)

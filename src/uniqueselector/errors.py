from __future__ import annotations


class SelectorEngineError(RuntimeError):
    """Base class for failures raised by the selector engine."""


class StaleElementError(SelectorEngineError):
    """Raised when an element reference is no longer attached to the document."""


class InvalidSelectorError(SelectorEngineError):
    """Raised when the matching engine rejects a selector."""

    def __init__(self, selector: str, message: str) -> None:
        super().__init__(message)
        self.selector = selector


class NotFoundError(SelectorEngineError):
    """Raised when an index, text or selector resolves to nothing."""


class AmbiguousMatchError(SelectorEngineError):
    """Raised when no candidate is both unique and correct."""


class NoStableSelectorFound(AmbiguousMatchError):
    """Raised by the ranker when the valid list is empty."""


class WaitTimeoutError(SelectorEngineError, TimeoutError):
    """Raised when a bounded wait for elements expires."""

    def __init__(self, selector: str, timeout_ms: float) -> None:
        super().__init__(f"Timed out after {timeout_ms:g}ms waiting for {selector!r}.")
        self.selector = selector
        self.timeout_ms = timeout_ms


class DocumentChangedError(SelectorEngineError):
    """Raised when the document structure changed during a verification pass."""


class DriverError(SelectorEngineError):
    """Raised for driver failures that do not end the session."""


class SessionError(SelectorEngineError):
    """Raised for fatal browsing-session failures."""

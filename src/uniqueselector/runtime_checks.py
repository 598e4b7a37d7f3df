from __future__ import annotations

_MISSING_BROWSER_ERROR_HINTS = (
    "executable doesn't exist",
    "executable does not exist",
    "download new browsers",
    "playwright install",
    "could not find browser",
    "failed to launch chromium because executable",
)

_CLOSED_TARGET_ERROR_HINTS = (
    "has been closed",
    "target page, context or browser has been closed",
    "browser has been closed",
    "target closed",
    "connection closed",
)

_STALE_ELEMENT_ERROR_HINTS = (
    "element is not attached to the dom",
    "not attached to the dom",
    "element has been detached",
    "node is detached from document",
    "element handle is disposed",
    "jshandle is disposed",
    "execution context was destroyed",
    "cannot find context with specified id",
)

_INVALID_SELECTOR_ERROR_HINTS = (
    "is not a valid selector",
    "unexpected token",
    "unexpected end of selector",
    "unknown engine",
    "failed to parse selector",
    "syntaxerror",
    "unsupported token",
    "malformed",
)


def _message(exc: BaseException) -> str:
    return str(exc).lower()


def _is_missing_browser_error(exc: Exception) -> bool:
    message = _message(exc)
    return any(hint in message for hint in _MISSING_BROWSER_ERROR_HINTS)


def is_closed_target_error(exc: Exception) -> bool:
    message = _message(exc)
    return any(hint in message for hint in _CLOSED_TARGET_ERROR_HINTS)


def is_stale_element_error(exc: Exception) -> bool:
    message = _message(exc)
    return any(hint in message for hint in _STALE_ELEMENT_ERROR_HINTS)


def is_invalid_selector_error(exc: Exception) -> bool:
    message = _message(exc)
    return any(hint in message for hint in _INVALID_SELECTOR_ERROR_HINTS)


def first_line(exc: BaseException) -> str:
    text = str(exc).strip()
    if not text:
        return exc.__class__.__name__
    return text.splitlines()[0].strip()

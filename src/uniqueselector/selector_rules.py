from __future__ import annotations

import re
from typing import Sequence

TEST_ATTR_PRIORITY = (
    "data-test",
    "data-testid",
    "data-qa",
    "data-cy",
    "data-e2e",
)

GENERIC_CLASS_TERMS = ("btn", "button")

INPUT_LIKE_TAGS = frozenset({"input", "button", "select", "textarea"})
ANCHOR_LIKE_TAGS = frozenset({"a", "area"})

TEXT_LENGTH_LIMIT = 50
SINGLE_CLASS_MIN_LENGTH = 4

_CSS_SAFE_IDENTIFIER_PATTERN = re.compile(r"^-?[A-Za-z_][A-Za-z0-9_-]*$")


def normalize_space(value: str | None, limit: int = 200) -> str:
    if not value:
        return ""
    compact = re.sub(r"\s+", " ", str(value)).strip()
    return compact[:limit] if compact else ""


def normalize_classes(raw: Sequence[str] | str | None) -> list[str]:
    if not raw:
        return []
    if isinstance(raw, str):
        items = raw.split()
    else:
        items = [item for item in raw if isinstance(item, str)]

    seen: set[str] = set()
    normalized: list[str] = []
    for item in items:
        clean = item.strip()
        if not clean or clean in seen:
            continue
        seen.add(clean)
        normalized.append(clean)
    return normalized


def is_css_safe_identifier(value: str) -> bool:
    return bool(_CSS_SAFE_IDENTIFIER_PATTERN.fullmatch(value.strip()))


def escape_css_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def escape_css_identifier(value: str) -> str:
    if is_css_safe_identifier(value):
        return value
    escaped: list[str] = []
    for position, char in enumerate(value):
        if char.isalnum() and not (position == 0 and char.isdigit()):
            escaped.append(char)
        elif char in ("-", "_"):
            escaped.append(char)
        else:
            escaped.append(f"\\{ord(char):x} ")
    return "".join(escaped)


def is_generic_class(class_name: str, generic_terms: Sequence[str] = GENERIC_CLASS_TERMS) -> bool:
    lowered = class_name.strip().lower()
    return lowered in {term.lower() for term in generic_terms}


def is_distinctive_class(class_name: str, generic_terms: Sequence[str] = GENERIC_CLASS_TERMS) -> bool:
    return len(class_name) >= SINGLE_CLASS_MIN_LENGTH and not is_generic_class(class_name, generic_terms)


def is_short_text(text: str, limit: int = TEXT_LENGTH_LIMIT) -> bool:
    return 0 < len(text) < limit


def attribute_selector(attr: str, value: str) -> str:
    return f'[{attr}="{escape_css_string(value)}"]'


def id_selector(value: str) -> str:
    if is_css_safe_identifier(value):
        return f"#{value}"
    return attribute_selector("id", value)


def class_selector(classes: Sequence[str]) -> str:
    return "".join(f".{escape_css_identifier(item)}" for item in classes)


_ENGINE_PREFIX_PATTERN = re.compile(r"^\s*[A-Za-z_-]+\s*=")


def is_css_scope(selector: str | None) -> bool:
    """True when a pseudo-class appended to ``selector`` narrows its only match set.

    Selector lists and Playwright engine chains do not qualify: a suffix would
    bind to the last alternative or to a non-CSS engine.
    """
    text = (selector or "").strip()
    if not text or "," in text or ">>" in text:
        return False
    if text.startswith(("/", "(")) or _ENGINE_PREFIX_PATTERN.match(text):
        return False
    return text[-1] not in "> +~"

from __future__ import annotations

import logging
from dataclasses import dataclass

from .dom_extractor import describe_handles
from .driver import BrowsingDriver
from .errors import DriverError, InvalidSelectorError, NotFoundError
from .models import ScannedElement

logger = logging.getLogger("uniqueselector.groups")


@dataclass(frozen=True, slots=True)
class ElementGroup:
    name: str
    title: str
    selectors: tuple[str, ...]


ELEMENT_GROUPS: dict[str, ElementGroup] = {
    group.name: group
    for group in (
        ElementGroup(
            name="buttons",
            title="Buttons",
            selectors=(
                "button",
                'input[type="submit"]',
                'input[type="button"]',
                '[role="button"]',
                ".btn",
                '[class*="button"]',
                '[id*="button"]',
            ),
        ),
        ElementGroup(
            name="inputs",
            title="Input fields",
            selectors=(
                'input[type="text"]',
                'input[type="password"]',
                'input[type="email"]',
                'input[type="search"]',
                "input:not([type])",
                "textarea",
            ),
        ),
        ElementGroup(
            name="links",
            title="Links & navigation",
            selectors=("a[href]", '[role="link"]'),
        ),
        ElementGroup(
            name="dropdowns",
            title="Dropdowns & selects",
            selectors=("select", '[role="combobox"]', '[role="listbox"]'),
        ),
        ElementGroup(
            name="menu",
            title="Menu elements",
            selectors=("nav a", '[role="menu"]', '[role="menuitem"]'),
        ),
        ElementGroup(
            name="test-ids",
            title="Elements with test attributes",
            selectors=("[data-test]", "[data-testid]", "[data-qa]", "[data-cy]"),
        ),
    )
}


def parse_group_reference(raw: str) -> str | None:
    text = raw.strip()
    if not text.startswith("@"):
        return None
    return text[1:].strip().lower() or None


def resolve_group(name: str) -> ElementGroup:
    group = ELEMENT_GROUPS.get(name.strip().lower())
    if group is None:
        available = ", ".join(f"@{key}" for key in ELEMENT_GROUPS)
        raise NotFoundError(f"Unknown group: {name}. Available: {available}")
    return group


def _dedupe_key(item: ScannedElement) -> tuple[object, ...] | None:
    descriptor = item.descriptor
    if descriptor is None:
        return None
    return (
        descriptor.tag_name,
        descriptor.text,
        tuple(descriptor.attributes.items()),
        descriptor.bounding_box,
    )


async def scan_group(driver: BrowsingDriver, group: ElementGroup) -> list[ScannedElement]:
    """Collect the elements matched by every selector of a group.

    Elements reached through more than one selector are listed once, under
    the first selector that found them.
    """
    collected: list[ScannedElement] = []
    seen: set[tuple[object, ...]] = set()
    for selector in group.selectors:
        try:
            handles = await driver.query(selector)
        except (InvalidSelectorError, DriverError) as exc:
            logger.info("Skipping group selector %s: %s", selector, exc)
            continue
        for item in await describe_handles(driver, handles, selector):
            key = _dedupe_key(item)
            if key is not None:
                if key in seen:
                    continue
                seen.add(key)
            collected.append(item)
    logger.info("Group %s collected %s element(s)", group.name, len(collected))
    return collected

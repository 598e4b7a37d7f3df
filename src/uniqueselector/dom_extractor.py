from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

from .driver import BrowsingDriver
from .errors import DriverError, StaleElementError
from .models import ElementDescriptor, ScannedElement

logger = logging.getLogger("uniqueselector.extractor")

BUTTON_INPUT_TYPES = {"button", "submit", "reset"}


async def extract_element_descriptor(driver: BrowsingDriver, handle: Any) -> ElementDescriptor:
    """Snapshot the observable state of one resolved element.

    The reads are independent and read-only, so they are issued together.
    A detached handle surfaces as ``StaleElementError`` from the driver.
    """
    tag_name, text, attributes, visible, enabled, box, positions = await asyncio.gather(
        driver.tag_name(handle),
        driver.get_text(handle),
        driver.get_attributes(handle),
        driver.is_visible(handle),
        driver.is_enabled(handle),
        driver.bounding_box(handle),
        driver.sibling_positions(handle),
    )
    descriptor = ElementDescriptor(
        tag_name=tag_name,
        text=(text or "").strip(),
        attributes=attributes,
        is_visible=bool(visible),
        is_enabled=bool(enabled),
        bounding_box=box,
        child_position=positions[0] if positions else None,
        type_position=positions[1] if positions else None,
    )
    logger.debug("Extracted <%s> with %s attribute(s)", descriptor.tag_name, len(descriptor.attributes))
    return descriptor


def special_properties(descriptor: ElementDescriptor) -> dict[str, str | bool]:
    tag = descriptor.tag_name
    props: dict[str, str | bool] = {}

    if tag == "input":
        for key in ("type", "value", "placeholder"):
            value = descriptor.attr(key)
            if value is not None:
                props[key] = value
        props["disabled"] = not descriptor.is_enabled
        props["readonly"] = "readonly" in descriptor.attributes

    if tag in {"a", "area"}:
        for key in ("href", "target"):
            value = descriptor.attr(key)
            if value is not None:
                props[key] = value

    input_type = (descriptor.type or "").lower()
    if tag == "button" or (tag == "input" and input_type in BUTTON_INPUT_TYPES):
        props["disabled"] = not descriptor.is_enabled
        if descriptor.type:
            props["button_type"] = descriptor.type

    return props


async def describe_handles(driver: BrowsingDriver, handles: Sequence[Any], scope: str) -> list[ScannedElement]:
    scanned: list[ScannedElement] = []
    for index, handle in enumerate(handles):
        try:
            descriptor = await extract_element_descriptor(driver, handle)
        except (StaleElementError, DriverError) as exc:
            logger.info("Could not describe %s[%s]: %s", scope, index, exc)
            scanned.append(ScannedElement(handle=handle, scope=scope, scope_index=index, error=str(exc)))
            continue
        scanned.append(ScannedElement(handle=handle, scope=scope, scope_index=index, descriptor=descriptor))
    return scanned

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from .dom_extractor import special_properties
from .locator_recommendation import status_label
from .models import ElementAnalysis, ElementDescriptor, RecommendationSet, ScannedElement
from .selector_rules import normalize_space

RULE = "-" * 60
HEAVY_RULE = "=" * 60
MAX_ATTRIBUTE_LENGTH = 100
MAX_LISTING_TEXT = 50


def _visibility(descriptor: ElementDescriptor) -> str:
    return "visible" if descriptor.is_visible else "hidden"


def format_listing_row(position: int, item: ScannedElement) -> str:
    if item.descriptor is None:
        return f"[{position}] <unavailable: {item.error or 'unknown error'}>"
    descriptor = item.descriptor
    text = normalize_space(descriptor.text)
    if len(text) > MAX_LISTING_TEXT:
        text = text[: MAX_LISTING_TEXT - 3] + "..."
    return f'[{position}] {descriptor.tag_name.upper()}: "{text}" ({_visibility(descriptor)})'


def format_listing(scope: str, items: list[ScannedElement]) -> list[str]:
    lines = [f"Found {len(items)} element(s) for {scope}", RULE]
    lines.extend(format_listing_row(position, item) for position, item in enumerate(items))
    return lines


def format_descriptor(descriptor: ElementDescriptor) -> list[str]:
    lines = [
        "SELECTED ELEMENT",
        HEAVY_RULE,
        f"Tag: <{descriptor.tag_name}>",
        f'Text: "{descriptor.text}"',
        f"Visible: {descriptor.is_visible} | Enabled: {descriptor.is_enabled}",
    ]
    box = descriptor.bounding_box
    if box is not None:
        lines.append(f"Position: x={round(box.x)}, y={round(box.y)}, w={round(box.width)}, h={round(box.height)}")
    attributes = [
        (key, value) for key, value in descriptor.attributes.items() if len(value) < MAX_ATTRIBUTE_LENGTH
    ]
    if attributes:
        lines.append("Attributes:")
        lines.extend(f'  {key}: "{value}"' for key, value in attributes)
    props = special_properties(descriptor)
    if props:
        lines.append("Special: " + ", ".join(f"{key}={value}" for key, value in props.items()))
    return lines


def format_results(recommendations: RecommendationSet) -> list[str]:
    lines = ["ALL TESTED SELECTORS", RULE]
    for position, result in enumerate(recommendations.all, start=1):
        lines.append(f"{position}. {result.selector}")
        lines.append(f"   Status: {status_label(result)}")
        lines.append(f"   {result.kind} | Priority: {result.priority}")
        lines.append(f"   {result.description}")
    return lines


def format_recommendation(recommendations: RecommendationSet) -> list[str]:
    best = recommendations.best
    if best is None:
        return [
            "No unique selector correctly identifies the target element.",
            "Try a more specific base selector or pick the element by index.",
        ]
    lines = [
        "RECOMMENDATION",
        HEAVY_RULE,
        f"Best selector: {best.selector}",
        f"Kind: {best.kind} | Priority: {best.priority}",
        f"Reason: {best.description}",
    ]
    backup = recommendations.backup
    if backup is not None:
        lines.append(f"Backup selector: {backup.selector}")
    return lines


def format_analysis(analysis: ElementAnalysis) -> list[str]:
    lines = format_descriptor(analysis.descriptor)
    lines.append("")
    lines.extend(format_results(analysis.recommendations))
    lines.append("")
    lines.extend(format_recommendation(analysis.recommendations))
    return lines


def screenshot_path(directory: Path, prefix: str = "unique-selector", now: datetime | None = None) -> Path:
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%S%fZ")
    return directory / f"{prefix}-{stamp}.png"

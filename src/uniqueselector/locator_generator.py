from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from .models import Candidate, CandidateKind, ElementDescriptor
from .selector_rules import (
    ANCHOR_LIKE_TAGS,
    GENERIC_CLASS_TERMS,
    INPUT_LIKE_TAGS,
    TEST_ATTR_PRIORITY,
    TEXT_LENGTH_LIMIT,
    attribute_selector,
    class_selector,
    escape_css_string,
    id_selector,
    is_css_scope,
    is_distinctive_class,
    is_short_text,
    normalize_classes,
)

logger = logging.getLogger("uniqueselector.generator")

Draft = tuple[str, str]


@dataclass(frozen=True, slots=True)
class GeneratorOptions:
    test_id_attributes: tuple[str, ...] = TEST_ATTR_PRIORITY
    generic_class_terms: tuple[str, ...] = GENERIC_CLASS_TERMS
    text_length_limit: int = TEXT_LENGTH_LIMIT


@dataclass(frozen=True, slots=True)
class RuleContext:
    descriptor: ElementDescriptor
    index: int | None
    scope: str | None
    options: GeneratorOptions

    @property
    def tag(self) -> str:
        return self.descriptor.tag_name or "*"

    @property
    def classes(self) -> list[str]:
        return normalize_classes(self.descriptor.class_name)

    @property
    def short_text(self) -> str | None:
        text = self.descriptor.text
        if is_short_text(text, self.options.text_length_limit):
            return text
        return None


@dataclass(frozen=True, slots=True)
class SelectorRule:
    kind: CandidateKind
    priority: int
    applies: Callable[[RuleContext], bool]
    build: Callable[[RuleContext], Iterable[Draft]]


def _test_attribute_drafts(ctx: RuleContext) -> list[Draft]:
    drafts: list[Draft] = []
    for attr in ctx.options.test_id_attributes:
        value = ctx.descriptor.attr(attr)
        if value:
            drafts.append((attribute_selector(attr, value), f"Test attribute {attr}: {value}"))
    return drafts


def _has_test_attribute(ctx: RuleContext) -> bool:
    return any(ctx.descriptor.attr(attr) for attr in ctx.options.test_id_attributes)


def _single_class_drafts(ctx: RuleContext) -> list[Draft]:
    return [
        (class_selector([item]), f"Single class: {item}")
        for item in ctx.classes
        if is_distinctive_class(item, ctx.options.generic_class_terms)
    ]


def _positional_drafts(ctx: RuleContext) -> list[Draft]:
    if ctx.index is None or ctx.index < 0:
        return []
    descriptor = ctx.descriptor
    drafts: list[Draft] = []
    if ctx.scope:
        drafts.append((f"{ctx.scope} >> nth={ctx.index}", f"Match {ctx.index + 1} of {ctx.scope}"))
    # Structural pseudo-classes count siblings under the parent, not scan matches.
    if ctx.scope and descriptor.child_position and is_css_scope(ctx.scope):
        position = descriptor.child_position
        drafts.append((f"{ctx.scope}:nth-child({position})", f"Child {position} of its parent within {ctx.scope}"))
    if descriptor.type_position:
        position = descriptor.type_position
        drafts.append((f"{ctx.tag}:nth-of-type({position})", f"<{ctx.tag}> number {position} among its siblings"))
    return drafts


RULES: tuple[SelectorRule, ...] = (
    SelectorRule(
        kind="data-test",
        priority=1,
        applies=_has_test_attribute,
        build=_test_attribute_drafts,
    ),
    SelectorRule(
        kind="id",
        priority=2,
        applies=lambda ctx: bool(ctx.descriptor.id),
        build=lambda ctx: [(id_selector(ctx.descriptor.id or ""), f"Element id: {ctx.descriptor.id}")],
    ),
    SelectorRule(
        kind="name",
        priority=3,
        applies=lambda ctx: bool(ctx.descriptor.name),
        build=lambda ctx: [
            (attribute_selector("name", ctx.descriptor.name or ""), f"Name attribute: {ctx.descriptor.name}")
        ],
    ),
    SelectorRule(
        kind="class-combo",
        priority=4,
        applies=lambda ctx: bool(ctx.classes),
        build=lambda ctx: [(class_selector(ctx.classes), f"All classes: {', '.join(ctx.classes)}")],
    ),
    SelectorRule(
        kind="class-single",
        priority=5,
        applies=lambda ctx: bool(ctx.classes),
        build=_single_class_drafts,
    ),
    SelectorRule(
        kind="text-exact",
        priority=6,
        applies=lambda ctx: ctx.short_text is not None,
        build=lambda ctx: [
            (f'text="{escape_css_string(ctx.short_text or "")}"', f'Exact text match: "{ctx.short_text}"')
        ],
    ),
    SelectorRule(
        kind="tag-text",
        priority=7,
        applies=lambda ctx: ctx.short_text is not None,
        build=lambda ctx: [
            (
                f'{ctx.tag}:has-text("{escape_css_string(ctx.short_text or "")}")',
                f'<{ctx.tag}> containing "{ctx.short_text}"',
            )
        ],
    ),
    SelectorRule(
        kind="type-combo",
        priority=8,
        applies=lambda ctx: ctx.tag in INPUT_LIKE_TAGS and bool(ctx.descriptor.type),
        build=lambda ctx: [
            (
                f"{ctx.tag}{attribute_selector('type', ctx.descriptor.type or '')}",
                f"<{ctx.tag}> with type: {ctx.descriptor.type}",
            )
        ],
    ),
    SelectorRule(
        kind="href",
        priority=9,
        applies=lambda ctx: ctx.tag in ANCHOR_LIKE_TAGS and bool(ctx.descriptor.href),
        build=lambda ctx: [(attribute_selector("href", ctx.descriptor.href or ""), f"Link href: {ctx.descriptor.href}")],
    ),
    SelectorRule(
        kind="nth-position",
        priority=10,
        applies=lambda ctx: ctx.index is not None and ctx.index >= 0,
        build=_positional_drafts,
    ),
)


def generate_candidates(
    descriptor: ElementDescriptor,
    index: int | None = None,
    scope: str | None = None,
    options: GeneratorOptions | None = None,
    rules: Sequence[SelectorRule] = RULES,
) -> list[Candidate]:
    ctx = RuleContext(
        descriptor=descriptor,
        index=index,
        scope=(scope or "").strip() or None,
        options=options or GeneratorOptions(),
    )
    candidates: list[Candidate] = []
    for rule in sorted(rules, key=lambda item: item.priority):
        if not rule.applies(ctx):
            continue
        for selector, description in rule.build(ctx):
            candidates.append(
                Candidate(selector=selector, kind=rule.kind, priority=rule.priority, description=description)
            )
    deduped = dedupe_candidates(candidates)
    logger.debug("Generated %s candidate(s) for <%s>", len(deduped), descriptor.tag_name)
    return deduped


def dedupe_candidates(candidates: Iterable[Candidate]) -> list[Candidate]:
    seen: set[str] = set()
    unique: list[Candidate] = []
    for candidate in candidates:
        if candidate.selector in seen:
            continue
        seen.add(candidate.selector)
        unique.append(candidate)
    return unique

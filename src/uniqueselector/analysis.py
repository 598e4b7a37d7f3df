from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .config import InspectorConfig
from .dom_extractor import extract_element_descriptor
from .driver import BrowsingDriver
from .errors import DocumentChangedError
from .locator_generator import GeneratorOptions, generate_candidates
from .locator_recommendation import rank_results
from .models import ElementAnalysis
from .validation import verify_candidates

logger = logging.getLogger("uniqueselector.analysis")


@dataclass(frozen=True, slots=True)
class AnalysisOptions:
    generator: GeneratorOptions = field(default_factory=GeneratorOptions)
    attempts: int = 2


def options_from_config(config: InspectorConfig) -> AnalysisOptions:
    return AnalysisOptions(
        generator=GeneratorOptions(
            test_id_attributes=tuple(config.test_id_attributes),
            generic_class_terms=tuple(config.generic_class_terms),
            text_length_limit=config.text_length_limit,
        ),
        attempts=config.verification_attempts,
    )


async def analyze_element(
    driver: BrowsingDriver,
    handle: Any,
    *,
    index: int | None = None,
    scope: str | None = None,
    options: AnalysisOptions | None = None,
) -> ElementAnalysis:
    """Run extract, generate, verify and rank for one element.

    A pass invalidated by a document change is restarted from extraction.
    ``StaleElementError`` and ``SessionError`` propagate to the caller.
    """
    opts = options or AnalysisOptions()
    attempts = max(1, int(opts.attempts))
    for attempt in range(1, attempts + 1):
        descriptor = await extract_element_descriptor(driver, handle)
        candidates = generate_candidates(descriptor, index=index, scope=scope, options=opts.generator)
        try:
            results = await verify_candidates(driver, candidates, descriptor, target=handle)
        except DocumentChangedError as exc:
            if attempt >= attempts:
                raise
            logger.warning("Restarting analysis (attempt %s of %s): %s", attempt + 1, attempts, exc)
            continue
        return ElementAnalysis(
            descriptor=descriptor,
            candidates=tuple(candidates),
            recommendations=rank_results(results),
            attempts=attempt,
        )
    raise AssertionError("unreachable")

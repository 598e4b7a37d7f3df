from __future__ import annotations

import logging
from typing import Any, Iterable

from .driver import BrowsingDriver
from .errors import DocumentChangedError, SelectorEngineError, SessionError
from .models import Candidate, ElementDescriptor, VerificationResult

logger = logging.getLogger("uniqueselector.verifier")


async def verify_candidate(
    driver: BrowsingDriver,
    candidate: Candidate,
    descriptor: ElementDescriptor,
    target: Any | None = None,
) -> VerificationResult:
    try:
        matches = await driver.query(candidate.selector)
    except SessionError:
        raise
    except SelectorEngineError as exc:
        logger.info("Query failed for %s: %s", candidate.selector, exc)
        return VerificationResult(
            candidate=candidate,
            match_count=0,
            is_unique=False,
            is_correct=False,
            error=str(exc),
        )

    match_count = len(matches)
    if match_count != 1:
        return VerificationResult(
            candidate=candidate,
            match_count=match_count,
            is_unique=False,
            is_correct=False,
        )

    try:
        is_correct, basis = await _check_correctness(driver, matches[0], descriptor, target)
    except SessionError:
        raise
    except SelectorEngineError as exc:
        logger.info("Correctness check failed for %s: %s", candidate.selector, exc)
        return VerificationResult(
            candidate=candidate,
            match_count=match_count,
            is_unique=True,
            is_correct=False,
            error=str(exc),
            correctness_basis="unverified",
        )
    return VerificationResult(
        candidate=candidate,
        match_count=match_count,
        is_unique=True,
        is_correct=is_correct,
        correctness_basis=basis,
    )


async def _check_correctness(
    driver: BrowsingDriver,
    match: Any,
    descriptor: ElementDescriptor,
    target: Any | None,
) -> tuple[bool, str]:
    if descriptor.text:
        found = await driver.get_text(match)
        return (found or "").strip() == descriptor.text, "text"

    # Empty text cannot prove identity; fall back to reference equality.
    if target is None:
        return False, "unverified"
    same = await driver.same_element(match, target)
    if same is None:
        return False, "unverified"
    return bool(same), "identity"


async def verify_candidates(
    driver: BrowsingDriver,
    candidates: Iterable[Candidate],
    descriptor: ElementDescriptor,
    target: Any | None = None,
) -> list[VerificationResult]:
    """Verify candidates one at a time, in priority order.

    Each selector string is queried at most once. If the document structure
    changes while the pass runs, every result of the pass is discarded by
    raising ``DocumentChangedError``.
    """
    ordered = sorted(candidates, key=lambda item: item.priority)
    start_revision = await driver.document_revision()

    results: list[VerificationResult] = []
    seen: set[str] = set()
    for candidate in ordered:
        if candidate.selector in seen:
            continue
        seen.add(candidate.selector)
        results.append(await verify_candidate(driver, candidate, descriptor, target))

    end_revision = await driver.document_revision()
    if start_revision is not None and end_revision is not None and start_revision != end_revision:
        raise DocumentChangedError(
            f"Document changed during verification (revision {start_revision} -> {end_revision})."
        )

    logger.info(
        "Verified %s selector(s): unique=%s valid=%s",
        len(results),
        sum(1 for item in results if item.is_unique),
        sum(1 for item in results if item.is_valid),
    )
    return results

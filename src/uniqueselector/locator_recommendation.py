from __future__ import annotations

from typing import Iterable

from .errors import NoStableSelectorFound
from .models import RecommendationSet, VerificationResult


def rank_results(results: Iterable[VerificationResult]) -> RecommendationSet:
    # sorted() is stable, so equal priorities keep rule order.
    ordered = tuple(sorted(results, key=lambda item: item.priority))
    valid = tuple(item for item in ordered if item.is_unique and item.is_correct)
    return RecommendationSet(valid=valid, all=ordered)


def require_best(recommendations: RecommendationSet) -> VerificationResult:
    best = recommendations.best
    if best is None:
        raise NoStableSelectorFound(
            f"No unique and correct selector among {len(recommendations.all)} candidate(s)."
        )
    return best


def status_label(result: VerificationResult) -> str:
    if result.error and not result.is_unique:
        return f"error: {result.error}"
    if not result.is_unique:
        noun = "match" if result.match_count == 1 else "matches"
        return f"not unique ({result.match_count} {noun})"
    if result.is_correct:
        return "unique & correct"
    if result.correctness_basis == "unverified":
        return "unique, correctness unverified"
    return "unique but different element"

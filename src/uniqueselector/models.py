from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal, Mapping

CandidateKind = Literal[
    "data-test",
    "id",
    "name",
    "class-combo",
    "class-single",
    "text-exact",
    "tag-text",
    "type-combo",
    "href",
    "nth-position",
]

CorrectnessBasis = Literal["text", "identity", "unverified", "none"]

WELL_KNOWN_ATTRIBUTES = ("data-test", "id", "name", "class", "type", "href")


@dataclass(frozen=True, slots=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True, slots=True)
class ElementDescriptor:
    tag_name: str
    text: str = ""
    attributes: Mapping[str, str] = field(default_factory=dict)
    is_visible: bool = False
    is_enabled: bool = False
    bounding_box: BoundingBox | None = None
    child_position: int | None = None
    type_position: int | None = None

    def __post_init__(self) -> None:
        # Freeze the attribute bag while keeping insertion order.
        frozen = MappingProxyType({str(key): str(value) for key, value in dict(self.attributes).items()})
        object.__setattr__(self, "tag_name", str(self.tag_name or "").strip().lower())
        object.__setattr__(self, "text", str(self.text or "").strip())
        object.__setattr__(self, "attributes", frozen)

    def attr(self, key: str) -> str | None:
        raw = self.attributes.get(key)
        if raw is None:
            return None
        value = raw.strip()
        return value or None

    @property
    def data_test(self) -> str | None:
        return self.attr("data-test")

    @property
    def id(self) -> str | None:
        return self.attr("id")

    @property
    def name(self) -> str | None:
        return self.attr("name")

    @property
    def class_name(self) -> str | None:
        return self.attr("class")

    @property
    def type(self) -> str | None:
        return self.attr("type")

    @property
    def href(self) -> str | None:
        return self.attr("href")

    def extra_attributes(self) -> dict[str, str]:
        return {key: value for key, value in self.attributes.items() if key not in WELL_KNOWN_ATTRIBUTES}


@dataclass(frozen=True, slots=True)
class Candidate:
    selector: str
    kind: CandidateKind
    priority: int
    description: str


@dataclass(frozen=True, slots=True)
class VerificationResult:
    candidate: Candidate
    match_count: int
    is_unique: bool
    is_correct: bool
    error: str | None = None
    correctness_basis: CorrectnessBasis = "none"

    @property
    def selector(self) -> str:
        return self.candidate.selector

    @property
    def kind(self) -> CandidateKind:
        return self.candidate.kind

    @property
    def priority(self) -> int:
        return self.candidate.priority

    @property
    def description(self) -> str:
        return self.candidate.description

    @property
    def is_valid(self) -> bool:
        return self.is_unique and self.is_correct


@dataclass(frozen=True, slots=True)
class RecommendationSet:
    valid: tuple[VerificationResult, ...]
    all: tuple[VerificationResult, ...]

    @property
    def best(self) -> VerificationResult | None:
        return self.valid[0] if self.valid else None

    @property
    def backup(self) -> VerificationResult | None:
        return self.valid[1] if len(self.valid) > 1 else None


@dataclass(frozen=True, slots=True)
class ScannedElement:
    handle: Any
    scope: str
    scope_index: int
    descriptor: ElementDescriptor | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class ElementAnalysis:
    descriptor: ElementDescriptor
    candidates: tuple[Candidate, ...]
    recommendations: RecommendationSet
    attempts: int = 1

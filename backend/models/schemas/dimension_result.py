"""Per-dimension analysis result and the six-dimension aggregate."""

from enum import Enum
from typing import Any, Iterable, Literal

from pydantic import BaseModel, ConfigDict, Field


class Dimension(str, Enum):
    """The six scored facets, in declaration order (also the stable tie-break order)."""
    ACADEMIC_EXCELLENCE = "academic_excellence"
    LEADERSHIP_INITIATIVE = "leadership_initiative"
    INTELLECTUAL_CURIOSITY = "intellectual_curiosity"
    COMMUNITY_IMPACT = "community_impact"
    AUTHENTICITY_VOICE = "authenticity_voice"
    FUTURE_READINESS = "future_readiness"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def order(self) -> int:
        return DIMENSION_ORDER.index(self)


_LABELS = {
    Dimension.ACADEMIC_EXCELLENCE: "Academic Excellence",
    Dimension.LEADERSHIP_INITIATIVE: "Leadership & Initiative",
    Dimension.INTELLECTUAL_CURIOSITY: "Intellectual Curiosity",
    Dimension.COMMUNITY_IMPACT: "Community Impact",
    Dimension.AUTHENTICITY_VOICE: "Authenticity & Voice",
    Dimension.FUTURE_READINESS: "Future Readiness",
}

DIMENSION_ORDER: list[Dimension] = list(Dimension)


class Tier(str, Enum):
    EXCEPTIONAL = "exceptional"
    STRONG = "strong"
    DEVELOPING = "developing"
    FOUNDATIONAL = "foundational"

    @property
    def rank(self) -> int:
        """0 = best."""
        return list(Tier).index(self)

    @property
    def next_up(self) -> "Tier | None":
        return None if self is Tier.EXCEPTIONAL else list(Tier)[self.rank - 1]


class Confidence(str, Enum):
    HIGH = "high"  # produced by the generative path
    LOW = "low"  # heuristic fallback or insufficient evidence


class ResultSource(str, Enum):
    MODEL = "model"
    HEURISTIC = "heuristic"
    INSUFFICIENT_EVIDENCE = "insufficient_evidence"


class Severity(str, Enum):
    CRITICAL = "critical"
    MODERATE = "moderate"
    MINOR = "minor"


class EvidenceItem(BaseModel):
    """A strength or weakness backed by a quote or fact from the profile."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["strength", "weakness"]
    point: str
    evidence: str
    severity: Severity = Severity.MODERATE


class StrategicPivot(BaseModel):
    """What would move the applicant to the next tier."""
    model_config = ConfigDict(frozen=True)

    next_tier: Tier | None = None
    path_to_next_tier: str = ""
    timeline: str = ""
    is_achievable: bool = False


class DimensionResult(BaseModel):
    """Immutable output of one dimension analyzer invocation.

    ``score`` and ``tier`` are None only when ``source`` is
    ``insufficient_evidence``; otherwise ``tier`` is the rubric's
    thresholded function of ``score``.
    """
    model_config = ConfigDict(frozen=True)

    dimension: Dimension
    score: float | None = Field(None, ge=0.0, le=10.0)
    tier: Tier | None = None
    percentile_estimate: str = ""
    evidence: list[EvidenceItem] = []
    strategic_pivot: StrategicPivot = StrategicPivot()
    key_evidence: list[str] = []
    details: dict[str, Any] = {}  # dimension-specific structured findings
    confidence: Confidence = Confidence.LOW
    source: ResultSource = ResultSource.HEURISTIC
    notes: str = ""

    @property
    def strengths(self) -> list[EvidenceItem]:
        return [e for e in self.evidence if e.kind == "strength"]

    @property
    def weaknesses(self) -> list[EvidenceItem]:
        return [e for e in self.evidence if e.kind == "weakness"]

    @property
    def is_degraded(self) -> bool:
        return self.source is ResultSource.HEURISTIC

    @property
    def is_scored(self) -> bool:
        return self.score is not None


class DimensionAnalyses(BaseModel):
    """All six dimension results for one evaluation."""
    model_config = ConfigDict(frozen=True)

    academic_excellence: DimensionResult
    leadership_initiative: DimensionResult
    intellectual_curiosity: DimensionResult
    community_impact: DimensionResult
    authenticity_voice: DimensionResult
    future_readiness: DimensionResult

    @classmethod
    def from_results(cls, results: Iterable[DimensionResult]) -> "DimensionAnalyses":
        """Build the aggregate from results supplied in any order."""
        by_dimension: dict[str, DimensionResult] = {}
        for result in results:
            if result.dimension.value in by_dimension:
                raise ValueError(f"Duplicate result for dimension: {result.dimension.value}")
            by_dimension[result.dimension.value] = result
        missing = [d.value for d in DIMENSION_ORDER if d.value not in by_dimension]
        if missing:
            raise ValueError(f"Missing dimension results: {', '.join(missing)}")
        return cls(**by_dimension)

    def get(self, dimension: Dimension) -> DimensionResult:
        return getattr(self, dimension.value)

    def items(self) -> list[tuple[Dimension, DimensionResult]]:
        return [(d, self.get(d)) for d in DIMENSION_ORDER]

    @property
    def degraded(self) -> list[Dimension]:
        return [d for d, r in self.items() if r.is_degraded]

    @property
    def insufficient_evidence(self) -> list[Dimension]:
        return [d for d, r in self.items() if r.source is ResultSource.INSUFFICIENT_EVIDENCE]

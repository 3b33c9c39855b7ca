"""Abstract base class for the six dimension specs.

A spec is everything that differs between dimensions: the instruction body,
the data block it extracts from the profile, the typed ``details`` schema,
and the heuristic fallback. The generic analyzer drives all six the same way.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from models.schemas.dimension_result import (
    Confidence,
    Dimension,
    DimensionResult,
    EvidenceItem,
    ResultSource,
    Severity,
    StrategicPivot,
)
from models.schemas.holistic import HolisticContext
from models.schemas.mode import EvaluationMode
from models.schemas.profile import ApplicantProfile
from services import prompt_builder
from services.errors import ResponseParseError
from services.rubric import RubricConfig

logger = logging.getLogger(__name__)

MANUAL_REVIEW_POINT = "Heuristic fallback score; manual review recommended"


# ---------------------------------------------------------------------------
# Response envelope shared by every dimension (all fields required)
# ---------------------------------------------------------------------------

class _EvidencePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    point: str
    evidence: str
    severity: Severity


class _PivotPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    path_to_next_tier: str
    timeline: str
    is_achievable: bool


class DimensionEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    dimension_score: float = Field(..., ge=0.0, le=10.0)
    percentile_estimate: str
    strengths: list[_EvidencePayload]
    weaknesses: list[_EvidencePayload]
    strategic_pivot: _PivotPayload
    key_evidence: list[str]
    details: dict[str, Any]


class DimensionSpec(ABC):
    """Per-dimension configuration object driven by ``DimensionAnalyzer``.

    Subclasses must define:
        - dimension: which of the six facets this spec scores
        - details_model: pydantic model for the dimension-specific ``details``
        - definition / framework / details_schema: instruction text
        - build_payload(): the deterministic data block
        - heuristic(): pure fallback used after two failed attempts
    """

    dimension: Dimension
    details_model: type[BaseModel]
    definition: str = ""
    framework: str = ""
    details_schema: str = "{}"

    @property
    def name(self) -> str:
        return self.dimension.value

    def build_instructions(self, mode: EvaluationMode, rubric: RubricConfig) -> str:
        return prompt_builder.dimension_instructions(
            rubric=rubric,
            mode=mode,
            dimension=self.dimension,
            definition=self.definition,
            framework=self.framework,
            details_schema=self.details_schema,
        )

    @abstractmethod
    def build_payload(
        self,
        profile: ApplicantProfile,
        holistic: HolisticContext,
        mode: EvaluationMode,
        rubric: RubricConfig,
    ) -> str:
        """Data block assembled only from the profile fields this dimension reads."""

    @abstractmethod
    def heuristic(
        self,
        profile: ApplicantProfile,
        holistic: HolisticContext,
        mode: EvaluationMode,
        rubric: RubricConfig,
    ) -> DimensionResult:
        """Conservative score from raw numeric/categorical fields."""

    def check_evidence(self, profile: ApplicantProfile) -> str | None:
        """Return a reason when the profile cannot support a score, else None."""
        return None

    def parse(self, data: dict[str, Any], rubric: RubricConfig) -> DimensionResult:
        """Validate a decoded model response; raise ResponseParseError on any gap."""
        try:
            envelope = DimensionEnvelope.model_validate(data)
            details = self.details_model.model_validate(envelope.details)
        except ValidationError as e:
            raise ResponseParseError(f"{self.name}: {e.error_count()} invalid field(s): {e}") from e

        score = round(envelope.dimension_score, 2)
        tier = rubric.tier_for(score)
        evidence = [
            EvidenceItem(kind="strength", point=s.point, evidence=s.evidence, severity=s.severity)
            for s in envelope.strengths
        ] + [
            EvidenceItem(kind="weakness", point=w.point, evidence=w.evidence, severity=w.severity)
            for w in envelope.weaknesses
        ]
        return DimensionResult(
            dimension=self.dimension,
            score=score,
            tier=tier,
            percentile_estimate=envelope.percentile_estimate,
            evidence=evidence,
            strategic_pivot=StrategicPivot(
                next_tier=tier.next_up,
                path_to_next_tier=envelope.strategic_pivot.path_to_next_tier,
                timeline=envelope.strategic_pivot.timeline,
                is_achievable=envelope.strategic_pivot.is_achievable,
            ),
            key_evidence=envelope.key_evidence,
            details=details.model_dump(mode="json"),
            confidence=Confidence.HIGH,
            source=ResultSource.MODEL,
        )


# ---------------------------------------------------------------------------
# Helpers for heuristic and insufficient-evidence results
# ---------------------------------------------------------------------------

def heuristic_result(
    dimension: Dimension,
    score: float,
    rubric: RubricConfig,
    *,
    strengths: list[tuple[str, str]] = (),
    weaknesses: list[tuple[str, str]] = (),
    details: BaseModel | None = None,
    path_to_next_tier: str = "",
    key_evidence: list[str] = (),
) -> DimensionResult:
    """Assemble a low-confidence result; always flags the score for manual review."""
    tier = rubric.tier_for(score)
    evidence = [EvidenceItem(kind="strength", point=p, evidence=e) for p, e in strengths]
    evidence += [EvidenceItem(kind="weakness", point=p, evidence=e) for p, e in weaknesses]
    evidence.append(
        EvidenceItem(
            kind="weakness",
            point=MANUAL_REVIEW_POINT,
            evidence="Generated from numeric fields only; the model-backed analysis was unavailable.",
            severity=Severity.MINOR,
        )
    )
    return DimensionResult(
        dimension=dimension,
        score=score,
        tier=tier,
        percentile_estimate=rubric.percentile_for(tier),
        evidence=evidence,
        strategic_pivot=StrategicPivot(
            next_tier=tier.next_up,
            path_to_next_tier=path_to_next_tier,
            timeline="",
            is_achievable=tier.next_up is not None,
        ),
        key_evidence=list(key_evidence),
        details=details.model_dump(mode="json") if details is not None else {},
        confidence=Confidence.LOW,
        source=ResultSource.HEURISTIC,
        notes="manual review recommended",
    )


def insufficient_evidence_result(dimension: Dimension, reason: str) -> DimensionResult:
    return DimensionResult(
        dimension=dimension,
        score=None,
        tier=None,
        percentile_estimate="",
        evidence=[
            EvidenceItem(kind="weakness", point="Insufficient evidence to score", evidence=reason)
        ],
        confidence=Confidence.LOW,
        source=ResultSource.INSUFFICIENT_EVIDENCE,
        notes=reason,
    )


def count_keywords(text: str, keywords: tuple[str, ...]) -> int:
    lowered = text.lower()
    return sum(1 for k in keywords if k in lowered)

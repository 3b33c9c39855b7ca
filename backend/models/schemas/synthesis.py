"""Synthesis output: overall calibrated score derived from the six dimensions."""

from typing import Literal

from pydantic import BaseModel, ConfigDict

from models.schemas.dimension_result import Confidence, Dimension, Tier
from models.schemas.mode import EvaluationMode

Archetype = Literal["Scholar", "Leader", "Well-Rounded", "Specialist", "Emerging"]
FitBucket = Literal["likely", "possible", "reach"]


class DimensionContribution(BaseModel):
    model_config = ConfigDict(frozen=True)

    dimension: Dimension
    score: float | None = None  # None = not scored (insufficient evidence)
    weight: float = 0.0  # mode weight
    effective_weight: float = 0.0  # weight after renormalizing over scored dimensions
    contribution: float = 0.0


class TargetFit(BaseModel):
    """Projected fit for one target institution."""
    model_config = ConfigDict(frozen=True)

    institution: str
    fit_score: float  # 0-10
    competitive_bar: float
    bucket: FitBucket


class RedFlag(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str  # holistic, weak_priority_dimension, uneven_profile, degraded_dimension, insufficient_evidence
    message: str
    dimension: Dimension | None = None


class Synthesis(BaseModel):
    """Never stored on its own: always recomputed from the dimensions and mode."""
    model_config = ConfigDict(frozen=True)

    mode: EvaluationMode
    overall_score: float  # 0-10, weighted sum of dimension scores
    tier: Tier
    percentile_label: str
    profile_archetype: Archetype = "Emerging"
    dimension_contributions: list[DimensionContribution] = []
    competitive_advantages: list[str] = []
    competitive_weaknesses: list[str] = []
    red_flags: list[RedFlag] = []
    target_fit: list[TargetFit] = []
    confidence: Confidence = Confidence.HIGH

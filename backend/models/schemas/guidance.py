"""Strategic guidance output: a bounded, prioritized recommendation list."""

from pydantic import BaseModel, ConfigDict, Field

from models.schemas.dimension_result import Confidence, Dimension, ResultSource


class SuccessMetric(BaseModel):
    model_config = ConfigDict(frozen=True)

    measurable_goal: str
    verification_method: str = ""
    deadline: str = ""


class Recommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    priority: int = Field(..., ge=1)  # 1 = most urgent
    dimension: Dimension
    recommendation: str
    specific_steps: list[str] = []
    timeline: str = ""
    success_metric: SuccessMetric
    estimated_score_delta: float = Field(0.0, ge=0.0, le=10.0)
    weighted_gap: float = 0.0  # weight x (10 - score) for the target dimension


class GuidancePlan(BaseModel):
    """Ordered by ascending priority; length never exceeds the configured cap."""
    model_config = ConfigDict(frozen=True)

    recommendations: list[Recommendation] = []
    critical_warnings: list[str] = []
    grade_level: int = 12
    confidence: Confidence = Confidence.HIGH
    source: ResultSource = ResultSource.MODEL

from enum import Enum

from pydantic import BaseModel

from models.schemas.dimension_result import DimensionAnalyses
from models.schemas.guidance import GuidancePlan
from models.schemas.mode import EvaluationMode
from models.schemas.stage_event import PipelineState, StageEvent
from models.schemas.synthesis import Synthesis


class DimensionStatus(str, Enum):
    PENDING = "pending"
    COMPLETE = "complete"
    DEGRADED = "degraded"  # heuristic fallback
    INSUFFICIENT_EVIDENCE = "insufficient_evidence"


class EvaluationResult(BaseModel):
    evaluation_id: str
    mode: EvaluationMode
    state: PipelineState = PipelineState.COMPLETE
    synthesis: Synthesis
    dimensions: DimensionAnalyses
    guidance: GuidancePlan
    degraded_dimensions: list[str] = []
    insufficient_evidence_dimensions: list[str] = []
    dimension_status: dict[str, DimensionStatus] = {}
    events: list[StageEvent] = []
    duration_ms: float = 0.0

"""Pydantic contracts passed between the evaluation pipeline stages."""

from models.schemas.profile import ApplicantProfile
from models.schemas.mode import EvaluationMode
from models.schemas.holistic import HolisticContext
from models.schemas.dimension_result import DimensionAnalyses, DimensionResult
from models.schemas.synthesis import Synthesis
from models.schemas.guidance import GuidancePlan
from models.schemas.cache_entry import CacheEntry
from models.schemas.stage_event import PipelineState, StageEvent

__all__ = [
    "ApplicantProfile",
    "EvaluationMode",
    "HolisticContext",
    "DimensionResult",
    "DimensionAnalyses",
    "Synthesis",
    "GuidancePlan",
    "CacheEntry",
    "PipelineState",
    "StageEvent",
]

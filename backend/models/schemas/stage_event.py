"""Stage transition events emitted by the orchestrator."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict

StageName = Literal["dimension", "synthesis", "guidance", "pipeline"]
StageStatus = Literal[
    "started",
    "succeeded",
    "retried",
    "fell_back",
    "insufficient_evidence",
    "cache_hit",
    "cancelled",
    "transitioned",
]


class PipelineState(str, Enum):
    COLLECTING_DIMENSIONS = "collecting_dimensions"
    SYNTHESIZING = "synthesizing"
    GENERATING_GUIDANCE = "generating_guidance"
    COMPLETE = "complete"


class StageEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    stage: StageName
    status: StageStatus
    dimension: str | None = None
    state: PipelineState | None = None  # set on pipeline "transitioned" events
    elapsed_ms: float = 0.0
    detail: str = ""

"""Pipeline orchestrator: wires holistic context, six analyzers, synthesis and guidance.

Flow:
    profile + mode
      ├─ holistic provider(profile)                 → HolisticContext
      │       ↓  (shared, read-only)
      ├─ D1..D6 analyzers, concurrent, bounded      → DimensionAnalyses
      │       ↓  (all six settled)
      ├─ synthesize(dimensions, mode)               → Synthesis
      │       ↓
      └─ guidance(profile, dims, synthesis, mode)   → GuidancePlan
                       ↓
         EvaluationResult (+ degraded / insufficient-evidence lists)

States: collecting_dimensions → synthesizing → generating_guidance → complete;
each change is emitted as a "transitioned" pipeline event.
A failed analyzer degrades its own dimension only. Cache entries and the
stored result are written after the run completes, so a cancelled run
leaves no partial output behind.
"""

import asyncio
import inspect
import logging
import time
import uuid

from config import settings
from models.responses import DimensionStatus, EvaluationResult, PipelineState
from models.schemas.dimension_result import DimensionAnalyses
from models.schemas.holistic import HolisticContext
from models.schemas.mode import EvaluationMode
from models.schemas.profile import ApplicantProfile
from models.schemas.stage_event import StageEvent
from services.gemini_client import GeminiGateway, ModelGateway
from services.holistic import HolisticContextProvider, derive_holistic_context
from services.pipeline.analyzer import AnalyzerOutcome, DimensionAnalyzer
from services.pipeline.dimension_registry import all_specs
from services.pipeline.events import EventHook, RecordingHook, log_event
from services.pipeline.guidance import GuidanceEngine
from services.pipeline.synthesis import synthesize
from services.result_cache import ResultCache
from services.result_store import ResultStore
from services.rubric import RubricConfig, load_rubric

logger = logging.getLogger(__name__)

_STATUS_FOR_OUTCOME = {
    "cache_hit": DimensionStatus.COMPLETE,
    "succeeded": DimensionStatus.COMPLETE,
    "retried": DimensionStatus.COMPLETE,
    "fell_back": DimensionStatus.DEGRADED,
    "insufficient_evidence": DimensionStatus.INSUFFICIENT_EVIDENCE,
}


class EvaluationPipeline:
    """Holds the collaborators for one process; ``evaluate`` may run concurrently."""

    def __init__(
        self,
        gateway: ModelGateway | None = None,
        rubric: RubricConfig | None = None,
        cache: ResultCache | None = None,
        hook: EventHook | None = None,
        holistic_provider: HolisticContextProvider | None = None,
        store: ResultStore | None = None,
        max_concurrency: int | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.gateway = gateway or GeminiGateway()
        self.rubric = rubric or load_rubric(settings.rubric_path)
        self.cache = cache if cache is not None else ResultCache(schema_version=self.rubric.schema_version)
        self.hook = hook or log_event
        self.holistic_provider = holistic_provider or derive_holistic_context
        self.store = store
        self.max_concurrency = max(1, max_concurrency or settings.max_concurrent_analyzers)
        self.timeout_seconds = timeout_seconds

        self.analyzers = [
            DimensionAnalyzer(spec, self.gateway, self.rubric, cache=self.cache, timeout_seconds=timeout_seconds)
            for spec in all_specs()
        ]
        self.guidance = GuidanceEngine(self.gateway, self.rubric, cache=self.cache, timeout_seconds=timeout_seconds)

    async def evaluate(self, profile: ApplicantProfile, mode: EvaluationMode) -> EvaluationResult:
        evaluation_id = uuid.uuid4().hex
        start = time.perf_counter()
        recorder = RecordingHook(forward=self.hook)
        emit = _Emitter(recorder)

        emit("pipeline", "started", detail=f"mode={mode.value} id={evaluation_id}")
        try:
            holistic = await self._holistic(profile)

            # --- Collecting dimensions (independent, bounded concurrency) ---
            emit.transition(evaluation_id, PipelineState.COLLECTING_DIMENSIONS)
            status = {a.spec.name: DimensionStatus.PENDING for a in self.analyzers}
            outcomes = await self._collect(profile, holistic, mode, emit)
            for analyzer, outcome in outcomes:
                status[analyzer.spec.name] = _STATUS_FOR_OUTCOME[outcome.status]
            dimensions = DimensionAnalyses.from_results(o.result for _, o in outcomes)

            # --- Synthesizing ---
            emit.transition(evaluation_id, PipelineState.SYNTHESIZING)
            emit("synthesis", "started")
            t0 = time.perf_counter()
            synthesis = synthesize(dimensions, mode, self.rubric, profile=profile, holistic=holistic)
            emit(
                "synthesis",
                "succeeded",
                elapsed_ms=_elapsed_ms(t0),
                detail=f"overall={synthesis.overall_score:.2f} tier={synthesis.tier.value}",
            )

            # --- Generating guidance ---
            emit.transition(evaluation_id, PipelineState.GENERATING_GUIDANCE)
            emit("guidance", "started")
            guidance = await self.guidance.run(profile, holistic, dimensions, synthesis, mode)
            emit.outcome("guidance", None, guidance)
        except asyncio.CancelledError:
            emit("pipeline", "cancelled", elapsed_ms=_elapsed_ms(start))
            raise

        # --- Complete: only now does anything leave the run ---
        for analyzer, outcome in outcomes:
            analyzer.commit(outcome)
        self.guidance.commit(guidance)

        emit.transition(evaluation_id, PipelineState.COMPLETE)
        emit("pipeline", "succeeded", elapsed_ms=_elapsed_ms(start))
        result = EvaluationResult(
            evaluation_id=evaluation_id,
            mode=mode,
            state=PipelineState.COMPLETE,
            synthesis=synthesis,
            dimensions=dimensions,
            guidance=guidance.plan,
            degraded_dimensions=[d.value for d in dimensions.degraded],
            insufficient_evidence_dimensions=[d.value for d in dimensions.insufficient_evidence],
            dimension_status=status,
            events=list(recorder.events),
            duration_ms=_elapsed_ms(start),
        )
        if self.store is not None:
            self.store.put(result)
        return result

    async def _holistic(self, profile: ApplicantProfile) -> HolisticContext:
        context = self.holistic_provider(profile)
        if inspect.isawaitable(context):
            context = await context
        return context

    async def _collect(
        self,
        profile: ApplicantProfile,
        holistic: HolisticContext,
        mode: EvaluationMode,
        emit: "_Emitter",
    ) -> list[tuple[DimensionAnalyzer, AnalyzerOutcome]]:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run_one(analyzer: DimensionAnalyzer) -> tuple[DimensionAnalyzer, AnalyzerOutcome]:
            async with semaphore:
                emit("dimension", "started", dimension=analyzer.spec.name)
                outcome = await analyzer.run(profile, holistic, mode)
            emit.outcome("dimension", analyzer.spec.name, outcome)
            return analyzer, outcome

        tasks = [asyncio.create_task(run_one(a)) for a in self.analyzers]
        try:
            return list(await asyncio.gather(*tasks))
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()


class _Emitter:
    """Builds StageEvents and hands them to the hook."""

    def __init__(self, hook: EventHook) -> None:
        self._hook = hook

    def __call__(
        self,
        stage: str,
        status: str,
        dimension: str | None = None,
        elapsed_ms: float = 0.0,
        detail: str = "",
        state: PipelineState | None = None,
    ) -> None:
        self._hook(
            StageEvent(
                stage=stage,
                status=status,
                dimension=dimension,
                state=state,
                elapsed_ms=elapsed_ms,
                detail=detail,
            )
        )

    def transition(self, evaluation_id: str, state: PipelineState) -> None:
        logger.debug("evaluation %s -> %s", evaluation_id, state.value)
        self("pipeline", "transitioned", state=state, detail=state.value)

    def outcome(self, stage: str, dimension: str | None, outcome) -> None:
        """started → [retried] → succeeded | fell_back | cache_hit | insufficient_evidence."""
        if outcome.attempts >= 2:
            self(stage, "retried", dimension=dimension, detail=outcome.errors[0] if outcome.errors else "")
        final = "succeeded" if outcome.status == "retried" else outcome.status
        detail = "; ".join(outcome.errors) if outcome.status == "fell_back" else ""
        self(stage, final, dimension=dimension, elapsed_ms=outcome.elapsed_ms, detail=detail)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 1)


async def evaluate(
    profile: ApplicantProfile,
    mode: EvaluationMode,
    pipeline: EvaluationPipeline | None = None,
) -> EvaluationResult:
    """Pipeline entrypoint with default collaborators."""
    return await (pipeline or get_pipeline()).evaluate(profile, mode)


_pipeline: EvaluationPipeline | None = None


def get_pipeline() -> EvaluationPipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = EvaluationPipeline()
    return _pipeline

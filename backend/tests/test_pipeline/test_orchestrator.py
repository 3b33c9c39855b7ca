"""Tests for the evaluation pipeline orchestrator."""

import asyncio

import pytest

from models.responses import DimensionStatus, EvaluationResult, PipelineState
from models.schemas.dimension_result import Confidence, Dimension, ResultSource
from models.schemas.holistic import HolisticContext
from models.schemas.mode import EvaluationMode
from services.pipeline.events import RecordingHook
from services.pipeline.orchestrator import EvaluationPipeline, evaluate
from services.result_cache import ResultCache
from services.result_store import InMemoryResultStore

COMMUNITY = Dimension.COMMUNITY_IMPACT.value
VOICE = Dimension.AUTHENTICITY_VOICE.value


def _pipeline(gateway, rubric, **kwargs):
    kwargs.setdefault("cache", ResultCache(ttl_days=7))
    kwargs.setdefault("timeout_seconds", 5.0)
    return EvaluationPipeline(gateway=gateway, rubric=rubric, **kwargs)


class TestEvaluationPipeline:
    @pytest.mark.asyncio
    async def test_full_run(self, strong_profile, rubric, gateway):
        result = await _pipeline(gateway, rubric).evaluate(strong_profile, EvaluationMode.BALANCED)
        assert isinstance(result, EvaluationResult)
        assert result.state is PipelineState.COMPLETE
        assert result.synthesis.overall_score == pytest.approx(8.33, abs=0.005)
        assert result.degraded_dimensions == []
        assert result.insufficient_evidence_dimensions == []
        assert set(result.dimension_status.values()) == {DimensionStatus.COMPLETE}
        assert 1 <= len(result.guidance.recommendations) <= 8
        assert result.guidance.source is ResultSource.MODEL

    @pytest.mark.asyncio
    async def test_one_failing_dimension_degrades_only_itself(self, strong_profile, rubric, gateway_factory):
        gateway = gateway_factory(failing=[COMMUNITY])
        result = await _pipeline(gateway, rubric).evaluate(strong_profile, EvaluationMode.GENERAL_UC)
        assert result.degraded_dimensions == [COMMUNITY]
        assert result.dimension_status[COMMUNITY] is DimensionStatus.DEGRADED
        assert result.dimensions.community_impact.confidence is Confidence.LOW
        assert result.dimensions.academic_excellence.confidence is Confidence.HIGH
        assert "degraded_dimension" in [f.code for f in result.synthesis.red_flags]

    @pytest.mark.asyncio
    async def test_insufficient_evidence_is_reported(self, thin_profile, rubric, gateway):
        result = await _pipeline(gateway, rubric).evaluate(thin_profile, EvaluationMode.UCLA)
        assert result.insufficient_evidence_dimensions == [VOICE]
        assert result.dimension_status[VOICE] is DimensionStatus.INSUFFICIENT_EVIDENCE
        assert result.dimensions.authenticity_voice.score is None
        assert gateway.calls_for(VOICE) == 0
        voice = next(
            c for c in result.synthesis.dimension_contributions if c.dimension is Dimension.AUTHENTICITY_VOICE
        )
        assert voice.effective_weight == 0.0

    @pytest.mark.asyncio
    async def test_gateway_down_still_completes(self, strong_profile, rubric, gateway_factory):
        gateway = gateway_factory(failing=[d.value for d in Dimension] + ["guidance"])
        result = await _pipeline(gateway, rubric).evaluate(strong_profile, EvaluationMode.BERKELEY)
        assert len(result.degraded_dimensions) == 6
        assert result.guidance.source is ResultSource.HEURISTIC
        assert result.synthesis.confidence is Confidence.LOW

    @pytest.mark.asyncio
    async def test_analyzers_share_one_holistic_context(self, strong_profile, rubric, gateway):
        seen = []

        async def provider(profile):
            ctx = HolisticContext(central_thread="Builds medical devices")
            seen.append(ctx)
            return ctx

        await _pipeline(gateway, rubric, holistic_provider=provider).evaluate(strong_profile, EvaluationMode.UCLA)
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_results_are_cached_between_runs(self, strong_profile, rubric, gateway):
        pipeline = _pipeline(gateway, rubric)
        await pipeline.evaluate(strong_profile, EvaluationMode.BERKELEY)
        calls = len(gateway.calls)
        again = await pipeline.evaluate(strong_profile, EvaluationMode.BERKELEY)
        assert len(gateway.calls) == calls
        statuses = {e.status for e in again.events if e.stage == "dimension" and e.status != "started"}
        assert statuses == {"cache_hit"}

    @pytest.mark.asyncio
    async def test_store_receives_result(self, strong_profile, rubric, gateway):
        store = InMemoryResultStore()
        result = await _pipeline(gateway, rubric, store=store).evaluate(strong_profile, EvaluationMode.UCLA)
        assert store.get(result.evaluation_id) == result

    @pytest.mark.asyncio
    async def test_concurrency_limit_of_one(self, strong_profile, rubric, gateway):
        result = await _pipeline(gateway, rubric, max_concurrency=1).evaluate(strong_profile, EvaluationMode.UCLA)
        assert result.degraded_dimensions == []

    @pytest.mark.asyncio
    async def test_module_entrypoint(self, strong_profile, rubric, gateway):
        result = await evaluate(strong_profile, EvaluationMode.GENERAL_UC, pipeline=_pipeline(gateway, rubric))
        assert result.mode is EvaluationMode.GENERAL_UC


class TestStageEvents:
    @pytest.mark.asyncio
    async def test_event_sequence(self, strong_profile, rubric, gateway_factory):
        hook = RecordingHook()
        gateway = gateway_factory(malformed_once=[COMMUNITY])
        await _pipeline(gateway, rubric, hook=hook).evaluate(strong_profile, EvaluationMode.GENERAL_UC)

        assert hook.events[0].stage == "pipeline" and hook.events[0].status == "started"
        assert hook.events[-1].stage == "pipeline" and hook.events[-1].status == "succeeded"
        assert [e.status for e in hook.for_dimension(COMMUNITY)] == ["started", "retried", "succeeded"]
        assert [e.status for e in hook.for_dimension("academic_excellence")] == ["started", "succeeded"]

        stages = [e.stage for e in hook.events]
        last_dimension = max(i for i, s in enumerate(stages) if s == "dimension")
        assert stages.index("synthesis") > last_dimension
        assert stages.index("guidance") > stages.index("synthesis")

    @pytest.mark.asyncio
    async def test_state_transitions_are_emitted(self, strong_profile, rubric, gateway):
        hook = RecordingHook()
        await _pipeline(gateway, rubric, hook=hook).evaluate(strong_profile, EvaluationMode.GENERAL_UC)

        transitions = [e for e in hook.events if e.status == "transitioned"]
        assert [e.state for e in transitions] == [
            PipelineState.COLLECTING_DIMENSIONS,
            PipelineState.SYNTHESIZING,
            PipelineState.GENERATING_GUIDANCE,
            PipelineState.COMPLETE,
        ]
        assert all(e.stage == "pipeline" for e in transitions)

        order = hook.events.index
        first_dimension = next(e for e in hook.events if e.stage == "dimension")
        assert order(transitions[0]) < order(first_dimension)
        assert order(transitions[1]) < order(next(e for e in hook.events if e.stage == "synthesis"))
        assert order(transitions[3]) == len(hook.events) - 2

    @pytest.mark.asyncio
    async def test_cancelled_run_never_reaches_complete(self, strong_profile, rubric, gateway_factory):
        hook = RecordingHook()
        gateway = gateway_factory(hanging=[COMMUNITY])
        pipeline = _pipeline(gateway, rubric, hook=hook, timeout_seconds=60)
        task = asyncio.create_task(pipeline.evaluate(strong_profile, EvaluationMode.GENERAL_UC))
        for _ in range(100):
            await asyncio.sleep(0.01)
            if len(gateway.calls) >= 6:
                break
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        states = [e.state for e in hook.events if e.status == "transitioned"]
        assert states == [PipelineState.COLLECTING_DIMENSIONS]

    @pytest.mark.asyncio
    async def test_fallback_events(self, strong_profile, rubric, gateway_factory):
        hook = RecordingHook()
        gateway = gateway_factory(failing=[COMMUNITY])
        await _pipeline(gateway, rubric, hook=hook).evaluate(strong_profile, EvaluationMode.GENERAL_UC)
        events = hook.for_dimension(COMMUNITY)
        assert [e.status for e in events] == ["started", "retried", "fell_back"]
        assert "GatewayError" in events[-1].detail

    @pytest.mark.asyncio
    async def test_insufficient_evidence_event(self, thin_profile, rubric, gateway):
        hook = RecordingHook()
        await _pipeline(gateway, rubric, hook=hook).evaluate(thin_profile, EvaluationMode.GENERAL_UC)
        assert [e.status for e in hook.for_dimension(VOICE)] == ["started", "insufficient_evidence"]

    @pytest.mark.asyncio
    async def test_result_carries_events(self, strong_profile, rubric, gateway):
        result = await _pipeline(gateway, rubric).evaluate(strong_profile, EvaluationMode.GENERAL_UC)
        assert result.events[0].status == "started"
        assert result.events[-1].status == "succeeded"


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_leaves_nothing_behind(self, strong_profile, rubric, gateway_factory):
        hook = RecordingHook()
        cache = ResultCache(ttl_days=7)
        store = InMemoryResultStore()
        gateway = gateway_factory(hanging=[COMMUNITY])
        pipeline = _pipeline(gateway, rubric, cache=cache, store=store, hook=hook, timeout_seconds=60)

        task = asyncio.create_task(pipeline.evaluate(strong_profile, EvaluationMode.GENERAL_UC))
        for _ in range(100):
            await asyncio.sleep(0.01)
            if len(gateway.calls) >= 6:
                break
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert cache.stats()["entries"] == 0
        assert len(store) == 0
        assert hook.events[-1].status == "cancelled"
        assert "succeeded" not in [e.status for e in hook.events if e.stage == "pipeline"]

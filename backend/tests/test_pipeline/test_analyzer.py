"""Tests for the generic dimension analyzer: retry, fallback, cache, evidence checks."""

import time

import pytest

from models.schemas.dimension_result import Confidence, Dimension, ResultSource, Tier
from models.schemas.mode import EvaluationMode
from models.schemas.profile import AcademicRecord, ApplicantProfile
from services.holistic import derive_holistic_context
from services.pipeline.analyzer import MAX_ATTEMPTS, DimensionAnalyzer
from services.pipeline.dimension_registry import get_spec
from services.result_cache import ResultCache

COMMUNITY = Dimension.COMMUNITY_IMPACT.value
VOICE = Dimension.AUTHENTICITY_VOICE.value


def _analyzer(dimension, gateway, rubric, cache=None, timeout=5.0):
    return DimensionAnalyzer(get_spec(dimension), gateway, rubric, cache=cache, timeout_seconds=timeout)


async def _run(analyzer, profile, mode=EvaluationMode.GENERAL_UC):
    return await analyzer.run(profile, derive_holistic_context(profile), mode)


class TestPrimaryPath:
    @pytest.mark.asyncio
    async def test_every_dimension_builds_instructions(self, strong_profile, rubric, gateway):
        for dimension in Dimension:
            outcome = await _run(_analyzer(dimension, gateway, rubric), strong_profile)
            assert outcome.status == "succeeded"
        assert len(gateway.calls) == len(Dimension)

    @pytest.mark.asyncio
    async def test_success_on_first_attempt(self, strong_profile, rubric, gateway):
        outcome = await _run(_analyzer(Dimension.COMMUNITY_IMPACT, gateway, rubric), strong_profile)
        assert outcome.status == "succeeded"
        assert outcome.attempts == 1
        assert outcome.result.score == 7.0
        assert outcome.result.confidence is Confidence.HIGH
        assert gateway.calls_for(COMMUNITY) == 1

    @pytest.mark.asyncio
    async def test_malformed_then_valid_is_retried(self, strong_profile, rubric, gateway_factory):
        gateway = gateway_factory(malformed_once=[COMMUNITY])
        outcome = await _run(_analyzer(Dimension.COMMUNITY_IMPACT, gateway, rubric), strong_profile)
        assert outcome.status == "retried"
        assert outcome.attempts == 2
        assert outcome.result.confidence is Confidence.HIGH
        assert outcome.errors[0].startswith("ResponseParseError")
        assert gateway.calls_for(COMMUNITY) == 2


class TestFallback:
    @pytest.mark.asyncio
    async def test_gateway_errors_fall_back(self, strong_profile, rubric, gateway_factory):
        gateway = gateway_factory(failing=[COMMUNITY])
        outcome = await _run(_analyzer(Dimension.COMMUNITY_IMPACT, gateway, rubric), strong_profile)
        assert outcome.status == "fell_back"
        assert outcome.result.source is ResultSource.HEURISTIC
        assert outcome.result.confidence is Confidence.LOW
        assert len(outcome.errors) == MAX_ATTEMPTS
        assert gateway.calls_for(COMMUNITY) == MAX_ATTEMPTS

    @pytest.mark.asyncio
    async def test_timeouts_are_bounded(self, strong_profile, rubric, gateway_factory):
        gateway = gateway_factory(hanging=[COMMUNITY])
        analyzer = _analyzer(Dimension.COMMUNITY_IMPACT, gateway, rubric, timeout=0.05)
        start = time.perf_counter()
        outcome = await _run(analyzer, strong_profile)
        assert time.perf_counter() - start < 2.0
        assert outcome.status == "fell_back"
        assert outcome.result.confidence is Confidence.LOW
        assert all(e.startswith("GatewayTimeout") for e in outcome.errors)

    @pytest.mark.asyncio
    async def test_undecodable_nesting_falls_back(self, strong_profile, rubric, gateway_factory):
        gateway = gateway_factory(raw={COMMUNITY: "[" * 100000 + "]" * 100000})
        outcome = await _run(_analyzer(Dimension.COMMUNITY_IMPACT, gateway, rubric), strong_profile)
        assert outcome.status == "fell_back"
        assert outcome.result.source is ResultSource.HEURISTIC
        assert all(e.startswith("ResponseParseError") for e in outcome.errors)
        assert gateway.calls_for(COMMUNITY) == MAX_ATTEMPTS

    @pytest.mark.asyncio
    async def test_every_dimension_survives_a_dead_gateway(self, strong_profile, rubric, gateway_factory):
        gateway = gateway_factory(hanging=[d.value for d in Dimension])
        for dimension in Dimension:
            outcome = await _run(_analyzer(dimension, gateway, rubric, timeout=0.02), strong_profile)
            assert outcome.result.confidence is Confidence.LOW
            assert 0.0 <= outcome.result.score <= 10.0

    @pytest.mark.asyncio
    async def test_academic_fallback_far_below_benchmark(self, rubric, gateway_factory):
        profile = ApplicantProfile(academic=AcademicRecord(gpa_weighted=3.0))
        gateway = gateway_factory(failing=[Dimension.ACADEMIC_EXCELLENCE.value])
        outcome = await _run(_analyzer(Dimension.ACADEMIC_EXCELLENCE, gateway, rubric), profile, EvaluationMode.UCLA)
        assert outcome.result.tier is Tier.FOUNDATIONAL
        assert outcome.result.score < 4.0

    @pytest.mark.asyncio
    async def test_analyze_never_raises(self, thin_profile, rubric, gateway_factory):
        gateway = gateway_factory(failing=[d.value for d in Dimension])
        for dimension in Dimension:
            analyzer = _analyzer(dimension, gateway, rubric)
            result = await analyzer.analyze(thin_profile, derive_holistic_context(thin_profile), EvaluationMode.UCLA)
            assert result.dimension is dimension


class TestInsufficientEvidence:
    @pytest.mark.asyncio
    async def test_voice_without_essays_skips_gateway(self, thin_profile, rubric, gateway):
        outcome = await _run(_analyzer(Dimension.AUTHENTICITY_VOICE, gateway, rubric), thin_profile)
        assert outcome.status == "insufficient_evidence"
        assert outcome.result.score is None
        assert outcome.result.tier is None
        assert outcome.result.source is ResultSource.INSUFFICIENT_EVIDENCE
        assert gateway.calls_for(VOICE) == 0
        assert not outcome.cacheable


class TestCaching:
    @pytest.mark.asyncio
    async def test_second_run_hits_cache(self, strong_profile, rubric, gateway):
        cache = ResultCache(ttl_days=7)
        analyzer = _analyzer(Dimension.COMMUNITY_IMPACT, gateway, rubric, cache=cache)
        first = await analyzer.analyze(strong_profile, derive_holistic_context(strong_profile), EvaluationMode.BERKELEY)
        outcome = await _run(analyzer, strong_profile, EvaluationMode.BERKELEY)
        assert outcome.status == "cache_hit"
        assert outcome.result == first
        assert gateway.calls_for(COMMUNITY) == 1

    @pytest.mark.asyncio
    async def test_mode_changes_the_key(self, strong_profile, rubric, gateway):
        cache = ResultCache(ttl_days=7)
        analyzer = _analyzer(Dimension.COMMUNITY_IMPACT, gateway, rubric, cache=cache)
        await analyzer.analyze(strong_profile, derive_holistic_context(strong_profile), EvaluationMode.BERKELEY)
        outcome = await _run(analyzer, strong_profile, EvaluationMode.UCLA)
        assert outcome.status == "succeeded"

    @pytest.mark.asyncio
    async def test_run_alone_does_not_write(self, strong_profile, rubric, gateway):
        cache = ResultCache(ttl_days=7)
        await _run(_analyzer(Dimension.COMMUNITY_IMPACT, gateway, rubric, cache=cache), strong_profile)
        assert cache.stats()["entries"] == 0

    @pytest.mark.asyncio
    async def test_heuristic_results_are_not_cached(self, strong_profile, rubric, gateway_factory):
        cache = ResultCache(ttl_days=7)
        gateway = gateway_factory(failing=[COMMUNITY])
        analyzer = _analyzer(Dimension.COMMUNITY_IMPACT, gateway, rubric, cache=cache)
        await analyzer.analyze(strong_profile, derive_holistic_context(strong_profile), EvaluationMode.GENERAL_UC)
        assert cache.stats()["entries"] == 0

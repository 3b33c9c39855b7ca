"""Generic dimension analyzer: one class drives all six dimension specs.

    check_evidence ─ insufficient? ──> insufficient-evidence result
          │
    cache lookup ─── hit? ──────────> cached result
          │
    attempt 1 ─ ok ─> result (high confidence)
          │ GatewayError / ResponseParseError / timeout
    attempt 2 (identical payload) ─ ok ─> result (high confidence)
          │ fails again
    heuristic fallback ────────────> result (low confidence)

Never raises to the caller except for cancellation.
"""

import asyncio
import logging
import time
from dataclasses import dataclass

from config import settings
from models.schemas.dimension_result import Confidence, DimensionResult
from models.schemas.holistic import HolisticContext
from models.schemas.mode import EvaluationMode
from models.schemas.profile import ApplicantProfile
from models.schemas.stage_event import StageStatus
from services.errors import GatewayError, GatewayTimeout, ResponseParseError
from services.gemini_client import ModelGateway, parse_json_object
from services.pipeline.base import DimensionSpec, insufficient_evidence_result
from services.result_cache import ResultCache, input_digest
from services.rubric import RubricConfig

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2  # primary call plus exactly one retry


@dataclass(frozen=True)
class AnalyzerOutcome:
    """What happened inside one analyzer run; the orchestrator turns it into events."""
    result: DimensionResult
    status: StageStatus  # cache_hit, succeeded, retried, fell_back, insufficient_evidence
    attempts: int = 0
    elapsed_ms: float = 0.0
    errors: tuple[str, ...] = ()
    digest: str = ""

    @property
    def cacheable(self) -> bool:
        return bool(self.digest) and self.status in ("succeeded", "retried") and (
            self.result.confidence is Confidence.HIGH
        )


class DimensionAnalyzer:
    """Runs one DimensionSpec against the model gateway with retry and fallback."""

    def __init__(
        self,
        spec: DimensionSpec,
        gateway: ModelGateway,
        rubric: RubricConfig,
        cache: ResultCache | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.spec = spec
        self._gateway = gateway
        self._rubric = rubric
        self._cache = cache
        self._timeout = timeout_seconds if timeout_seconds is not None else settings.gateway_timeout_seconds

    async def analyze(
        self,
        profile: ApplicantProfile,
        holistic: HolisticContext,
        mode: EvaluationMode,
    ) -> DimensionResult:
        """Standalone entrypoint: run and commit a model-backed result to the cache."""
        outcome = await self.run(profile, holistic, mode)
        self.commit(outcome)
        return outcome.result

    async def run(
        self,
        profile: ApplicantProfile,
        holistic: HolisticContext,
        mode: EvaluationMode,
    ) -> AnalyzerOutcome:
        """Produce a result without writing to the cache (see ``commit``)."""
        start = time.perf_counter()
        name = self.spec.name

        reason = self.spec.check_evidence(profile)
        if reason:
            logger.info("%s: insufficient evidence (%s)", name, reason)
            return AnalyzerOutcome(
                result=insufficient_evidence_result(self.spec.dimension, reason),
                status="insufficient_evidence",
                elapsed_ms=_elapsed_ms(start),
            )

        instructions = self.spec.build_instructions(mode, self._rubric)
        payload = self.spec.build_payload(profile, holistic, mode, self._rubric)
        digest = input_digest(instructions, payload)

        if self._cache is not None:
            cached = self._cache.get_result(digest, name)
            if cached is not None:
                return AnalyzerOutcome(
                    result=cached,
                    status="cache_hit",
                    elapsed_ms=_elapsed_ms(start),
                    digest=digest,
                )

        errors: list[str] = []
        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                result = await self._attempt(instructions, payload)
            except (GatewayError, ResponseParseError) as e:
                logger.warning("%s: attempt %d/%d failed: %s", name, attempt, MAX_ATTEMPTS, e)
                errors.append(f"{type(e).__name__}: {e}")
                continue
            return AnalyzerOutcome(
                result=result,
                status="succeeded" if attempt == 1 else "retried",
                attempts=attempt,
                elapsed_ms=_elapsed_ms(start),
                errors=tuple(errors),
                digest=digest,
            )

        logger.warning("%s: falling back to heuristic after %d failed attempts", name, MAX_ATTEMPTS)
        return AnalyzerOutcome(
            result=self.spec.heuristic(profile, holistic, mode, self._rubric),
            status="fell_back",
            attempts=MAX_ATTEMPTS,
            elapsed_ms=_elapsed_ms(start),
            errors=tuple(errors),
            digest=digest,
        )

    def commit(self, outcome: AnalyzerOutcome) -> None:
        """Write a model-backed result to the cache; heuristic results are never cached."""
        if self._cache is not None and outcome.cacheable:
            self._cache.put(outcome.digest, self.spec.name, outcome.result)

    async def _attempt(self, instructions: str, payload: str) -> DimensionResult:
        try:
            text = await asyncio.wait_for(
                self._gateway.complete(instructions, payload),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise GatewayTimeout(f"no response within {self._timeout:g}s") from e
        return self.spec.parse(parse_json_object(text), self._rubric)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 1)

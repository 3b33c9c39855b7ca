"""Strategic guidance: turn weighted score gaps into a ranked action plan.

weighted gap = mode weight x (10 - score); an unscored dimension counts as
the full 10 points. Ties fall back to dimension declaration order.

The generative path asks for 5-8 recommendations; whatever comes back is
re-ordered by the target dimension's weighted gap (model priority breaks
ties within a dimension), capped, and renumbered 1..n. The plan is
therefore sorted by descending gap and by ascending priority at once.
"""

import asyncio
import logging
import time
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from config import settings
from models.schemas.dimension_result import (
    Confidence,
    Dimension,
    DimensionAnalyses,
    ResultSource,
)
from models.schemas.guidance import GuidancePlan, Recommendation, SuccessMetric
from models.schemas.holistic import HolisticContext
from models.schemas.mode import EvaluationMode
from models.schemas.profile import ApplicantProfile
from models.schemas.stage_event import StageStatus
from models.schemas.synthesis import Synthesis
from services import prompt_builder
from services.errors import GatewayError, GatewayTimeout, ResponseParseError
from services.gemini_client import ModelGateway, parse_json_object
from services.result_cache import GUIDANCE_TARGET, ResultCache, input_digest
from services.rubric import RubricConfig

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2
TOP_GAPS_IN_PROMPT = 3
HEURISTIC_WARNING = "Heuristic guidance; detailed analysis recommended"


@dataclass(frozen=True)
class WeightedGap:
    dimension: Dimension
    score: float | None
    weight: float
    gap: float


def rank_weighted_gaps(
    dimensions: DimensionAnalyses,
    mode: EvaluationMode,
    rubric: RubricConfig,
) -> list[WeightedGap]:
    """Largest improvement opportunity first; ties by declaration order."""
    weights = rubric.weights_for(mode)
    gaps = []
    for d, result in dimensions.items():
        headroom = 10.0 if result.score is None else 10.0 - result.score
        gaps.append(WeightedGap(d, result.score, weights[d], round(weights[d] * headroom, 6)))
    return sorted(gaps, key=lambda g: (-g.gap, g.dimension.order))


# ---------------------------------------------------------------------------
# Response contract
# ---------------------------------------------------------------------------

class _MetricPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    measurable_goal: str
    verification_method: str
    deadline: str


class _RecommendationPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    priority: int = Field(..., ge=1)
    dimension: Dimension
    recommendation: str
    specific_steps: list[str]
    timeline: str
    success_metric: _MetricPayload
    estimated_score_delta: float = Field(..., ge=0.0, le=10.0)


class _GuidancePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    recommendations: list[_RecommendationPayload] = Field(..., min_length=1)
    critical_warnings: list[str]


def order_recommendations(
    recommendations: list[Recommendation],
    gaps: list[WeightedGap],
    cap: int,
) -> list[Recommendation]:
    """Sort by (gap desc, given priority, declaration order), cap, renumber 1..n."""
    gap_of = {g.dimension: g.gap for g in gaps}
    ranked = sorted(
        recommendations,
        key=lambda r: (-gap_of.get(r.dimension, 0.0), r.priority, r.dimension.order),
    )[:cap]
    return [
        r.model_copy(update={"priority": i, "weighted_gap": gap_of.get(r.dimension, 0.0)})
        for i, r in enumerate(ranked, start=1)
    ]


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

GUIDANCE_SCHEMA = """{
  "recommendations": [
    {
      "priority": <integer, 1 = most urgent>,
      "dimension": "academic_excellence" | "leadership_initiative" | "intellectual_curiosity" | "community_impact" | "authenticity_voice" | "future_readiness",
      "recommendation": "<clear, specific recommendation>",
      "specific_steps": ["<step 1>", "<step 2>", "<step 3>"],
      "timeline": "<when to do this>",
      "success_metric": {
        "measurable_goal": "<specific, quantifiable target>",
        "verification_method": "<how to track progress>",
        "deadline": "<date or milestone>"
      },
      "estimated_score_delta": <number 0.0-10.0, expected gain in that dimension>
    }
  ],
  "critical_warnings": ["<things to avoid>"]
}"""


def build_instructions(mode: EvaluationMode, rubric: RubricConfig, grade_level: int) -> str:
    return "\n\n---\n\n".join(
        [
            f"You are an expert UC admissions counselor generating strategic, actionable "
            f"guidance for a student targeting {mode.display_name}.\n\n"
            "Create a prioritized action plan that addresses the most impactful gaps first, "
            "gives specific steps rather than vague advice, and is realistic for the "
            "student's current grade.",
            prompt_builder.weights_block(rubric, mode),
            "Higher weight means higher priority: a gap in a heavily weighted dimension "
            "moves the overall score most.",
            prompt_builder.grade_block(grade_level),
            """## RECOMMENDATION CRITERIA

- Specific: "Join robotics and aim for the regional competition", not "do more activities".
- Measurable: "Raise GPA from 3.8 to 4.0", not "improve grades".
- Achievable given the student's time and resources.
- Time-bound for the student's grade level.""",
            f"## OUTPUT FORMAT\n\nReturn ONLY a JSON object with this exact schema:\n\n{GUIDANCE_SCHEMA}\n\n"
            f"Provide 5-{rubric.max_recommendations} recommendations.",
        ]
    )


def build_payload(
    profile: ApplicantProfile,
    holistic: HolisticContext,
    dimensions: DimensionAnalyses,
    synthesis: Synthesis,
    gaps: list[WeightedGap],
    mode: EvaluationMode,
) -> str:
    goals = profile.goals
    student = f"""## STUDENT PROFILE

- Grade: {profile.grade_level}
- First-generation: {"Yes" if profile.context.first_generation else "No"}
- Intended major: {goals.intended_major or "Undeclared"}
- Target campuses: {", ".join(goals.target_institutions) or "Not specified"}"""

    fits = "\n".join(f"- {f.institution}: {f.fit_score:.2f} ({f.bucket})" for f in synthesis.target_fit)
    summary = f"""## SYNTHESIS SUMMARY

- Overall score: {synthesis.overall_score:.2f}/10 ({synthesis.tier.value}, {synthesis.percentile_label})
- Profile archetype: {synthesis.profile_archetype}
- Competitive advantages: {"; ".join(synthesis.competitive_advantages) or "None identified"}
- Competitive weaknesses: {"; ".join(synthesis.competitive_weaknesses) or "None identified"}

### Campus fit
{fits or "- Not computed"}"""

    rows = []
    for i, g in enumerate(gaps, start=1):
        result = dimensions.get(g.dimension)
        score = f"{g.score:.1f}/10" if g.score is not None else "not scored"
        rows.append(
            f"### {i}. {g.dimension.label}\n"
            f"Score: {score} | Weight: {g.weight * 100:.0f}% | Weighted gap: {g.gap:.2f}\n"
            f"Strategic pivot: {result.strategic_pivot.path_to_next_tier or 'Not specified'}"
        )
    top = "\n".join(
        f"{i}. {g.dimension.label} (weighted gap: {g.gap:.2f})"
        for i, g in enumerate(gaps[:TOP_GAPS_IN_PROMPT], start=1)
    )
    flags = "\n".join(f"- {f.message}" for f in synthesis.red_flags) or "- None identified"

    return "\n\n---\n\n".join(
        [
            f"Generate strategic guidance for this student targeting **{mode.display_name}**.",
            student,
            summary,
            "## DIMENSION SCORES AND GAPS (sorted by weighted impact)\n\n" + "\n\n".join(rows),
            prompt_builder.holistic_block(holistic),
            f"## RED FLAGS\n\n{flags}",
            f"## HIGHEST-IMPACT IMPROVEMENTS\n\n{top}",
            "Return ONLY the JSON object (no markdown, no extra text).",
        ]
    )


# ---------------------------------------------------------------------------
# Heuristic fallback
# ---------------------------------------------------------------------------

_GENERIC = {
    Dimension.ACADEMIC_EXCELLENCE: (
        "Strengthen core-course grades and add the most rigorous course available",
        ["Identify the weakest core subject", "Schedule weekly help sessions", "Enroll in one additional honors or AP course"],
        "Raise the weighted GPA by at least 0.1",
    ),
    Dimension.LEADERSHIP_INITIATIVE: (
        "Take ownership of one existing activity and document its outcomes",
        ["Pick the activity with the longest commitment", "Propose one concrete project", "Track participation or results"],
        "Lead one project with a measurable result",
    ),
    Dimension.INTELLECTUAL_CURIOSITY: (
        "Start a self-directed project or research in the intended field",
        ["Choose a question you want answered", "Find a mentor or program", "Produce a written or public artifact"],
        "Complete one independent project with a shareable result",
    ),
    Dimension.COMMUNITY_IMPACT: (
        "Commit to one cause and measure who benefits",
        ["Select one organization", "Commit to a weekly schedule", "Record the people served"],
        "Sustain weekly service for six months with named beneficiaries",
    ),
    Dimension.AUTHENTICITY_VOICE: (
        "Rewrite essays around specific moments and reflection",
        ["List three defining experiences", "Draft each as a scene", "Add what changed in your thinking"],
        "Complete all four essays with concrete scenes and reflection",
    ),
    Dimension.FUTURE_READINESS: (
        "Connect intended major to concrete activities and coursework",
        ["Write down a direction and why", "Add one activity in that field", "Talk to someone working in it"],
        "Write a one-paragraph rationale backed by two related activities",
    ),
}


def heuristic_plan(
    profile: ApplicantProfile,
    synthesis: Synthesis,
    gaps: list[WeightedGap],
    cap: int,
) -> GuidancePlan:
    """One generic recommendation per dimension with a positive weighted gap."""
    rubric_for_grade = prompt_builder.grade_rubric(profile.grade_level)
    recommendations = []
    for i, g in enumerate([g for g in gaps if g.gap > 0][:cap], start=1):
        text, steps, goal = _GENERIC[g.dimension]
        if g.score is None:
            text = f"Provide the missing evidence for {g.dimension.label}, then: {text[0].lower()}{text[1:]}"
        recommendations.append(
            Recommendation(
                priority=i,
                dimension=g.dimension,
                recommendation=text,
                specific_steps=list(steps),
                timeline=rubric_for_grade.timeline,
                success_metric=SuccessMetric(
                    measurable_goal=goal,
                    verification_method="Review progress with a counselor",
                    deadline=rubric_for_grade.default_deadline,
                ),
                estimated_score_delta=round(min(1.0, 10.0 - g.score), 2) if g.score is not None else 0.0,
                weighted_gap=g.gap,
            )
        )

    warnings = [HEURISTIC_WARNING]
    warnings += [f.message for f in synthesis.red_flags if f.code in ("weak_priority_dimension", "insufficient_evidence")]
    return GuidancePlan(
        recommendations=recommendations,
        critical_warnings=warnings,
        grade_level=profile.grade_level,
        confidence=Confidence.LOW,
        source=ResultSource.HEURISTIC,
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GuidanceOutcome:
    plan: GuidancePlan
    status: StageStatus  # cache_hit, succeeded, retried, fell_back
    attempts: int = 0
    elapsed_ms: float = 0.0
    errors: tuple[str, ...] = ()
    digest: str = ""

    @property
    def cacheable(self) -> bool:
        return bool(self.digest) and self.status in ("succeeded", "retried")


class GuidanceEngine:
    """Same retry-once-then-heuristic policy as the dimension analyzers."""

    def __init__(
        self,
        gateway: ModelGateway,
        rubric: RubricConfig,
        cache: ResultCache | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._gateway = gateway
        self._rubric = rubric
        self._cache = cache
        self._timeout = timeout_seconds if timeout_seconds is not None else settings.gateway_timeout_seconds
        self._cap = min(rubric.max_recommendations, settings.max_recommendations)

    async def generate(
        self,
        profile: ApplicantProfile,
        holistic: HolisticContext,
        dimensions: DimensionAnalyses,
        synthesis: Synthesis,
        mode: EvaluationMode,
    ) -> GuidancePlan:
        outcome = await self.run(profile, holistic, dimensions, synthesis, mode)
        self.commit(outcome)
        return outcome.plan

    async def run(
        self,
        profile: ApplicantProfile,
        holistic: HolisticContext,
        dimensions: DimensionAnalyses,
        synthesis: Synthesis,
        mode: EvaluationMode,
    ) -> GuidanceOutcome:
        start = time.perf_counter()
        gaps = rank_weighted_gaps(dimensions, mode, self._rubric)
        instructions = build_instructions(mode, self._rubric, profile.grade_level)
        payload = build_payload(profile, holistic, dimensions, synthesis, gaps, mode)
        digest = input_digest(instructions, payload)

        if self._cache is not None:
            cached = self._cache.get_result(digest, GUIDANCE_TARGET)
            if cached is not None:
                return GuidanceOutcome(cached, "cache_hit", elapsed_ms=_elapsed_ms(start), digest=digest)

        errors: list[str] = []
        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                plan = await self._attempt(instructions, payload, gaps, profile.grade_level)
            except (GatewayError, ResponseParseError) as e:
                logger.warning("guidance: attempt %d/%d failed: %s", attempt, MAX_ATTEMPTS, e)
                errors.append(f"{type(e).__name__}: {e}")
                continue
            return GuidanceOutcome(
                plan,
                "succeeded" if attempt == 1 else "retried",
                attempts=attempt,
                elapsed_ms=_elapsed_ms(start),
                errors=tuple(errors),
                digest=digest,
            )

        logger.warning("guidance: falling back to heuristic plan")
        return GuidanceOutcome(
            heuristic_plan(profile, synthesis, gaps, self._cap),
            "fell_back",
            attempts=MAX_ATTEMPTS,
            elapsed_ms=_elapsed_ms(start),
            errors=tuple(errors),
            digest=digest,
        )

    def commit(self, outcome: GuidanceOutcome) -> None:
        if self._cache is not None and outcome.cacheable:
            self._cache.put(outcome.digest, GUIDANCE_TARGET, outcome.plan)

    async def _attempt(
        self,
        instructions: str,
        payload: str,
        gaps: list[WeightedGap],
        grade_level: int,
    ) -> GuidancePlan:
        try:
            text = await asyncio.wait_for(self._gateway.complete(instructions, payload), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise GatewayTimeout(f"no response within {self._timeout:g}s") from e
        return self.parse(parse_json_object(text), gaps, grade_level)

    def parse(self, data: dict, gaps: list[WeightedGap], grade_level: int) -> GuidancePlan:
        try:
            parsed = _GuidancePayload.model_validate(data)
        except ValidationError as e:
            raise ResponseParseError(f"guidance: {e.error_count()} invalid field(s): {e}") from e

        recommendations = [
            Recommendation(
                priority=r.priority,
                dimension=r.dimension,
                recommendation=r.recommendation,
                specific_steps=r.specific_steps,
                timeline=r.timeline,
                success_metric=SuccessMetric(**r.success_metric.model_dump()),
                estimated_score_delta=r.estimated_score_delta,
            )
            for r in parsed.recommendations
        ]
        if len(recommendations) > self._cap:
            logger.info("guidance: truncating %d recommendations to %d", len(recommendations), self._cap)
        return GuidancePlan(
            recommendations=order_recommendations(recommendations, gaps, self._cap),
            critical_warnings=parsed.critical_warnings,
            grade_level=grade_level,
            confidence=Confidence.HIGH,
            source=ResultSource.MODEL,
        )


async def generate_guidance(
    profile: ApplicantProfile,
    holistic: HolisticContext,
    dimensions: DimensionAnalyses,
    synthesis: Synthesis,
    mode: EvaluationMode,
    *,
    gateway: ModelGateway,
    rubric: RubricConfig,
    cache: ResultCache | None = None,
) -> GuidancePlan:
    engine = GuidanceEngine(gateway, rubric, cache=cache)
    return await engine.generate(profile, holistic, dimensions, synthesis, mode)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 1)

"""Dimension 1: Academic Excellence.

GPA in the context of school resources, course rigor and challenge-seeking,
grade trends, and a-g preparation. Rigor is judged against what the school
actually offers: few advanced courses available is a normalizing factor.
"""

import logging
from typing import Literal

from pydantic import BaseModel

from models.schemas.dimension_result import Dimension, DimensionResult
from models.schemas.holistic import HolisticContext
from models.schemas.mode import EvaluationMode
from models.schemas.profile import AcademicRecord, ApplicantContext, ApplicantProfile
from services import prompt_builder
from services.pipeline.base import DimensionSpec, heuristic_result
from services.rubric import GpaBenchmark, RubricConfig

logger = logging.getLogger(__name__)

# Advanced-course counts expected at a school offering ~20 advanced courses
EXCEPTIONAL_COURSE_COUNT = 10
STRONG_COURSE_COUNT = 6
REFERENCE_OFFERINGS = 20
# Catalog size assumed for an under-resourced school that did not report one
ASSUMED_LIMITED_OFFERINGS = 5
DEVELOPING_GPA = {"UC-weighted": 3.7, "unweighted": 3.5}


class AcademicDetails(BaseModel):
    grade_trend: Literal["upward", "consistent", "declining"]
    course_load_assessment: Literal["exceptional", "strong", "adequate", "limited"]
    context_adjusted_assessment: str
    standout_courses: list[str]
    missed_opportunities: list[str]


DEFINITION = """Academic Excellence measures:
1. **GPA Performance**: sustained high achievement in core academic courses
2. **Course Rigor**: taking the hardest courses available
3. **Grade Trends**: consistency and improvement over time
4. **UC Preparation**: meeting a-g requirements with depth beyond minimums
5. **Context**: performance relative to school resources and circumstances

A 4.0 at a school with 30 APs is not the same as a 3.85 at a school with 5."""

FRAMEWORK = """## ACADEMIC CALIBRATION

- At top UCs a strong GPA is the baseline, not the differentiator.
- UC-weighted GPA caps honors weighting at 8 semesters (grades 10-11).
- Rigor matters as much as GPA: 3.9 with 12 APs outranks 4.0 with 2 APs.
- Declining junior-year grades are a concern; upward trends offset early dips.
- Easy senior-year schedules are a red flag.
- Judge rigor against the number of advanced courses the school offers."""

DETAILS_SCHEMA = """{
    "grade_trend": "upward" | "consistent" | "declining",
    "course_load_assessment": "exceptional" | "strong" | "adequate" | "limited",
    "context_adjusted_assessment": "<how school and personal context affect the evaluation>",
    "standout_courses": ["<impressive courses>"],
    "missed_opportunities": ["<courses they could have taken but did not>"]
  }"""


def course_thresholds(context: ApplicantContext) -> tuple[int, int]:
    """Advanced-course counts needed for (exceptional, strong), scaled to offerings.

    Unknown offerings use the reference counts unless the school is flagged as
    under-resourced, in which case a limited catalog is assumed. A school that
    offers no advanced courses waives the requirement entirely.
    """
    offered = context.advanced_courses_offered
    if offered is None:
        if not context.limited_course_offerings:
            return EXCEPTIONAL_COURSE_COUNT, STRONG_COURSE_COUNT
        offered = ASSUMED_LIMITED_OFFERINGS
    if offered <= 0:
        return 0, 0
    scale = min(1.0, offered / REFERENCE_OFFERINGS)
    return (
        max(1, round(EXCEPTIONAL_COURSE_COUNT * scale)),
        max(1, round(STRONG_COURSE_COUNT * scale)),
    )


def gpa_standing(academic: AcademicRecord, bench: GpaBenchmark) -> tuple[float | None, float, float, str]:
    """GPA with the benchmark bounds on the same scale: (gpa, p50, p75, scale)."""
    if academic.gpa_weighted is not None:
        return academic.gpa_weighted, bench.p50, bench.p75, "UC-weighted"
    p50, p75 = bench.bounds(weighted=False)
    return academic.gpa_unweighted, p50, p75, "unweighted"


class AcademicExcellenceSpec(DimensionSpec):
    dimension = Dimension.ACADEMIC_EXCELLENCE
    details_model = AcademicDetails
    definition = DEFINITION
    framework = FRAMEWORK
    details_schema = DETAILS_SCHEMA

    def build_payload(
        self,
        profile: ApplicantProfile,
        holistic: HolisticContext,
        mode: EvaluationMode,
        rubric: RubricConfig,
    ) -> str:
        return prompt_builder.data_payload(
            self.dimension.label,
            mode,
            [
                prompt_builder.holistic_block(holistic),
                _academic_block(profile, mode, rubric),
                prompt_builder.school_context_block(profile),
                prompt_builder.grade_block(profile.grade_level),
            ],
        )

    def heuristic(
        self,
        profile: ApplicantProfile,
        holistic: HolisticContext,
        mode: EvaluationMode,
        rubric: RubricConfig,
    ) -> DimensionResult:
        academic = profile.academic
        ctx = profile.context
        gpa, p50, p75, scale = gpa_standing(academic, rubric.gpa_benchmark(mode))
        gpa = gpa or 0.0
        advanced = len(academic.advanced_courses)
        need_exceptional, need_strong = course_thresholds(ctx)

        if gpa >= p75 and advanced >= need_exceptional:
            score, load = 9.5, "exceptional"
        elif gpa >= p50 and advanced >= need_strong:
            score, load = 7.5, "strong"
        elif gpa >= DEVELOPING_GPA[scale]:
            score, load = 5.5, "adequate"
        else:
            score, load = 3.0, "limited"

        if gpa >= p75:
            position = "at or above the 75th percentile"
        elif gpa >= p50:
            position = "between the 50th and 75th percentile"
        else:
            position = "below the 50th percentile"

        strengths = []
        weaknesses = []
        if gpa >= p50:
            strengths.append(("GPA performance", f"{gpa:.2f} {scale} GPA, {position} for {mode.display_name}"))
        else:
            weaknesses.append(("GPA below benchmark", f"{gpa:.2f} {scale} GPA vs {p50:.2f} median admit"))
        if advanced >= need_strong and advanced > 0:
            strengths.append(("Course rigor", f"{advanced} advanced courses"))
        elif need_strong > 0 and not ctx.limited_course_offerings:
            weaknesses.append(("Limited rigor", f"{advanced} advanced courses (about {need_strong} expected)"))

        if ctx.limited_course_offerings:
            context_note = "Limited advanced offerings at school; rigor judged relative to availability"
        else:
            context_note = "No school-context adjustment applied"

        return heuristic_result(
            self.dimension,
            score,
            rubric,
            strengths=strengths,
            weaknesses=weaknesses,
            details=AcademicDetails(
                grade_trend="consistent",
                course_load_assessment=load,
                context_adjusted_assessment=context_note,
                standout_courses=[c.name for c in academic.advanced_courses[:5]],
                missed_opportunities=[],
            ),
            path_to_next_tier="Raise core-course grades and add the most rigorous courses available",
            key_evidence=[f"{gpa:.2f} {scale} GPA", f"{advanced} advanced courses"],
        )


def _academic_block(profile: ApplicantProfile, mode: EvaluationMode, rubric: RubricConfig) -> str:
    academic = profile.academic
    bench = rubric.gpa_benchmark(mode)
    gpa, p50, _, scale = gpa_standing(academic, bench)

    def fmt(value: float | None) -> str:
        return f"{value:.2f}" if value is not None else "N/A"

    if gpa is None:
        competitive = "Unknown"
    elif gpa >= p50:
        competitive = "Yes"
    else:
        competitive = "Below benchmark"

    courses = (
        "\n".join(
            f"- **{c.name}** ({c.rigor}{', UC-certified' if c.is_certified_honors else ''})"
            f" - Grade: {c.grade or 'In progress'} - Grade level: {c.grade_level or 'N/A'}"
            for c in academic.advanced_courses
        )
        or "No advanced courses reported"
    )
    exams = (
        "\n".join(f"- {e.subject}: {e.score}/5" for e in academic.test_scores.ap_exams)
        or "No AP/IB exams reported"
    )
    honors = "\n".join(f"- {h}" for h in academic.honors) or "No academic honors listed"

    return f"""## ACADEMIC PROFILE

### GPA Overview
- UC-weighted GPA: {fmt(academic.gpa_weighted)}
  - Benchmark for {mode.display_name}: {bench.p50:.2f} (50th) / {bench.p75:.2f} (75th)
- Unweighted GPA: {fmt(academic.gpa_unweighted)}
  - Benchmark for {mode.display_name}: {bench.unweighted_p50:.2f} (50th) / {bench.unweighted_p75:.2f} (75th)
- Competitive ({scale}): {competitive}
- Fully weighted GPA: {fmt(academic.gpa_fully_weighted)}

### Course Rigor
**Total**: {len(academic.advanced_courses)} advanced courses
**Rigor description**: {academic.rigor_description or "Not specified"}
{courses}

### AP/IB Exam Scores
{exams}

### Academic Honors
{honors}

### UC a-g Requirements
- Status: {"Completed" if academic.ag_requirements_complete else "In progress or deficient"}"""

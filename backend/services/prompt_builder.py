"""Prompt building blocks shared by the dimension analyzers and guidance engine.

Everything here is a pure function of its arguments: no timestamps, no
random content, so identical inputs always yield byte-identical prompts
(and therefore identical cache keys).
"""

from dataclasses import dataclass

from models.schemas.dimension_result import DIMENSION_ORDER, Dimension, Tier
from models.schemas.holistic import HolisticContext
from models.schemas.mode import EvaluationMode
from models.schemas.profile import ApplicantProfile
from services.rubric import RubricConfig


@dataclass(frozen=True)
class GradeRubric:
    """What a student in a given grade can realistically act on."""
    grade: int
    title: str
    focus: str
    activities: str
    academics: str
    timeline: str
    default_deadline: str


_GRADE_RUBRICS = {
    9: GradeRubric(
        grade=9,
        title="Grade 9: Foundation Building",
        focus="Academics, exploration, building habits",
        activities="Join 2-3 activities and look for a potential spike area",
        academics="Set a strong GPA foundation",
        timeline="3+ years to develop the profile",
        default_deadline="End of 10th grade",
    ),
    10: GradeRubric(
        grade=10,
        title="Grade 10: Depth Development",
        focus="Deepen involvement and take first leadership steps",
        activities="Take on leadership roles and increase commitment",
        academics="Add rigor (first AP/IB courses) while maintaining GPA",
        timeline="2+ years to refine the profile",
        default_deadline="End of 11th grade",
    ),
    11: GradeRubric(
        grade=11,
        title="Grade 11: Critical Year",
        focus="Maximize impact and prepare applications",
        activities="Leadership positions with measurable outcomes",
        academics="Strong junior-year grades (the most important year for UCs)",
        timeline="6-12 months before applications",
        default_deadline="Before the November application deadline",
    ),
    12: GradeRubric(
        grade=12,
        title="Grade 12: Application Season",
        focus="Finalize essays and maintain grades",
        activities="Document accomplishments and outcomes",
        academics="Keep senior-year rigor; grades still matter",
        timeline="Application deadlines approaching",
        default_deadline="Before submitting applications",
    ),
}


def grade_rubric(grade: int) -> GradeRubric:
    return _GRADE_RUBRICS.get(grade, _GRADE_RUBRICS[12])


def grade_block(grade: int) -> str:
    r = grade_rubric(grade)
    return f"""## GRADE-SPECIFIC CONTEXT

### {r.title}
- Focus: {r.focus}
- Activities: {r.activities}
- Academics: {r.academics}
- Timeline: {r.timeline}"""


def tier_definitions_block(rubric: RubricConfig) -> str:
    t = rubric.thresholds
    return f"""## TIER DEFINITIONS (4-TIER SYSTEM, 0-10 SCALE)

- **Exceptional** ({t.exceptional:.1f}-10.0): {rubric.percentile_labels[Tier.EXCEPTIONAL]} nationally. Rare, evidence-backed distinction.
- **Strong** ({t.strong:.1f}-{t.exceptional - 0.1:.1f}): {rubric.percentile_labels[Tier.STRONG]}. Consistently strong with clear evidence.
- **Developing** ({t.developing:.1f}-{t.strong - 0.1:.1f}): {rubric.percentile_labels[Tier.DEVELOPING]}. Meets expectations with visible gaps.
- **Foundational** (0.0-{t.developing - 0.1:.1f}): {rubric.percentile_labels[Tier.FOUNDATIONAL]}. Significant growth needed.

The tier is derived from your numeric score; report the score precisely."""


def weights_block(rubric: RubricConfig, mode: EvaluationMode, focus: Dimension | None = None) -> str:
    weights = rubric.weights_for(mode)
    lines = [f"## DIMENSION WEIGHTS FOR {mode.display_name.upper()}", ""]
    for d in DIMENSION_ORDER:
        marker = " <- this analysis" if d is focus else ""
        lines.append(f"- {d.label}: {weights[d] * 100:.0f}%{marker}")
    return "\n".join(lines)


CALIBRATION_GUARDS = """## CALIBRATION GUARDS

- Base every score on SPECIFIC evidence from the data block; quote it.
- Titles are not outcomes: credit what changed, not what a role was called.
- Apply context adjustments only when the context section supports them.
- Limited opportunities at the applicant's school are context, not a deficiency.
- Most competitive applicants are Strong or Developing. Exceptional is rare.
- Be honest about weaknesses and specific about how to improve."""


def holistic_block(holistic: HolisticContext) -> str:
    insights = "\n".join(f"- {i}" for i in holistic.key_insights) or "- None identified"
    adjustments = (
        "\n".join(f"- {a.factor.replace('_', ' ')}: {a.impact or 'applies'}" for a in holistic.active_adjustments)
        or "- None"
    )
    flags = "\n".join(f"- {f}" for f in holistic.preliminary_red_flags) or "- None identified"
    return f"""## HOLISTIC CONTEXT

**Central Thread**: {holistic.central_thread or "Not determined"}

**Key Insights**:
{insights}

**Context Adjustments**:
{adjustments}

**Preliminary Red Flags**:
{flags}"""


def school_context_block(profile: ApplicantProfile) -> str:
    ctx = profile.context
    offered = ctx.advanced_courses_offered
    offered_text = f"~{offered} advanced courses" if offered is not None else "Unknown"
    limited = (
        "Yes - limited advanced offerings (evaluate rigor relative to what was available)"
        if ctx.limited_course_offerings
        else "No"
    )
    return f"""## SCHOOL CONTEXT

- School: {ctx.school_name or "Not specified"} ({ctx.school_type or "public"})
- Advanced courses offered: {offered_text}
- Limited offerings: {limited}
- First-generation: {"Yes" if ctx.first_generation else "No"}
- Low-income: {"Yes" if ctx.low_income else "No"}
- Family responsibilities: {_family_text(profile)}"""


def _family_text(profile: ApplicantProfile) -> str:
    ctx = profile.context
    if not ctx.family_responsibilities:
        return "None listed"
    hours = f"{ctx.family_hours_per_week:g} hrs/week" if ctx.family_hours_per_week else "hours not given"
    desc = ctx.family_responsibility_description or "description not provided"
    return f"{hours} - {desc}"


def activities_block(profile: ApplicantProfile, title: str = "ACTIVITIES", only=None) -> str:
    activities = [a for a in profile.activities if only is None or only(a)]
    if not activities:
        return f"## {title}\n\nNone listed."
    parts = [f"## {title}", "", f"**Total listed**: {len(activities)}"]
    for idx, a in enumerate(activities, start=1):
        parts.append(
            f"""
### {idx}. {a.name}
- Category: {a.category or "unspecified"}
- Role: {a.role or "Member"}
- Duration: {a.years_involved:g} years ({a.hours_per_week:g} hrs/week)
- Description: {a.description or "Not provided"}
- Outcomes/Impact: {a.impact or "Not specified"}
- Leadership positions: {", ".join(a.leadership_positions) or "None"}
- Recognition: {", ".join(a.awards) or "None"}"""
        )
    return "\n".join(parts)


RESPONSE_ENVELOPE = """## OUTPUT FORMAT

Return ONLY a JSON object (no markdown, no extra text) with this exact schema.
Every field is required.

{
  "dimension_score": <number 0.0-10.0>,
  "percentile_estimate": "<string, e.g. 'Top 15-20% nationally'>",
  "strengths": [
    {"point": "<string>", "evidence": "<quote or fact from the data>", "severity": "critical" | "moderate" | "minor"}
  ],
  "weaknesses": [
    {"point": "<string>", "evidence": "<quote or fact from the data>", "severity": "critical" | "moderate" | "minor"}
  ],
  "strategic_pivot": {
    "path_to_next_tier": "<specific actions>",
    "timeline": "<when>",
    "is_achievable": <true|false>
  },
  "key_evidence": ["<3-5 specific pieces of evidence>"],
  "details": {details}
}"""


def dimension_instructions(
    *,
    rubric: RubricConfig,
    mode: EvaluationMode,
    dimension: Dimension,
    definition: str,
    framework: str,
    details_schema: str,
) -> str:
    """Fixed instruction block for one dimension analyzer."""
    weight = rubric.weights_for(mode)[dimension]
    return "\n\n---\n\n".join(
        [
            f"You are an expert UC admissions evaluator conducting a deep-dive analysis of "
            f"**{dimension.label}** for {mode.display_name} admissions.\n\n"
            f"**Dimension Weight**: {dimension.label} accounts for **{weight * 100:.0f}%** "
            f"of holistic evaluation in this mode.",
            f"## WHAT IS {dimension.label.upper()}?\n\n{definition}",
            tier_definitions_block(rubric),
            weights_block(rubric, mode, focus=dimension),
            framework,
            CALIBRATION_GUARDS,
            RESPONSE_ENVELOPE.replace("{details}", details_schema),
        ]
    )


def data_payload(title: str, mode: EvaluationMode, blocks: list[str]) -> str:
    """User payload: a heading followed by data blocks, separated by rules."""
    header = f"Conduct a deep-dive **{title}** analysis for this student applying to **{mode.display_name}**."
    footer = "Return ONLY the JSON object (no markdown, no extra text)."
    return "\n\n---\n\n".join([header, *blocks, footer])

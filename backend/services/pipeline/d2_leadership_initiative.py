"""Dimension 2: Leadership & Initiative.

Impact over titles: what changed because of the applicant, whether they
created or transformed something, and how long they sustained it. Reads
activities, roles, outcomes and awards only; never essay text.
"""

import logging

from pydantic import BaseModel

from models.schemas.dimension_result import Dimension, DimensionResult
from models.schemas.holistic import HolisticContext
from models.schemas.mode import EvaluationMode
from models.schemas.profile import ApplicantProfile
from services import prompt_builder
from services.pipeline.base import DimensionSpec, heuristic_result
from services.rubric import RubricConfig

logger = logging.getLogger(__name__)


class LeadershipDetails(BaseModel):
    has_clear_spike: bool
    spike_area: str
    initiative_examples: list[str]
    context_adjustment_applies: bool


DEFINITION = """Leadership measures:
1. **Impact over titles**: what was accomplished, not which position was held
2. **Initiative**: creating something new or transforming something existing
3. **Outcomes**: what changed because of this leadership
4. **Depth over breadth**: sustained commitment (2+ years) over one-semester involvement
5. **Rarity**: how many students reach this level of recognition or impact

"Club President" is not automatically impressive; outcomes are the evidence."""

FRAMEWORK = """## ACTIVITY TIERS

- Transformational (top 1-5%): national recognition, founded organizations with
  large reach, recruited athletes, published research.
- Significant (top 10-20%): state-level recognition, quantified community impact,
  founded clubs with measurable growth, captains with team results.
- Substantial (top 30-40%): club officer, varsity athlete, steady volunteer,
  part-time job of 15+ hrs/week.
- Participatory: membership without leadership, short-term or one-time activities.

Default assumption: a leadership title alone is Substantial unless outcomes prove more.

## CONTEXT

Paid work and family responsibilities for low-income or first-generation
students are legitimate leadership evidence (responsibility, sacrifice,
time management)."""

DETAILS_SCHEMA = """{
    "has_clear_spike": <true|false>,
    "spike_area": "<area of deepest involvement, or empty>",
    "initiative_examples": ["<things the applicant created or transformed>"],
    "context_adjustment_applies": <true|false>
  }"""


class LeadershipInitiativeSpec(DimensionSpec):
    dimension = Dimension.LEADERSHIP_INITIATIVE
    details_model = LeadershipDetails
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
        ctx = profile.context
        family = "None listed"
        if ctx.family_responsibilities:
            family = (
                f"{ctx.family_hours_per_week:g} hrs/week - "
                f"{ctx.family_responsibility_description or 'description not provided'}"
            )
        return prompt_builder.data_payload(
            self.dimension.label,
            mode,
            [
                prompt_builder.holistic_block(holistic),
                prompt_builder.activities_block(profile, title="EXTRACURRICULAR ACTIVITIES"),
                f"## FAMILY RESPONSIBILITIES\n\n{family}",
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
        activities = profile.activities
        count = len(activities)
        leaders = [a for a in activities if a.has_leadership]
        awards = [award for a in activities for award in a.awards]
        has_recognition = bool(awards or leaders)

        if has_recognition and count >= 3:
            score = 7.0
        elif count >= 5:
            score = 6.0
        elif count < 2:
            score = 4.0
        else:
            score = 5.0

        strengths = []
        weaknesses = []
        if count:
            strengths.append(("Participation in activities", f"{count} activities listed"))
        if leaders:
            strengths.append(("Leadership roles", ", ".join(f"{a.role or 'Leader'} - {a.name}" for a in leaders[:3])))
        else:
            weaknesses.append(("No leadership roles", "No positions of responsibility listed"))

        longest = max(activities, key=lambda a: (a.years_involved, a.hours_per_week), default=None)
        spike_area = longest.category or longest.name if longest is not None and longest.years_involved >= 2 else ""

        return heuristic_result(
            self.dimension,
            score,
            rubric,
            strengths=strengths,
            weaknesses=weaknesses,
            details=LeadershipDetails(
                has_clear_spike=bool(spike_area),
                spike_area=spike_area,
                initiative_examples=[a.name for a in leaders if "found" in a.role.lower()],
                context_adjustment_applies=holistic.applies("family_responsibilities")
                or holistic.applies("low_income"),
            ),
            path_to_next_tier="Take ownership of one activity and document measurable outcomes",
            key_evidence=[f"{count} activities", f"{len(leaders)} leadership roles", f"{len(awards)} awards"],
        )

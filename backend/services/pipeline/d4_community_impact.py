"""Dimension 4: Community Impact.

Meaningful service measured by beneficiaries and sustained commitment
rather than hour counts. Family responsibilities count as contribution.
"""

import logging
from typing import Literal

from pydantic import BaseModel

from models.schemas.dimension_result import Dimension, DimensionResult
from models.schemas.holistic import HolisticContext
from models.schemas.mode import EvaluationMode
from models.schemas.profile import Activity, ApplicantProfile
from services import prompt_builder
from services.pipeline.base import DimensionSpec, heuristic_result
from services.rubric import RubricConfig

logger = logging.getLogger(__name__)

SERVICE_KEYWORDS = ("volunteer", "community")


class CommunityDetails(BaseModel):
    sustainability: Literal["institutionalized", "ongoing", "episodic", "one_time"]
    depth_vs_breadth: Literal["deep", "balanced", "broad", "shallow"]
    beneficiaries: list[str]
    has_created_programs: bool


DEFINITION = """Community Impact measures:
1. **Meaningful service**: making a genuine difference, not logging hours
2. **Impact on beneficiaries**: who was helped, how, and what changed
3. **Sustained commitment**: long-term involvement (2+ years) over one-time events
4. **Connection to values**: service that connects to who they are
5. **Initiative**: organizing and creating, not only participating

50 hours of deep tutoring outranks 500 hours of passive volunteering."""

FRAMEWORK = """## IMPACT TIERS

- Changemaker (top 1-5%): founded organizations serving many families for years,
  programs adopted by a school or district, recognition from institutions.
- Leader (top 10-20%): led service projects with measurable outcomes, coordinated
  volunteers regularly, created tutoring programs with evidence of improvement.
- Contributor (top 30-50%): regular volunteering at a specific organization,
  sustained tutoring, can name who they helped.
- Volunteer: hours logged for a requirement, one-time events, no named beneficiaries.

## CONTEXT

Caring for siblings or translating for parents 15+ hrs/week is community
contribution equivalent to a Leader or Contributor tier activity."""

DETAILS_SCHEMA = """{
    "sustainability": "institutionalized" | "ongoing" | "episodic" | "one_time",
    "depth_vs_breadth": "deep" | "balanced" | "broad" | "shallow",
    "beneficiaries": ["<who was helped>"],
    "has_created_programs": <true|false>
  }"""


def is_service(activity: Activity) -> bool:
    if activity.category.lower() == "service":
        return True
    name = activity.name.lower()
    return any(k in name for k in SERVICE_KEYWORDS)


class CommunityImpactSpec(DimensionSpec):
    dimension = Dimension.COMMUNITY_IMPACT
    details_model = CommunityDetails
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
        challenges = "\n".join(f"- {c}" for c in ctx.challenges) or "- None listed"
        return prompt_builder.data_payload(
            self.dimension.label,
            mode,
            [
                prompt_builder.holistic_block(holistic),
                prompt_builder.activities_block(profile, title="SERVICE ACTIVITIES", only=is_service),
                prompt_builder.activities_block(profile, title="OTHER ACTIVITIES", only=lambda a: not is_service(a)),
                prompt_builder.school_context_block(profile),
                f"## CHALLENGES AND CIRCUMSTANCES\n\n{challenges}",
            ],
        )

    def heuristic(
        self,
        profile: ApplicantProfile,
        holistic: HolisticContext,
        mode: EvaluationMode,
        rubric: RubricConfig,
    ) -> DimensionResult:
        service = [a for a in profile.activities if is_service(a)]
        family = profile.context.family_responsibilities

        if len(service) >= 3 or family:
            score = 7.0
        elif service:
            score = 5.5
        else:
            score = 3.5

        strengths = []
        weaknesses = []
        if service:
            strengths.append(("Service activities", f"{len(service)} service activities listed"))
        if family:
            strengths.append(
                (
                    "Family responsibilities",
                    f"{profile.context.family_hours_per_week:g} hrs/week of family contribution",
                )
            )
        if not service and not family:
            weaknesses.append(("No community involvement", "No service activities or family responsibilities listed"))

        longest = max((a.years_involved for a in service), default=0.0)
        if longest >= 2:
            sustainability = "ongoing"
        elif service:
            sustainability = "episodic"
        else:
            sustainability = "one_time"

        return heuristic_result(
            self.dimension,
            score,
            rubric,
            strengths=strengths,
            weaknesses=weaknesses,
            details=CommunityDetails(
                sustainability=sustainability,
                depth_vs_breadth="balanced" if len(service) >= 2 else "shallow",
                beneficiaries=["family"] if family else [],
                has_created_programs=any("found" in a.role.lower() for a in service),
            ),
            path_to_next_tier="Deepen commitment to one cause with measurable impact",
            key_evidence=[f"{len(service)} service activities"],
        )

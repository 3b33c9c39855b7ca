"""Dimension 6: Future Readiness.

Clarity of academic and career direction and whether activities and
coursework already point that way.
"""

import logging
from typing import Literal

from pydantic import BaseModel

from models.schemas.dimension_result import Dimension, DimensionResult
from models.schemas.holistic import HolisticContext
from models.schemas.mode import EvaluationMode
from models.schemas.profile import ApplicantProfile
from services import prompt_builder
from services.pipeline.base import DimensionSpec, heuristic_result
from services.rubric import RubricConfig

logger = logging.getLogger(__name__)

MIN_RATIONALE_CHARS = 50


class FutureDetails(BaseModel):
    clarity_level: Literal["crystallized", "focused", "exploring", "undefined"]
    major_activity_alignment: Literal["strong", "moderate", "weak", "none"]
    supporting_activities: list[str]
    gaps: list[str]


DEFINITION = """Future Readiness measures:
1. **Goal clarity**: a stated direction (major, field, problem to work on)
2. **Rationale**: why that direction, grounded in experience
3. **Preparation**: activities and coursework that already build toward it
4. **Trajectory**: a path that plausibly continues at a UC campus

Exploring is fine; unsupported certainty is not."""

FRAMEWORK = """## READINESS TIERS

- Crystallized: specific goal, experience-grounded rationale, sustained related
  activities, concrete next steps.
- Focused: clear major with some related activity and a reasonable rationale.
- Exploring: interests named but thin connection to activities.
- Undefined: no stated direction and no pattern in activities."""

DETAILS_SCHEMA = """{
    "clarity_level": "crystallized" | "focused" | "exploring" | "undefined",
    "major_activity_alignment": "strong" | "moderate" | "weak" | "none",
    "supporting_activities": ["<activities that build toward the goal>"],
    "gaps": ["<missing preparation>"]
  }"""


class FutureReadinessSpec(DimensionSpec):
    dimension = Dimension.FUTURE_READINESS
    details_model = FutureDetails
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
        goals = profile.goals
        targets = ", ".join(goals.target_institutions) or "Not specified"
        careers = ", ".join(goals.career_interests) or "Not specified"
        return prompt_builder.data_payload(
            self.dimension.label,
            mode,
            [
                prompt_builder.holistic_block(holistic),
                f"""## GOALS

- Intended major: {goals.intended_major or "Undeclared"}
- Why this major: {goals.why_major or "Not provided"}
- Career interests: {careers}
- Target campuses: {targets}""",
                prompt_builder.activities_block(profile),
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
        goals = profile.goals
        has_major = goals.has_declared_major
        has_rationale = len(goals.why_major.strip()) > MIN_RATIONALE_CHARS
        count = len(profile.activities)

        if has_major and has_rationale and count >= 3:
            score, clarity = 7.0, "focused"
        elif has_major or count >= 2:
            score, clarity = 5.5, "exploring"
        else:
            score, clarity = 4.0, "undefined"

        strengths = []
        weaknesses = []
        gaps = []
        if has_major:
            strengths.append(("Goal direction", f"Declared major: {goals.intended_major}"))
        else:
            gaps.append("No declared major")
        if not has_rationale:
            gaps.append("No developed rationale for the chosen direction")
        if gaps:
            weaknesses.append(("Unclear direction", "; ".join(gaps)))

        return heuristic_result(
            self.dimension,
            score,
            rubric,
            strengths=strengths,
            weaknesses=weaknesses,
            details=FutureDetails(
                clarity_level=clarity,
                major_activity_alignment="moderate" if has_major and count >= 3 else "weak" if count else "none",
                supporting_activities=[],
                gaps=gaps,
            ),
            path_to_next_tier="Explore interests through activities and coursework tied to one direction",
            key_evidence=[f"Major: {goals.intended_major or 'Undeclared'}", f"{count} activities"],
        )

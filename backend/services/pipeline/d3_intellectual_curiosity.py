"""Dimension 3: Intellectual Curiosity.

Self-directed learning, research and independent projects, and depth of
exploration beyond assigned coursework.
"""

import logging
from typing import Literal

from pydantic import BaseModel

from models.schemas.dimension_result import Dimension, DimensionResult
from models.schemas.holistic import HolisticContext
from models.schemas.mode import EvaluationMode
from models.schemas.profile import Activity, ApplicantProfile
from services import prompt_builder
from services.pipeline.base import DimensionSpec, count_keywords, heuristic_result
from services.rubric import RubricConfig

logger = logging.getLogger(__name__)

INTELLECTUAL_CATEGORIES = ("stem", "academic_prep", "research")
RESEARCH_KEYWORDS = ("research", "lab", "independent study", "publication", "olympiad")


class IntellectualDetails(BaseModel):
    self_directed_learning: Literal["extensive", "moderate", "limited", "none"]
    has_formal_research: bool
    independent_projects: list[str]
    depth_of_knowledge: Literal["deep", "moderate", "surface"]


DEFINITION = """Intellectual Curiosity measures:
1. **Self-directed learning**: learning beyond what is assigned
2. **Research and independent projects**: original work
3. **Depth of exploration**: how far they go in areas of interest
4. **Academic risk-taking**: pursuing hard questions
5. **Evidence of passion**: sustained engagement with ideas

This is not about grades. Taking APs is rigor (a different dimension)."""

FRAMEWORK = """## CURIOSITY TIERS

- Scholar (top 1-5%): published or presented research, national science or math
  competition finalist, significant open-source work, research with a professor.
- Explorer (top 10-20%): selective summer research program, multiple personal
  projects, regional or state science fair awards, self-taught college-level material.
- Learner (top 30-50%): online courses, non-selective programs, extensive reading,
  academic club membership.
- Student: learning is primarily assigned; interest without evidence of action.

"I like math" is not curiosity without evidence. Most students have no genuine
research experience."""

DETAILS_SCHEMA = """{
    "self_directed_learning": "extensive" | "moderate" | "limited" | "none",
    "has_formal_research": <true|false>,
    "independent_projects": ["<projects pursued outside class>"],
    "depth_of_knowledge": "deep" | "moderate" | "surface"
  }"""


def is_intellectual(activity: Activity) -> bool:
    if activity.category.lower() in INTELLECTUAL_CATEGORIES:
        return True
    return "research" in activity.name.lower()


class IntellectualCuriositySpec(DimensionSpec):
    dimension = Dimension.INTELLECTUAL_CURIOSITY
    details_model = IntellectualDetails
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
        academic = profile.academic
        coursework = (
            "\n".join(f"- {c.name} ({c.rigor})" for c in academic.advanced_courses)
            or "No advanced courses reported"
        )
        goals = profile.goals
        return prompt_builder.data_payload(
            self.dimension.label,
            mode,
            [
                prompt_builder.holistic_block(holistic),
                prompt_builder.activities_block(
                    profile, title="INTELLECTUAL ACTIVITIES (STEM, RESEARCH, ACADEMIC)", only=is_intellectual
                ),
                prompt_builder.activities_block(
                    profile, title="OTHER ACTIVITIES", only=lambda a: not is_intellectual(a)
                ),
                f"## COURSEWORK\n\n{coursework}\n\n"
                f"**Academic honors**: {', '.join(academic.honors) or 'None listed'}",
                f"## INTERESTS\n\n- Intended major: {goals.intended_major or 'Undeclared'}\n"
                f"- Why this major: {goals.why_major or 'Not provided'}",
            ],
        )

    def heuristic(
        self,
        profile: ApplicantProfile,
        holistic: HolisticContext,
        mode: EvaluationMode,
        rubric: RubricConfig,
    ) -> DimensionResult:
        intellectual = [a for a in profile.activities if is_intellectual(a)]
        count = len(intellectual)

        if count >= 3:
            score = 7.0
        elif count >= 1:
            score = 5.5
        else:
            score = 3.5

        research = [
            a for a in intellectual if count_keywords(f"{a.name} {a.description}", RESEARCH_KEYWORDS)
        ]
        strengths = []
        weaknesses = []
        if intellectual:
            strengths.append(("STEM and research activities", ", ".join(a.name for a in intellectual[:3])))
        else:
            weaknesses.append(("No self-directed academic activities", "No STEM, research or academic activities listed"))

        return heuristic_result(
            self.dimension,
            score,
            rubric,
            strengths=strengths,
            weaknesses=weaknesses,
            details=IntellectualDetails(
                self_directed_learning="moderate" if count >= 3 else "limited" if count else "none",
                has_formal_research=bool(research),
                independent_projects=[a.name for a in intellectual],
                depth_of_knowledge="surface",
            ),
            path_to_next_tier="Pursue independent research or a selective summer program",
            key_evidence=[f"{count} STEM/research activities"],
        )

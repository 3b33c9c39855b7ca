"""Shared test configuration, profiles and a scripted model gateway."""

import asyncio
import json

import pytest

from models.schemas.dimension_result import Dimension
from models.schemas.profile import (
    AcademicRecord,
    Activity,
    ApplicantContext,
    ApplicantProfile,
    Course,
    Essay,
    Goals,
)
from services.errors import GatewayError
from services.pipeline.dimension_registry import clear as clear_registry
from services.rubric import load_rubric


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: calls the real Gemini API (needs GEMINI_API_KEY)"
    )


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

ESSAY_TEXT = " ".join(["When the lab power failed I rebuilt the sensor rig from spare parts."] * 25)


def build_strong_profile() -> ApplicantProfile:
    return ApplicantProfile(
        applicant_id="strong-1",
        grade_level=12,
        academic=AcademicRecord(
            gpa_weighted=4.35,
            gpa_unweighted=3.95,
            courses=[
                Course(name=f"AP Course {i}", subject="science", rigor="ap", grade="A", grade_level=11)
                for i in range(11)
            ],
            honors=["National Merit Commended"],
            ag_requirements_complete=True,
        ),
        activities=[
            Activity(
                name="Robotics Club",
                category="stem",
                role="Captain",
                years_involved=4,
                hours_per_week=10,
                awards=["Regional finalist"],
            ),
            Activity(name="Protein folding research", category="research", years_involved=2, hours_per_week=6),
            Activity(name="Math Olympiad", category="academic_prep", years_involved=3, hours_per_week=4),
            Activity(name="Food bank volunteer", category="service", years_involved=3, hours_per_week=3),
            Activity(name="Tutoring program", category="service", role="Founder", years_involved=2),
            Activity(name="Community garden", category="service", years_involved=1),
        ],
        essays=[Essay(prompt=f"PIQ {i}", text=ESSAY_TEXT) for i in range(4)],
        goals=Goals(
            intended_major="Bioengineering",
            why_major="Building low-cost diagnostic devices for clinics that cannot afford commercial equipment.",
            target_institutions=["UC Berkeley", "UCLA"],
        ),
    )


def build_thin_profile() -> ApplicantProfile:
    return ApplicantProfile(
        applicant_id="thin-1",
        grade_level=10,
        academic=AcademicRecord(gpa_weighted=2.9),
        activities=[Activity(name="Soccer", category="athletics", years_involved=1)],
        essays=[],
        context=ApplicantContext(first_generation=True, advanced_courses_offered=4),
    )


@pytest.fixture
def strong_profile() -> ApplicantProfile:
    return build_strong_profile()


@pytest.fixture
def thin_profile() -> ApplicantProfile:
    return build_thin_profile()


@pytest.fixture
def rubric():
    return load_rubric()


@pytest.fixture(autouse=True)
def _reset_registry():
    """Clear dimension spec registry before each test."""
    clear_registry()
    yield
    clear_registry()


# ---------------------------------------------------------------------------
# Scripted gateway
# ---------------------------------------------------------------------------

GUIDANCE = "guidance"

DEFAULT_SCORES = {
    Dimension.ACADEMIC_EXCELLENCE: 9.0,
    Dimension.LEADERSHIP_INITIATIVE: 8.0,
    Dimension.INTELLECTUAL_CURIOSITY: 9.0,
    Dimension.COMMUNITY_IMPACT: 7.0,
    Dimension.AUTHENTICITY_VOICE: 8.0,
    Dimension.FUTURE_READINESS: 9.0,
}

VALID_DETAILS = {
    Dimension.ACADEMIC_EXCELLENCE: {
        "grade_trend": "upward",
        "course_load_assessment": "exceptional",
        "context_adjusted_assessment": "Took the hardest schedule available",
        "standout_courses": ["AP Chemistry"],
        "missed_opportunities": [],
    },
    Dimension.LEADERSHIP_INITIATIVE: {
        "has_clear_spike": True,
        "spike_area": "robotics",
        "initiative_examples": ["Founded tutoring program"],
        "context_adjustment_applies": False,
    },
    Dimension.INTELLECTUAL_CURIOSITY: {
        "self_directed_learning": "extensive",
        "has_formal_research": True,
        "independent_projects": ["Protein folding research"],
        "depth_of_knowledge": "deep",
    },
    Dimension.COMMUNITY_IMPACT: {
        "sustainability": "ongoing",
        "depth_vs_breadth": "deep",
        "beneficiaries": ["Local families"],
        "has_created_programs": True,
    },
    Dimension.AUTHENTICITY_VOICE: {
        "voice_consistency": "consistent",
        "authenticity_level": "genuine",
        "memorable_elements": ["The power failure scene"],
        "shows_growth": True,
    },
    Dimension.FUTURE_READINESS: {
        "clarity_level": "focused",
        "major_activity_alignment": "strong",
        "supporting_activities": ["Robotics Club"],
        "gaps": [],
    },
}


def dimension_response(dimension: Dimension, score: float) -> dict:
    return {
        "dimension_score": score,
        "percentile_estimate": "Top 10% of applicants",
        "strengths": [{"point": "Sustained rigor", "evidence": "11 AP courses", "severity": "moderate"}],
        "weaknesses": [{"point": "Narrow focus", "evidence": "Mostly STEM", "severity": "minor"}],
        "strategic_pivot": {"path_to_next_tier": "Publish the research", "timeline": "Summer", "is_achievable": True},
        "key_evidence": ["4.35 weighted GPA", "Robotics captain"],
        "details": VALID_DETAILS[dimension],
    }


def recommendation(dimension: Dimension, priority: int) -> dict:
    return {
        "priority": priority,
        "dimension": dimension.value,
        "recommendation": f"Improve {dimension.label}",
        "specific_steps": ["Step one", "Step two"],
        "timeline": "Next semester",
        "success_metric": {
            "measurable_goal": "One measurable result",
            "verification_method": "Counselor check-in",
            "deadline": "March",
        },
        "estimated_score_delta": 0.5,
    }


DEFAULT_GUIDANCE = {
    "recommendations": [
        recommendation(Dimension.FUTURE_READINESS, 1),
        recommendation(Dimension.COMMUNITY_IMPACT, 2),
        recommendation(Dimension.ACADEMIC_EXCELLENCE, 3),
    ],
    "critical_warnings": ["Do not drop AP courses senior year"],
}


def target_of(instructions: str) -> str:
    for d in Dimension:
        if f"analysis of **{d.label}**" in instructions:
            return d.value
    return GUIDANCE


class ScriptedGateway:
    """In-process ModelGateway double.

    Targets are dimension values or "guidance". ``failing`` targets always
    raise, ``malformed_once`` targets return prose on their first call,
    ``hanging`` targets never answer, ``raw`` maps targets to a fixed reply.
    """

    def __init__(
        self,
        scores: dict | None = None,
        failing=(),
        malformed_once=(),
        hanging=(),
        guidance: dict | None = None,
        raw: dict[str, str] | None = None,
    ) -> None:
        self.scores = {**DEFAULT_SCORES, **(scores or {})}
        self.failing = set(failing)
        self.malformed_once = set(malformed_once)
        self.hanging = set(hanging)
        self.guidance = guidance if guidance is not None else DEFAULT_GUIDANCE
        self.raw = raw or {}
        self.calls: list[str] = []

    def calls_for(self, target: str) -> int:
        return self.calls.count(target)

    async def complete(self, instructions: str, payload: str) -> str:
        target = target_of(instructions)
        self.calls.append(target)
        if target in self.hanging:
            await asyncio.sleep(3600)
        if target in self.failing:
            raise GatewayError("503 service unavailable")
        if target in self.raw:
            return self.raw[target]
        if target in self.malformed_once and self.calls_for(target) == 1:
            return "Sure! Here is my analysis of the student."
        if target == GUIDANCE:
            return json.dumps(self.guidance)
        dimension = Dimension(target)
        body = json.dumps(dimension_response(dimension, self.scores[dimension]))
        return f"```json\n{body}\n```"


@pytest.fixture
def gateway_factory():
    return ScriptedGateway


@pytest.fixture
def gateway() -> ScriptedGateway:
    return ScriptedGateway()


@pytest.fixture
def dimension_payload():
    return dimension_response


@pytest.fixture
def recommendation_payload():
    return recommendation

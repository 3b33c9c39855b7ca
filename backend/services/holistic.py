"""Holistic context provider.

The overview stage runs upstream of the dimension analyzers; anything that
maps a profile to a HolisticContext can be plugged into the pipeline. The
default derivation is deterministic and reads only profile fields.
"""

import logging
from typing import Awaitable, Callable, Union

from models.schemas.holistic import ContextAdjustment, HolisticContext
from models.schemas.profile import ApplicantProfile

logger = logging.getLogger(__name__)

HolisticContextProvider = Callable[[ApplicantProfile], Union[HolisticContext, Awaitable[HolisticContext]]]

MIN_ACTIVITIES = 3
FAMILY_HOURS_SIGNIFICANT = 10


def derive_holistic_context(profile: ApplicantProfile) -> HolisticContext:
    ctx = profile.context
    adjustments = [
        ContextAdjustment(
            factor="first_generation",
            applies=ctx.first_generation,
            impact="First in family to attend college; navigating admissions without family experience"
            if ctx.first_generation else "",
        ),
        ContextAdjustment(
            factor="low_income",
            applies=ctx.low_income,
            impact="Limited resources for paid programs; work and family duties count as commitments"
            if ctx.low_income else "",
        ),
        ContextAdjustment(
            factor="under_resourced_school",
            applies=ctx.limited_course_offerings,
            impact=_offerings_impact(profile) if ctx.limited_course_offerings else "",
        ),
        ContextAdjustment(
            factor="family_responsibilities",
            applies=ctx.family_responsibilities,
            impact=f"{ctx.family_hours_per_week:g} hrs/week of family responsibilities"
            if ctx.family_responsibilities else "",
        ),
    ]

    return HolisticContext(
        central_thread=_central_thread(profile),
        key_insights=_key_insights(profile),
        context_adjustments=adjustments,
        preliminary_red_flags=_preliminary_red_flags(profile),
    )


def _offerings_impact(profile: ApplicantProfile) -> str:
    offered = profile.context.advanced_courses_offered
    if offered is None:
        return "Under-resourced school; evaluate rigor relative to availability"
    return f"School offers ~{offered} advanced courses; evaluate rigor relative to availability"


def _central_thread(profile: ApplicantProfile) -> str:
    major = profile.goals.intended_major.strip() if profile.goals.has_declared_major else ""
    top = max(
        profile.activities,
        key=lambda a: (a.years_involved * max(a.hours_per_week, 1.0), a.has_leadership),
        default=None,
    )
    if major and top is not None:
        return f"Interest in {major}, anchored by sustained involvement in {top.name}"
    if major:
        return f"Interest in {major}"
    if top is not None:
        return f"Sustained involvement in {top.name}"
    return ""


def _key_insights(profile: ApplicantProfile) -> list[str]:
    insights = []
    gpa = profile.academic.best_gpa
    if gpa is not None:
        insights.append(
            f"{gpa:.2f} GPA with {len(profile.academic.advanced_courses)} advanced courses"
        )
    leaders = [a for a in profile.activities if a.has_leadership]
    if leaders:
        insights.append(f"Leadership in {', '.join(a.name for a in leaders[:3])}")
    long_term = [a for a in profile.activities if a.years_involved >= 3]
    if long_term:
        insights.append(f"Multi-year commitment to {', '.join(a.name for a in long_term[:3])}")
    if profile.context.family_hours_per_week >= FAMILY_HOURS_SIGNIFICANT:
        insights.append("Significant family responsibilities compete with extracurricular time")
    return insights


def _preliminary_red_flags(profile: ApplicantProfile) -> list[str]:
    flags = []
    if len(profile.activities) < MIN_ACTIVITIES and not profile.context.family_responsibilities:
        flags.append(f"Thin activity list ({len(profile.activities)} listed)")
    if not profile.essays_with_text:
        flags.append("No essay text provided")
    if profile.academic.best_gpa is None:
        flags.append("No GPA reported")
    if profile.grade_level == 12 and not profile.academic.ag_requirements_complete:
        flags.append("a-g requirements not yet complete in senior year")
    return flags

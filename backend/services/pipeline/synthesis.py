"""Synthesis: combine six dimension results into one calibrated score.

Pure function of (DimensionAnalyses, mode, rubric) plus optional profile
and holistic context for target fit and red flags. No I/O, cannot fail.

Unscored dimensions (insufficient evidence) are left out and the mode
weights are renormalized over the scored ones, so the overall score always
lies within [min, max] of the scored dimension scores.
"""

import logging

import numpy as np

from models.schemas.dimension_result import (
    DIMENSION_ORDER,
    Confidence,
    Dimension,
    DimensionAnalyses,
    Tier,
)
from models.schemas.holistic import HolisticContext
from models.schemas.mode import EvaluationMode
from models.schemas.profile import ApplicantProfile
from models.schemas.synthesis import (
    Archetype,
    DimensionContribution,
    FitBucket,
    RedFlag,
    Synthesis,
    TargetFit,
)
from services.rubric import RubricConfig

logger = logging.getLogger(__name__)

PRIORITY_WEIGHT = 0.20  # a bottom-tier dimension at or above this weight is a red flag
UNEVEN_SPREAD = 4.0  # best minus worst dimension score
NEUTRAL_SCORE = 5.0  # stand-in for unscored dimensions when picking an archetype


def weighted_score(
    scores: dict[Dimension, float | None],
    weights: dict[Dimension, float],
) -> tuple[float, dict[Dimension, float]]:
    """Weighted mean over scored dimensions, evaluated in declaration order.

    Returns (score, effective weights). Effective weights are renormalized
    over the scored dimensions; if those carry no weight at all they share
    it equally.
    """
    scored = [d for d in DIMENSION_ORDER if scores.get(d) is not None]
    if not scored:
        return 0.0, {d: 0.0 for d in DIMENSION_ORDER}

    raw = np.array([weights[d] for d in scored], dtype=float)
    total = raw.sum()
    eff = raw / total if total > 0 else np.full(len(scored), 1.0 / len(scored))
    values = np.array([scores[d] for d in scored], dtype=float)

    overall = float(np.dot(values, eff))
    # rounding must not push the result outside the scored range
    overall = float(np.clip(round(overall, 2), values.min(), values.max()))

    effective = {d: 0.0 for d in DIMENSION_ORDER}
    effective.update({d: float(w) for d, w in zip(scored, eff)})
    return overall, effective


def synthesize(
    dimensions: DimensionAnalyses,
    mode: EvaluationMode,
    rubric: RubricConfig,
    profile: ApplicantProfile | None = None,
    holistic: HolisticContext | None = None,
) -> Synthesis:
    weights = rubric.weights_for(mode)
    scores = {d: r.score for d, r in dimensions.items()}
    overall, effective = weighted_score(scores, weights)
    tier = rubric.tier_for(overall)

    contributions = [
        DimensionContribution(
            dimension=d,
            score=scores[d],
            weight=weights[d],
            effective_weight=round(effective[d], 6),
            contribution=round((scores[d] or 0.0) * effective[d], 4),
        )
        for d in DIMENSION_ORDER
    ]

    advantages = []
    weaknesses = []
    for d, result in dimensions.items():
        if result.tier is Tier.EXCEPTIONAL:
            lead = result.strengths[0].point if result.strengths else "top-tier evidence"
            advantages.append(f"{d.label}: {lead}")
        elif result.tier is Tier.FOUNDATIONAL:
            lead = result.weaknesses[0].point if result.weaknesses else "significant growth needed"
            weaknesses.append(f"{d.label}: {lead}")

    degraded = dimensions.degraded
    unscored = dimensions.insufficient_evidence
    return Synthesis(
        mode=mode,
        overall_score=overall,
        tier=tier,
        percentile_label=rubric.percentile_for(tier),
        profile_archetype=determine_archetype(scores),
        dimension_contributions=contributions,
        competitive_advantages=advantages,
        competitive_weaknesses=weaknesses,
        red_flags=detect_red_flags(dimensions, weights, holistic),
        target_fit=project_target_fit(scores, rubric, profile),
        confidence=Confidence.LOW if degraded or unscored else Confidence.HIGH,
    )


def determine_archetype(scores: dict[Dimension, float | None]) -> Archetype:
    s = {d: (v if v is not None else NEUTRAL_SCORE) for d, v in scores.items()}
    if s[Dimension.ACADEMIC_EXCELLENCE] >= 8 and s[Dimension.INTELLECTUAL_CURIOSITY] >= 7:
        return "Scholar"
    if s[Dimension.LEADERSHIP_INITIATIVE] >= 7 and s[Dimension.COMMUNITY_IMPACT] >= 7:
        return "Leader"
    if all(v >= 6 for v in s.values()):
        return "Well-Rounded"
    if max(s.values()) >= 8:
        return "Specialist"
    return "Emerging"


def detect_red_flags(
    dimensions: DimensionAnalyses,
    weights: dict[Dimension, float],
    holistic: HolisticContext | None = None,
) -> list[RedFlag]:
    flags: list[RedFlag] = []
    if holistic is not None:
        flags += [RedFlag(code="holistic", message=f) for f in holistic.preliminary_red_flags]

    for d, result in dimensions.items():
        if result.tier is Tier.FOUNDATIONAL and weights[d] >= PRIORITY_WEIGHT:
            flags.append(
                RedFlag(
                    code="weak_priority_dimension",
                    message=f"{d.label} is foundational but carries {weights[d] * 100:.0f}% of the evaluation",
                    dimension=d,
                )
            )

    scored = [(d, r.score) for d, r in dimensions.items() if r.score is not None]
    if len(scored) >= 2:
        best = max(scored, key=lambda x: x[1])
        worst = min(scored, key=lambda x: x[1])
        if best[1] - worst[1] >= UNEVEN_SPREAD:
            flags.append(
                RedFlag(
                    code="uneven_profile",
                    message=(
                        f"Large gap between {best[0].label} ({best[1]:.1f}) "
                        f"and {worst[0].label} ({worst[1]:.1f})"
                    ),
                )
            )

    for d in dimensions.degraded:
        flags.append(
            RedFlag(
                code="degraded_dimension",
                message=f"{d.label} was scored by the heuristic fallback; manual review recommended",
                dimension=d,
            )
        )
    for d in dimensions.insufficient_evidence:
        flags.append(
            RedFlag(
                code="insufficient_evidence",
                message=f"{d.label} could not be scored: {dimensions.get(d).notes}",
                dimension=d,
            )
        )
    return flags


def project_target_fit(
    scores: dict[Dimension, float | None],
    rubric: RubricConfig,
    profile: ApplicantProfile | None = None,
) -> list[TargetFit]:
    """Weighted projection with each campus sub-table; all campuses when no targets are named."""
    campuses = rubric.campuses
    if profile is not None and profile.goals.target_institutions:
        named = []
        for name in profile.goals.target_institutions:
            campus = rubric.campus(name)
            if campus is None:
                logger.debug("No campus sub-table for target '%s'", name)
            elif campus not in named:
                named.append(campus)
        campuses = named or campuses

    fits = []
    for campus in campuses:
        fit, _ = weighted_score(scores, campus.weights)
        fits.append(
            TargetFit(
                institution=campus.name,
                fit_score=fit,
                competitive_bar=campus.competitive_bar,
                bucket=_bucket(fit, campus.competitive_bar, rubric.fit_margin),
            )
        )
    return fits


def _bucket(fit: float, bar: float, margin: float) -> FitBucket:
    if fit >= bar + margin:
        return "likely"
    if fit >= bar - margin:
        return "possible"
    return "reach"

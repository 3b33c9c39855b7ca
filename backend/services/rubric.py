"""Rubric configuration: tier thresholds, mode weight tables, benchmarks.

Loaded once per process and passed explicitly to every component. The
built-in defaults are calibrated to UC admissions; an optional YAML file
may override any top-level section.

Weight tables (sum to 1.0 per mode):
    berkeley    academic .35, intellectual .25, voice .20, leadership .15,
                community .03, future .02
    ucla        academic .30, voice .30, community .20, leadership .15,
                intellectual .03, future .02
    general_uc  academic .40, voice .20, leadership .15, intellectual .10,
                community .10, future .05
    balanced    1/6 each
"""

import logging
import math
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from models.schemas.dimension_result import DIMENSION_ORDER, Dimension, Tier
from models.schemas.mode import EvaluationMode
from services.errors import RubricConfigError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "dimension-v1"
WEIGHT_TOLERANCE = 1e-6

_ACADEMIC = Dimension.ACADEMIC_EXCELLENCE
_LEADERSHIP = Dimension.LEADERSHIP_INITIATIVE
_INTELLECTUAL = Dimension.INTELLECTUAL_CURIOSITY
_COMMUNITY = Dimension.COMMUNITY_IMPACT
_VOICE = Dimension.AUTHENTICITY_VOICE
_FUTURE = Dimension.FUTURE_READINESS


def _table(
    academic: float,
    leadership: float,
    intellectual: float,
    community: float,
    voice: float,
    future: float,
) -> dict[Dimension, float]:
    return {
        _ACADEMIC: academic,
        _LEADERSHIP: leadership,
        _INTELLECTUAL: intellectual,
        _COMMUNITY: community,
        _VOICE: voice,
        _FUTURE: future,
    }


class TierThresholds(BaseModel):
    """Lower bounds (inclusive) on a 0-10 score."""
    model_config = ConfigDict(frozen=True)

    exceptional: float = 8.5
    strong: float = 7.0
    developing: float = 5.5

    @model_validator(mode="after")
    def _descending(self) -> "TierThresholds":
        if not (10.0 >= self.exceptional > self.strong > self.developing > 0.0):
            raise ValueError("tier thresholds must be strictly descending within (0, 10]")
        return self


class GpaBenchmark(BaseModel):
    """GPA of admitted students at the 50th and 75th percentile, per GPA scale."""
    model_config = ConfigDict(frozen=True)

    p50: float  # UC-weighted
    p75: float
    unweighted_p50: float
    unweighted_p75: float

    def bounds(self, weighted: bool) -> tuple[float, float]:
        if weighted:
            return self.p50, self.p75
        return self.unweighted_p50, self.unweighted_p75


class CampusProfile(BaseModel):
    """Institution-specific sub-table used for target-fit projection."""
    model_config = ConfigDict(frozen=True)

    name: str
    weights: dict[Dimension, float]
    competitive_bar: float  # fit score at which admission is a coin flip


class RubricConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    schema_version: str = SCHEMA_VERSION
    thresholds: TierThresholds = TierThresholds()
    percentile_labels: dict[Tier, str]
    mode_weights: dict[EvaluationMode, dict[Dimension, float]]
    gpa_benchmarks: dict[EvaluationMode, GpaBenchmark]
    campuses: list[CampusProfile]
    max_recommendations: int = 8
    fit_margin: float = 0.5  # +/- band around a campus bar for the "possible" bucket

    @model_validator(mode="after")
    def _validate_tables(self) -> "RubricConfig":
        for mode in EvaluationMode:
            if mode not in self.mode_weights:
                raise ValueError(f"missing weight table for mode '{mode.value}'")
            if mode not in self.gpa_benchmarks:
                raise ValueError(f"missing GPA benchmark for mode '{mode.value}'")
            _check_weights(self.mode_weights[mode], f"mode '{mode.value}'")
        for campus in self.campuses:
            _check_weights(campus.weights, f"campus '{campus.name}'")
        missing = [t.value for t in Tier if t not in self.percentile_labels]
        if missing:
            raise ValueError(f"missing percentile labels: {', '.join(missing)}")
        if not 1 <= self.max_recommendations <= 8:
            raise ValueError("max_recommendations must be between 1 and 8")
        return self

    def tier_for(self, score: float) -> Tier:
        """Fixed 4-level ordinal mapping applied uniformly to every score."""
        if score >= self.thresholds.exceptional:
            return Tier.EXCEPTIONAL
        if score >= self.thresholds.strong:
            return Tier.STRONG
        if score >= self.thresholds.developing:
            return Tier.DEVELOPING
        return Tier.FOUNDATIONAL

    def tier_floor(self, tier: Tier) -> float:
        return {
            Tier.EXCEPTIONAL: self.thresholds.exceptional,
            Tier.STRONG: self.thresholds.strong,
            Tier.DEVELOPING: self.thresholds.developing,
            Tier.FOUNDATIONAL: 0.0,
        }[tier]

    def percentile_for(self, tier: Tier) -> str:
        return self.percentile_labels[tier]

    def weights_for(self, mode: EvaluationMode) -> dict[Dimension, float]:
        return dict(self.mode_weights[mode])

    def gpa_benchmark(self, mode: EvaluationMode) -> GpaBenchmark:
        return self.gpa_benchmarks[mode]

    def campus(self, name: str) -> CampusProfile | None:
        wanted = name.strip().lower()
        for campus in self.campuses:
            if campus.name.lower() == wanted:
                return campus
        return None


def _check_weights(weights: dict[Dimension, float], where: str) -> None:
    missing = [d.value for d in DIMENSION_ORDER if d not in weights]
    if missing:
        raise ValueError(f"{where}: missing weights for {', '.join(missing)}")
    if any(w < 0 for w in weights.values()):
        raise ValueError(f"{where}: weights must be non-negative")
    total = math.fsum(weights.values())
    if abs(total - 1.0) > WEIGHT_TOLERANCE:
        raise ValueError(f"{where}: weights sum to {total:.6f}, expected 1.0")


# ---------------------------------------------------------------------------
# Built-in defaults
# ---------------------------------------------------------------------------

_GENERAL_WEIGHTS = _table(0.40, 0.15, 0.10, 0.10, 0.20, 0.05)

DEFAULT_RUBRIC: dict[str, Any] = {
    "schema_version": SCHEMA_VERSION,
    "percentile_labels": {
        Tier.EXCEPTIONAL: "Top 5%",
        Tier.STRONG: "Top 10-20%",
        Tier.DEVELOPING: "Top 25-40%",
        Tier.FOUNDATIONAL: "Below top 50%",
    },
    "mode_weights": {
        EvaluationMode.BERKELEY: _table(0.35, 0.15, 0.25, 0.03, 0.20, 0.02),
        EvaluationMode.UCLA: _table(0.30, 0.15, 0.03, 0.20, 0.30, 0.02),
        EvaluationMode.GENERAL_UC: _GENERAL_WEIGHTS,
        EvaluationMode.BALANCED: {d: 1.0 / 6.0 for d in DIMENSION_ORDER},
    },
    "gpa_benchmarks": {
        EvaluationMode.BERKELEY: {"p50": 4.15, "p75": 4.29, "unweighted_p50": 3.92, "unweighted_p75": 3.96},
        EvaluationMode.UCLA: {"p50": 4.20, "p75": 4.34, "unweighted_p50": 3.92, "unweighted_p75": 3.96},
        EvaluationMode.GENERAL_UC: {"p50": 3.90, "p75": 4.20, "unweighted_p50": 3.75, "unweighted_p75": 3.95},
        EvaluationMode.BALANCED: {"p50": 3.90, "p75": 4.20, "unweighted_p50": 3.75, "unweighted_p75": 3.95},
    },
    "campuses": [
        {"name": "UC Berkeley", "weights": _table(0.35, 0.15, 0.25, 0.03, 0.20, 0.02), "competitive_bar": 8.0},
        {"name": "UCLA", "weights": _table(0.30, 0.15, 0.03, 0.20, 0.30, 0.02), "competitive_bar": 8.0},
        {"name": "UC San Diego", "weights": _table(0.40, 0.10, 0.25, 0.05, 0.15, 0.05), "competitive_bar": 7.5},
        {"name": "UC Santa Barbara", "weights": _table(0.35, 0.15, 0.10, 0.15, 0.20, 0.05), "competitive_bar": 7.0},
        {"name": "UC Irvine", "weights": _GENERAL_WEIGHTS, "competitive_bar": 7.0},
        {"name": "UC Davis", "weights": _table(0.35, 0.15, 0.10, 0.10, 0.20, 0.10), "competitive_bar": 6.8},
        {"name": "UC Santa Cruz", "weights": _GENERAL_WEIGHTS, "competitive_bar": 6.0},
        {"name": "UC Riverside", "weights": _GENERAL_WEIGHTS, "competitive_bar": 5.5},
        {"name": "UC Merced", "weights": _GENERAL_WEIGHTS, "competitive_bar": 5.0},
    ],
    "max_recommendations": 8,
}


@lru_cache(maxsize=None)
def load_rubric(path: str = "") -> RubricConfig:
    """Build the rubric once per process, applying an optional YAML override."""
    data: dict[str, Any] = dict(DEFAULT_RUBRIC)

    if path:
        override_path = Path(path)
        try:
            raw = override_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise RubricConfigError(f"Failed to read rubric override '{override_path}': {exc}") from exc
        try:
            parsed = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise RubricConfigError(f"Invalid YAML in rubric override '{override_path}': {exc}") from exc
        if parsed is None:
            parsed = {}
        if not isinstance(parsed, dict):
            raise RubricConfigError(
                f"Invalid rubric override '{override_path}': expected a top-level mapping."
            )
        unknown = sorted(set(parsed) - set(RubricConfig.model_fields))
        if unknown:
            raise RubricConfigError(f"Unknown rubric sections: {', '.join(unknown)}")
        data.update(parsed)
        logger.info("Rubric override applied from %s (%s)", override_path, ", ".join(sorted(parsed)))

    try:
        return RubricConfig.model_validate(data)
    except ValidationError as exc:
        raise RubricConfigError(f"Invalid rubric configuration: {exc}") from exc

"""Lazy registry of the six dimension specs.

Global singleton map, created on first use. Specs are stateless, so one
instance per dimension is shared by every evaluation.
"""

import logging

from models.schemas.dimension_result import DIMENSION_ORDER, Dimension
from services.pipeline.base import DimensionSpec

logger = logging.getLogger(__name__)

_registry: dict[Dimension, DimensionSpec] = {}


def _create_spec(dimension: Dimension) -> DimensionSpec:
    """Factory: create a dimension spec with deferred imports."""
    if dimension is Dimension.ACADEMIC_EXCELLENCE:
        from services.pipeline.d1_academic_excellence import AcademicExcellenceSpec
        return AcademicExcellenceSpec()
    elif dimension is Dimension.LEADERSHIP_INITIATIVE:
        from services.pipeline.d2_leadership_initiative import LeadershipInitiativeSpec
        return LeadershipInitiativeSpec()
    elif dimension is Dimension.INTELLECTUAL_CURIOSITY:
        from services.pipeline.d3_intellectual_curiosity import IntellectualCuriositySpec
        return IntellectualCuriositySpec()
    elif dimension is Dimension.COMMUNITY_IMPACT:
        from services.pipeline.d4_community_impact import CommunityImpactSpec
        return CommunityImpactSpec()
    elif dimension is Dimension.AUTHENTICITY_VOICE:
        from services.pipeline.d5_authenticity_voice import AuthenticityVoiceSpec
        return AuthenticityVoiceSpec()
    elif dimension is Dimension.FUTURE_READINESS:
        from services.pipeline.d6_future_readiness import FutureReadinessSpec
        return FutureReadinessSpec()
    else:
        raise ValueError(f"Unknown dimension: {dimension}")


def get_spec(dimension: Dimension | str) -> DimensionSpec:
    """Get a dimension spec, creating it on first access."""
    dimension = Dimension(dimension)
    if dimension not in _registry:
        _registry[dimension] = _create_spec(dimension)
        logger.debug("Registered dimension spec: %s", dimension.value)
    return _registry[dimension]


def all_specs() -> list[DimensionSpec]:
    """All six specs in declaration order."""
    return [get_spec(d) for d in DIMENSION_ORDER]


def clear() -> None:
    """Drop all specs. Useful for testing."""
    _registry.clear()

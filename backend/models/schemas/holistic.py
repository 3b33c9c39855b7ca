"""Holistic context: shared read-only interpretation passed to every analyzer."""

from pydantic import BaseModel, ConfigDict


class ContextAdjustment(BaseModel):
    model_config = ConfigDict(frozen=True)

    factor: str  # first_generation, low_income, under_resourced_school, family_responsibilities
    applies: bool = False
    impact: str = ""


class HolisticContext(BaseModel):
    """Output of the upstream overview stage.

    Produced once per evaluation and handed by reference to all six
    dimension analyzers so none of them re-derives the shared reading.
    """
    model_config = ConfigDict(frozen=True)

    central_thread: str = ""
    key_insights: list[str] = []
    context_adjustments: list[ContextAdjustment] = []
    preliminary_red_flags: list[str] = []

    def applies(self, factor: str) -> bool:
        return any(a.factor == factor and a.applies for a in self.context_adjustments)

    @property
    def active_adjustments(self) -> list[ContextAdjustment]:
        return [a for a in self.context_adjustments if a.applies]

"""Evaluation modes: which institution-specific weighting table applies."""

from enum import Enum


class EvaluationMode(str, Enum):
    BERKELEY = "berkeley"
    UCLA = "ucla"
    GENERAL_UC = "general_uc"
    BALANCED = "balanced"  # equal weights, used for calibration

    @property
    def display_name(self) -> str:
        return {
            EvaluationMode.BERKELEY: "UC Berkeley",
            EvaluationMode.UCLA: "UCLA",
            EvaluationMode.GENERAL_UC: "UC System",
            EvaluationMode.BALANCED: "UC System (balanced weighting)",
        }[self]

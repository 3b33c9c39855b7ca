"""Dimension 5: Authenticity & Voice.

Reads the applicant's own writing. Without essay text there is nothing to
judge, so the dimension reports insufficient evidence instead of a score.
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

FULL_ESSAY_SET = 4  # UC applicants answer four personal insight questions
DEVELOPED_WORDS = 250
MINIMAL_WORDS = 150


class VoiceDetails(BaseModel):
    voice_consistency: Literal["consistent", "mostly_consistent", "inconsistent"]
    authenticity_level: Literal["genuine", "mostly_genuine", "manufactured"]
    memorable_elements: list[str]
    shows_growth: bool


DEFINITION = """Authenticity & Voice measures:
1. **Genuine voice**: writing that sounds like a specific person, not a template
2. **Consistency**: the same person across every essay
3. **Specificity**: concrete moments, details and reflection
4. **Growth**: evidence of change and self-awareness
5. **Memorability**: would a reader remember this applicant tomorrow?"""

FRAMEWORK = """## VOICE TIERS

- Exceptional: distinct, consistent voice; specific scenes; reflection that reveals
  how the applicant thinks; a reader remembers them.
- Strong: clear personal voice with some generic passages.
- Developing: competent but interchangeable; tells more than it shows.
- Foundational: resume-in-prose, cliches, no reflection.

Polish is not authenticity. Grammar-perfect but generic essays are Developing."""

DETAILS_SCHEMA = """{
    "voice_consistency": "consistent" | "mostly_consistent" | "inconsistent",
    "authenticity_level": "genuine" | "mostly_genuine" | "manufactured",
    "memorable_elements": ["<specific details a reader would remember>"],
    "shows_growth": <true|false>
  }"""


class AuthenticityVoiceSpec(DimensionSpec):
    dimension = Dimension.AUTHENTICITY_VOICE
    details_model = VoiceDetails
    definition = DEFINITION
    framework = FRAMEWORK
    details_schema = DETAILS_SCHEMA

    def check_evidence(self, profile: ApplicantProfile) -> str | None:
        if not profile.essays_with_text:
            return "No essay text provided; voice cannot be assessed"
        return None

    def build_payload(
        self,
        profile: ApplicantProfile,
        holistic: HolisticContext,
        mode: EvaluationMode,
        rubric: RubricConfig,
    ) -> str:
        essays = profile.essays_with_text
        parts = [f"## ESSAYS\n\n**Total with text**: {len(essays)}"]
        for idx, essay in enumerate(essays, start=1):
            parts.append(
                f"### Essay {idx} ({essay.word_count} words)\n"
                f"**Prompt**: {essay.prompt or 'Not specified'}\n\n{essay.text.strip()}"
            )
        return prompt_builder.data_payload(
            self.dimension.label,
            mode,
            [prompt_builder.holistic_block(holistic), "\n\n".join(parts)],
        )

    def heuristic(
        self,
        profile: ApplicantProfile,
        holistic: HolisticContext,
        mode: EvaluationMode,
        rubric: RubricConfig,
    ) -> DimensionResult:
        essays = profile.essays_with_text
        avg_words = sum(e.word_count for e in essays) / len(essays) if essays else 0.0

        if len(essays) >= FULL_ESSAY_SET and avg_words >= DEVELOPED_WORDS:
            score = 7.0
        elif avg_words >= MINIMAL_WORDS:
            score = 5.5
        else:
            score = 4.0

        strengths = [("Essays completed", f"{len(essays)} essays, {avg_words:.0f} words on average")]
        weaknesses = []
        if len(essays) < FULL_ESSAY_SET:
            weaknesses.append(("Incomplete essay set", f"{len(essays)} of {FULL_ESSAY_SET} essays written"))
        if avg_words < MINIMAL_WORDS:
            weaknesses.append(("Underdeveloped essays", f"Average length {avg_words:.0f} words"))

        return heuristic_result(
            self.dimension,
            score,
            rubric,
            strengths=strengths,
            weaknesses=weaknesses,
            details=VoiceDetails(
                voice_consistency="mostly_consistent",
                authenticity_level="mostly_genuine",
                memorable_elements=[],
                shows_growth=False,
            ),
            path_to_next_tier="Add specific scenes, details and reflection in the applicant's own voice",
            key_evidence=[f"{len(essays)} essays", f"{avg_words:.0f} average words"],
        )

from pydantic import BaseModel, Field

from models.schemas.mode import EvaluationMode
from models.schemas.profile import ApplicantProfile


class EvaluateRequest(BaseModel):
    profile: ApplicantProfile = Field(..., description="Applicant profile snapshot")
    mode: EvaluationMode = Field(EvaluationMode.GENERAL_UC, description="Weighting table to apply")

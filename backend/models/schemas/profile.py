"""Applicant profile: the immutable input snapshot for one evaluation."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

CourseRigor = Literal["standard", "honors", "ap", "ib", "dual_enrollment"]

ADVANCED_RIGOR = ("honors", "ap", "ib", "dual_enrollment")


class Course(BaseModel):
    """A single course on the transcript."""
    model_config = ConfigDict(frozen=True)

    name: str
    subject: str = ""  # math, science, english, history, language, arts, elective
    rigor: CourseRigor = "standard"
    grade: str = ""  # letter grade, empty if in progress
    grade_level: int | None = None  # 9-12
    is_certified_honors: bool = False

    @property
    def is_advanced(self) -> bool:
        return self.rigor in ADVANCED_RIGOR


class ExamScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    subject: str
    score: int


class StandardizedScores(BaseModel):
    model_config = ConfigDict(frozen=True)

    sat: int | None = None
    act: int | None = None
    ap_exams: list[ExamScore] = []


class AcademicRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    gpa_weighted: float | None = None  # capped weighted GPA, 0-5 scale
    gpa_unweighted: float | None = None  # 0-4 scale
    gpa_fully_weighted: float | None = None
    courses: list[Course] = []
    test_scores: StandardizedScores = StandardizedScores()
    honors: list[str] = []
    ag_requirements_complete: bool = False
    rigor_description: str = ""

    @property
    def advanced_courses(self) -> list[Course]:
        return [c for c in self.courses if c.is_advanced]

    @property
    def best_gpa(self) -> float | None:
        """Weighted GPA when reported, otherwise unweighted."""
        if self.gpa_weighted is not None:
            return self.gpa_weighted
        return self.gpa_unweighted


class Activity(BaseModel):
    """A single extracurricular, job, or family commitment."""
    model_config = ConfigDict(frozen=True)

    name: str
    category: str = ""  # stem, service, arts, athletics, work, academic_prep, leadership, ...
    role: str = ""
    years_involved: float = 0.0
    hours_per_week: float = 0.0
    weeks_per_year: int = 0
    description: str = ""
    impact: str = ""
    awards: list[str] = []
    leadership_positions: list[str] = []
    is_paid_work: bool = False

    @property
    def has_leadership(self) -> bool:
        if self.leadership_positions:
            return True
        role = self.role.lower()
        return any(k in role for k in ("president", "founder", "captain", "lead", "director", "chair", "editor"))


class Essay(BaseModel):
    """A personal statement or personal insight response."""
    model_config = ConfigDict(frozen=True)

    prompt: str = ""
    text: str = ""

    @property
    def word_count(self) -> int:
        return len(self.text.split())


class Goals(BaseModel):
    model_config = ConfigDict(frozen=True)

    intended_major: str = ""
    why_major: str = ""
    career_interests: list[str] = []
    target_institutions: list[str] = []

    @property
    def has_declared_major(self) -> bool:
        return bool(self.intended_major.strip()) and self.intended_major.strip().lower() != "undeclared"


class ApplicantContext(BaseModel):
    """Demographic and school-context flags used for context adjustments."""
    model_config = ConfigDict(frozen=True)

    first_generation: bool = False
    low_income: bool = False
    under_resourced_school: bool = False
    family_responsibilities: bool = False
    family_hours_per_week: float = 0.0
    family_responsibility_description: str = ""
    school_name: str = ""
    school_type: str = "public"
    advanced_courses_offered: int | None = None  # None = unknown
    challenges: list[str] = []

    @property
    def limited_course_offerings(self) -> bool:
        """School offers few advanced courses (a normalizing factor, not a deficiency)."""
        if self.advanced_courses_offered is not None:
            return self.advanced_courses_offered < 10
        return self.under_resourced_school


class ApplicantProfile(BaseModel):
    """Immutable snapshot of everything the pipeline knows about an applicant."""
    model_config = ConfigDict(frozen=True)

    applicant_id: str = ""
    grade_level: int = Field(12, ge=9, le=12)
    academic: AcademicRecord = AcademicRecord()
    activities: list[Activity] = []
    essays: list[Essay] = []
    goals: Goals = Goals()
    context: ApplicantContext = ApplicantContext()

    @property
    def essays_with_text(self) -> list[Essay]:
        return [e for e in self.essays if e.text.strip()]

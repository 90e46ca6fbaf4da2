"""
Embedded per-mode state stored on a conversation record.

Each struct is serialized as JSON inside its own column. The enums are
closed: a phase value the code does not know fails validation on load.
"""

from datetime import datetime
from enum import Enum as PyEnum

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class Mode(str, PyEnum):
    """Tutoring mode that created a conversation."""

    STUDY = "study"
    EXAM = "exam"
    COMPETITIVE = "competitive"
    ASSIGNMENT = "assignment"
    MENTOR = "mentor"


class StudyPhase(str, PyEnum):
    """Phases of the study-mode dialogue, in intended order."""

    GREET = "GREET"
    ASK_SUBJECT = "ASK_SUBJECT"
    ASK_SYLLABUS_SOURCE = "ASK_SYLLABUS_SOURCE"
    SYLLABUS_READY = "SYLLABUS_READY"
    TEACHING = "TEACHING"
    QUESTION_MODE = "QUESTION_MODE"


class TeachingStep(str, PyEnum):
    """Teaching passes over one unit."""

    DETAIL = "DETAIL"
    ELI5 = "ELI5"
    SHORT = "SHORT"
    SUMMARY = "SUMMARY"


class SyllabusSource(str, PyEnum):
    """Where a syllabus came from."""

    UPLOAD = "UPLOAD"
    FETCH = "FETCH"


class ExamPhase(str, PyEnum):
    """Exam mode only distinguishes whether a syllabus exists yet."""

    FREE_CHAT = "FREE_CHAT"
    SYLLABUS_PRESENT = "SYLLABUS_PRESENT"


QUESTION_TYPES: tuple[str, ...] = (
    "MCQs",
    "Fill in the blanks",
    "True or False",
    "Match the following",
    "Short answer",
    "Long answer",
    "Case study",
    "Numericals",
)


# =============================================================================
# STRUCTS
# =============================================================================


class LongTermMemory(BaseModel):
    """Compacted summary of a conversation's early history."""

    summary: str = ""
    last_updated_at: datetime | None = None


class StudyUnit(BaseModel):
    """One unit of a locked syllabus."""

    title: str = Field(..., min_length=1)
    topics: list[str] = Field(default_factory=list)


class StudyState(BaseModel):
    """Study-mode state machine fields."""

    phase: StudyPhase = StudyPhase.GREET
    subject: str | None = None
    syllabus_text: str | None = None
    syllabus_source: SyllabusSource | None = None
    parsed_units: list[StudyUnit] = Field(default_factory=list)
    current_unit_index: int = Field(0, ge=0)
    teaching_step: TeachingStep = TeachingStep.DETAIL
    question_types: list[str] = Field(default_factory=lambda: list(QUESTION_TYPES))
    current_question_type_index: int = Field(0, ge=0)
    question_batch: int = Field(0, ge=0)

    @model_validator(mode="after")
    def _check_indexes(self) -> "StudyState":
        # Index equal to the length means "exhausted", anything past it is corrupt
        if self.current_unit_index > len(self.parsed_units):
            raise ValueError("current_unit_index is past the end of parsed_units")
        if self.current_question_type_index > len(self.question_types):
            raise ValueError("current_question_type_index is past the end of question_types")
        return self

    @property
    def current_unit(self) -> StudyUnit | None:
        """The unit being taught, or None once the syllabus is exhausted."""
        if self.current_unit_index < len(self.parsed_units):
            return self.parsed_units[self.current_unit_index]
        return None

    @property
    def current_question_type(self) -> str | None:
        if self.current_question_type_index < len(self.question_types):
            return self.question_types[self.current_question_type_index]
        return None


class CompetitiveState(BaseModel):
    """Competitive-prep mode carries no mechanical state beyond this flag."""

    active: bool = False


class ExamUnit(BaseModel):
    """One unit of an exam syllabus."""

    unit_title: str
    topics: list[str] = Field(default_factory=list)
    completed: bool = False


class ExamState(BaseModel):
    """Exam-mode fields. Everything past the phase is driven by the model."""

    active: bool = False
    phase: ExamPhase = ExamPhase.FREE_CHAT
    exam_type: str | None = None
    class_level: str | None = None
    degree: str | None = None
    course_type: str | None = None
    subject: str | None = None
    subject_code: str | None = None
    syllabus_text: str | None = None
    syllabus_source: SyllabusSource | None = None
    parsed_structure: list[ExamUnit] = Field(default_factory=list)
    current_unit_index: int = Field(0, ge=0)
    awaiting_confirmation: str | None = None
    last_activity_at: datetime | None = None

    @model_validator(mode="after")
    def _check_unit_index(self) -> "ExamState":
        if self.current_unit_index > len(self.parsed_structure):
            raise ValueError("current_unit_index is past the end of parsed_structure")
        return self

"""Pydantic schemas for tutoring turns and conversation history."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from athena.schemas.base import BaseSchema


# Profile (supplied by the client, never stored)
class AcademicData(BaseSchema):
    """Academic background used to tailor fetched syllabi."""

    institution: str | None = None
    level: str | None = None
    board: str | None = None
    degree: str | None = None
    major: str | None = None


class Profile(BaseSchema):
    """Optional student profile sent with a turn."""

    academic_data: AcademicData = Field(default_factory=AcademicData)


class ExamDetails(BaseSchema):
    """Exam fields the client may supply; only non-empty ones are applied."""

    exam_type: str | None = None
    class_level: str | None = None
    degree: str | None = None
    course_type: str | None = None
    subject: str | None = None
    subject_code: str | None = None


# Request schemas
class TurnRequest(BaseSchema):
    """One user message for study, competitive or assignment mode."""

    user_message: str = Field(..., min_length=1, max_length=20000)
    conversation_id: UUID | None = None
    profile: Profile | None = None


class MentorTurnRequest(BaseSchema):
    """One user message for mentor mode."""

    user_message: str = Field(..., min_length=1, max_length=20000)
    mentor_conversation_id: UUID | None = None


# Response schemas
class TurnResponse(BaseSchema):
    """Reply to a turn."""

    conversation_id: UUID
    reply: str


class MentorTurnResponse(BaseSchema):
    """Reply to a mentor turn."""

    mentor_conversation_id: UUID
    reply: str


class ConversationRead(BaseSchema):
    """Conversation as shown in the history sidebar."""

    id: UUID
    title: str
    mode: str
    created_at: datetime


class MessageRead(BaseSchema):
    """Stored message."""

    id: UUID
    role: str
    content: str
    created_at: datetime

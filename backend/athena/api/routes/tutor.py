"""API routes for the five tutoring modes."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status
from pydantic import ValidationError

from athena.api.deps import AppSettings, DbSession, Gateway
from athena.schemas.tutor import (
    ExamDetails,
    MentorTurnRequest,
    MentorTurnResponse,
    Profile,
    TurnRequest,
    TurnResponse,
)
from athena.services import (
    AssignmentTutor,
    CompetitiveTutor,
    ConversationStore,
    ExamTutor,
    MentorStore,
    MentorTutor,
    StudyTutor,
    conversation_locks,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["tutor"])


def _turn_failed(mode: str) -> HTTPException:
    """Uniform failure response. The cause is logged by the caller, never returned."""
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"{mode} mode failed",
    )


# =============================================================================
# STUDY
# =============================================================================


@router.post("/chat", response_model=TurnResponse)
async def study_turn(
    request: TurnRequest,
    db: DbSession,
    gateway: Gateway,
) -> TurnResponse:
    """
    Advance the study-mode state machine by one message.

    Greeting, subject, syllabus source, syllabus lock, then unit-by-unit
    teaching and question rounds.
    """
    tutor = StudyTutor(ConversationStore(db), gateway)
    try:
        async with conversation_locks.hold(request.conversation_id):
            conversation_id, reply = await tutor.take_turn(
                request.conversation_id, request.user_message, request.profile
            )
    except Exception as e:
        logger.exception("Study mode turn failed")
        raise _turn_failed("Study") from e

    return TurnResponse(conversation_id=conversation_id, reply=reply)


# =============================================================================
# EXAM
# =============================================================================


@router.post("/exam", response_model=TurnResponse)
async def exam_turn(
    db: DbSession,
    gateway: Gateway,
    settings: AppSettings,
    user_message: Annotated[str, Form(alias="userMessage")] = "",
    conversation_id: Annotated[UUID | None, Form(alias="conversationId")] = None,
    profile: Annotated[str | None, Form()] = None,
    exam_type: Annotated[str | None, Form(alias="examType")] = None,
    class_level: Annotated[str | None, Form(alias="classLevel")] = None,
    degree: Annotated[str | None, Form()] = None,
    course_type: Annotated[str | None, Form(alias="courseType")] = None,
    subject: Annotated[str | None, Form()] = None,
    subject_code: Annotated[str | None, Form(alias="subjectCode")] = None,
    file: Annotated[UploadFile | None, File()] = None,
) -> TurnResponse:
    """
    Exam-prep turn (multipart form).

    An attached file always short-circuits to a fixed acknowledgment.
    `profile` is the JSON-encoded student profile.
    """
    try:
        parsed_profile = Profile.model_validate_json(profile) if profile else None
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="profile must be a JSON object",
        ) from e

    details = ExamDetails(
        exam_type=exam_type,
        class_level=class_level,
        degree=degree,
        course_type=course_type,
        subject=subject,
        subject_code=subject_code,
    )
    tutor = ExamTutor(ConversationStore(db), gateway, settings)
    try:
        async with conversation_locks.hold(conversation_id):
            new_id, reply = await tutor.take_turn(
                conversation_id,
                user_message,
                profile=parsed_profile,
                details=details,
                has_file=file is not None,
            )
    except Exception as e:
        logger.exception("Exam mode turn failed")
        raise _turn_failed("Exam") from e

    return TurnResponse(conversation_id=new_id, reply=reply)


# =============================================================================
# MENTOR / COMPETITIVE / ASSIGNMENT
# =============================================================================


@router.post("/mentor", response_model=MentorTurnResponse)
async def mentor_turn(
    request: MentorTurnRequest,
    db: DbSession,
    gateway: Gateway,
    settings: AppSettings,
) -> MentorTurnResponse:
    """Free-flow mentoring over the last few mentor messages."""
    tutor = MentorTutor(MentorStore(db), gateway, settings)
    lock_key = ("mentor", request.mentor_conversation_id) if request.mentor_conversation_id else None
    try:
        async with conversation_locks.hold(lock_key):
            conversation_id, reply = await tutor.take_turn(
                request.mentor_conversation_id, request.user_message
            )
    except Exception as e:
        logger.exception("Mentor mode turn failed")
        raise _turn_failed("Mentor") from e

    return MentorTurnResponse(mentor_conversation_id=conversation_id, reply=reply)


@router.post("/competition", response_model=TurnResponse)
async def competitive_turn(
    request: TurnRequest,
    db: DbSession,
    gateway: Gateway,
    settings: AppSettings,
) -> TurnResponse:
    """Competition coaching and judge simulation."""
    tutor = CompetitiveTutor(ConversationStore(db), gateway, settings)
    try:
        async with conversation_locks.hold(request.conversation_id):
            conversation_id, reply = await tutor.take_turn(
                request.conversation_id, request.user_message
            )
    except Exception as e:
        logger.exception("Competitive mode turn failed")
        raise _turn_failed("Competitive") from e

    return TurnResponse(conversation_id=conversation_id, reply=reply)


@router.post("/assignment", response_model=TurnResponse)
async def assignment_turn(
    request: TurnRequest,
    db: DbSession,
    gateway: Gateway,
    settings: AppSettings,
) -> TurnResponse:
    """
    Assignment and project help.

    Every 15th stored message triggers long-term memory compaction, which
    also renames the conversation.
    """
    tutor = AssignmentTutor(ConversationStore(db), gateway, settings)
    try:
        async with conversation_locks.hold(request.conversation_id):
            conversation_id, reply = await tutor.take_turn(
                request.conversation_id, request.user_message
            )
    except Exception as e:
        logger.exception("Assignment mode turn failed")
        raise _turn_failed("Assignment") from e

    return TurnResponse(conversation_id=conversation_id, reply=reply)

"""
Exam mode: free conversation steered by one standing instruction.

Decided here: a blank message with no file gets a re-prompt, an uploaded
file short-circuits to a fixed acknowledgment, and a fetch request for a
known subject produces a syllabus.
Everything else (exam setup, formats, navigation) is left to the model.
"""

import logging
import re
from uuid import UUID

from athena.config import Settings
from athena.db.models import utcnow
from athena.schemas.state import ExamPhase, ExamState, Mode, SyllabusSource
from athena.schemas.tutor import AcademicData, ExamDetails, Profile
from athena.services import prompts
from athena.services.gateway import CompletionGateway
from athena.services.sessions import SessionResolver
from athena.services.store import ConversationStore, as_turns

logger = logging.getLogger(__name__)

_FETCH_INTENT = re.compile(
    r"fetch|get|generate|you do|don'?t have|create|make syllabus", re.IGNORECASE
)


def wants_fetch(text: str) -> bool:
    return bool(_FETCH_INTENT.search(text))


def apply_exam_details(state: ExamState, details: ExamDetails | None) -> None:
    """Copy every non-empty detail the client supplied onto the state."""
    if details is None:
        return
    for field, value in details.model_dump().items():
        if value:
            setattr(state, field, value)


class ExamTutor:
    """Runs one exam-mode turn."""

    def __init__(self, store: ConversationStore, gateway: CompletionGateway, settings: Settings):
        self.store = store
        self.gateway = gateway
        self.sessions = SessionResolver(store)
        self.window = settings.exam_history_window

    async def take_turn(
        self,
        conversation_id: UUID | None,
        user_message: str,
        profile: Profile | None = None,
        details: ExamDetails | None = None,
        has_file: bool = False,
    ) -> tuple[UUID, str]:
        """
        Handle one exam-mode message, optionally carrying an uploaded file.

        Returns:
            (conversation id, reply text)
        """
        conversation = await self.sessions.resolve(conversation_id, Mode.EXAM)
        state = conversation.exam_state.model_copy(deep=True)
        state.last_activity_at = utcnow()
        apply_exam_details(state, details)

        if user_message.strip():
            await self.store.add_message(conversation.id, "user", user_message)

        if not has_file and not user_message.strip():
            # Nothing to answer; the stored history is left as it was
            conversation.exam_state = state
            await self.store.save_conversation(conversation)
            return conversation.id, prompts.EXAM_EMPTY_REPROMPT

        if has_file:
            state.syllabus_source = SyllabusSource.UPLOAD
            state.phase = ExamPhase.SYLLABUS_PRESENT
            reply = prompts.EXAM_UPLOAD_REPLY
            logger.info("Exam conversation %s: syllabus file received", conversation.id)

        elif wants_fetch(user_message) and state.subject:
            syllabus = await self._fetch_syllabus(state, profile)
            state.syllabus_text = syllabus
            state.syllabus_source = SyllabusSource.FETCH
            state.phase = ExamPhase.SYLLABUS_PRESENT
            reply = prompts.EXAM_FETCHED_REPLY.format(syllabus=syllabus)
            logger.info("Exam conversation %s: syllabus fetched for %s", conversation.id, state.subject)

        else:
            history = await self.store.recent_messages(conversation.id, self.window)
            reply = await self.gateway.complete(
                [{"role": "system", "content": prompts.EXAM_INSTRUCTION}, *as_turns(history)]
            )

        conversation.exam_state = state
        await self.store.save_conversation(conversation)
        await self.store.add_message(conversation.id, "assistant", reply)
        return conversation.id, reply

    async def _fetch_syllabus(self, state: ExamState, profile: Profile | None) -> str:
        academic = profile.academic_data if profile else AcademicData()
        prompt = prompts.EXAM_FETCH_PROMPT.format(
            subject=state.subject,
            course_type=state.course_type or "Not specified",
            degree=state.degree or academic.degree or "Not specified",
            major=academic.major or "Not specified",
            board=academic.board or "Not specified",
            level=state.class_level or academic.level or "Not specified",
        )
        return await self.gateway.complete([{"role": "user", "content": prompt}])

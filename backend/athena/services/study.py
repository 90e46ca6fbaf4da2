"""
Study mode: a deterministic, resumable tutoring dialogue.

GREET -> ASK_SUBJECT -> ASK_SYLLABUS_SOURCE -> SYLLABUS_READY -> TEACHING
<-> QUESTION_MODE. Every phase has exactly one handler in the transition
table; input a phase does not expect gets a re-prompt and leaves the state
untouched.
"""

import logging
import re
from uuid import UUID

from pydantic import TypeAdapter, ValidationError

from athena.errors import MalformedStructuredOutput
from athena.schemas.state import (
    Mode,
    StudyPhase,
    StudyState,
    StudyUnit,
    SyllabusSource,
    TeachingStep,
)
from athena.schemas.tutor import AcademicData, Profile
from athena.services import prompts
from athena.services.gateway import CompletionGateway
from athena.services.sessions import SessionResolver
from athena.services.store import ConversationStore

logger = logging.getLogger(__name__)

_SUBJECT_PATTERNS = (
    re.compile(r"study (.+)", re.IGNORECASE),
    re.compile(r"learn (.+)", re.IGNORECASE),
    re.compile(r"about (.+)", re.IGNORECASE),
)

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)

_UNIT_LIST = TypeAdapter(list[StudyUnit])

LOCK_COMMANDS = ("LOCK", "LOCK SYLLABUS")

NEXT_TEACHING_STEP: dict[TeachingStep, TeachingStep | None] = {
    TeachingStep.DETAIL: TeachingStep.ELI5,
    TeachingStep.ELI5: TeachingStep.SHORT,
    TeachingStep.SHORT: TeachingStep.SUMMARY,
    TeachingStep.SUMMARY: None,
}


def extract_subject(text: str) -> str:
    """First non-empty capture of 'study X', 'learn X', 'about X', else the whole input."""
    for pattern in _SUBJECT_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return text.strip()


def parse_units(raw: str) -> list[StudyUnit]:
    """
    Parse the model's unit split.

    Code fences are stripped, then the text must be a bracket-delimited
    JSON array of {title, topics} objects with at least one unit.

    Raises:
        MalformedStructuredOutput: the text is not such an array
    """
    cleaned = _CODE_FENCE.sub("", raw).strip()
    if not (cleaned.startswith("[") and cleaned.endswith("]")):
        raise MalformedStructuredOutput("unit split is not a bracket-delimited JSON array")
    try:
        units = _UNIT_LIST.validate_json(cleaned)
    except ValidationError as e:
        raise MalformedStructuredOutput("unit split does not match the unit schema") from e
    if not units:
        raise MalformedStructuredOutput("unit split is empty")
    return units


def _topics(unit: StudyUnit) -> str:
    return ", ".join(unit.topics)


class StudyTutor:
    """Runs one study-mode turn against a persisted conversation."""

    def __init__(self, store: ConversationStore, gateway: CompletionGateway):
        self.store = store
        self.gateway = gateway
        self.sessions = SessionResolver(store)
        self._handlers = {
            StudyPhase.GREET: self._greet,
            StudyPhase.ASK_SUBJECT: self._ask_subject,
            StudyPhase.ASK_SYLLABUS_SOURCE: self._ask_syllabus_source,
            StudyPhase.SYLLABUS_READY: self._syllabus_ready,
            StudyPhase.TEACHING: self._teaching,
            StudyPhase.QUESTION_MODE: self._question_mode,
        }

    async def take_turn(
        self,
        conversation_id: UUID | None,
        user_message: str,
        profile: Profile | None = None,
    ) -> tuple[UUID, str]:
        """
        Apply one user message to the study state machine.

        The handler works on a copy of the state, so a failing gateway call
        or a malformed unit split leaves the stored state as it was.

        Returns:
            (conversation id, reply text)
        """
        conversation = await self.sessions.resolve(conversation_id, Mode.STUDY)
        await self.store.add_message(conversation.id, "user", user_message)

        state = conversation.study_state.model_copy(deep=True)
        previous_phase = state.phase
        handler = self._handlers[state.phase]
        reply = await handler(state, user_message.strip(), profile)

        if state != conversation.study_state:
            conversation.study_state = state
            await self.store.save_conversation(conversation)
        if state.phase != previous_phase:
            logger.info(
                "Study conversation %s: %s -> %s",
                conversation.id, previous_phase.value, state.phase.value,
            )

        await self.store.add_message(conversation.id, "assistant", reply)
        return conversation.id, reply

    # -------------------------------------------------------------------------
    # Phase handlers
    # -------------------------------------------------------------------------

    async def _greet(self, state: StudyState, text: str, profile: Profile | None) -> str:
        state.phase = StudyPhase.ASK_SUBJECT
        return prompts.STUDY_GREETING

    async def _ask_subject(self, state: StudyState, text: str, profile: Profile | None) -> str:
        subject = extract_subject(text)
        if not subject:
            return prompts.STUDY_GREETING
        state.subject = subject
        state.phase = StudyPhase.ASK_SYLLABUS_SOURCE
        return prompts.ASK_SOURCE_REPLY.format(subject=subject)

    async def _ask_syllabus_source(self, state: StudyState, text: str, profile: Profile | None) -> str:
        command = text.upper()

        if command.startswith("UPLOAD"):
            state.syllabus_source = SyllabusSource.UPLOAD
            state.syllabus_text = prompts.UPLOAD_PLACEHOLDER
            state.phase = StudyPhase.SYLLABUS_READY
            return prompts.UPLOAD_NOTED_REPLY

        if command.startswith("FETCH"):
            academic = profile.academic_data if profile else AcademicData()
            prompt = prompts.FETCH_SYLLABUS_PROMPT.format(
                subject=state.subject,
                institution=academic.institution or "Not specified",
                level=academic.level or "Not specified",
                board=academic.board or "Not specified",
                degree=academic.degree or "Not specified",
                major=academic.major or "Not specified",
            )
            syllabus = await self.gateway.complete([{"role": "user", "content": prompt}])
            state.syllabus_text = syllabus
            state.syllabus_source = SyllabusSource.FETCH
            state.phase = StudyPhase.SYLLABUS_READY
            return prompts.FETCHED_REPLY.format(syllabus=syllabus)

        return prompts.SOURCE_REPROMPT.format(subject=state.subject)

    async def _syllabus_ready(self, state: StudyState, text: str, profile: Profile | None) -> str:
        if text.upper() not in LOCK_COMMANDS:
            return prompts.LOCK_REPROMPT

        raw = await self.gateway.complete(
            [{"role": "user", "content": prompts.UNIT_SPLIT_PROMPT.format(syllabus=state.syllabus_text)}]
        )
        units = parse_units(raw)

        state.parsed_units = units
        state.current_unit_index = 0
        state.teaching_step = TeachingStep.DETAIL
        state.current_question_type_index = 0
        state.question_batch = 0
        state.phase = StudyPhase.TEACHING
        return prompts.LOCKED_REPLY.format(unit_title=units[0].title)

    async def _teaching(self, state: StudyState, text: str, profile: Profile | None) -> str:
        unit = state.current_unit
        if unit is None:
            return prompts.SYLLABUS_COMPLETE_REPLY.format(subject=state.subject)

        step = state.teaching_step
        prompt = prompts.TEACHING_PROMPT.format(
            instruction=prompts.TEACHING_INSTRUCTIONS[step.value],
            subject=state.subject,
            unit_title=unit.title,
            topics=_topics(unit),
        )
        content = await self.gateway.complete([{"role": "user", "content": prompt}])

        next_step = NEXT_TEACHING_STEP[step]
        if next_step is None:
            state.phase = StudyPhase.QUESTION_MODE
            state.teaching_step = TeachingStep.DETAIL
            return content + prompts.QUESTIONS_READY_SUFFIX

        state.teaching_step = next_step
        return content + prompts.CONTINUE_SUFFIX

    async def _question_mode(self, state: StudyState, text: str, profile: Profile | None) -> str:
        if text.upper() == "NO":
            state.current_question_type_index += 1
            state.question_batch = 0

            if state.current_question_type_index >= len(state.question_types):
                state.current_unit_index += 1
                state.current_question_type_index = 0
                state.phase = StudyPhase.TEACHING
                next_unit = state.current_unit
                if next_unit is None:
                    return prompts.SYLLABUS_COMPLETE_REPLY.format(subject=state.subject)
                return prompts.NEXT_UNIT_REPLY.format(unit_title=next_unit.title)

            return prompts.NEXT_QUESTION_TYPE_REPLY.format(question_type=state.current_question_type)

        unit = state.current_unit
        if unit is None:
            return prompts.SYLLABUS_COMPLETE_REPLY.format(subject=state.subject)

        question_type = state.current_question_type
        state.question_batch += 1
        prompt = prompts.QUESTION_PROMPT.format(
            question_type=question_type,
            subject=state.subject,
            unit_title=unit.title,
            topics=_topics(unit),
        )
        content = await self.gateway.complete([{"role": "user", "content": prompt}])
        return content + prompts.MORE_QUESTIONS_SUFFIX.format(question_type=question_type)

"""Load-or-create resolution of the conversation a turn belongs to."""

import logging
from uuid import UUID

from athena.schemas.state import (
    CompetitiveState,
    ExamPhase,
    ExamState,
    LongTermMemory,
    Mode,
    StudyState,
)
from athena.services.store import ConversationStore

logger = logging.getLogger(__name__)


def _defaults(mode: Mode) -> dict:
    """Fresh field values for a new conversation in the given mode."""
    fields = {
        "mode": mode.value,
        "title": "Study Session",
        "long_term_memory": LongTermMemory(),
        "study_state": StudyState(),
        "competitive_state": CompetitiveState(),
        "exam_state": ExamState(),
    }
    if mode is Mode.COMPETITIVE:
        fields["title"] = "Competitive Prep Session"
        fields["competitive_state"] = CompetitiveState(active=True)
    elif mode is Mode.EXAM:
        fields["title"] = "Exam Preparation"
        fields["exam_state"] = ExamState(active=True, phase=ExamPhase.FREE_CHAT)
    elif mode is Mode.ASSIGNMENT:
        fields["title"] = "Assignment / Project Session"
    return fields


class SessionResolver:
    """Shared scaffolding: every mode starts its turn here."""

    def __init__(self, store: ConversationStore):
        self.store = store

    async def resolve(self, conversation_id: UUID | None, mode: Mode):
        """
        Load the conversation, or create one with the mode's defaults.

        An identifier that does not exist is treated like no identifier; the
        caller learns the new id from the turn's response.
        """
        if conversation_id is not None:
            record = await self.store.get_conversation(conversation_id)
            if record is not None:
                return record
            logger.info("Conversation %s not found, starting a new %s session", conversation_id, mode.value)

        if mode is Mode.MENTOR:
            return await self.store.create_conversation()
        return await self.store.create_conversation(**_defaults(mode))

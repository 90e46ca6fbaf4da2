"""Competitive, mentor and assignment modes: windowed-history passthrough."""

import logging
from abc import ABC, abstractmethod
from uuid import UUID

from athena.config import Settings
from athena.schemas.state import Mode
from athena.services import prompts
from athena.services.gateway import CompletionGateway
from athena.services.memory import MemoryCompactor
from athena.services.sessions import SessionResolver
from athena.services.store import ConversationStore, MentorStore, as_turns

logger = logging.getLogger(__name__)


class PassthroughTutor(ABC):
    """
    Persist the user turn, replay the last `window` messages behind the
    mode's standing instruction, persist and return the reply.
    """

    mode: Mode

    def __init__(self, store: ConversationStore, gateway: CompletionGateway, window: int):
        self.store = store
        self.gateway = gateway
        self.window = window
        self.sessions = SessionResolver(store)

    @abstractmethod
    def instruction_for(self, conversation) -> str:
        """Standing instruction sent ahead of the replayed history."""

    async def after_reply(self, conversation) -> None:
        """Hook run once the assistant turn is stored."""

    async def take_turn(self, conversation_id: UUID | None, user_message: str) -> tuple[UUID, str]:
        conversation = await self.sessions.resolve(conversation_id, self.mode)
        await self.store.add_message(conversation.id, "user", user_message)

        history = await self.store.recent_messages(conversation.id, self.window)
        reply = await self.gateway.complete(
            [{"role": "system", "content": self.instruction_for(conversation)}, *as_turns(history)]
        )

        await self.store.add_message(conversation.id, "assistant", reply)
        await self.after_reply(conversation)
        return conversation.id, reply


class CompetitiveTutor(PassthroughTutor):
    """Competition coach and judge simulator."""

    mode = Mode.COMPETITIVE

    def __init__(self, store: ConversationStore, gateway: CompletionGateway, settings: Settings):
        super().__init__(store, gateway, settings.competitive_history_window)

    def instruction_for(self, conversation) -> str:
        return prompts.COMPETITIVE_INSTRUCTION


class MentorTutor(PassthroughTutor):
    """Free-flow academic mentor, stored in its own tables."""

    mode = Mode.MENTOR

    def __init__(self, store: MentorStore, gateway: CompletionGateway, settings: Settings):
        super().__init__(store, gateway, settings.mentor_history_window)

    def instruction_for(self, conversation) -> str:
        return prompts.MENTOR_INSTRUCTION


class AssignmentTutor(PassthroughTutor):
    """Assignment helper that feeds the compacted summary back into its instruction."""

    mode = Mode.ASSIGNMENT

    def __init__(self, store: ConversationStore, gateway: CompletionGateway, settings: Settings):
        super().__init__(store, gateway, settings.assignment_history_window)
        self.compactor = MemoryCompactor(store, gateway, settings)

    def instruction_for(self, conversation) -> str:
        return prompts.assignment_instruction(conversation.long_term_memory.summary)

    async def after_reply(self, conversation) -> None:
        count = await self.store.count_messages(conversation.id)
        if self.compactor.should_compact(count):
            logger.info("Conversation %s reached %d messages, compacting", conversation.id, count)
            await self.compactor.compact(conversation)

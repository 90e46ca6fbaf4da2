"""Long-term memory compaction: summarize history, re-title the conversation."""

import logging

from athena.config import Settings
from athena.db.models import Conversation, utcnow
from athena.schemas.state import LongTermMemory
from athena.services.gateway import CompletionGateway
from athena.services.prompts import SUMMARY_INSTRUCTION, TITLE_PROMPT
from athena.services.store import ConversationStore, as_turns

logger = logging.getLogger(__name__)

MAX_TITLE_WORDS = 8


def clean_title(raw: str) -> str:
    """First line of the model's answer, unquoted, at most 8 words, no trailing punctuation."""
    lines = raw.strip().splitlines()
    line = lines[0] if lines else ""
    line = line.strip().strip("\"'`*").strip()
    words = line.split()[:MAX_TITLE_WORDS]
    return " ".join(words).rstrip(".!?,;:")


class MemoryCompactor:
    """Folds a conversation's message history into its long-term memory field."""

    def __init__(self, store: ConversationStore, gateway: CompletionGateway, settings: Settings):
        self.store = store
        self.gateway = gateway
        self.interval = settings.memory_compaction_interval
        self.window = settings.memory_compaction_window

    def should_compact(self, message_count: int) -> bool:
        """Compaction runs every `interval` persisted messages."""
        return message_count > 0 and message_count % self.interval == 0

    async def compact(self, conversation: Conversation) -> LongTermMemory:
        """
        Summarize the conversation and rename it.

        Reads the earliest `window` messages (a fixed early window, not a
        sliding one), asks for a summary, then asks for a title built from
        that summary. Both calls are sequential because the title depends
        on the summary.

        Args:
            conversation: Conversation to compact

        Returns:
            The new long-term memory
        """
        messages = await self.store.earliest_messages(conversation.id, self.window)

        summary = await self.gateway.complete(
            [{"role": "system", "content": SUMMARY_INSTRUCTION}, *as_turns(messages)]
        )
        summary = summary.strip()

        raw_title = await self.gateway.complete(
            [{"role": "user", "content": TITLE_PROMPT.format(summary=summary)}]
        )
        title = clean_title(raw_title)

        memory = LongTermMemory(summary=summary, last_updated_at=utcnow())
        conversation.long_term_memory = memory
        if title:
            conversation.title = title
        await self.store.save_conversation(conversation)

        logger.info(
            "Compacted conversation %s from %d messages, title=%r",
            conversation.id, len(messages), conversation.title,
        )
        return memory

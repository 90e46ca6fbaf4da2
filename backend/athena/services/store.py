"""Document store adapter over the async SQLAlchemy session."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from athena.db.models import Conversation, MentorConversation, MentorMessage, Message
from athena.errors import StoreOperationFailed

logger = logging.getLogger(__name__)

# JSON columns are mutated in place, so they must be flagged before each save
_STATE_COLUMNS = ("long_term_memory", "study_state", "competitive_state", "exam_state")


class ConversationStore:
    """
    Create/find/update/count over one conversation kind and its messages.

    Every write commits on its own; nothing spans a transaction across a
    turn. Any database error surfaces as StoreOperationFailed.
    """

    conversation_model: type = Conversation
    message_model: type = Message

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self, record: Any) -> None:
        try:
            await self.db.commit()
            await self.db.refresh(record)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreOperationFailed(f"write failed for {type(record).__name__}") from e

    async def _fetch(self, stmt) -> list:
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreOperationFailed("read failed") from e
        return list(result.scalars().all())

    # -------------------------------------------------------------------------
    # Conversations
    # -------------------------------------------------------------------------

    async def create_conversation(self, **fields: Any):
        record = self.conversation_model(**fields)
        self.db.add(record)
        await self._commit(record)
        logger.info("Created %s %s", self.conversation_model.__name__, record.id)
        return record

    async def get_conversation(self, conversation_id: UUID):
        stmt = select(self.conversation_model).where(
            self.conversation_model.id == conversation_id
        )
        rows = await self._fetch(stmt)
        return rows[0] if rows else None

    async def save_conversation(self, record) -> None:
        for column in _STATE_COLUMNS:
            if hasattr(record, column):
                flag_modified(record, column)
        await self._commit(record)

    async def list_conversations(self, skip: int = 0, limit: int = 50) -> list:
        stmt = (
            select(self.conversation_model)
            .order_by(self.conversation_model.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return await self._fetch(stmt)

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    async def add_message(self, conversation_id: UUID, role: str, content: str):
        """
        Append a message at the next position of its conversation.

        The position is computed inside the INSERT; the unique
        (conversation_id, position) constraint rejects a concurrent duplicate.
        """
        next_position = (
            select(func.coalesce(func.max(self.message_model.position), 0) + 1)
            .where(self.message_model.conversation_id == conversation_id)
            .correlate(None)
            .scalar_subquery()
        )
        message = self.message_model(
            conversation_id=conversation_id,
            role=role,
            content=content,
            position=next_position,
        )
        self.db.add(message)
        await self._commit(message)
        return message

    async def list_messages(self, conversation_id: UUID) -> list:
        """Full history, oldest first."""
        stmt = (
            select(self.message_model)
            .where(self.message_model.conversation_id == conversation_id)
            .order_by(self.message_model.position.asc())
        )
        return await self._fetch(stmt)

    async def earliest_messages(self, conversation_id: UUID, limit: int) -> list:
        """The first `limit` messages, oldest first."""
        stmt = (
            select(self.message_model)
            .where(self.message_model.conversation_id == conversation_id)
            .order_by(self.message_model.position.asc())
            .limit(limit)
        )
        return await self._fetch(stmt)

    async def recent_messages(self, conversation_id: UUID, limit: int) -> list:
        """The last `limit` messages, returned oldest first."""
        stmt = (
            select(self.message_model)
            .where(self.message_model.conversation_id == conversation_id)
            .order_by(self.message_model.position.desc())
            .limit(limit)
        )
        rows = await self._fetch(stmt)
        rows.reverse()
        return rows

    async def count_messages(self, conversation_id: UUID) -> int:
        stmt = select(func.count()).select_from(self.message_model).where(
            self.message_model.conversation_id == conversation_id
        )
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreOperationFailed("count failed") from e
        return result.scalar() or 0


class MentorStore(ConversationStore):
    """Same adapter bound to the mentor tables."""

    conversation_model = MentorConversation
    message_model = MentorMessage


def as_turns(messages: list) -> list[dict]:
    """Convert message rows into role-tagged turns for the gateway."""
    return [{"role": m.role, "content": m.content} for m in messages]

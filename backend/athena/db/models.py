"""
SQLAlchemy 2.0 Models for Athena.

Uses modern declarative syntax with Mapped[] type annotations.
Conversation state structs live in JSON columns (JSONB on PostgreSQL)
and are loaded back as the pydantic models in athena.schemas.state.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel
from sqlalchemy import (
    JSON,
    TIMESTAMP,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from athena.db.base import Base
from athena.schemas.state import (
    CompetitiveState,
    ExamState,
    LongTermMemory,
    StudyState,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PydanticJSON(TypeDecorator):
    """Stores a pydantic model as JSON and returns it as the same model."""

    impl = JSON
    cache_ok = True

    def __init__(self, model: type[BaseModel], *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.model = model

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json")
        return self.model.model_validate(value).model_dump(mode="json")

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return self.model.model_validate(value)


# =============================================================================
# MODELS
# =============================================================================


class Conversation(Base):
    """
    Long-lived tutoring dialogue.

    Owns its embedded per-mode state. Messages reference it by id and are
    queried on demand, never loaded eagerly.
    """

    __tablename__ = "conversations"
    __table_args__ = (Index("idx_conversations_created_at", "created_at"),)

    id: Mapped[UUID] = mapped_column(Uuid(), primary_key=True, default=uuid4)
    mode: Mapped[str] = mapped_column(String(), nullable=False, default="study")
    title: Mapped[str] = mapped_column(String(), nullable=False, default="Study Session")

    long_term_memory: Mapped[LongTermMemory] = mapped_column(
        PydanticJSON(LongTermMemory), nullable=False, default=lambda: LongTermMemory()
    )
    study_state: Mapped[StudyState] = mapped_column(
        PydanticJSON(StudyState), nullable=False, default=lambda: StudyState()
    )
    competitive_state: Mapped[CompetitiveState] = mapped_column(
        PydanticJSON(CompetitiveState), nullable=False, default=lambda: CompetitiveState()
    )
    exam_state: Mapped[ExamState] = mapped_column(
        PydanticJSON(ExamState), nullable=False, default=lambda: ExamState()
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    # Relationships
    messages: Mapped[list["Message"]] = relationship(
        "Message", back_populates="conversation", cascade="all, delete-orphan"
    )


class Message(Base):
    """Append-only message in a conversation. Never updated after insert."""

    __tablename__ = "messages"
    __table_args__ = (
        CheckConstraint("role IN ('user', 'assistant')", name="check_message_role"),
        UniqueConstraint("conversation_id", "position", name="uq_messages_conversation_position"),
    )

    id: Mapped[UUID] = mapped_column(Uuid(), primary_key=True, default=uuid4)
    conversation_id: Mapped[UUID] = mapped_column(
        Uuid(),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(String(), nullable=False)  # 'user' or 'assistant'
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # 1-based order within the conversation; history is replayed by it
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    # Timestamp
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow
    )

    # Relationships
    conversation: Mapped["Conversation"] = relationship(
        "Conversation", back_populates="messages"
    )


class MentorConversation(Base):
    """Mentor-mode dialogue. Stateless apart from its message log."""

    __tablename__ = "mentor_conversations"

    id: Mapped[UUID] = mapped_column(Uuid(), primary_key=True, default=uuid4)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow
    )

    messages: Mapped[list["MentorMessage"]] = relationship(
        "MentorMessage", back_populates="conversation", cascade="all, delete-orphan"
    )


class MentorMessage(Base):
    """Append-only mentor-mode message."""

    __tablename__ = "mentor_messages"
    __table_args__ = (
        CheckConstraint("role IN ('user', 'assistant')", name="check_mentor_message_role"),
        UniqueConstraint("conversation_id", "position", name="uq_mentor_messages_conversation_position"),
    )

    id: Mapped[UUID] = mapped_column(Uuid(), primary_key=True, default=uuid4)
    conversation_id: Mapped[UUID] = mapped_column(
        Uuid(),
        ForeignKey("mentor_conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(String(), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow
    )

    conversation: Mapped["MentorConversation"] = relationship(
        "MentorConversation", back_populates="messages"
    )

"""API routes for browsing stored conversations."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from athena.api.deps import DbSession
from athena.schemas.tutor import ConversationRead, MessageRead
from athena.services import ConversationStore

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.get("", response_model=list[ConversationRead])
async def list_conversations(
    db: DbSession,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
) -> list[ConversationRead]:
    """List conversations, newest first."""
    store = ConversationStore(db)
    conversations = await store.list_conversations(skip=skip, limit=limit)
    return [ConversationRead.model_validate(c) for c in conversations]


@router.get("/{conversation_id}/messages", response_model=list[MessageRead])
async def list_conversation_messages(
    conversation_id: UUID,
    db: DbSession,
) -> list[MessageRead]:
    """Full message history of one conversation, oldest first."""
    store = ConversationStore(db)
    conversation = await store.get_conversation(conversation_id)
    if conversation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")

    messages = await store.list_messages(conversation_id)
    return [MessageRead.model_validate(m) for m in messages]

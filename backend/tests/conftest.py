"""Pytest configuration and fixtures."""

import asyncio
import os

os.environ.setdefault("ANTHROPIC_API_KEY", "test-key")

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from athena.api.deps import get_gateway
from athena.config import Settings, get_settings
from athena.db import models  # noqa: F401 - Import models to register them
from athena.db.base import Base
from athena.db.session import get_db
from athena.main import app
from athena.services.store import ConversationStore, MentorStore


class FakeGateway:
    """Scripted completion gateway that records every call."""

    def __init__(self):
        self.replies: list[str] = []
        self.calls: list[list[dict]] = []
        self.error: Exception | None = None
        # Seconds to yield to the event loop before answering
        self.delay: float = 0

    def queue(self, *replies: str) -> None:
        self.replies.extend(replies)

    async def complete(self, turns: list[dict]) -> str:
        self.calls.append([dict(t) for t in turns])
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.replies:
            return self.replies.pop(0)
        return f"generated reply {len(self.calls)}"


@pytest.fixture
async def engine():
    """In-memory SQLite engine with the full schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(db) -> ConversationStore:
    return ConversationStore(db)


@pytest.fixture
def mentor_store(db) -> MentorStore:
    return MentorStore(db)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def reload(session_factory):
    """Read a conversation back through a fresh session."""

    async def _reload(conversation_id):
        async with session_factory() as session:
            return await ConversationStore(session).get_conversation(conversation_id)

    return _reload


@pytest.fixture
async def client(session_factory, gateway) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()

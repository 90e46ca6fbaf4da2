"""HTTP surface of the tutoring API."""

import asyncio
import json
from collections.abc import AsyncGenerator
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from athena.api.deps import get_gateway
from athena.db.base import Base
from athena.db.session import get_db
from athena.errors import GatewayFailed
from athena.main import app
from athena.schemas.state import StudyPhase, StudyState, StudyUnit, TeachingStep
from athena.services import prompts
from athena.services.store import ConversationStore


async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


async def test_study_session_over_http(client: AsyncClient, gateway):
    gateway.queue(
        "Unit I: Sets\nUnit II: Relations",
        '[{"title": "Sets", "topics": ["Union"]}, {"title": "Relations", "topics": ["Functions"]}]',
    )

    first = await client.post("/ai/chat", json={"userMessage": "hi"})
    assert first.status_code == 200
    body = first.json()
    assert body["reply"] == prompts.STUDY_GREETING
    conversation_id = body["conversationId"]

    async def say(text: str, **extra) -> str:
        response = await client.post(
            "/ai/chat", json={"userMessage": text, "conversationId": conversation_id, **extra}
        )
        assert response.status_code == 200
        assert response.json()["conversationId"] == conversation_id
        return response.json()["reply"]

    assert "Discrete Mathematics" in await say("I want to study Discrete Mathematics")
    reply = await say("FETCH", profile={"academicData": {"degree": "BSc"}})
    assert "Unit I: Sets" in reply
    assert "Sets" in await say("lock syllabus")
    assert (await say("yes")).endswith(prompts.CONTINUE_SUFFIX)

    messages = await client.get(f"/conversations/{conversation_id}/messages")
    assert messages.status_code == 200
    assert len(messages.json()) == 10
    assert messages.json()[0]["role"] == "user"


async def test_empty_message_is_rejected(client: AsyncClient):
    response = await client.post("/ai/chat", json={"userMessage": "   "})

    assert response.status_code == 422


async def test_gateway_failure_hides_the_cause(client: AsyncClient, gateway):
    gateway.error = GatewayFailed("upstream secret detail")

    response = await client.post("/ai/competition", json={"userMessage": "judge me"})

    assert response.status_code == 500
    assert response.json() == {"detail": "Competitive mode failed"}
    assert "secret" not in response.text


async def test_exam_upload_over_multipart(client: AsyncClient, gateway):
    response = await client.post(
        "/ai/exam",
        data={"userMessage": "my syllabus", "subject": "Physics"},
        files={"file": ("syllabus.pdf", b"%PDF-1.4 fake", "application/pdf")},
    )

    assert response.status_code == 200
    assert response.json()["reply"] == prompts.EXAM_UPLOAD_REPLY
    assert gateway.calls == []


async def test_exam_fetch_with_form_details(client: AsyncClient, gateway):
    gateway.queue("Unit I: Mechanics")

    response = await client.post(
        "/ai/exam",
        data={
            "userMessage": "I don't have the syllabus",
            "subject": "Physics",
            "courseType": "Major",
            "profile": json.dumps({"academicData": {"board": "CBSE"}}),
        },
    )

    assert response.status_code == 200
    assert "Unit I: Mechanics" in response.json()["reply"]
    prompt = gateway.calls[0][0]["content"]
    assert "Subject: Physics" in prompt
    assert "Board/University: CBSE" in prompt


async def test_exam_rejects_malformed_profile(client: AsyncClient):
    response = await client.post("/ai/exam", data={"userMessage": "hi", "profile": "not json"})

    assert response.status_code == 422


async def test_mentor_round_trip(client: AsyncClient, gateway):
    first = await client.post("/ai/mentor", json={"userMessage": "I feel stuck"})
    assert first.status_code == 200
    mentor_id = first.json()["mentorConversationId"]

    second = await client.post(
        "/ai/mentor", json={"userMessage": "what now?", "mentorConversationId": mentor_id}
    )

    assert second.json()["mentorConversationId"] == mentor_id
    assert len(gateway.calls[1]) == 4


async def test_assignment_turn(client: AsyncClient, gateway):
    response = await client.post("/ai/assignment", json={"userMessage": "help with my report"})

    assert response.status_code == 200
    assert response.json()["reply"] == "generated reply 1"
    assert "No prior context yet." in gateway.calls[0][0]["content"]


async def test_list_conversations(client: AsyncClient):
    await client.post("/ai/chat", json={"userMessage": "hi"})
    await client.post("/ai/competition", json={"userMessage": "judge me"})

    response = await client.get("/conversations")

    assert response.status_code == 200
    listed = response.json()
    assert [c["title"] for c in listed] == ["Competitive Prep Session", "Study Session"]
    assert [c["mode"] for c in listed] == ["competitive", "study"]
    assert "createdAt" in listed[0]


async def test_messages_of_unknown_conversation(client: AsyncClient):
    response = await client.get(f"/conversations/{uuid4()}/messages")

    assert response.status_code == 404


@pytest.fixture
async def file_session_factory(tmp_path):
    """File-backed database so concurrent requests hold separate connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'athena.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


async def test_concurrent_turns_on_one_conversation_both_advance(file_session_factory, gateway):
    gateway.delay = 0.01
    async with file_session_factory() as session:
        conversation = await ConversationStore(session).create_conversation(
            mode="study",
            study_state=StudyState(
                phase=StudyPhase.TEACHING,
                subject="Physics",
                parsed_units=[StudyUnit(title="Mechanics", topics=["Motion"])],
            ),
        )

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with file_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            body = {"userMessage": "yes", "conversationId": str(conversation.id)}
            first, second = await asyncio.gather(
                client.post("/ai/chat", json=body),
                client.post("/ai/chat", json=body),
            )
    finally:
        app.dependency_overrides.clear()

    assert first.status_code == second.status_code == 200
    assert gateway.calls[0][0]["content"].startswith(prompts.TEACHING_INSTRUCTIONS["DETAIL"])
    assert gateway.calls[1][0]["content"].startswith(prompts.TEACHING_INSTRUCTIONS["ELI5"])
    async with file_session_factory() as session:
        store = ConversationStore(session)
        saved = await store.get_conversation(conversation.id)
        assert saved.study_state.teaching_step is TeachingStep.SHORT
        assert await store.count_messages(conversation.id) == 4

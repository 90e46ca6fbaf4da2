"""Long-term memory compaction."""

import pytest

from athena.errors import GatewayFailed
from athena.services import prompts
from athena.services.memory import MemoryCompactor, clean_title


@pytest.fixture
def compactor(store, gateway, settings) -> MemoryCompactor:
    return MemoryCompactor(store, gateway, settings)


@pytest.mark.parametrize(
    ("count", "expected"),
    [(0, False), (1, False), (14, False), (15, True), (16, False), (30, True), (45, True)],
)
def test_should_compact_every_fifteen_messages(compactor, count, expected):
    assert compactor.should_compact(count) is expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("DSA Stack Report", "DSA Stack Report"),
        ('"Organic Chemistry Lab Notes"', "Organic Chemistry Lab Notes"),
        ("Essay on Climate Policy.\nSecond line ignored", "Essay on Climate Policy"),
        ("one two three four five six seven eight nine ten", "one two three four five six seven eight"),
        ("   ", ""),
    ],
)
def test_clean_title(raw, expected):
    assert clean_title(raw) == expected


async def test_compact_summarizes_earliest_window(compactor, store, gateway, reload):
    conversation = await store.create_conversation(mode="assignment")
    for i in range(15):
        await store.add_message(conversation.id, "user", f"question {i}")
        await store.add_message(conversation.id, "assistant", f"answer {i}")
    gateway.queue("  Student is building a compiler.  ", "Compiler Project")

    memory = await compactor.compact(conversation)

    summary_call, title_call = gateway.calls
    assert summary_call[0] == {"role": "system", "content": prompts.SUMMARY_INSTRUCTION}
    assert len(summary_call) == 1 + 25
    assert summary_call[1]["content"] == "question 0"
    assert summary_call[-1]["content"] == "question 12"
    assert title_call == [
        {"role": "user", "content": prompts.TITLE_PROMPT.format(summary="Student is building a compiler.")}
    ]

    assert memory.summary == "Student is building a compiler."
    saved = await reload(conversation.id)
    assert saved.long_term_memory.summary == "Student is building a compiler."
    assert saved.long_term_memory.last_updated_at is not None
    assert saved.title == "Compiler Project"


async def test_blank_title_keeps_previous(compactor, store, gateway, reload):
    conversation = await store.create_conversation(mode="assignment", title="My Project")
    await store.add_message(conversation.id, "user", "hello")
    gateway.queue("A short summary.", "  ")

    await compactor.compact(conversation)

    saved = await reload(conversation.id)
    assert saved.title == "My Project"
    assert saved.long_term_memory.summary == "A short summary."


async def test_gateway_failure_leaves_memory_untouched(compactor, store, gateway, reload):
    conversation = await store.create_conversation(mode="assignment")
    await store.add_message(conversation.id, "user", "hello")
    gateway.error = GatewayFailed("boom")

    with pytest.raises(GatewayFailed):
        await compactor.compact(conversation)

    saved = await reload(conversation.id)
    assert saved.long_term_memory.summary == ""
    assert saved.long_term_memory.last_updated_at is None

"""Per-conversation turn serialization."""

import asyncio
import gc
from uuid import uuid4

from athena.services.locks import ConversationLocks


async def test_same_key_runs_one_at_a_time():
    locks = ConversationLocks()
    key = uuid4()
    events: list[str] = []

    async def turn(name: str) -> None:
        async with locks.hold(key):
            events.append(f"{name} start")
            await asyncio.sleep(0.01)
            events.append(f"{name} end")

    await asyncio.gather(turn("a"), turn("b"))

    assert events == ["a start", "a end", "b start", "b end"]


async def test_different_keys_interleave():
    locks = ConversationLocks()
    events: list[str] = []

    async def turn(name: str) -> None:
        async with locks.hold(uuid4()):
            events.append(f"{name} start")
            await asyncio.sleep(0.01)
            events.append(f"{name} end")

    await asyncio.gather(turn("a"), turn("b"))

    assert events[:2] == ["a start", "b start"]


async def test_none_key_is_not_locked():
    locks = ConversationLocks()
    events: list[str] = []

    async def turn(name: str) -> None:
        async with locks.hold(None):
            events.append(f"{name} start")
            await asyncio.sleep(0.01)
            events.append(f"{name} end")

    await asyncio.gather(turn("a"), turn("b"))

    assert events[:2] == ["a start", "b start"]
    assert len(locks) == 0


async def test_idle_locks_are_released():
    locks = ConversationLocks()

    async with locks.hold(uuid4()):
        assert len(locks) == 1
    gc.collect()

    assert len(locks) == 0

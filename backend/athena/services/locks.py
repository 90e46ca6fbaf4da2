"""In-process serialization of turns against the same conversation."""

import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager
from weakref import WeakValueDictionary


class ConversationLocks:
    """One asyncio.Lock per conversation key, dropped once nobody holds it."""

    def __init__(self):
        self._locks: WeakValueDictionary[Hashable, asyncio.Lock] = WeakValueDictionary()

    @asynccontextmanager
    async def hold(self, key: Hashable | None) -> AsyncIterator[None]:
        """Run the block while holding the key's lock. A None key is not locked."""
        if key is None:
            yield
            return

        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        async with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)


# Singleton instance
conversation_locks = ConversationLocks()

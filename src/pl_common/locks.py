"""Keyed asyncio locks — serialize work per request / per player within a process.

Cross-process serialization comes from ``SELECT ... FOR UPDATE`` on the same
row inside the locked section; this registry only avoids lock-wait churn on
the database for callers in the same event loop.
"""

import asyncio
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class KeyedLocks:
    def __init__(self, namespace: str) -> None:
        self._namespace = namespace
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._waiters: dict[str, int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks[key]
        self._waiters[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                # Last user of this key: drop it so the registry does not grow forever
                del self._waiters[key]
                self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)

    def __repr__(self) -> str:
        return f"KeyedLocks({self._namespace!r}, keys={len(self._locks)})"

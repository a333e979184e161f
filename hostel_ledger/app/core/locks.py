"""
In-process critical sections keyed by entity.

The ledger serialises authorize/commit/abandon per due period and the
tracker serialises transitions per complaint. Locks are created on demand
and dropped once no coroutine holds a reference to them.
"""

import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import Hashable


class KeyedLockRegistry:
    """Hands out one asyncio.Lock per key."""

    def __init__(self, namespace: str):
        self.namespace = namespace
        self._locks: "weakref.WeakValueDictionary[Hashable, asyncio.Lock]" = weakref.WeakValueDictionary()

    def get(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, key: Hashable):
        """
        Hold the lock for `key` for the duration of the block.

        Usage:
            async with period_locks.hold(period_id):
                ...
        """
        lock = self.get(key)
        async with lock:
            yield lock

    def __repr__(self):
        return f"<KeyedLockRegistry(namespace='{self.namespace}', active={len(self._locks)})>"


period_locks = KeyedLockRegistry("due_period")
complaint_locks = KeyedLockRegistry("complaint")

"""In-process mutual exclusion for study and account mutations.

Row locks (``SELECT ... FOR UPDATE``) protect across processes on
PostgreSQL; these locks cover the single-process case and databases without
row locking. Keys are always acquired in sorted order.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional, Tuple

LockKey = Tuple[str, int]


class StudyLockRegistry:
    """Hands out one ``asyncio.Lock`` per study and per account.

    A key lives only while some caller holds or waits for it; the last one
    out removes it, so the registry stays bounded by the number of in-flight
    operations.
    """

    def __init__(self):
        self._locks: Dict[LockKey, asyncio.Lock] = {}
        self._users: Dict[LockKey, int] = {}

    def _checkout(self, key: LockKey) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._users[key] = self._users.get(key, 0) + 1
        return lock

    def _checkin(self, key: LockKey) -> None:
        remaining = self._users[key] - 1
        if remaining:
            self._users[key] = remaining
        else:
            del self._users[key]
            del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(
        self,
        study_id: Optional[int] = None,
        account_id: Optional[int] = None,
    ) -> AsyncIterator[None]:
        """Hold the locks for the given study and/or account."""
        keys: List[LockKey] = []
        if account_id is not None:
            keys.append(("account", account_id))
        if study_id is not None:
            keys.append(("study", study_id))
        keys.sort()
        locks = [self._checkout(key) for key in keys]

        acquired = []
        try:
            for lock in locks:
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in keys:
                self._checkin(key)


# Global registry shared by the web process and the sweep
study_locks = StudyLockRegistry()

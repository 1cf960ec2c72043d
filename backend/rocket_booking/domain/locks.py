from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator


class LaunchLocks:
    """
    One asyncio.Lock per launch id.

    Admission holds its launch's lock from the availability read until the
    booking is committed, so concurrent admissions for the same launch run
    one after another while different launches proceed independently.
    A lock lives only while someone holds or waits for it.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def _checkout(self, launch_id: str) -> asyncio.Lock:
        self._users[launch_id] = self._users.get(launch_id, 0) + 1
        lock = self._locks.get(launch_id)
        if lock is None:
            lock = self._locks[launch_id] = asyncio.Lock()
        return lock

    def _checkin(self, launch_id: str) -> None:
        remaining = self._users[launch_id] - 1
        if remaining:
            self._users[launch_id] = remaining
        else:
            del self._users[launch_id]
            del self._locks[launch_id]

    @asynccontextmanager
    async def hold(self, *launch_ids: str) -> AsyncIterator[None]:
        # Sorted acquisition keeps multi-launch holders from deadlocking each other.
        ordered = sorted(set(launch_ids))
        locks = [self._checkout(launch_id) for launch_id in ordered]
        try:
            async with AsyncExitStack() as stack:
                for lock in locks:
                    await stack.enter_async_context(lock)
                yield
        finally:
            for launch_id in ordered:
                self._checkin(launch_id)

    def is_held(self, launch_id: str) -> bool:
        lock = self._locks.get(launch_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)

from functools import lru_cache
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from .database import async_session
from .domain.locks import LaunchLocks


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


@lru_cache
def get_launch_locks() -> LaunchLocks:
    """Process-wide admission lock registry."""
    return LaunchLocks()

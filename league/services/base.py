"""
Shared plumbing for the league services.

Services receive the ``async_sessionmaker`` from ``Database`` rather than the
``Database`` itself. Each ``get_session()`` block is one unit of work: it
commits when the block exits cleanly and rolls back otherwise.
``execute_with_retry`` re-runs a whole unit of work, which is how the
confirmation engine recovers from a lost version check.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Awaitable, Callable, Tuple, Type

from sqlalchemy.ext.asyncio import AsyncSession

from league.utils.logger import setup_logger

logger = setup_logger(__name__)

RETRY_BASE_DELAY = 0.1


class BaseService:
    """Session and retry helpers for services built on a session factory."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """One unit of work: commit on success, roll back on any error."""
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def execute_with_retry(
        self,
        func: Callable[[], Awaitable[Any]],
        max_retries: int = 3,
        retry_on: Tuple[Type[BaseException], ...] = (Exception,)
    ) -> Any:
        """
        Await ``func()`` up to ``max_retries`` times.

        Only errors listed in ``retry_on`` trigger another attempt; the last
        one is re-raised. Attempts are spaced 0.1s, 0.2s, 0.4s ... apart.
        """
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        for attempt in range(1, max_retries + 1):
            try:
                return await func()
            except retry_on as e:
                if attempt == max_retries:
                    raise
                name = getattr(func, '__name__', repr(func))
                logger.warning(f"{name} failed on attempt {attempt}/{max_retries}, retrying: {e}")
                await asyncio.sleep(RETRY_BASE_DELAY * 2 ** (attempt - 1))

"""Shared run skeleton for the gather and word pipelines.

A pipeline subclasses BaseOrchestrator and fills in two hooks:

    class WordStatsOrchestrator(BaseOrchestrator):
        async def _run_pipeline(self, guild_id):
            ...  # query, render

        def _log_summary(self, elapsed):
            ...  # print the closing panel

run() makes sure the schema exists first, so both pipelines work on a
database that has never been written to.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from statcat.core.errors import StorageInitError
from statcat.db.engine import get_async_session, get_engine
from statcat.db.models import Base


class BaseOrchestrator(ABC):
    """Owns the engine and session factory for one database URL."""

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url
        self.engine: AsyncEngine = get_engine(database_url)
        self.async_session: async_sessionmaker[AsyncSession] = get_async_session(
            database_url
        )
        self.start_time = 0.0

    async def init_db(self) -> None:
        """Create missing tables; existing ones are left untouched.

        Raises:
            StorageInitError: The database cannot be opened or written
        """
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (SQLAlchemyError, OSError) as e:
            raise StorageInitError(
                f"Unable to set up the database at {self.engine.url!r}: {e}"
            ) from e

    async def run(self, guild_id: int) -> None:
        self.start_time = time.monotonic()
        await self.init_db()
        await self._run_pipeline(guild_id=guild_id)
        self._log_summary(time.monotonic() - self.start_time)

    @abstractmethod
    async def _run_pipeline(self, guild_id: int) -> None:
        ...

    @abstractmethod
    def _log_summary(self, elapsed: float) -> None:
        """Print the closing summary; `elapsed` is the run time in seconds."""
        ...

"""Async engines and session factories, one per database URL.

    engine = get_engine("sqlite+aiosqlite:///statcat.db")
    Session = get_async_session("sqlite+aiosqlite:///statcat.db")
    async with Session() as session:
        ...

Call dispose_engines() before the event loop closes.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

# Seconds a SQLite connection waits on a locked database before failing
SQLITE_BUSY_TIMEOUT = 30

_engine_cache: dict[str, AsyncEngine] = {}


def _engine_options(database_url: str) -> dict[str, Any]:
    if make_url(database_url).get_backend_name() == "sqlite":
        # Concurrent channel workers read while another one commits
        return {"connect_args": {"timeout": SQLITE_BUSY_TIMEOUT}}
    return {"pool_pre_ping": True}


def get_engine(database_url: str | None = None) -> AsyncEngine:
    """Return the engine for `database_url`, creating it on first use.

    Without a URL, the one from the cached application settings is used.
    """
    if database_url is None:
        from statcat.config.settings import get_settings

        database_url = get_settings().database_url

    engine = _engine_cache.get(database_url)
    if engine is None:
        engine = create_async_engine(database_url, **_engine_options(database_url))
        _engine_cache[database_url] = engine
    return engine


@lru_cache(maxsize=8)
def get_async_session(
    database_url: str | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to get_engine(database_url).

    Objects stay usable after commit; results are handed to loggers and
    callers once the session is gone.
    """
    return async_sessionmaker(bind=get_engine(database_url), expire_on_commit=False)


async def dispose_engines() -> None:
    """Close every pooled connection and forget all engines."""
    engines = list(_engine_cache.values())
    _engine_cache.clear()
    get_async_session.cache_clear()
    for engine in engines:
        await engine.dispose()

"""Shared fixtures for statcat tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx
import pytest
import pytest_asyncio

from statcat.db.engine import dispose_engines, get_async_session, get_engine
from statcat.db.models import Base

GUILD_ID = 123456789
BASE_TIMESTAMP = datetime(2024, 1, 10, 12, 0, 0, tzinfo=timezone.utc)


def make_api_message(
    msg_id: int,
    content: str = "hello world",
    timestamp: datetime | None = None,
    author_id: int = 42,
    username: str = "someone",
    bot: bool = False,
) -> dict[str, Any]:
    """Build a message object shaped like Discord's channel messages payload."""
    ts = timestamp or BASE_TIMESTAMP
    return {
        "id": str(msg_id),
        "content": content,
        "timestamp": ts.isoformat(),
        "author": {"id": str(author_id), "username": username, "bot": bot},
    }


def make_history(
    count: int, first_id: int = 1000, content: str = "hello world"
) -> list[dict[str, Any]]:
    """`count` messages with consecutive ids, one minute apart."""
    return [
        make_api_message(
            first_id + i,
            content=content,
            timestamp=BASE_TIMESTAMP + timedelta(minutes=i),
        )
        for i in range(count)
    ]


class FakeDiscordClient:
    """In-memory stand-in for DiscordClient serving fixed channel histories.

    Pages follow Discord's contract: newest first, strictly older than
    `before`, at most `limit` long. `fail_on_call` maps a channel to the
    1-based request number that raises a transport error.
    """

    def __init__(
        self,
        histories: dict[int, list[dict[str, Any]]],
        channels: list[dict[str, Any]] | None = None,
        fail_on_call: dict[int, int] | None = None,
    ) -> None:
        self.histories = {
            cid: sorted(msgs, key=lambda m: int(m["id"]), reverse=True)
            for cid, msgs in histories.items()
        }
        self.channels = (
            channels
            if channels is not None
            else [
                {"id": str(cid), "name": f"channel-{cid}", "type": 0}
                for cid in histories
            ]
        )
        self.fail_on_call = fail_on_call or {}
        self.calls: list[tuple[int, int | None, int]] = []
        self.on_call: Callable[[int], None] | None = None

    def calls_for(self, channel_id: int) -> int:
        return sum(1 for c in self.calls if c[0] == channel_id)

    def _record(self, channel_id: int, before: int | None, limit: int) -> None:
        self.calls.append((channel_id, before, limit))
        if self.on_call is not None:
            self.on_call(channel_id)
        if self.fail_on_call.get(channel_id) == self.calls_for(channel_id):
            raise httpx.ConnectError("connection reset")

    async def list_channels(self, guild_id: int) -> list[dict[str, Any]]:
        return self.channels

    async def get_newest_message(self, channel_id: int) -> dict[str, Any] | None:
        self._record(channel_id, None, 1)
        history = self.histories.get(channel_id, [])
        return history[0] if history else None

    async def get_messages_before(
        self, channel_id: int, before: int, limit: int = 100
    ) -> list[dict[str, Any]]:
        self._record(channel_id, before, limit)
        history = self.histories.get(channel_id, [])
        return [m for m in history if int(m["id"]) < before][:limit]


@pytest.fixture
def guild_id() -> int:
    """Sample guild ID."""
    return GUILD_ID


@pytest.fixture
def database_url(tmp_path) -> str:
    """SQLite database file private to the test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'statcat.db'}"


@pytest_asyncio.fixture
async def session_factory(database_url):
    """Session factory bound to a freshly created schema."""
    engine = get_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield get_async_session(database_url)
    await dispose_engines()


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s

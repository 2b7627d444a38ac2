"""Message repository for bulk database operations.

Handles idempotent message inserts, per-channel counts and the weekly
word-occurrence aggregation.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, NamedTuple

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from statcat.db.models import Message
from statcat.ingest.mappers import map_messages
from statcat.utils.time import iso_week_label

# 8 bound parameters per row keeps each statement under SQLite's
# 999-variable limit on older builds.
INSERT_CHUNK_SIZE = 100


class WeeklyCount(NamedTuple):
    """Number of matching messages in one ISO week ("YYYY-WW")."""

    week: str
    count: int


def _insert_ignore_duplicates(session: AsyncSession, values: list[dict[str, Any]]):
    """Build INSERT ... ON CONFLICT (message_id) DO NOTHING for the session's dialect."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(Message)
    elif dialect == "sqlite":
        stmt = sqlite_insert(Message)
    else:
        raise NotImplementedError(f"Unsupported database dialect: {dialect}")
    return stmt.values(values).on_conflict_do_nothing(index_elements=["message_id"])


async def get_channel_message_count(session: AsyncSession, channel_id: int) -> int:
    """Get the count of messages in a channel.

    Args:
        session: Database session
        channel_id: The channel ID to count messages for

    Returns:
        Number of messages in the channel
    """
    stmt = (
        select(func.count())
        .select_from(Message)
        .where(Message.channel_id == channel_id)
    )
    result = await session.execute(stmt)
    return result.scalar() or 0


async def bulk_insert_messages(session: AsyncSession, messages: list[Message]) -> int:
    """Bulk insert messages (on conflict do nothing).

    Does not commit.

    Args:
        session: Database session
        messages: List of Message ORM instances to insert

    Returns:
        Number of rows actually inserted (already-stored ids are not counted)
    """
    if not messages:
        return 0

    values = [
        {
            "message_id": m.message_id,
            "channel_id": m.channel_id,
            "guild_id": m.guild_id,
            "author_id": m.author_id,
            "author_name": m.author_name,
            "bot": m.bot,
            "timestamp": m.timestamp,
            "content": m.content,
        }
        for m in messages
    ]

    inserted = 0
    for start in range(0, len(values), INSERT_CHUNK_SIZE):
        chunk = values[start : start + INSERT_CHUNK_SIZE]
        result = await session.execute(_insert_ignore_duplicates(session, chunk))
        inserted += max(result.rowcount or 0, 0)
    return inserted


async def persist_messages_batch(
    session: AsyncSession,
    messages_data: list[dict],
    channel_id: int,
    guild_id: int,
) -> int:
    """Map raw message dicts and insert them. Does not commit.

    Args:
        session: Database session
        messages_data: Raw message dicts from Discord API
        channel_id: Channel the messages were fetched from
        guild_id: Guild ID for the messages

    Returns:
        Number of novel messages inserted
    """
    if not messages_data:
        return 0

    messages = map_messages(messages_data, channel_id=channel_id, guild_id=guild_id)
    return await bulk_insert_messages(session, messages)


async def weekly_word_counts(
    session: AsyncSession,
    word: str,
    guild_id: int | None = None,
) -> list[WeeklyCount]:
    """Count messages containing `word`, grouped by ISO week.

    Matching is case-sensitive substring containment. LIKE only narrows the
    rows read (its case sensitivity differs between backends); the exact
    check happens here.

    Args:
        session: Database session
        word: Substring to search for
        guild_id: Restrict to one guild (optional)

    Returns:
        One WeeklyCount per week with at least one match, ordered by week
    """
    stmt = select(Message.timestamp, Message.content).where(
        Message.content.contains(word, autoescape=True)
    )
    if guild_id is not None:
        stmt = stmt.where(Message.guild_id == guild_id)

    result = await session.execute(stmt)

    counts: Counter[str] = Counter()
    for timestamp, content in result:
        if word in content:
            counts[iso_week_label(timestamp)] += 1

    return [WeeklyCount(week, count) for week, count in sorted(counts.items())]

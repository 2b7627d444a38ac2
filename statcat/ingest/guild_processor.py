"""Guild processing logic.

Walks the channels of one guild: skips channels that are already done,
backfills the rest and commits each channel's messages as one transaction.
A failure in one channel never stops the others; only the channel directory
lookup is fatal.
"""

from __future__ import annotations

import asyncio
from contextlib import nullcontext
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from statcat.core.errors import StorageWriteError
from statcat.db.repositories import persist_messages_batch
from statcat.ingest.backfill import BackfillResult, BackfillStatus, backfill_channel
from statcat.ingest.channel_fetcher import fetch_guild_channels
from statcat.ingest.logger import logger
from statcat.ingest.mappers import MALFORMED_PAYLOAD_ERRORS
from statcat.ingest.mappers.channel import ChannelEntry, channel_type_name
from statcat.ingest.state import CompletionMode, IngestStateManager
from statcat.utils.snowflake import snowflake_to_datetime

if TYPE_CHECKING:
    from statcat.config.settings import AppSettings
    from statcat.ingest.client import DiscordClient


@dataclass(frozen=True)
class GatherOptions:
    """Policy knobs for a gather run."""

    batch_size: int = 100
    # "discard": a failed or cancelled walk writes nothing.
    # "persist": its partial messages are committed with complete=False.
    partial_results: str = "discard"
    completion_mode: CompletionMode = "watermark"
    concurrency: int = 1

    @classmethod
    def from_settings(cls, settings: "AppSettings") -> "GatherOptions":
        return cls(
            batch_size=settings.batch_size,
            partial_results=settings.partial_results,
            completion_mode=settings.completion_mode,
            concurrency=settings.concurrency,
        )


class ChannelStatus(str, Enum):
    INGESTED = "ingested"
    EMPTY = "empty"
    SKIPPED = "skipped"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class ChannelProcessResult:
    """Result of processing a channel."""

    channel_id: int
    name: str
    status: ChannelStatus
    messages_ingested: int = 0
    error: str | None = None


@dataclass
class GuildProcessResult:
    """Result of processing a guild."""

    channels: list[ChannelProcessResult] = field(default_factory=list)
    cancelled: bool = False

    def _count(self, status: ChannelStatus) -> int:
        return sum(1 for c in self.channels if c.status is status)

    @property
    def has_cancelled_channel(self) -> bool:
        return self._count(ChannelStatus.CANCELLED) > 0

    @property
    def channels_processed(self) -> int:
        return self._count(ChannelStatus.INGESTED)

    @property
    def channels_skipped(self) -> int:
        return self._count(ChannelStatus.SKIPPED)

    @property
    def channels_empty(self) -> int:
        return self._count(ChannelStatus.EMPTY)

    @property
    def channels_failed(self) -> int:
        return self._count(ChannelStatus.FAILED)

    @property
    def messages_ingested(self) -> int:
        return sum(c.messages_ingested for c in self.channels)


async def commit_channel_batch(
    session: AsyncSession,
    channel_id: int,
    guild_id: int,
    messages_data: list[dict[str, Any]],
    *,
    complete: bool,
) -> int:
    """Store a channel's messages and its checkpoint in one transaction.

    Duplicate message ids are ignored. On any database error, or a message
    payload that cannot be mapped, nothing from the batch is kept.

    Returns:
        Number of novel messages stored

    Raises:
        StorageWriteError: If the batch was rolled back
    """
    try:
        ids = [int(m["id"]) for m in messages_data]
        inserted = await persist_messages_batch(
            session, messages_data, channel_id=channel_id, guild_id=guild_id
        )
        await IngestStateManager(session).record_batch(
            channel_id=channel_id,
            guild_id=guild_id,
            oldest_id=min(ids) if ids else None,
            newest_id=max(ids) if ids else None,
            complete=complete,
        )
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        raise StorageWriteError(channel_id, str(e)) from e
    except MALFORMED_PAYLOAD_ERRORS as e:
        await session.rollback()
        raise StorageWriteError(channel_id, f"malformed message payload: {e!r}") from e
    return inserted


def _should_commit(
    backfill: BackfillResult, has_checkpoint: bool, options: GatherOptions
) -> bool:
    if backfill.is_complete:
        # An empty channel with no prior checkpoint stays unmarked
        return bool(backfill.messages) or has_checkpoint
    return options.partial_results == "persist" and bool(backfill.messages)


async def process_channel(
    client: "DiscordClient",
    session_factory: async_sessionmaker[AsyncSession],
    channel: ChannelEntry,
    guild_id: int,
    options: GatherOptions,
    *,
    cancel_event: asyncio.Event | None = None,
    commit_lock: asyncio.Lock | None = None,
) -> ChannelProcessResult:
    """Process a single channel: check completion, backfill, commit.

    Args:
        client: Discord client
        session_factory: Creates the session used for this channel
        channel: Channel to process
        guild_id: Guild ID
        options: Gather policy
        cancel_event: Cooperative cancellation signal
        commit_lock: Serializes commits when channels run concurrently

    Returns:
        Processing result with status and message count
    """
    result = ChannelProcessResult(
        channel_id=channel.channel_id, name=channel.name, status=ChannelStatus.SKIPPED
    )

    async with session_factory() as session:
        state = IngestStateManager(session)
        if await state.is_channel_done(channel.channel_id, options.completion_mode):
            logger.debug(f"{channel.name}: already gathered, skipping")
            return result

        cursor = None
        if options.completion_mode == "watermark":
            cursor = await state.resume_cursor(channel.channel_id)
        has_checkpoint = await state.get_checkpoint(channel.channel_id) is not None
        # End the read transaction before the (long) network walk
        await session.rollback()

        with logger.block(channel.name) as block:
            block.field("channel ID", channel.channel_id)
            block.field("channel type", channel_type_name(channel.type))
            if cursor is not None:
                block.field("mode", f"resume before {cursor}", color="yellow")
            else:
                block.field("mode", "backfill", color="magenta")

            def _on_progress(count: int, oldest_id: int) -> None:
                oldest_date = snowflake_to_datetime(oldest_id).strftime("%Y-%m-%d")
                logger.batch_progress(count, oldest_date=oldest_date)

            backfill = await backfill_channel(
                client,
                channel.channel_id,
                batch_size=options.batch_size,
                before=cursor,
                on_progress=_on_progress,
                cancel_event=cancel_event,
            )

            if _should_commit(backfill, has_checkpoint, options):
                try:
                    async with commit_lock or nullcontext():
                        inserted = await commit_channel_batch(
                            session,
                            channel.channel_id,
                            guild_id,
                            backfill.messages,
                            complete=backfill.is_complete,
                        )
                except StorageWriteError as e:
                    result.status = ChannelStatus.FAILED
                    result.error = str(e)
                    block.result(f"not stored: {e.reason}", success=False)
                    logger.error(str(e))
                    return result
                result.messages_ingested = inserted

            if backfill.status is BackfillStatus.EXHAUSTED:
                if not backfill.messages and not has_checkpoint:
                    result.status = ChannelStatus.EMPTY
                    block.empty()
                else:
                    result.status = ChannelStatus.INGESTED
                    block.result(
                        f"got {backfill.messages_count:,} messages "
                        f"({result.messages_ingested:,} new)"
                    )
                return result

            kept = (
                f"kept {result.messages_ingested:,} partial messages"
                if result.messages_ingested
                else f"discarded {backfill.messages_count:,} partial messages"
            )
            if backfill.status is BackfillStatus.CANCELLED:
                result.status = ChannelStatus.CANCELLED
                block.result(f"cancelled, {kept}", success=False)
            else:
                result.status = ChannelStatus.FAILED
                result.error = str(backfill.error)
                block.result(f"fetch failed, {kept}", success=False)

    return result


async def process_guild(
    client: "DiscordClient",
    session_factory: async_sessionmaker[AsyncSession],
    guild_id: int,
    options: GatherOptions | None = None,
    *,
    cancel_event: asyncio.Event | None = None,
) -> GuildProcessResult:
    """Gather every message channel of a guild.

    Args:
        client: Discord client
        session_factory: Session factory for the archive database
        guild_id: Guild ID to process
        options: Gather policy (defaults when omitted)
        cancel_event: Stops the run between channels and between pages

    Returns:
        Processing result with per-channel outcomes

    Raises:
        DirectoryLookupError: If the guild's channels cannot be listed
    """
    options = options or GatherOptions()
    result = GuildProcessResult()

    channels = await fetch_guild_channels(client, guild_id)
    logger.guild_start(guild_id, len(channels))

    if options.concurrency <= 1:
        for index, channel in enumerate(channels):
            if cancel_event is not None and cancel_event.is_set():
                result.cancelled = True
                logger.cancelled(len(channels) - index)
                break
            result.channels.append(
                await process_channel(
                    client,
                    session_factory,
                    channel,
                    guild_id,
                    options,
                    cancel_event=cancel_event,
                )
            )
        result.cancelled = result.cancelled or result.has_cancelled_channel
        return result

    semaphore = asyncio.Semaphore(options.concurrency)
    commit_lock = asyncio.Lock()

    async def _worker(channel: ChannelEntry) -> ChannelProcessResult | None:
        async with semaphore:
            if cancel_event is not None and cancel_event.is_set():
                return None
            # Completion is checked inside process_channel, after the
            # semaphore is held
            return await process_channel(
                client,
                session_factory,
                channel,
                guild_id,
                options,
                cancel_event=cancel_event,
                commit_lock=commit_lock,
            )

    outcomes = await asyncio.gather(*(_worker(c) for c in channels))
    result.channels = [o for o in outcomes if o is not None]
    if len(result.channels) < len(channels):
        result.cancelled = True
        logger.cancelled(len(channels) - len(result.channels))
    result.cancelled = result.cancelled or result.has_cancelled_channel
    return result

"""Per-channel gather progress.

Each channel that ever had a batch committed owns one IngestCheckpoint row.
The row is written in the same transaction as the batch, so its bounds
always describe messages that are really stored.
"""

from __future__ import annotations

from typing import Literal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from statcat.db.base import utcnow
from statcat.db.models import IngestCheckpoint
from statcat.db.repositories import get_channel_message_count

CompletionMode = Literal["watermark", "any_message"]


def _lowest(current: int | None, candidate: int | None) -> int | None:
    if candidate is None:
        return current
    return candidate if current is None else min(current, candidate)


def _highest(current: int | None, candidate: int | None) -> int | None:
    if candidate is None:
        return current
    return candidate if current is None else max(current, candidate)


class IngestStateManager:
    """Reads and updates checkpoints through the caller's session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_checkpoint(self, channel_id: int) -> IngestCheckpoint | None:
        stmt = select(IngestCheckpoint).where(IngestCheckpoint.channel_id == channel_id)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def create_or_get_checkpoint(
        self, channel_id: int, guild_id: int
    ) -> IngestCheckpoint:
        existing = await self.get_checkpoint(channel_id)
        if existing is not None:
            return existing

        checkpoint = IngestCheckpoint(
            channel_id=channel_id, guild_id=guild_id, backfill_complete=False
        )
        self.session.add(checkpoint)
        await self.session.flush()
        return checkpoint

    async def record_batch(
        self,
        channel_id: int,
        guild_id: int,
        oldest_id: int | None,
        newest_id: int | None,
        complete: bool,
    ) -> IngestCheckpoint:
        """Fold a stored batch into the channel's checkpoint.

        The id bounds only ever widen and `backfill_complete` never goes back
        to False. Flushes but does not commit; the caller commits together
        with the messages.
        """
        checkpoint = await self.create_or_get_checkpoint(channel_id, guild_id)
        checkpoint.oldest_message_id = _lowest(checkpoint.oldest_message_id, oldest_id)
        checkpoint.newest_message_id = _highest(checkpoint.newest_message_id, newest_id)
        checkpoint.backfill_complete = checkpoint.backfill_complete or complete
        checkpoint.last_synced_at = utcnow()
        await self.session.flush()
        return checkpoint

    async def is_channel_done(
        self, channel_id: int, mode: CompletionMode = "watermark"
    ) -> bool:
        """Whether gather can skip this channel.

        watermark: a previous walk reached the first message of the channel.
        any_message: at least one of its messages is stored, even if an
        earlier run stopped part-way.
        """
        if mode == "any_message":
            return await get_channel_message_count(self.session, channel_id) > 0

        checkpoint = await self.get_checkpoint(channel_id)
        return checkpoint is not None and checkpoint.backfill_complete

    async def resume_cursor(self, channel_id: int) -> int | None:
        """Oldest stored id of an unfinished channel; the walk continues below it."""
        checkpoint = await self.get_checkpoint(channel_id)
        if checkpoint is None or checkpoint.backfill_complete:
            return None
        return checkpoint.oldest_message_id

"""Per-channel gather checkpoint.

Each channel that has had at least one batch committed has exactly one row that
records the id range already stored and whether the backward walk has
reached the first message of the channel. The row is written in the same
transaction as the messages it describes, so a failed or cancelled run can
resume from oldest_message_id.
"""

from datetime import datetime

from sqlalchemy import Boolean, Index
from sqlalchemy.orm import Mapped, mapped_column

from statcat.db.base import Base, Snowflake, TZDateTime, utcnow


class IngestCheckpoint(Base):
    """
    Gather progress for one channel.

    Lifecycle:
    - Created when the first batch of messages is committed for a channel
    - Bounds widen on every commit; they never shrink
    - backfill_complete=True once the backward walk ran out of messages;
      it never reverts to False
    """

    __tablename__ = "ingest_checkpoints"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------

    # No FK: statcat does not store channel rows.
    channel_id: Mapped[int] = mapped_column(
        Snowflake, primary_key=True, autoincrement=False
    )

    guild_id: Mapped[int] = mapped_column(Snowflake, nullable=False)

    # -------------------------------------------------------------------------
    # Backfill Progress
    # -------------------------------------------------------------------------

    # Oldest message ID stored for this channel. A resumed backfill fetches
    # messages with `before=oldest_message_id`.
    oldest_message_id: Mapped[int | None] = mapped_column(Snowflake, nullable=True)

    # Newest message ID stored for this channel.
    newest_message_id: Mapped[int | None] = mapped_column(Snowflake, nullable=True)

    # True = the API returned nothing older than oldest_message_id.
    backfill_complete: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    # -------------------------------------------------------------------------
    # Sync Metadata
    # -------------------------------------------------------------------------

    last_synced_at: Mapped[datetime] = mapped_column(
        TZDateTime, nullable=False, default=utcnow
    )

    created_at: Mapped[datetime] = mapped_column(
        TZDateTime, nullable=False, default=utcnow
    )

    __table_args__ = (Index("ix_ingest_checkpoints_guild_id", "guild_id"),)

    def __repr__(self) -> str:
        return (
            f"<IngestCheckpoint(channel_id={self.channel_id}, "
            f"backfill_complete={self.backfill_complete})>"
        )

"""Discord Message ORM model.

Messages are APPEND-ONLY: once ingested they are never updated or deleted.
Re-ingesting a message that is already stored is a silent no-op.

Design principles:
- message_id (Discord snowflake) is the only identity
- channel_id and guild_id are soft references (no FK); statcat does not
  archive the channel or guild objects themselves
- Author fields are denormalized onto the message row
"""

from datetime import datetime

from sqlalchemy import Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from statcat.db.base import Base, Snowflake, TZDateTime


class Message(Base):
    """
    Discord Message entity.

    `author_name` is a POINT-IN-TIME SNAPSHOT of the author's username taken
    when the message was fetched. It is never refreshed, so two messages from
    the same author_id may carry different names. Do not treat it as a live
    reference to the user.
    """

    __tablename__ = "messages"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------

    # Discord snowflake ID. Globally unique and increasing with time, so
    # ordering by message_id within a channel is chronological.
    message_id: Mapped[int] = mapped_column(
        Snowflake, primary_key=True, autoincrement=False
    )

    # -------------------------------------------------------------------------
    # References (soft)
    # -------------------------------------------------------------------------

    channel_id: Mapped[int] = mapped_column(Snowflake, nullable=False)
    guild_id: Mapped[int] = mapped_column(Snowflake, nullable=False)

    # -------------------------------------------------------------------------
    # Author snapshot
    # -------------------------------------------------------------------------

    author_id: Mapped[int] = mapped_column(Snowflake, nullable=False)

    # String(128) to handle multi-byte usernames.
    author_name: Mapped[str] = mapped_column(String(128), nullable=False)

    bot: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # -------------------------------------------------------------------------
    # Content
    # -------------------------------------------------------------------------

    # The `timestamp` field from the Discord API, truncated to whole seconds.
    timestamp: Mapped[datetime] = mapped_column(TZDateTime, nullable=False)

    # Empty string for embed-only or attachment-only messages.
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # -------------------------------------------------------------------------
    # Indexes
    # -------------------------------------------------------------------------

    __table_args__ = (
        # Completion checks count messages per channel
        Index("ix_messages_channel_id", "channel_id"),
        # Word statistics filter by guild
        Index("ix_messages_guild_id_timestamp", "guild_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return (
            f"<Message(message_id={self.message_id}, "
            f"channel_id={self.channel_id}, author={self.author_name!r})>"
        )

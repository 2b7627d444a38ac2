"""Repository layer for database operations.

Provides clean separation between data access and business logic.
"""

from statcat.db.repositories.message_repository import (
    WeeklyCount,
    bulk_insert_messages,
    get_channel_message_count,
    persist_messages_batch,
    weekly_word_counts,
)

__all__ = [
    "WeeklyCount",
    "bulk_insert_messages",
    "get_channel_message_count",
    "persist_messages_batch",
    "weekly_word_counts",
]

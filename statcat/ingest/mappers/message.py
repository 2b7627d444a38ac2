"""Message API JSON to ORM mapper."""

from __future__ import annotations

from typing import Any

from statcat.db.models import Message
from statcat.utils.time import parse_iso8601

# What mapping a malformed payload (missing key, null or non-numeric field)
# can raise
MALFORMED_PAYLOAD_ERRORS = (KeyError, TypeError, ValueError)


def _sanitize_null_bytes(value: str) -> str:
    """Remove NULL bytes (0x00), which PostgreSQL text columns reject."""
    return value.replace("\x00", "")


def map_message(
    data: dict[str, Any], channel_id: int | None = None, guild_id: int | None = None
) -> Message:
    """Convert Discord API message JSON to Message ORM instance.

    The author's username and bot flag are copied onto the row as they are
    at fetch time.

    Args:
        data: Raw message object from Discord API
        channel_id: Channel ID to use if not in the payload
        guild_id: Guild ID (message payloads from the channel endpoint omit it)

    Returns:
        Message ORM instance (not yet added to session)
    """
    author = data["author"]

    msg_channel_id = channel_id
    if data.get("channel_id"):
        msg_channel_id = int(data["channel_id"])

    msg_guild_id = guild_id
    if data.get("guild_id"):
        msg_guild_id = int(data["guild_id"])

    timestamp = parse_iso8601(data["timestamp"])
    if timestamp is None:
        raise ValueError(f"Message {data['id']} has no timestamp")

    return Message(
        message_id=int(data["id"]),
        channel_id=msg_channel_id,
        guild_id=msg_guild_id,
        author_id=int(author["id"]),
        author_name=_sanitize_null_bytes(author.get("username") or ""),
        bot=bool(author.get("bot", False)),
        # Stored at second resolution
        timestamp=timestamp.replace(microsecond=0),
        content=_sanitize_null_bytes(data.get("content") or ""),
    )


def map_messages(
    data_list: list[dict[str, Any]],
    channel_id: int | None = None,
    guild_id: int | None = None,
) -> list[Message]:
    """Convert a list of message API responses to ORM instances."""
    return [map_message(data, channel_id, guild_id) for data in data_list]

"""Mappers for converting Discord API JSON to statcat types."""

from statcat.ingest.mappers.channel import ChannelEntry, map_channel_entry
from statcat.ingest.mappers.message import (
    MALFORMED_PAYLOAD_ERRORS,
    map_message,
    map_messages,
)

__all__ = [
    "MALFORMED_PAYLOAD_ERRORS",
    "ChannelEntry",
    "map_channel_entry",
    "map_message",
    "map_messages",
]

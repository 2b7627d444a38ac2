"""Channel API JSON to directory entries.

Only the channel types a guild's channel list can contain are named here;
threads and DMs never show up in that list.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

CHANNEL_TYPE_TEXT = 0
CHANNEL_TYPE_VOICE = 2
CHANNEL_TYPE_CATEGORY = 4
CHANNEL_TYPE_ANNOUNCEMENT = 5
CHANNEL_TYPE_STAGE = 13
CHANNEL_TYPE_DIRECTORY = 14
CHANNEL_TYPE_FORUM = 15
CHANNEL_TYPE_MEDIA = 16

_TYPE_NAMES = {
    CHANNEL_TYPE_TEXT: "text",
    CHANNEL_TYPE_VOICE: "voice",
    CHANNEL_TYPE_CATEGORY: "category",
    CHANNEL_TYPE_ANNOUNCEMENT: "announcement",
    CHANNEL_TYPE_STAGE: "stage",
    CHANNEL_TYPE_DIRECTORY: "directory",
    CHANNEL_TYPE_FORUM: "forum",
    CHANNEL_TYPE_MEDIA: "media",
}

# Voice and stage channels carry a text chat of their own. Forum and media
# channels only hold threads.
MESSAGE_CHANNEL_TYPES = frozenset(
    {
        CHANNEL_TYPE_TEXT,
        CHANNEL_TYPE_VOICE,
        CHANNEL_TYPE_ANNOUNCEMENT,
        CHANNEL_TYPE_STAGE,
    }
)


@dataclass(frozen=True)
class ChannelEntry:
    """A channel of a guild, as returned by the directory lookup."""

    channel_id: int
    name: str
    type: int


def map_channel_entry(data: dict[str, Any]) -> ChannelEntry:
    channel_id = int(data["id"])
    return ChannelEntry(
        channel_id=channel_id,
        name=data.get("name") or f"Channel {channel_id}",
        type=data["type"],
    )


def is_text_based(channel_type: int) -> bool:
    """True when messages can be read directly from the channel."""
    return channel_type in MESSAGE_CHANNEL_TYPES


def channel_type_name(channel_type: int) -> str:
    return _TYPE_NAMES.get(channel_type, f"unknown({channel_type})")

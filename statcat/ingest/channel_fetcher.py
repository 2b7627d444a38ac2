"""Channel directory lookup.

Lists the channels of a guild that can hold messages. Any failure here is
fatal for a gather run.
"""

from __future__ import annotations

import httpx

from statcat.core.errors import DirectoryLookupError
from statcat.ingest.client import DiscordAPIError, DiscordClient
from statcat.ingest.mappers.channel import (
    ChannelEntry,
    is_text_based,
    map_channel_entry,
)


async def fetch_guild_channels(
    client: DiscordClient,
    guild_id: int,
) -> list[ChannelEntry]:
    """Fetch the message channels of a guild, in API order.

    Args:
        client: Discord client
        guild_id: Guild to enumerate

    Returns:
        ChannelEntry per text-capable channel

    Raises:
        DirectoryLookupError: If the channel list could not be fetched
    """
    try:
        channels_data = await client.list_channels(guild_id)
    except (DiscordAPIError, httpx.HTTPError) as e:
        raise DirectoryLookupError(guild_id, str(e)) from e

    if not isinstance(channels_data, list):
        raise DirectoryLookupError(guild_id, "unexpected response from channel list")

    try:
        return [
            map_channel_entry(c)
            for c in channels_data
            if is_text_based(c["type"])
        ]
    except (KeyError, TypeError, ValueError) as e:
        raise DirectoryLookupError(guild_id, f"malformed channel entry: {e!r}") from e

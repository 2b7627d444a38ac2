"""Tests for statcat.ingest.channel_fetcher module."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest

from statcat.core.errors import DirectoryLookupError
from statcat.ingest.channel_fetcher import fetch_guild_channels
from statcat.ingest.client import DiscordAPIError
from statcat.ingest.mappers.channel import (
    CHANNEL_TYPE_ANNOUNCEMENT,
    CHANNEL_TYPE_CATEGORY,
    CHANNEL_TYPE_FORUM,
    CHANNEL_TYPE_TEXT,
    CHANNEL_TYPE_VOICE,
    ChannelEntry,
    channel_type_name,
    is_text_based,
    map_channel_entry,
)


class TestMapChannelEntry:
    """Tests for map_channel_entry function."""

    def test_maps_fields(self) -> None:
        entry = map_channel_entry({"id": "10", "name": "general", "type": 0})

        assert entry == ChannelEntry(channel_id=10, name="general", type=0)

    def test_unnamed_channel(self) -> None:
        entry = map_channel_entry({"id": "10", "type": 0})

        assert entry.name == "Channel 10"


class TestChannelTypes:
    """Tests for channel type helpers."""

    @pytest.mark.parametrize(
        "channel_type",
        [CHANNEL_TYPE_TEXT, CHANNEL_TYPE_ANNOUNCEMENT, CHANNEL_TYPE_VOICE],
    )
    def test_message_channels(self, channel_type: int) -> None:
        assert is_text_based(channel_type) is True

    @pytest.mark.parametrize("channel_type", [CHANNEL_TYPE_CATEGORY, CHANNEL_TYPE_FORUM])
    def test_containers_hold_no_messages(self, channel_type: int) -> None:
        assert is_text_based(channel_type) is False

    def test_type_names(self) -> None:
        assert channel_type_name(CHANNEL_TYPE_TEXT) == "text"
        assert channel_type_name(99) == "unknown(99)"


class TestFetchGuildChannels:
    """Tests for fetch_guild_channels function."""

    @pytest.mark.asyncio
    async def test_keeps_message_channels_in_order(self) -> None:
        client = AsyncMock()
        client.list_channels.return_value = [
            {"id": "3", "name": "news", "type": CHANNEL_TYPE_ANNOUNCEMENT},
            {"id": "1", "name": "Text Channels", "type": CHANNEL_TYPE_CATEGORY},
            {"id": "2", "name": "general", "type": CHANNEL_TYPE_TEXT},
            {"id": "4", "name": "help", "type": CHANNEL_TYPE_FORUM},
        ]

        channels = await fetch_guild_channels(client, 100)

        assert [c.channel_id for c in channels] == [3, 2]
        client.list_channels.assert_awaited_once_with(100)

    @pytest.mark.asyncio
    async def test_api_error_is_directory_error(self) -> None:
        client = AsyncMock()
        client.list_channels.side_effect = DiscordAPIError(403, "Missing Access")

        with pytest.raises(DirectoryLookupError) as exc_info:
            await fetch_guild_channels(client, 100)

        assert exc_info.value.guild_id == 100
        assert "Missing Access" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_transport_error_is_directory_error(self) -> None:
        client = AsyncMock()
        client.list_channels.side_effect = httpx.ConnectError("unreachable")

        with pytest.raises(DirectoryLookupError):
            await fetch_guild_channels(client, 100)

    @pytest.mark.asyncio
    async def test_unexpected_payload(self) -> None:
        client = AsyncMock()
        client.list_channels.return_value = {"message": "???"}

        with pytest.raises(DirectoryLookupError, match="unexpected response"):
            await fetch_guild_channels(client, 100)

    @pytest.mark.asyncio
    async def test_malformed_entry_is_directory_error(self) -> None:
        client = AsyncMock()
        client.list_channels.return_value = [{"id": "1", "name": "no type"}]

        with pytest.raises(DirectoryLookupError, match="malformed channel entry"):
            await fetch_guild_channels(client, 100)

    @pytest.mark.asyncio
    async def test_no_channels(self) -> None:
        client = AsyncMock()
        client.list_channels.return_value = []

        assert await fetch_guild_channels(client, 100) == []

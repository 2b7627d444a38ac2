"""Backfill logic for downloading historical messages.

Backfill walks a channel from newest to oldest using the `before` parameter:
a one-message probe finds the newest message, then pages of up to
`batch_size` messages older than the oldest seen so far are fetched until
Discord has nothing older to return.

The walk never raises for fetch failures. It returns a BackfillResult whose
status says whether the channel was exhausted, the fetch failed, or the
walk was cancelled, together with everything collected up to that point.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

import httpx

from statcat.core.errors import TransientFetchError
from statcat.ingest.client import DiscordAPIError
from statcat.ingest.logger import logger

if TYPE_CHECKING:
    from statcat.ingest.client import DiscordClient

# Errors the client raises once its own retries are used up, plus pages
# whose message ids cannot be read
FETCH_ERRORS = (DiscordAPIError, httpx.HTTPError, KeyError, TypeError, ValueError)

ProgressCallback = Callable[[int, int], None]


class BackfillStatus(str, Enum):
    EXHAUSTED = "exhausted"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class BackfillResult:
    """Result of a backfill walk."""

    status: BackfillStatus
    messages: list[dict[str, Any]] = field(default_factory=list)
    error: TransientFetchError | None = None
    fetch_calls: int = 0

    @property
    def messages_count(self) -> int:
        return len(self.messages)

    @property
    def is_complete(self) -> bool:
        return self.status is BackfillStatus.EXHAUSTED

    @property
    def oldest_message_id(self) -> int | None:
        if not self.messages:
            return None
        return min(int(m["id"]) for m in self.messages)

    @property
    def newest_message_id(self) -> int | None:
        if not self.messages:
            return None
        return max(int(m["id"]) for m in self.messages)


async def backfill_channel(
    client: "DiscordClient",
    channel_id: int,
    *,
    batch_size: int = 100,
    before: int | None = None,
    on_progress: ProgressCallback | None = None,
    cancel_event: asyncio.Event | None = None,
) -> BackfillResult:
    """Collect the history of a channel, newest to oldest.

    Args:
        client: Discord API client
        channel_id: Channel to backfill
        batch_size: Messages per page (max 100)
        before: Resume cursor; skips the newest-message probe when given
        on_progress: Called after every page with (collected, oldest_id)
        cancel_event: Checked before every page fetch

    Returns:
        BackfillResult with the collected messages and how the walk ended
    """
    messages: list[dict[str, Any]] = []
    fetch_calls = 0

    def _finish(
        status: BackfillStatus, error: TransientFetchError | None = None
    ) -> BackfillResult:
        return BackfillResult(
            status=status, messages=messages, error=error, fetch_calls=fetch_calls
        )

    def _cancelled() -> bool:
        return cancel_event is not None and cancel_event.is_set()

    try:
        if _cancelled():
            return _finish(BackfillStatus.CANCELLED)

        if before is None:
            fetch_calls += 1
            newest = await client.get_newest_message(channel_id)
            # No messages at all is a normal end, not an error
            if newest is None:
                return _finish(BackfillStatus.EXHAUSTED)
            messages.append(newest)
            before = int(newest["id"])

        while True:
            if _cancelled():
                return _finish(BackfillStatus.CANCELLED)

            fetch_calls += 1
            page = await client.get_messages_before(
                channel_id, before=before, limit=batch_size
            )

            if not page:
                break

            messages.extend(page)
            # Discord returns newest-first, but don't rely on it
            before = min(int(m["id"]) for m in page)

            if on_progress is not None:
                on_progress(len(messages), before)

            # A short page means there is nothing older
            if len(page) < batch_size:
                break

    except FETCH_ERRORS as e:
        error = TransientFetchError(channel_id, e)
        logger.warning(
            f"{error} (after {len(messages):,} messages, {fetch_calls} requests)"
        )
        return _finish(BackfillStatus.FAILED, error)

    return _finish(BackfillStatus.EXHAUSTED)

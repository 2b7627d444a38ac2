"""Discord REST client used by gather.

Only the three read endpoints statcat needs are exposed. Transient failures
are retried here so the paginator only ever sees errors that outlived the
retry budget:

- 429: sleep for Retry-After and try again; not counted as an attempt
- 5xx, timeouts, transport errors: exponential backoff, MAX_RETRIES times
- anything else: raised at once as DiscordAPIError
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import httpx

from statcat.ingest.logger import logger

BASE_URL = "https://discord.com/api/v10"

MAX_RETRIES = 5
MAX_RATE_LIMIT_RETRIES = 30
INITIAL_BACKOFF = 1.0  # seconds
MAX_BACKOFF = 64.0  # seconds

# Largest `limit` the messages endpoint accepts
MAX_PAGE_SIZE = 100


class DiscordAPIError(Exception):
    """An HTTP error response from Discord."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Discord API error {status_code}: {message}")


def authorization_header(token: str) -> str:
    """Bot tokens need a "Bot " prefix; already-prefixed tokens pass through."""
    if token.startswith(("Bot ", "Bearer ")):
        return token
    return f"Bot {token}"


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("message", response.text)
    except ValueError:
        return response.text


@dataclass
class DiscordClient:
    """Async Discord REST client; use as `async with DiscordClient(...) as c`."""

    token: str
    user_agent: str
    timeout: float = 30.0
    _client: httpx.AsyncClient | None = field(default=None, init=False, repr=False)

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": authorization_header(self.token),
            "User-Agent": self.user_agent,
        }

    async def __aenter__(self) -> "DiscordClient":
        self._client = httpx.AsyncClient(
            base_url=BASE_URL, headers=self.headers, timeout=self.timeout
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send one API request, retrying transient failures."""
        if self._client is None:
            raise RuntimeError("Client not initialized. Use async with.")

        attempt = 0
        rate_limited = 0
        backoff = INITIAL_BACKOFF

        while True:
            try:
                response = await self._client.request(method, path, params=params)
            except httpx.TransportError as e:
                if attempt >= MAX_RETRIES:
                    raise
                reason = "timeout" if isinstance(e, httpx.TimeoutException) else str(e)
            else:
                status = response.status_code
                if status == 200:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise DiscordAPIError(status, "invalid JSON body") from e
                if status == 204:
                    return None

                if status == 429:
                    rate_limited += 1
                    if rate_limited > MAX_RATE_LIMIT_RETRIES:
                        raise DiscordAPIError(429, "Max rate limit retries exceeded")
                    retry_after = float(response.headers.get("Retry-After", 1.0))
                    logger.rate_limit(retry_after)
                    await asyncio.sleep(retry_after)
                    continue

                if status < 500:
                    raise DiscordAPIError(status, _error_message(response))
                if attempt >= MAX_RETRIES:
                    raise DiscordAPIError(status, response.text)
                reason = f"HTTP {status}"

            attempt += 1
            logger.retry(attempt, MAX_RETRIES, backoff, reason)
            await asyncio.sleep(backoff)
            backoff = min(backoff * 2, MAX_BACKOFF)

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    async def list_channels(self, guild_id: int) -> list[dict[str, Any]]:
        """All channels of a guild (threads are not included)."""
        return await self._request("GET", f"/guilds/{guild_id}/channels")

    async def get_messages(
        self,
        channel_id: int,
        limit: int = MAX_PAGE_SIZE,
        before: int | None = None,
    ) -> list[dict[str, Any]]:
        """One page of a channel's messages, newest first.

        Args:
            channel_id: Channel to read
            limit: Page size, clamped to 1..100
            before: Only messages with a smaller id (exclusive)
        """
        params: dict[str, Any] = {"limit": max(1, min(limit, MAX_PAGE_SIZE))}
        if before is not None:
            params["before"] = before
        return await self._request(
            "GET", f"/channels/{channel_id}/messages", params=params
        )

    async def get_newest_message(self, channel_id: int) -> dict[str, Any] | None:
        """The most recent message of a channel, or None if it has none."""
        page = await self.get_messages(channel_id, limit=1)
        return page[0] if page else None

    async def get_messages_before(
        self, channel_id: int, before: int, limit: int = MAX_PAGE_SIZE
    ) -> list[dict[str, Any]]:
        """Up to `limit` messages strictly older than `before`."""
        return await self.get_messages(channel_id, limit=limit, before=before)

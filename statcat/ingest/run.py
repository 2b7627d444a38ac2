"""Main orchestration for the gather pipeline.

Runs one gather pass over a guild with the configured Discord credential.
"""

from __future__ import annotations

import asyncio
import signal
from contextlib import contextmanager
from typing import Generator

from statcat.config.settings import AppSettings, load_config
from statcat.core import BaseOrchestrator
from statcat.ingest.client import DiscordClient
from statcat.ingest.guild_processor import (
    GatherOptions,
    GuildProcessResult,
    process_guild,
)
from statcat.ingest.logger import logger


class GatherOrchestrator(BaseOrchestrator):
    """Orchestrates one gather run."""

    def __init__(
        self, settings: AppSettings, cancel_event: asyncio.Event | None = None
    ) -> None:
        super().__init__(settings.database_url)
        self.settings = settings
        self.options = GatherOptions.from_settings(settings)
        self.cancel_event = cancel_event or asyncio.Event()
        self.result = GuildProcessResult()

    async def _run_pipeline(self, guild_id: int) -> None:
        """Execute the gather pipeline."""
        async with DiscordClient(
            token=self.settings.require_token(),
            user_agent=self.settings.user_agent,
            timeout=self.settings.request_timeout,
        ) as client:
            self.result = await process_guild(
                client,
                self.async_session,
                guild_id,
                self.options,
                cancel_event=self.cancel_event,
            )

    def _log_summary(self, elapsed: float) -> None:
        """Log the final gather summary."""
        logger.summary(
            channels=self.result.channels_processed,
            skipped=self.result.channels_skipped,
            empty=self.result.channels_empty,
            failed=self.result.channels_failed,
            messages=self.result.messages_ingested,
            elapsed=elapsed,
        )


@contextmanager
def _cancel_on_signals(event: asyncio.Event) -> Generator[None, None, None]:
    """Set `event` on SIGINT/SIGTERM while the block runs.

    Event loops without signal handler support (Windows) keep the default
    KeyboardInterrupt behaviour.
    """
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, event.set)
        except (NotImplementedError, RuntimeError):
            continue
        installed.append(sig)
    try:
        yield
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


async def run_gather(
    guild_id: int,
    config_path: str = "config.json",
    settings: AppSettings | None = None,
) -> GuildProcessResult:
    """Entry point for running the gather pipeline.

    The credential is checked before the database is touched.
    """
    settings = settings or load_config(config_path)
    settings.require_token()

    orchestrator = GatherOrchestrator(settings)
    with _cancel_on_signals(orchestrator.cancel_event):
        await orchestrator.run(guild_id=guild_id)
    return orchestrator.result

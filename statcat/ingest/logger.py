"""Console output for gather runs."""

from __future__ import annotations

from typing import Any

from statcat.utils.pipeline_logger import BasePipelineLogger


class IngestLogger(BasePipelineLogger):
    """Guild header, HTTP retry warnings and the gather summary."""

    def __init__(self) -> None:
        super().__init__(__name__)

    def rate_limit(self, retry_after: float) -> None:
        self._logger.warning(f"Rate limited by Discord, sleeping {retry_after:.1f}s")

    def retry(
        self, attempt: int, max_attempts: int, wait_time: float, reason: str = ""
    ) -> None:
        suffix = f": {reason}" if reason else ""
        self._logger.warning(
            f"Request failed{suffix}. Retry {attempt}/{max_attempts} in {wait_time:.1f}s"
        )

    def guild_start(self, guild_id: int, channel_count: int) -> None:
        self.console.print()
        self.console.rule(f"[bold cyan]Guild {guild_id}[/bold cyan]", style="cyan")
        self.console.print(f"[dim]{channel_count:,} message channels[/dim]")

    def cancelled(self, remaining: int) -> None:
        self._clear_progress_line()
        self._logger.warning(
            f"Cancellation requested, {remaining:,} channels left unprocessed"
        )

    def summary(
        self,
        channels: int = 0,
        skipped: int = 0,
        empty: int = 0,
        failed: int = 0,
        messages: int = 0,
        elapsed: float = 0.0,
        **kwargs: Any,
    ) -> None:
        self.print_summary(
            "Gather",
            elapsed=elapsed,
            stats={
                "Channels gathered": channels,
                "Channels already done": skipped,
                "Channels empty": empty,
                "Channels failed": failed,
                "New messages stored": messages,
            },
            style="red" if failed else "cyan",
        )


logger = IngestLogger()

"""Orchestration for the word statistics pipeline."""

from __future__ import annotations

from pathlib import Path

from statcat.config.settings import AppSettings, load_config
from statcat.core import BaseOrchestrator
from statcat.db.repositories import WeeklyCount, weekly_word_counts
from statcat.stats.chart import render_word_chart
from statcat.stats.logger import logger

DEFAULT_CHART_NAME = "chart.html"


class WordStatsOrchestrator(BaseOrchestrator):
    """Counts a word per week over a guild's archived messages and charts it."""

    def __init__(
        self,
        settings: AppSettings,
        word: str,
        output_path: str | Path | None = None,
    ) -> None:
        super().__init__(settings.database_url)
        self.settings = settings
        self.word = word
        self.output_path = Path(
            output_path or Path(settings.chart_dir) / DEFAULT_CHART_NAME
        )
        self.rows: list[WeeklyCount] = []
        self.chart_path: Path | None = None

    async def _run_pipeline(self, guild_id: int) -> None:
        async with self.async_session() as session:
            self.rows = await weekly_word_counts(session, self.word, guild_id=guild_id)

        logger.weekly_table(self.word, self.rows)
        if self.rows:
            self.chart_path = render_word_chart(self.word, self.rows, self.output_path)

    def _log_summary(self, elapsed: float) -> None:
        logger.summary(
            word=self.word,
            weeks=len(self.rows),
            matches=sum(row.count for row in self.rows),
            output=str(self.chart_path) if self.chart_path else None,
            elapsed=elapsed,
        )


async def run_word_stats(
    guild_id: int,
    word: str,
    config_path: str = "config.json",
    output_path: str | Path | None = None,
    settings: AppSettings | None = None,
) -> list[WeeklyCount]:
    """Entry point for running the word statistics pipeline.

    The query never reaches Discord, but the credential is still required so
    both commands fail the same way on a misconfigured environment.
    """
    settings = settings or load_config(config_path)
    settings.require_token()
    orchestrator = WordStatsOrchestrator(settings, word, output_path)
    await orchestrator.run(guild_id=guild_id)
    return orchestrator.rows

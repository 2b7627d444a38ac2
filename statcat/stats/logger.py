"""Rich-based output for the word statistics pipeline."""

from __future__ import annotations

from typing import Any, Sequence

from statcat.db.repositories import WeeklyCount
from statcat.utils.pipeline_logger import BasePipelineLogger


class StatsLogger(BasePipelineLogger):
    """Logger for word statistics with rich output."""

    def __init__(self) -> None:
        super().__init__(__name__)

    def weekly_table(self, word: str, rows: Sequence[WeeklyCount]) -> None:
        """Print the weekly counts for a word."""
        if not rows:
            self.console.print(f"[dim]No messages contain {word!r}[/dim]")
            return
        self.print_table(
            f"Messages containing {word!r}",
            ("Week", "Messages"),
            [(row.week, row.count) for row in rows],
        )

    def summary(
        self,
        word: str = "",
        weeks: int = 0,
        matches: int = 0,
        output: str | None = None,
        elapsed: float = 0.0,
        **kwargs: Any,
    ) -> None:
        """Print final word statistics summary."""
        self.print_summary(
            "Word statistics",
            elapsed=elapsed,
            stats={
                "Word": word,
                "Weeks with matches": weeks,
                "Matching messages": matches,
                "Chart": output or "not written",
            },
            style="magenta",
        )


# Global logger instance
logger = StatsLogger()

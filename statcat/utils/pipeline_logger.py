"""Console output shared by the gather and word pipelines.

`BasePipelineLogger` wraps a stdlib logger (for warnings and errors that
should also reach --log-file) and the shared rich console (for per-channel
blocks, the inline progress line, tables and the closing summary panel).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from statcat.utils.logging import console

CLEAR_LINE = "\033[2K"


class StructuredBlock:
    """Indented key/value lines under a bold title, one block per channel.

        general
            channel ID: 123456789
            mode: backfill
            ✓ got 1,234 messages (1,234 new)
    """

    def __init__(self, title: str, parent: "BasePipelineLogger") -> None:
        self.title = title
        self._parent = parent

    @property
    def console(self) -> Console:
        return self._parent.console

    def __enter__(self) -> "StructuredBlock":
        self._parent._clear_progress_line()
        self.console.print(f"\n[bold]{self.title}[/bold]")
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._parent._clear_progress_line()

    def field(self, key: str, value: Any, color: str | None = None) -> None:
        shown = f"[{color}]{value}[/{color}]" if color else str(value)
        self.console.print(f"    [dim]{key}:[/dim] {shown}")

    def result(self, message: str, success: bool = True) -> None:
        self._parent._clear_progress_line()
        mark = "[green]✓[/green]" if success else "[red]✗[/red]"
        self.console.print(f"    {mark} {message}")

    def empty(self) -> None:
        self._parent._clear_progress_line()
        self.console.print("    [dim]Empty, nothing stored[/dim]")


class BasePipelineLogger(ABC):
    """Base for pipeline loggers; subclasses add their own output and summary()."""

    def __init__(self, logger_name: str | None = None) -> None:
        self.console: Console = console
        self._has_progress_line = False
        self._logger = logging.getLogger(logger_name or type(self).__module__)

    def _clear_progress_line(self) -> None:
        if self._has_progress_line:
            print(CLEAR_LINE, end="\r")
            self._has_progress_line = False

    @contextmanager
    def block(self, title: str) -> Iterator[StructuredBlock]:
        with StructuredBlock(title, self) as block:
            yield block

    # Records that should also reach the log file

    def info(self, message: str) -> None:
        self._logger.info(message)

    def warning(self, message: str) -> None:
        self._logger.warning(message)

    def error(self, message: str) -> None:
        self._logger.error(message)

    def debug(self, message: str) -> None:
        self._logger.debug(message)

    # Console-only output

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def batch_progress(
        self,
        count: int,
        *,
        oldest_date: str | None = None,
        prefix: str = "Collected",
        unit: str = "messages",
    ) -> None:
        """Overwrite the progress line with a running count.

        Args:
            count: Items collected so far
            oldest_date: How far back the walk has reached, if known
            prefix: Verb shown before the count
            unit: Noun shown after the count
        """
        reached = f" [→ {oldest_date}]" if oldest_date else ""
        print(CLEAR_LINE, end="")
        self.console.print(f"    [dim]{prefix} {count:,} {unit}{reached}[/dim]", end="\r")
        self._has_progress_line = True

    def print_table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        *,
        style: str = "cyan",
    ) -> None:
        """Print rows under `columns`; numbers get thousands separators."""
        self._clear_progress_line()
        table = Table(title=title, border_style=style, header_style="bold")
        last = len(columns) - 1
        for i, name in enumerate(columns):
            table.add_column(name, justify="right" if i == last else "left")
        for row in rows:
            table.add_row(*(_format_cell(value) for value in row))
        self.console.print(table)

    def print_summary(
        self,
        pipeline_name: str,
        *,
        elapsed: float,
        stats: dict[str, int | str],
        style: str = "cyan",
    ) -> None:
        """Print `stats` and the elapsed time in a panel titled "<name> Complete"."""
        grid = Table.grid(padding=(0, 2))
        grid.add_column("Metric", style="bold")
        grid.add_column("Value", justify="right", style="green")
        for label, value in stats.items():
            grid.add_row(label, _format_cell(value))
        grid.add_row("Time elapsed", f"{elapsed:.1f}s")

        self._clear_progress_line()
        self.console.print()
        self.console.print(
            Panel(
                grid,
                title=f"[bold]{pipeline_name} Complete[/bold]",
                border_style=style,
                padding=(1, 2),
            )
        )

    @abstractmethod
    def summary(self, **kwargs: Any) -> None:
        ...


def _format_cell(value: Any) -> str:
    if isinstance(value, int) and not isinstance(value, bool):
        return f"{value:,}"
    return str(value)

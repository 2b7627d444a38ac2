"""Tests for statcat.stats (word statistics pipeline and chart)."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from conftest import make_api_message
from statcat.config.settings import AppSettings
from statcat.core.errors import FatalSetupError
from statcat.db.repositories import WeeklyCount, persist_messages_batch
from statcat.stats.chart import build_word_chart, render_word_chart
from statcat.stats.word import DEFAULT_CHART_NAME, run_word_stats

GUILD_ID = 9
ROWS = [WeeklyCount("2024-01", 2), WeeklyCount("2024-02", 1)]


def _at(day: int) -> datetime:
    return datetime(2024, 1, day, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def mock_logger():
    with patch("statcat.stats.word.logger") as m:
        yield m


@pytest.fixture
def settings(database_url, tmp_path) -> AppSettings:
    return AppSettings(
        database_url=database_url,
        discord_token="test-token",
        chart_dir=str(tmp_path / "charts"),
    )


async def _seed(session_factory) -> None:
    async with session_factory() as session:
        await persist_messages_batch(
            session,
            [
                make_api_message(1, "hello world", _at(2)),
                make_api_message(2, "hello again", _at(3)),
                make_api_message(3, "Hello", _at(4)),
                make_api_message(4, "hello", _at(10)),
            ],
            channel_id=100,
            guild_id=GUILD_ID,
        )
        await session.commit()


# ---------------------------------------------------------------------------
# TestBuildWordChart
# ---------------------------------------------------------------------------


class TestBuildWordChart:
    """Tests for build_word_chart."""

    def test_options_carry_weeks_and_title(self):
        options = build_word_chart("hello", ROWS).dump_options()

        assert '"2024-01"' in options
        assert '"2024-02"' in options
        assert "Messages containing the word hello" in options

    def test_opens_zoomed_to_first_weeks(self):
        options = build_word_chart("hello", ROWS).dump_options()

        assert options.count('"end": 10') == 2

    def test_render_creates_parent_dirs(self, tmp_path):
        path = render_word_chart("hello", ROWS, tmp_path / "nested" / "out.html")

        assert path.exists()
        html = path.read_text(encoding="utf-8")
        assert "2024-02" in html
        assert "echarts" in html


# ---------------------------------------------------------------------------
# TestRunWordStats
# ---------------------------------------------------------------------------


class TestRunWordStats:
    """Tests for run_word_stats."""

    @pytest.mark.asyncio
    async def test_counts_and_renders(self, session_factory, settings, tmp_path, mock_logger):
        await _seed(session_factory)

        rows = await run_word_stats(GUILD_ID, "hello", settings=settings)

        assert rows == [WeeklyCount("2024-01", 2), WeeklyCount("2024-02", 1)]
        chart = tmp_path / "charts" / DEFAULT_CHART_NAME
        assert chart.exists()
        mock_logger.weekly_table.assert_called_once_with("hello", rows)
        assert mock_logger.summary.call_args.kwargs["matches"] == 3

    @pytest.mark.asyncio
    async def test_other_guild_sees_nothing(self, session_factory, settings, tmp_path):
        await _seed(session_factory)

        rows = await run_word_stats(GUILD_ID + 1, "hello", settings=settings)

        assert rows == []
        assert not (tmp_path / "charts").exists()

    @pytest.mark.asyncio
    async def test_custom_output_path(self, session_factory, settings, tmp_path):
        await _seed(session_factory)
        output = tmp_path / "reports" / "hello.html"

        await run_word_stats(GUILD_ID, "hello", settings=settings, output_path=output)

        assert output.exists()

    @pytest.mark.asyncio
    async def test_fresh_database(self, session_factory, settings):
        assert await run_word_stats(GUILD_ID, "hello", settings=settings) == []

    @pytest.mark.asyncio
    async def test_missing_token_is_fatal(self, database_url, tmp_path):
        settings = AppSettings(database_url=database_url, discord_token="")

        with pytest.raises(FatalSetupError, match="DISCORD_TOKEN"):
            await run_word_stats(GUILD_ID, "hello", settings=settings)

        assert not (tmp_path / "statcat.db").exists()

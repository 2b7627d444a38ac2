"""Tests for the statcat command line (statcat.__main__)."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest

from statcat.__main__ import EXIT_FATAL, EXIT_INTERRUPTED, build_parser, main
from statcat.core.errors import DirectoryLookupError
from statcat.ingest.guild_processor import GuildProcessResult

PATCH_BASE = "statcat.__main__"


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """Run every command from an empty directory without a token."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DISCORD_TOKEN", raising=False)
    with patch(f"{PATCH_BASE}.setup_logging"):
        yield tmp_path


# ---------------------------------------------------------------------------
# TestParser
# ---------------------------------------------------------------------------


class TestParser:
    """Tests for build_parser."""

    def test_gather(self):
        args = build_parser().parse_args(["gather", "123"])

        assert args.command == "gather"
        assert args.guild_id == "123"
        assert args.config == "config.json"

    def test_word_with_options(self):
        args = build_parser().parse_args(
            ["--config", "c.json", "-v", "word", "123", "hello", "-o", "out.html"]
        )

        assert args.command == "word"
        assert args.word == "hello"
        assert args.output == "out.html"
        assert args.verbose is True

    def test_command_required(self):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args([])

        assert exc_info.value.code == 2


# ---------------------------------------------------------------------------
# TestMain
# ---------------------------------------------------------------------------


class TestMain:
    """Tests for main exit codes and dispatch."""

    def test_malformed_guild_id(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["gather", "not-a-number"])

        assert exc_info.value.code == EXIT_FATAL

    def test_missing_token(self, isolated):
        with pytest.raises(SystemExit) as exc_info:
            main(["gather", "123"])

        assert exc_info.value.code == EXIT_FATAL
        assert not (isolated / "statcat.db").exists()

    def test_invalid_config(self, isolated):
        (isolated / "config.json").write_text(json.dumps({"batch_size": 500}))

        with pytest.raises(SystemExit) as exc_info:
            main(["word", "123", "hello"])

        assert exc_info.value.code == EXIT_FATAL

    def test_directory_failure(self):
        with patch(
            f"{PATCH_BASE}.run_gather",
            new_callable=AsyncMock,
            side_effect=DirectoryLookupError(123, "Missing Access"),
        ):
            with pytest.raises(SystemExit) as exc_info:
                main(["gather", "123"])

        assert exc_info.value.code == EXIT_FATAL

    def test_unexpected_error_exits_fatal(self):
        with patch(
            f"{PATCH_BASE}.run_gather",
            new_callable=AsyncMock,
            side_effect=RuntimeError("boom"),
        ):
            with pytest.raises(SystemExit) as exc_info:
                main(["gather", "123"])

        assert exc_info.value.code == EXIT_FATAL

    def test_unexpected_error_reraised_with_debug(self):
        with patch(
            f"{PATCH_BASE}.run_gather",
            new_callable=AsyncMock,
            side_effect=RuntimeError("boom"),
        ):
            with pytest.raises(RuntimeError, match="boom"):
                main(["--debug", "gather", "123"])

    def test_gather_success(self):
        with patch(
            f"{PATCH_BASE}.run_gather",
            new_callable=AsyncMock,
            return_value=GuildProcessResult(),
        ) as mock_run:
            main(["--config", "custom.json", "gather", " 123 "])

        mock_run.assert_awaited_once_with(123, config_path="custom.json")

    def test_gather_cancelled(self):
        with patch(
            f"{PATCH_BASE}.run_gather",
            new_callable=AsyncMock,
            return_value=GuildProcessResult(cancelled=True),
        ):
            with pytest.raises(SystemExit) as exc_info:
                main(["gather", "123"])

        assert exc_info.value.code == EXIT_INTERRUPTED

    def test_word_dispatch(self):
        with patch(f"{PATCH_BASE}.run_word_stats", new_callable=AsyncMock) as mock_run:
            main(["word", "123", "hello world", "--output", "x.html"])

        mock_run.assert_awaited_once_with(
            123, "hello world", config_path="config.json", output_path="x.html"
        )

    def test_word_without_token_is_fatal(self, isolated):
        with pytest.raises(SystemExit) as exc_info:
            main(["word", "123", "hello"])

        assert exc_info.value.code == EXIT_FATAL
        assert not (isolated / "statcat.db").exists()

    def test_word_on_empty_database(self, isolated, monkeypatch):
        monkeypatch.setenv("DISCORD_TOKEN", "test-token")

        main(["word", "123", "hello"])

        assert (isolated / "statcat.db").exists()
        assert not (isolated / "charts").exists()

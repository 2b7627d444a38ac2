"""CLI entry point for statcat.

Usage:
    statcat gather <GUILD_ID>              # Gather all messages of a guild
    statcat word <GUILD_ID> <WORD>         # Chart weekly usage of a word
    statcat --verbose gather <GUILD_ID>    # Show more details
    statcat --debug gather <GUILD_ID>      # Show debug info
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Callable

from pydantic import ValidationError

from statcat.core.errors import DirectoryLookupError, FatalSetupError
from statcat.db.engine import dispose_engines
from statcat.ingest.logger import logger
from statcat.ingest.run import run_gather
from statcat.stats.word import run_word_stats
from statcat.utils.ids import require_snowflake
from statcat.utils.logging import setup_logging

EXIT_FATAL = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    """Build the statcat argument parser."""
    parser = argparse.ArgumentParser(
        prog="statcat",
        description="A discord statistics experience",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  statcat gather 123456789
      Gather every message of guild 123456789 (DISCORD_TOKEN must be set)

  statcat word 123456789 hello
      Chart how many messages per week contain "hello"

  statcat --config /path/to/config.json gather 123456789
      Use a custom config file
        """,
    )

    parser.add_argument(
        "--config",
        type=str,
        default="config.json",
        help="Path to config.json (default: config.json)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output (DEBUG level)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode with third-party library logs",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Optional file to write logs to",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    gather = subparsers.add_parser("gather", help="Gathers messages")
    gather.add_argument("guild_id", metavar="GUILD_ID", help="The guild to gather messages from")

    word = subparsers.add_parser("word", help="Gets word statistics")
    word.add_argument("guild_id", metavar="GUILD_ID", help="The guild to check word statistics on")
    word.add_argument("word", metavar="WORD", help="The word or phrase to grab statistics of")
    word.add_argument(
        "-o",
        "--output",
        type=str,
        help="Where to write the chart (default: <chart_dir>/chart.html)",
    )

    return parser


async def _with_engines(factory: Callable[[], Awaitable[Any]]) -> Any:
    """Run a pipeline and close database connections afterwards."""
    try:
        return await factory()
    finally:
        await dispose_engines()


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    # Configure logging based on CLI flags
    if args.debug:
        log_level = logging.DEBUG
        debug_third_party = True
    elif args.verbose:
        log_level = logging.DEBUG
        debug_third_party = False
    else:
        log_level = logging.INFO
        debug_third_party = False

    setup_logging(
        level=log_level,
        log_file=args.log_file,
        debug_third_party=debug_third_party,
    )

    try:
        guild_id = require_snowflake(args.guild_id, "guild id")

        if args.command == "gather":
            logger.info(f"Gathering messages from guild {guild_id}")
            result = asyncio.run(
                _with_engines(lambda: run_gather(guild_id, config_path=args.config))
            )
            if result.cancelled:
                logger.warning("Gather cancelled before all channels were processed")
                sys.exit(EXIT_INTERRUPTED)
            logger.success("Gather complete!")
        else:
            asyncio.run(
                _with_engines(
                    lambda: run_word_stats(
                        guild_id,
                        args.word,
                        config_path=args.config,
                        output_path=args.output,
                    )
                )
            )
    except (FatalSetupError, DirectoryLookupError) as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(EXIT_FATAL)
    except (ValidationError, json.JSONDecodeError) as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(EXIT_FATAL)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as e:
        logger.error(f"Fatal error: {e!r}")
        if args.debug:
            raise
        sys.exit(EXIT_FATAL)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
commit-grep

Search every commit of a git history for lines containing a string and show
them with their surrounding diff context, grep style.

Usage:
    commit-grep TODO                          # Whole history
    commit-grep TODO -C 2                     # Two lines of context
    commit-grep TODO -D 10 --format chunks    # Last 10 commit pairs, whole hunks
    commit-grep TODO --target-dir ../repo     # Another repository
    commit-grep TODO --json                   # JSON report on stdout

Exit codes: 0 matches found, 1 no matches, 2 usage or git failure, 130 interrupted.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

import yaml
from loguru import logger
from pydantic import ValidationError

from commit_grep import __version__
from commit_grep.modules.aggregator import search_history
from commit_grep.modules.errors import CommitGrepError, ConfigError
from commit_grep.modules.git_source import GitSource
from commit_grep.modules.report import format_report, to_json
from commit_grep.modules.rendering import StatementFormat
from commit_grep.modules.schemas import MatchOptions, PairMode, SearchConfig


EXIT_MATCHES = 0
EXIT_NO_MATCHES = 1
EXIT_ERROR = 2
EXIT_INTERRUPTED = 130


# Configure loguru
def setup_logging(verbose: bool = False, log_file: Optional[str] = None):
    """Configure logging with loguru."""
    logger.remove()  # Remove default handler

    level = "DEBUG" if verbose else "INFO"
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True,
    )

    if log_file:
        logger.add(
            log_file,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level="DEBUG",
            rotation="10 MB",
            retention="7 days",
        )


def load_config(config_path: Optional[str]) -> SearchConfig:
    """Load and validate configuration from a YAML file. A missing file means defaults."""
    if not config_path:
        return SearchConfig()

    config_file = Path(config_path)
    if not config_file.exists():
        logger.warning(f"Config file not found: {config_path}. Using defaults.")
        return SearchConfig()

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading config {config_path}: {e}") from e

    try:
        config = SearchConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {config_path}: {e}") from e

    logger.info(f"Loaded configuration from: {config_path}")
    return config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="commit-grep",
        description="Search a git history's diffs for a string",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  commit-grep TODO                        # Search every commit pair
  commit-grep TODO -B 1 -A 3              # Leading / trailing context
  commit-grep TODO -D 5 --show-empty      # Last 5 pairs, even without matches
  commit-grep TODO --pair-mode parent     # Each commit against its parent
""",
    )
    parser.add_argument("search", help="Search string")
    parser.add_argument("-D", "--depth", type=int, help="Number of commit pairs to search")
    parser.add_argument("-B", "--before-context", type=int, help="Print NUM lines of leading context")
    parser.add_argument("-A", "--after-context", type=int, help="Print NUM lines of trailing context")
    parser.add_argument("-C", "--context", type=int, help="Print NUM lines of output context")
    parser.add_argument("--show-empty", action="store_true", help="Print commits and files without matches")
    parser.add_argument(
        "--skip-file-print",
        action="store_true",
        help="Do not print the file name and the number of matches per file",
    )
    parser.add_argument("--target-dir", type=str, help="Git directory to search in")
    parser.add_argument(
        "--format",
        choices=[f.value for f in StatementFormat],
        help="Show matched lines or whole matched hunks",
    )
    parser.add_argument(
        "--pair-mode",
        choices=[m.value for m in PairMode],
        help="Pair adjacent commits or each commit with its parent",
    )
    parser.add_argument("--changed-only", action="store_true", help="Only match added/removed lines")
    parser.add_argument("-i", "--ignore-case", action="store_true", help="Case-insensitive match")
    parser.add_argument("-j", "--jobs", type=int, help="Concurrent diff retrievals")
    parser.add_argument("--timeout", type=float, help="Seconds allowed per diff retrieval")
    parser.add_argument("--json", action="store_true", help="JSON output")
    parser.add_argument("--config", "-c", type=str, help="Path to configuration file (YAML)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose/debug output")
    parser.add_argument("--log-file", type=str, help="Path to log file (optional)")
    parser.add_argument("--version", action="version", version=f"commit-grep {__version__}")
    return parser


def _pick(cli_value, config_value):
    return config_value if cli_value is None else cli_value


def build_options(args: argparse.Namespace, config: SearchConfig) -> MatchOptions:
    """Merge CLI flags over config values. -A/-B win over -C."""
    search = config.search
    before = _pick(args.before_context, _pick(args.context, search.before_context))
    after = _pick(args.after_context, _pick(args.context, search.after_context))

    return MatchOptions(
        search_string=args.search,
        before_context=before,
        after_context=after,
        show_empty=args.show_empty or search.show_empty,
        skip_file_print=args.skip_file_print,
        changed_only=args.changed_only or search.changed_only,
        ignore_case=args.ignore_case or search.ignore_case,
        statement_format=_pick(args.format, search.format),
        pair_mode=_pick(args.pair_mode, search.pair_mode),
        jobs=_pick(args.jobs, search.jobs),
        timeout_seconds=_pick(args.timeout, search.timeout_seconds),
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose, args.log_file)

    if args.depth is not None and args.depth < 1:
        parser.error("depth must be greater than 0")

    try:
        config = load_config(args.config)
        options = build_options(args, config)
    except ConfigError as e:
        logger.error(str(e))
        return EXIT_ERROR
    except ValidationError as e:
        parser.error(str(e))

    source = GitSource(
        repo_path=args.target_dir or config.git.target_dir or ".",
        git_executable=config.git.executable,
        timeout_seconds=options.timeout_seconds,
    )

    try:
        report = search_history(source, options, depth=_pick(args.depth, config.git.depth))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED
    except CommitGrepError as e:
        logger.error(str(e))
        return EXIT_ERROR

    if args.json:
        print(json.dumps(to_json(report), indent=2))
    else:
        print(format_report(report, options))

    return EXIT_MATCHES if report.total_matches > 0 else EXIT_NO_MATCHES


if __name__ == "__main__":
    sys.exit(main())

"""Command line entry point: suggest and insert internal links."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
import logging
from pathlib import Path
import sys
from typing import Any, TextIO

import orjson
from pydantic import ValidationError

from internal_link.analyzer import ApplyAbortedError, DocumentNotFoundError, LinkAnalyzer
from internal_link.cache import CacheError
from internal_link.config import Settings
from internal_link.markdown.tokenizer import display_text
from internal_link.observability import configure_logging
from internal_link.repository import DocumentLoadError, DocumentWriteError
from internal_link.search.models import LinkSuggestion


logger = logging.getLogger(__name__)

DESCRIPTION = """\
Analyze the markdown files in DIRECTORY and suggest internal links based on
content similarity (BM25 over words and phrases). Without --dry-run the
suggested links are written into the files.
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="internal-link", description=DESCRIPTION)
    parser.add_argument("directory", type=Path, help="Directory containing the markdown files")
    parser.add_argument("--config", type=Path, help="YAML config file (default: ~/.internal-link.yaml)")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Show suggestions without making changes",
    )
    parser.add_argument("--min-score", type=float, help="Minimum similarity score threshold (default: 0.3)")
    parser.add_argument("--file", dest="single_file", help="Analyze a single file against all others")
    parser.add_argument("--cache-dir", type=Path, help="Directory for caching analysis results")
    parser.add_argument(
        "--no-cache",
        dest="use_cache",
        action="store_false",
        default=None,
        help="Tokenize every file instead of reusing cached results",
    )
    parser.add_argument("--clear-cache", action="store_true", help="Empty the cache before analyzing")
    parser.add_argument(
        "--min-ngram",
        type=int,
        help="Minimum number of words in phrases to match, e.g. 2 for bigrams (default: 2)",
    )
    parser.add_argument(
        "--max-ngram",
        type=int,
        help="Maximum number of words in phrases to match, e.g. 3 for trigrams (default: 3)",
    )
    parser.add_argument("--workers", type=int, help="Threads used to tokenize files (default: 1)")
    parser.add_argument(
        "--stop-on-error",
        action="store_true",
        default=None,
        help="Abort on the first link that cannot be inserted",
    )
    parser.add_argument("--format", choices=("text", "json"), default="text", help="Report format")
    parser.add_argument("--log-level", help="Logging level (default: info)")
    parser.add_argument("--log-json", action="store_true", default=None, help="Emit structured JSON logs")
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Build settings where only flags given on the command line override other sources."""
    overrides: dict[str, Any] = {
        "root": args.directory,
        "config_file": args.config,
        "dry_run": args.dry_run,
        "min_score": args.min_score,
        "single_file": args.single_file,
        "cache_dir": args.cache_dir,
        "use_cache": args.use_cache,
        "min_ngram": args.min_ngram,
        "max_ngram": args.max_ngram,
        "workers": args.workers,
        "stop_on_error": args.stop_on_error,
        "log_level": args.log_level,
        "log_json": args.log_json,
    }
    return Settings(**{key: value for key, value in overrides.items() if value is not None})


def _report_row(suggestion: LinkSuggestion) -> dict[str, Any]:
    row = suggestion.to_dict()
    return {key: display_text(value) if isinstance(value, str) else value for key, value in row.items()}


def print_suggestions(
    suggestions: Sequence[LinkSuggestion],
    *,
    dry_run: bool,
    output_format: str = "text",
    stream: TextIO | None = None,
) -> None:
    """Write the suggestion report to ``stream`` (stdout by default).

    Bytes of the documents that are not valid UTF-8 are shown as U+FFFD.
    """
    out = stream or sys.stdout
    rows = [_report_row(suggestion) for suggestion in suggestions]
    if output_format == "json":
        out.write(orjson.dumps(rows, option=orjson.OPT_INDENT_2).decode("utf-8"))
        out.write("\n")
        return

    for row in rows:
        out.write(f"File: {row['source']}\n")
        out.write(f"  Suggested link to: {row['target']}\n")
        out.write(f"  Score: {row['score']:.4f}\n")
        if dry_run:
            out.write(f"  Context: {row['context']}\n")
            out.write(f"  Phrase to link: {row['surface']}\n")
        out.write("\n")


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.config is not None and not args.config.expanduser().is_file():
        parser.error(f"config file {args.config} does not exist")

    try:
        settings = settings_from_args(args)
    except ValidationError as exc:
        parser.error(str(exc))

    configure_logging(settings.log_level, settings.log_json)

    try:
        analyzer = LinkAnalyzer(settings)
        if args.clear_cache and analyzer.cache is not None:
            analyzer.cache.clear()
            logger.info("Cleared cache at %s", analyzer.cache.cache_dir)

        suggestions = analyzer.analyze()
        print_suggestions(suggestions, dry_run=settings.dry_run, output_format=args.format)

        if settings.dry_run:
            return 0

        result = analyzer.apply_changes(suggestions)
    except (DocumentNotFoundError, DocumentLoadError, DocumentWriteError, CacheError, ApplyAbortedError) as exc:
        logger.error("%s", exc)
        return 1

    if not result.ok:
        logger.error("%d links could not be inserted", len(result.failures))
        return 1

    logger.info("Successfully applied %d suggested links", len(result.applied))
    return 0


if __name__ == "__main__":
    sys.exit(main())

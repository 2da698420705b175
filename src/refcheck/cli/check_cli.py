#!/usr/bin/env python3
"""CLI entry point for the refcheck command.

Checks free-text references, one per line in the form
``Author, Title[, DOI or ISBN]``, against Crossref and Google Books.

Usage:
    refcheck references.txt
    refcheck references.txt --report report.json --jsonl results.jsonl
    cat references.txt | refcheck -
    refcheck --show-history
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from refcheck.batch import BatchRunner, JsonlSink, LoggingSink, MultiSink, ResultSink
from refcheck.clients import CrossrefClient, GoogleBooksClient
from refcheck.config import VerifierConfig, load_config
from refcheck.history import HistoryStore, JsonHistoryStore
from refcheck.orchestrator import ReferenceVerifier
from refcheck.utils import HttpClient, RateLimiterRegistry

logger = logging.getLogger("refcheck")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    p = argparse.ArgumentParser(
        prog="refcheck",
        description="Verify free-text references against Crossref and Google Books",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Input format (one reference per line, '#' starts a comment):
  Smith, A Great Title
  Smith, A Great Title, 10.1000/xyz123
  Smith, A Great Title, 978-0-14-044913-6

Examples:
  refcheck references.txt
  refcheck references.txt --report report.json --strict
  cat references.txt | refcheck -
        """,
    )

    p.add_argument("files", nargs="*", help="Files with one reference per line ('-' for stdin)")
    p.add_argument("--config", "-c", metavar="FILE", help="YAML config file")
    p.add_argument("--report", "-r", metavar="FILE", help="Write JSON report to FILE")
    p.add_argument("--jsonl", metavar="FILE", help="Stream results to FILE as JSONL")
    p.add_argument(
        "--strict",
        action="store_true",
        help="Exit with code 4 if any reference is unverified or only a potential match",
    )
    p.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    api_opts = p.add_argument_group("API options")
    api_opts.add_argument("--delay", type=float, help="Pause between references in seconds (default: 0.5)")
    api_opts.add_argument("--timeout", type=float, help="HTTP timeout in seconds (default: 20)")
    api_opts.add_argument("--retries", type=int, help="Retries after transient HTTP failures (default: 0)")
    api_opts.add_argument("--mailto", metavar="EMAIL", help="Contact e-mail for Crossref (or set REFCHECK_MAILTO)")
    api_opts.add_argument(
        "--google-books-api-key",
        metavar="KEY",
        help="Google Books API key (or set GOOGLE_BOOKS_API_KEY)",
    )

    history_opts = p.add_argument_group("history")
    history_opts.add_argument("--history-file", metavar="FILE", help="History file (default: ~/.refcheck_history.json)")
    history_opts.add_argument("--no-history", action="store_true", help="Do not record this run in the history")
    history_opts.add_argument("--show-history", action="store_true", help="Print the stored history and exit")
    history_opts.add_argument("--clear-history", action="store_true", help="Clear the stored history and exit")

    return p


def resolve_config(args: argparse.Namespace) -> VerifierConfig:
    """Merge config file, environment and CLI flags (flags win)."""
    config = load_config(args.config) if args.config else VerifierConfig()
    overrides = {
        "delay": args.delay,
        "timeout": args.timeout,
        "retries": args.retries,
        "mailto": args.mailto,
        "google_books_api_key": args.google_books_api_key,
        "history_path": args.history_file,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(config, name, value)
    return config.apply_env()


def build_verifier(config: VerifierConfig, http: HttpClient) -> ReferenceVerifier:
    """Create the orchestrator with Crossref and Google Books clients."""
    crossref = CrossrefClient(http, rows=config.crossref_rows, mailto=config.mailto)
    books = GoogleBooksClient(http, api_key=config.google_books_api_key)
    return ReferenceVerifier.from_clients(crossref, books)


def read_references(paths: list[str]) -> list[str]:
    """Read reference lines from files, '-' meaning stdin."""
    lines: list[str] = []
    for path in paths:
        if path == "-":
            lines.extend(sys.stdin.read().splitlines())
            continue
        with open(path, encoding="utf-8") as f:
            lines.extend(f.read().splitlines())
        logger.debug("Read %s", path)
    return lines


def print_history(history: HistoryStore) -> None:
    entries = history.load()
    if not entries:
        print("History is empty.")
        return
    for i, entry in enumerate(entries, start=1):
        print(f"--- #{i} ({len(entry)} references) ---")
        for ref in entry:
            print(f"  {ref}")


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    try:
        config = resolve_config(args)
    except (OSError, ValueError, TypeError) as e:
        logger.error("Failed to load config: %s", e)
        return 1

    history = JsonHistoryStore(config.history_path, limit=config.history_limit)

    if args.clear_history:
        try:
            history.clear()
        except OSError as e:
            logger.error("Failed to clear history: %s", e)
            return 1
        logger.info("History cleared")
        return 0
    if args.show_history:
        print_history(history)
        return 0

    if not args.files:
        logger.error("No input files given (use '-' to read from stdin)")
        return 1
    try:
        lines = read_references(args.files)
    except FileNotFoundError as e:
        logger.error("File not found: %s", e.filename)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Could not read input: %s", e)
        return 1

    sinks: list[ResultSink] = [LoggingSink(logger)]
    if args.jsonl:
        sinks.append(JsonlSink(args.jsonl))

    with HttpClient(
        timeout=config.timeout,
        user_agent=config.user_agent,
        rate_limiter=RateLimiterRegistry(config.rate_limits),
        retries=config.retries,
    ) as http:
        runner = BatchRunner(
            build_verifier(config, http),
            delay=config.delay,
            sink=MultiSink(sinks),
            history=None if args.no_history else history,
        )
        results = runner.run(lines)

    if not results:
        logger.error("No references found in input")
        return 1

    summary = runner.generate_summary(results)
    logger.info("=" * 60)
    logger.info("SUMMARY: %d references checked", summary["total"])
    for status, count in summary["status_counts"].items():
        if count > 0:
            logger.info("  %s: %d", status.upper(), count)
    logger.info("Verified rate: %.1f%%", summary["verified_rate"] * 100)
    if summary["problematic_count"] > 0:
        logger.warning("Problematic references: %d", summary["problematic_count"])

    if args.report:
        with open(args.report, "w", encoding="utf-8") as f:
            json.dump(runner.generate_json_report(results), f, indent=2, ensure_ascii=False)
        logger.info("JSON report written to %s", args.report)
    if args.jsonl:
        logger.info("JSONL results streamed to %s (%d references)", args.jsonl, len(results))

    if args.strict and summary["problematic_count"] > 0:
        logger.warning("Strict mode: %d unverified or potential references found", summary["problematic_count"])
        return 4
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""CLI/bootstrap helpers for the concordance browser application."""

from __future__ import annotations

import argparse
import asyncio
import logging
import logging.handlers
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
from platformdirs import user_config_dir

from concordance_browser.action_messages import (
    build_actionable_error,
    describe_error,
    describe_manifest_warning,
)
from concordance_browser.config import load_config
from concordance_browser.export import get_export_dir, write_export_file
from concordance_browser.models import (
    CONFIG_APP_NAME,
    DEFAULT_MANIFEST_FILE,
    UserConfig,
    YearRange,
)
from concordance_browser.parsing import flatten_markup
from concordance_browser.session import CorpusSession

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    """Configure logging. When debug=True, logs to file at DEBUG level."""
    if not debug:
        # Default: suppress all logging (TUI captures stderr)
        logging.disable(logging.CRITICAL)
        return

    log_dir = Path(user_config_dir(CONFIG_APP_NAME))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "debug.log"

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG)


def _validate_interactive_tty() -> bool:
    """Return True when stdin/stdout are interactive terminals."""
    return bool(sys.stdin.isatty() and sys.stdout.isatty())


def _resolve_manifest_location(args: argparse.Namespace, config: UserConfig) -> str:
    """Pick the manifest: --manifest, then the configured path, then ./app.manifest.json."""
    if args.manifest:
        return args.manifest
    if config.manifest_path:
        return config.manifest_path
    return str(Path.cwd() / DEFAULT_MANIFEST_FILE)


def _year_range_from_args(args: argparse.Namespace) -> YearRange | None:
    if args.year_from is None and args.year_to is None:
        return None
    return YearRange(start=args.year_from, end=args.year_to)


def _format_hit_line(hit: Any) -> str:
    return f"{hit.title} ({hit.year_label}): {flatten_markup(hit.concordance_markup)}"


async def _run_headless_search(
    args: argparse.Namespace,
    config: UserConfig,
    manifest_location: str,
    session: CorpusSession,
) -> int:
    """Load the corpus, run one search, print hits and optionally export."""
    async with httpx.AsyncClient() as client:
        if not await session.load(manifest_location, client=client, table_location=args.corpus):
            print(
                build_actionable_error(
                    "load the corpus",
                    why=session.last_error,
                    next_step="check --manifest/--corpus and retry",
                ),
                file=sys.stderr,
            )
            return 1
        for warning in session.load_warnings:
            print(describe_manifest_warning(warning), file=sys.stderr)
        if not await session.search(args.query, client=client, year_range=_year_range_from_args(args)):
            print(
                build_actionable_error(
                    "run the search",
                    why=session.last_error,
                    next_step="adjust the query or year range and retry",
                ),
                file=sys.stderr,
            )
            return 1

    for hit in session.hits:
        print(_format_hit_line(hit))
    print(f"{len(session.hits)} hit(s)", file=sys.stderr)

    if args.export:
        export_dir = get_export_dir(args.export_dir or config.export_dir)
        try:
            path = write_export_file(session.hits, export_dir)
        except OSError as e:
            print(describe_error("write the export file", e), file=sys.stderr)
            return 1
        if path is None:
            print("No hits to export.", file=sys.stderr)
        else:
            print(f"Exported to {path}", file=sys.stderr)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Search a literary corpus for concordances and export the results"
    )
    parser.add_argument(
        "-m",
        "--manifest",
        type=str,
        default=None,
        help=f"Path or URL of the app manifest (default: ./{DEFAULT_MANIFEST_FILE})",
    )
    parser.add_argument(
        "--corpus",
        type=str,
        default=None,
        help="Path or URL of the corpus CSV (overrides the manifest's metadataFile)",
    )
    parser.add_argument(
        "-q",
        "--query",
        type=str,
        default=None,
        help="Run one search without the TUI and print the hits",
    )
    parser.add_argument(
        "--export",
        action="store_true",
        help="With --query: write the hits to concordance-YYYY-MM-DD.csv",
    )
    parser.add_argument(
        "--export-dir",
        type=str,
        default=None,
        help="Directory for exported files (default: ~/concordance-exports)",
    )
    parser.add_argument("--year-from", type=int, default=None, help="Earliest year to include")
    parser.add_argument("--year-to", type=int, default=None, help="Latest year to include")
    parser.add_argument(
        "--no-restore",
        action="store_true",
        help="Start with a fresh session (ignore saved query, exclusions, and year range)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to file (~/.config/concordance-browser/debug.log)",
    )
    return parser


def main(
    argv: list[str] | None = None,
    *,
    load_config_fn: Callable[[], UserConfig] = load_config,
    configure_logging_fn: Callable[[bool], None] = _configure_logging,
    validate_interactive_tty_fn: Callable[[], bool] = _validate_interactive_tty,
    session_factory: Callable[[], CorpusSession] = CorpusSession,
    app_factory: Callable[..., Any] | None = None,
) -> int:
    """Main entry point. Returns exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.export and args.query is None:
        print("Error: --export requires --query", file=sys.stderr)
        return 1
    if args.year_from is not None and args.year_to is not None and args.year_from > args.year_to:
        print("Error: --year-from must not be later than --year-to", file=sys.stderr)
        return 1

    configure_logging_fn(args.debug)
    logger.debug("concordance-browser starting, cwd=%s", Path.cwd())

    config = load_config_fn()
    manifest_location = _resolve_manifest_location(args, config)

    if args.query is not None:
        return asyncio.run(_run_headless_search(args, config, manifest_location, session_factory()))

    if not validate_interactive_tty_fn():
        print(
            "Error: concordance-browser requires an interactive TTY for the full UI.",
            file=sys.stderr,
        )
        print("Next steps:", file=sys.stderr)
        print("  - Run concordance-browser directly in a terminal session", file=sys.stderr)
        print("  - Use --query for non-interactive searches", file=sys.stderr)
        print("  - Use --help for command documentation", file=sys.stderr)
        return 2

    if app_factory is None:
        from concordance_browser.app import ConcordanceBrowser as _ConcordanceBrowser

        app_factory = _ConcordanceBrowser

    app = app_factory(
        manifest_location=manifest_location,
        table_location=args.corpus,
        config=config,
        restore_session=not args.no_restore,
        year_range=_year_range_from_args(args),
    )
    app.run()
    return 0


__all__ = [
    "_configure_logging",
    "_resolve_manifest_location",
    "_validate_interactive_tty",
    "build_parser",
    "main",
]

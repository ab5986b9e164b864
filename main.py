"""CLI entry point for the LinkedIn job acquisition engine."""

import argparse
import asyncio
import sys

from src.auth.session_store import SessionStore
from src.browser.session import capture_manual_login
from src.core.config import SearchFilters, Settings
from src.core.errors import AuthenticationError
from src.core.log import setup_logging
from src.pipeline.engine import JobAcquisitionEngine, export_records_json

DATE_POSTED_CHOICES = ["any-time", "past-24-hours", "past-week", "past-month"]
EXPERIENCE_CHOICES = ["internship", "entry-level", "associate", "mid-senior", "director", "executive"]
JOB_TYPE_CHOICES = [
    "full-time", "part-time", "contract", "temporary", "volunteer", "internship", "other",
]
REMOTE_CHOICES = ["on-site", "remote", "hybrid"]


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="LinkedIn job acquisition engine - search, enrich, export",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- search subcommand ---
    search_parser = subparsers.add_parser("search", help="Run one job search")
    _add_common(search_parser)
    search_parser.add_argument("--keywords", "-k", help="Search keywords")
    search_parser.add_argument("--location", "-l", help="Location, e.g. 'Bengaluru, India'")
    search_parser.add_argument(
        "--date-posted", choices=DATE_POSTED_CHOICES, default="any-time",
    )
    search_parser.add_argument(
        "--experience", action="append", choices=EXPERIENCE_CHOICES, default=[],
        help="Experience level (repeatable)",
    )
    search_parser.add_argument(
        "--job-type", action="append", choices=JOB_TYPE_CHOICES, default=[],
        help="Job type (repeatable)",
    )
    search_parser.add_argument(
        "--remote", action="append", choices=REMOTE_CHOICES, default=[],
        help="Workplace type (repeatable)",
    )
    search_parser.add_argument(
        "--max-jobs", type=int, default=10, help="Maximum number of jobs (default: 10)",
    )
    search_parser.add_argument("--output", "-o", help="Write JSON results to this file")

    # --- serve subcommand ---
    serve_parser = subparsers.add_parser("serve", help="Serve the HTTP API")
    _add_common(serve_parser)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=3000)

    # --- save-session subcommand ---
    session_parser = subparsers.add_parser(
        "save-session",
        help="Log in manually in a browser window and save the session cookies",
    )
    _add_common(session_parser)

    return parser.parse_args(argv)


def filters_from_args(args: argparse.Namespace) -> SearchFilters:
    return SearchFilters(
        keywords=args.keywords,
        location=args.location,
        date_posted=args.date_posted,
        experience_level=args.experience,
        job_type=args.job_type,
        remote=args.remote,
    )


async def run_search(settings: Settings, filters: SearchFilters, max_jobs: int) -> str:
    """Run one search with a real browser and return the JSON export."""
    async with JobAcquisitionEngine(settings) as engine:
        records = await engine.search(filters, max_jobs)
    print(f"\nSearch complete: {len(records)} jobs.", file=sys.stderr)
    return export_records_json(records)


def cmd_serve(args: argparse.Namespace) -> None:
    """Handle serve subcommand."""
    import uvicorn

    from src.api.server import create_app

    config_path = args.config
    app = create_app(lambda: Settings.from_yaml(config_path))
    uvicorn.run(app, host=args.host, port=args.port)


def cmd_save_session(settings: Settings) -> None:
    """Handle save-session subcommand."""
    store = SessionStore(settings.browser.session_path)
    count = asyncio.run(capture_manual_login(settings.browser, store))
    print(f"Saved {count} cookies to {store.path}")


def load_settings(path: str) -> Settings:
    try:
        return Settings.from_yaml(path)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    if args.command == "serve":
        cmd_serve(args)
        return

    settings = load_settings(args.config)

    if args.command == "save-session":
        cmd_save_session(settings)
        return

    try:
        filters = filters_from_args(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        output = asyncio.run(run_search(settings, filters, args.max_jobs))
    except AuthenticationError as e:
        print(f"Authentication failed: {e}", file=sys.stderr)
        sys.exit(2)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output)
        print(f"Results written to {args.output}", file=sys.stderr)
    else:
        print(output)


if __name__ == "__main__":
    main()

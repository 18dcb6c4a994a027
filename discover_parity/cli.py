"""
Command-line interface for the parity suite.

Provides commands for:
- sanity: Check API credentials and endpoint availability
- genres: List TMDB movie genres
- api: Validate API date filtering and ordering
- ui: Scrape the discover page with filters applied
- compare: Compare UI and API results for the same filters
- sweep: Per-genre counts and timings
"""

import argparse
import sys
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Optional

from .browser import DiscoverPage, managed_driver
from .client import TMDBClient
from .config import Config
from .models import DEFAULT_SORT, DiscoverFilters
from .reporting import ReportWriter
from .runner import GENRE_CASES, ParityRunner, format_sweep_table
from .utils import clip

RULE = "=" * 60


def _banner(title: str, filters: Optional[DiscoverFilters] = None) -> None:
    """Command title, plus the filters it runs with."""
    print(RULE)
    print(title.center(len(RULE)))
    if filters is not None:
        print(filters.describe().center(len(RULE)))
    print(RULE)


def _print_rows(title: str, rows: dict) -> None:
    """Two-column listing for endpoint probes and genre ids."""
    print(f"\n{title}")
    print("-" * 40)
    width = max((len(str(k)) for k in rows), default=10)
    for key, value in rows.items():
        print(f"  {str(key):<{width}}  {value}")
    print()


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def _add_filter_arguments(
    subparser: argparse.ArgumentParser,
    genre: Optional[int] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    max_pages: Optional[int] = None,
) -> None:
    """Add the shared filter options with per-command defaults."""
    subparser.add_argument("--genre", type=int, default=genre, help="TMDB genre id (e.g. 18 = Drama)")
    subparser.add_argument(
        "--from", dest="from_date", type=_iso_date, default=from_date, help="Earliest release date"
    )
    subparser.add_argument(
        "--to", dest="to_date", type=_iso_date, default=to_date, help="Latest release date"
    )
    subparser.add_argument("--sort", default=DEFAULT_SORT, help=f"Sort key (default: {DEFAULT_SORT})")
    subparser.add_argument(
        "--max-pages", type=int, default=max_pages, help="API pages to fetch (default from config)"
    )
    subparser.add_argument("--limit", type=int, help="Max UI cards to read (default from config)")


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with all commands."""
    parser = argparse.ArgumentParser(
        prog="discover_parity",
        description="Cross-check TMDB discover results between the website and the API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check credentials
  python -m discover_parity sanity

  # Validate API date filtering for 2000-2005
  python -m discover_parity api --from 2000-01-01 --to 2005-12-31

  # Compare drama movies 1990-2005 between UI and API
  python -m discover_parity compare --genre 18 --from 1990-01-01 --to 2005-12-31

  # Genre sweep without a browser
  python -m discover_parity sweep --api-only
        """,
    )
    parser.add_argument("--settings", help="JSON settings file (environment variables win)")
    parser.add_argument("--report-dir", type=Path, help="Directory for run reports")
    parser.add_argument("--show-browser", action="store_true", help="Run Chrome with a visible window")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("sanity", help="Check API credentials and endpoints")
    subparsers.add_parser("genres", help="List movie genres")

    # API date validation command
    api_parser = subparsers.add_parser("api", help="Validate API date filtering and order")
    _add_filter_arguments(
        api_parser, from_date=date(2000, 1, 1), to_date=date(2005, 12, 31), max_pages=3
    )

    # UI scrape command
    ui_parser = subparsers.add_parser("ui", help="Scrape the discover page")
    _add_filter_arguments(ui_parser, genre=28, from_date=date(2010, 1, 1), to_date=date(2020, 12, 31))

    # UI vs API comparison command
    compare_parser = subparsers.add_parser("compare", help="Compare UI and API results")
    _add_filter_arguments(
        compare_parser, genre=18, from_date=date(1990, 1, 1), to_date=date(2005, 12, 31)
    )

    # Genre sweep command
    sweep_parser = subparsers.add_parser("sweep", help="Per-genre counts and timings")
    _add_filter_arguments(
        sweep_parser, from_date=date(2000, 1, 1), to_date=date(2020, 12, 31), max_pages=1
    )
    sweep_parser.add_argument("--api-only", action="store_true", help="Skip the browser")

    return parser


def filters_from_args(args, config: Config) -> DiscoverFilters:
    """Build DiscoverFilters from parsed arguments."""
    return DiscoverFilters(
        genre_id=getattr(args, "genre", None),
        from_date=getattr(args, "from_date", None),
        to_date=getattr(args, "to_date", None),
        sort_by=getattr(args, "sort", DEFAULT_SORT),
        max_pages=getattr(args, "max_pages", None) or config.max_pages,
    )


def cmd_sanity(client: TMDBClient) -> int:
    """Run sanity command."""
    _banner("API Sanity")

    status = client.probe_endpoints()
    _print_rows("Endpoints", {endpoint: "OK" if ok else "FAILED" for endpoint, ok in status.items()})

    if not any(status.values()):
        print("No endpoint accepted the configured credentials.")
        return 1
    return 0


def cmd_genres(client: TMDBClient) -> int:
    """Run genres command."""
    _banner("Movie Genres")

    genres = client.get_genres()
    if not genres:
        print("Could not load genres.")
        return 1

    _print_rows("Genres", dict(sorted(genres.items())))
    return 0


def cmd_api(runner: ParityRunner, writer: ReportWriter, args) -> int:
    """Run API date validation command."""
    filters = filters_from_args(args, runner.config)
    _banner("API Date Filtering", filters)

    check = runner.validate_api_dates(filters)
    print(check.summary())
    writer.write("api_date_check", check)
    return 0 if check.passed else 1


def cmd_ui(page: DiscoverPage, args, config: Config) -> int:
    """Run UI scrape command."""
    filters = filters_from_args(args, config)
    _banner("Discover Page", filters)

    result_set = page.fetch(filters, config.ui_card_limit)

    print(f"URL: {page.build_url(filters)}")
    print(f"\n{len(result_set)} movies (limit {config.ui_card_limit})")
    for record in result_set:
        released = record.release_date.isoformat() if record.release_date else "unknown"
        print(f"  {released:<10}  {clip(record.title)}")

    if not len(result_set):
        page.take_screenshot("ui_empty")
        return 1
    return 0


def cmd_compare(runner: ParityRunner, writer: ReportWriter, args) -> int:
    """Run UI vs API comparison command."""
    filters = filters_from_args(args, runner.config)
    _banner("UI vs API Comparison", filters)

    result = runner.run(filters)
    print(result.summary())

    if runner.page is not None:
        runner.page.take_screenshot("ui_vs_api_comparison" if result.passed else "ui_vs_api_failed")
    writer.write("ui_vs_api", result)
    return 0 if result.passed else 1


def cmd_sweep(runner: ParityRunner, writer: ReportWriter, args) -> int:
    """Run genre sweep command."""
    _banner("Genre Sweep")

    rows = runner.genre_sweep(
        GENRE_CASES,
        from_date=args.from_date,
        to_date=args.to_date,
        max_pages=args.max_pages or 1,
        show_progress=True,
    )
    table = format_sweep_table(rows)
    print(table)
    writer.write_text("genre_sweep", table)

    failed = [r for r in rows if r.error or r.api_count == 0]
    return 1 if failed else 0


def _needs_browser(args) -> bool:
    if args.command in ("ui", "compare"):
        return True
    return args.command == "sweep" and not args.api_only


def main(args: Optional[list] = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 0

    try:
        config = Config.from_env(settings_path=parsed_args.settings)
    except ValueError as e:
        print(f"Configuration error: {e}")
        print("\nMake sure your .env file contains:")
        print("  TMDB_API_KEY=<your_tmdb_api_key>")
        print("  (optional) TMDB_BEARER_TOKEN=<your_bearer_token>")
        return 1

    if parsed_args.show_browser:
        config = replace(config, headless=False)
    if parsed_args.report_dir:
        config = replace(config, report_dir=parsed_args.report_dir)
    if getattr(parsed_args, "limit", None):
        config = replace(config, ui_card_limit=parsed_args.limit)

    try:
        client = TMDBClient(config)
        writer = ReportWriter(config.report_dir, config.log_dir)

        if parsed_args.command == "sanity":
            return cmd_sanity(client)
        elif parsed_args.command == "genres":
            return cmd_genres(client)
        elif parsed_args.command == "api":
            return cmd_api(ParityRunner(client, config), writer, parsed_args)

        if not _needs_browser(parsed_args):
            return cmd_sweep(ParityRunner(client, config), writer, parsed_args)

        with managed_driver(config) as driver:
            page = DiscoverPage(driver, config)
            if parsed_args.command == "ui":
                return cmd_ui(page, parsed_args, config)
            runner = ParityRunner(client, config, page)
            if parsed_args.command == "compare":
                return cmd_compare(runner, writer, parsed_args)
            return cmd_sweep(runner, writer, parsed_args)

    except KeyboardInterrupt:
        print("\n\nOperation cancelled.")
        return 130
    except Exception as e:
        print(f"\nError: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

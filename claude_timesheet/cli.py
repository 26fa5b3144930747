"""Command-line interface for exporting Claude Code time-tracking reports.

Usage:
    claude-timesheet --all --from 2025-12-01 --to 2025-12-08
    claude-timesheet --repo personal-finances --format json --output sessions.json
    claude-timesheet --profile acme --incremental
    claude-timesheet --all-profiles
    claude-timesheet --generate-config > config.json
"""

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

from .core import runtime
from .core.config import DEFAULT_OUTPUT, FORMATS, TimesheetConfig, generate_config, infer_format, load_config
from .core.events import HistoryNotFoundError, discover_projects
from .core.exporter import (
    BulkExportResult,
    ExportError,
    Exporter,
    ExportRequest,
    ExportResult,
    RepositorySelector,
)
from .core.report import ReportStats
from .core.watermark import WatermarkStore
from .utils import (
    format_duration_human,
    format_iso_utc,
    local_day_end_ms,
    local_day_start_ms,
    parse_day,
)

RECENT_SESSIONS_SHOWN = 10


def _day_arg(value: str) -> date:
    try:
        return parse_day(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date {value!r}, expected YYYY-MM-DD") from None


class TimesheetCLI:
    """Print-oriented wrapper around Exporter."""

    def __init__(self, exporter: Exporter, verbose: bool = False):
        self.exporter = exporter
        self.verbose = verbose

    @property
    def config(self) -> TimesheetConfig:
        return self.exporter.config

    def display_header(self, date_from: date | None, date_to: date | None) -> None:
        print("Parsing Claude Code history...")
        print(f"History file: {self.exporter.history_path}")
        if self.config.source and self.verbose:
            print(f"Loaded config from: {self.config.source}")
        if date_from is not None:
            print(f"From: {date_from.isoformat()}")
        if date_to is not None:
            print(f"To: {date_to.isoformat()}")

    def display_result(self, result: ExportResult, show_breakdown: bool = False) -> None:
        if result.since is not None:
            print(f"Incremental: entries after {format_iso_utc(result.since)}")
        print(f"Found {result.parse_stats.lines} history entries")
        print(f"Parsed {result.parse_stats.accepted} valid entries (after date filter)")
        print(f"{result.matched_events} entries match the project filter")
        print(f"\nIdentified {result.session_count} sessions")

        if not result.ok:
            print(f"Failed to write {result.output}: {result.error}", file=sys.stderr)
            return

        print(
            f"\nExported {result.session_count} sessions to {result.output} "
            f"({result.format.upper()})"
        )
        if not result.watermark_saved:
            print("Warning: export state could not be saved", file=sys.stderr)

        if not result.rows:
            return

        print("\nRecent sessions (newest first):")
        for index, row in enumerate(result.rows[:RECENT_SESSIONS_SHOWN], start=1):
            description = row.description
            if len(description) > 50:
                description = description[:47] + "..."
            duration = format_duration_human(row.duration_minutes * 60_000)
            print(f"  {index}. {row.start_date} | {row.repository} | {duration} | {description}")
        if result.session_count > RECENT_SESSIONS_SHOWN:
            print(f"  ... and {result.session_count - RECENT_SESSIONS_SHOWN} more")

        self.display_stats(result.stats, show_breakdown)

    def display_stats(self, stats: ReportStats, show_breakdown: bool) -> None:
        print(
            f"\nTotal: {stats.sessions} sessions, {stats.messages} messages, "
            f"{stats.hours:.1f} hours tracked"
        )
        if stats.billable is not None and self.config.hourly_rate:
            print(
                f"Billable amount: ${stats.billable:.2f} "
                f"(at ${self.config.hourly_rate:g}/hr)"
            )
        if show_breakdown and stats.by_repository:
            print("\nBy repository:")
            for repo, totals in stats.by_repository.items():
                print(
                    f"  {repo}: {totals.sessions} sessions, {totals.messages} msgs, "
                    f"{totals.hours:.1f}h"
                )

    def display_bulk(self, bulk: BulkExportResult) -> None:
        for name, result in bulk.results.items():
            print(f"\n== Profile: {name}")
            self.display_result(result, show_breakdown=len(result.stats.by_repository) > 1)
        print(f"\n== All profiles: {len(bulk.results)} run, {len(bulk.failed)} failed")
        self.display_stats(bulk.totals, show_breakdown=True)

    def display_profiles(self) -> None:
        profiles = self.config.exports
        if not profiles:
            print("No export profiles configured.")
            return
        print("Export profiles:")
        for name in sorted(profiles):
            profile = profiles[name]
            repos = ", ".join(profile.repositories) or "(none)"
            print(f"  {name}: {repos} -> {profile.output} ({profile.format.upper()})")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="claude-timesheet",
        description="Export Claude Code session history for time tracking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Config file format (JSON):
  {
    "mappings": {
      "personal-finances": { "client": "Personal", "project": "Finance App" }
    },
    "defaultClient": "Development",
    "hourlyRate": 150,
    "exports": {
      "acme": { "repositories": ["acme-api", "acme-web"], "output": "acme.csv" }
    }
  }
        """,
    )
    parser.add_argument("--project", default=str(Path.cwd()), help="Project path to match (default: cwd)")
    parser.add_argument("--repo", help="Filter by repository name")
    parser.add_argument("--all", action="store_true", dest="include_all", help="Include all projects")
    parser.add_argument("--output", default=DEFAULT_OUTPUT, help=f"Output file (default: {DEFAULT_OUTPUT})")
    parser.add_argument("--format", type=str.lower, choices=FORMATS, help="Output format (default: from extension, else csv)")
    parser.add_argument("--from", dest="date_from", type=_day_arg, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--to", dest="date_to", type=_day_arg, help="End date (YYYY-MM-DD)")
    parser.add_argument("--config", type=Path, help="Config file for repo -> client mappings")
    parser.add_argument("--state-file", type=Path, help="Export state file (default: runtime home)")
    parser.add_argument(
        "--incremental",
        action="store_true",
        help="Only export entries newer than the previous export of the same scope",
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--profile", help="Run a configured export profile")
    mode.add_argument("--all-profiles", action="store_true", help="Run every configured export profile")
    mode.add_argument("--list-profiles", action="store_true", help="List configured export profiles")
    mode.add_argument(
        "--generate-config",
        action="store_true",
        help="Print a config file built from discovered projects",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug information")
    return parser


def _generate_config(history: Path) -> int:
    try:
        with open(history, encoding="utf-8", errors="replace") as f:
            projects = discover_projects(f)
    except OSError:
        print("No history file found in ~/.claude", file=sys.stderr)
        return 1
    print(json.dumps(generate_config(projects), indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    history = runtime.history_path()
    if args.generate_config:
        return _generate_config(history)

    config = load_config(runtime.config_search_paths(args.config))
    watermarks = WatermarkStore(args.state_file or runtime.state_path())
    exporter = Exporter(config, history, watermarks)
    cli = TimesheetCLI(exporter, verbose=args.verbose)

    if args.list_profiles:
        cli.display_profiles()
        return 0

    date_from = local_day_start_ms(args.date_from) if args.date_from else None
    date_to = local_day_end_ms(args.date_to) if args.date_to else None

    try:
        cli.display_header(args.date_from, args.date_to)
        if args.all_profiles:
            bulk = exporter.run_all_profiles(date_from, date_to, incremental=args.incremental)
            cli.display_bulk(bulk)
            return 1 if bulk.failed else 0

        if args.profile:
            result = exporter.run_profile(
                args.profile, date_from, date_to, incremental=args.incremental
            )
            cli.display_result(result, show_breakdown=len(result.stats.by_repository) > 1)
            return 0 if result.ok else 1

        selector = RepositorySelector(
            repo=args.repo,
            include_all=args.include_all,
            project_path=args.project,
        )
        if args.repo:
            print(f"Filtering for repository: {args.repo}")
        elif args.verbose and not args.include_all:
            print(f"Filtering for project: {args.project}")

        request = ExportRequest(
            selector=selector,
            output=Path(args.output),
            format=infer_format(args.output, args.format),
            date_from=date_from,
            date_to=date_to,
            incremental=args.incremental,
        )
        result = exporter.run_export(request)
        cli.display_result(result, show_breakdown=args.include_all)
        return 0 if result.ok else 1

    except HistoryNotFoundError as exc:
        print(f"Error: {exc}. Have you used Claude Code before?", file=sys.stderr)
        return 1
    except ExportError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nExport interrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())

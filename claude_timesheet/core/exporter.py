"""Compose parsing, sessionizing, classification and output for one export."""

import logging
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path

from ..utils import now_ms as wall_clock_ms
from .config import TimesheetConfig
from .events import Event, HistoryNotFoundError, ParseStats, load_events, normalize_project_path
from .report import ReportRow, ReportStats, build_rows, render, summarize
from .sessions import build_sessions
from .watermark import GLOBAL_SCOPE, WatermarkStore, profile_scope

logger = logging.getLogger(__name__)

__all__ = [
    "BulkExportResult",
    "ExportError",
    "ExportRequest",
    "ExportResult",
    "Exporter",
    "HistoryNotFoundError",
    "NoProfilesConfiguredError",
    "ProfileNotFoundError",
    "RepositorySelector",
]


class ExportError(Exception):
    """A user-facing error that aborts the invocation."""


class ProfileNotFoundError(ExportError):
    """The requested export profile is not configured."""

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = available
        choices = ", ".join(available) if available else "none configured"
        super().__init__(f"Export profile {name!r} not found. Available profiles: {choices}")


class NoProfilesConfiguredError(ExportError):
    """Bulk export was requested but the config defines no profiles."""

    def __init__(self):
        super().__init__("No export profiles configured; add an \"exports\" section to the config")


@dataclass(frozen=True)
class RepositorySelector:
    """Which events belong to an export.

    Precedence: an explicit repository list, then a single repository name,
    then include_all, then the exact project path of the invoking directory.
    Names compare case-insensitively; paths compare normalized.
    """

    repositories: tuple[str, ...] | None = None
    repo: str | None = None
    include_all: bool = False
    project_path: str | None = None

    @cached_property
    def _wanted(self) -> frozenset[str]:
        return frozenset(name.casefold() for name in self.repositories or ())

    def matches(self, event: Event) -> bool:
        if self.repositories is not None:
            return event.repository_name.casefold() in self._wanted
        if self.repo:
            return event.repository_name.casefold() == self.repo.casefold()
        if self.include_all:
            return True
        return event.normalized_path == normalize_project_path(self.project_path)

    def describe(self) -> str:
        if self.repositories is not None:
            return f"repositories: {', '.join(self.repositories) or '(none)'}"
        if self.repo:
            return f"repository: {self.repo}"
        if self.include_all:
            return "all projects"
        return f"project: {self.project_path}"


@dataclass
class ExportRequest:
    """Parameters of a single export run."""

    selector: RepositorySelector
    output: Path
    format: str
    scope_key: str = GLOBAL_SCOPE
    date_from: int | None = None
    date_to: int | None = None
    incremental: bool = False


@dataclass
class ExportResult:
    """Outcome of one export run."""

    scope_key: str
    output: Path
    format: str
    rows: list[ReportRow] = field(default_factory=list)
    stats: ReportStats = field(default_factory=ReportStats)
    parse_stats: ParseStats = field(default_factory=ParseStats)
    matched_events: int = 0
    since: int | None = None
    watermark_saved: bool = False
    error: str | None = None

    @property
    def session_count(self) -> int:
        return len(self.rows)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BulkExportResult:
    """Per-profile results of an all-profiles run plus grand totals."""

    results: dict[str, ExportResult] = field(default_factory=dict)
    totals: ReportStats = field(default_factory=ReportStats)

    @property
    def session_count(self) -> int:
        return sum(result.session_count for result in self.results.values())

    @property
    def failed(self) -> list[str]:
        return [name for name, result in self.results.items() if not result.ok]


class Exporter:
    """Run exports against one history log, config and watermark store."""

    def __init__(self, config: TimesheetConfig, history_path: Path, watermarks: WatermarkStore):
        self.config = config
        self.history_path = history_path
        self.watermarks = watermarks

    def run_export(self, request: ExportRequest, now_ms: int | None = None) -> ExportResult:
        """Export the sessions selected by request and advance its watermark.

        Raises HistoryNotFoundError when the history log cannot be read.
        A failure to write the report is returned in ``result.error`` and
        leaves the watermark untouched.
        """
        result = ExportResult(
            scope_key=request.scope_key,
            output=request.output,
            format=request.format,
        )
        if request.incremental:
            result.since = self.watermarks.read(request.scope_key)
            if result.since is None:
                logger.info("No previous export for %s; exporting everything", request.scope_key)

        events, result.parse_stats = load_events(
            self.history_path,
            date_from=request.date_from,
            date_to=request.date_to,
            after=result.since,
        )
        selected = [event for event in events if request.selector.matches(event)]
        result.matched_events = len(selected)
        logger.debug(
            "%s: %d of %d events match %s",
            request.scope_key,
            len(selected),
            len(events),
            request.selector.describe(),
        )

        result.rows = build_rows(build_sessions(selected), self.config)
        result.stats = summarize(result.rows, self.config.hourly_rate)

        try:
            content = render(result.rows, request.format)
            request.output.parent.mkdir(parents=True, exist_ok=True)
            request.output.write_text(content, encoding="utf-8")
        except (OSError, ValueError) as e:
            logger.error("Failed to write report %s: %s", request.output, e)
            result.error = str(e)
            return result

        stamp = now_ms if now_ms is not None else wall_clock_ms()
        result.watermark_saved = self.watermarks.write(request.scope_key, stamp)
        return result

    def profile_names(self) -> list[str]:
        return sorted(self.config.exports)

    def profile_request(
        self,
        name: str,
        date_from: int | None = None,
        date_to: int | None = None,
        incremental: bool = False,
    ) -> ExportRequest:
        """Build the request for a configured profile."""
        profile = self.config.exports.get(name)
        if profile is None:
            raise ProfileNotFoundError(name, self.profile_names())
        return ExportRequest(
            selector=RepositorySelector(repositories=profile.repositories),
            output=profile.output,
            format=profile.format,
            scope_key=profile_scope(profile.name),
            date_from=date_from,
            date_to=date_to,
            incremental=incremental,
        )

    def run_profile(
        self,
        name: str,
        date_from: int | None = None,
        date_to: int | None = None,
        incremental: bool = False,
        now_ms: int | None = None,
    ) -> ExportResult:
        """Run one named profile under its own watermark scope."""
        request = self.profile_request(name, date_from, date_to, incremental)
        return self.run_export(request, now_ms=now_ms)

    def run_all_profiles(
        self,
        date_from: int | None = None,
        date_to: int | None = None,
        incremental: bool = False,
        now_ms: int | None = None,
    ) -> BulkExportResult:
        """Run every configured profile in name order.

        A profile whose report cannot be written is recorded as failed and
        the remaining profiles still run.
        """
        names = self.profile_names()
        if not names:
            raise NoProfilesConfiguredError()
        if not self.history_path.exists():
            raise HistoryNotFoundError(f"History file not found: {self.history_path}")

        bulk = BulkExportResult()
        for name in names:
            result = self.run_profile(
                name,
                date_from=date_from,
                date_to=date_to,
                incremental=incremental,
                now_ms=now_ms,
            )
            bulk.results[name] = result
            bulk.totals.merge(result.stats)
        return bulk

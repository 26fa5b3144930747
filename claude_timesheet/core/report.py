"""Report rows, tabular/JSON rendering, and totals."""

import csv
import io
import json
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..utils import format_date_utc, format_iso_utc
from ..utils.datetime_utils import MS_PER_HOUR, duration_hours, duration_minutes
from .classifier import create_description, extract_topics
from .config import TimesheetConfig
from .sessions import Session

HEADERS = (
    "Start Date",
    "End Date",
    "Client",
    "Project",
    "Repository",
    "Description",
    "Start Time",
    "End Time",
    "Duration (hours)",
    "Duration (minutes)",
    "Message Count",
    "Topics",
    "Project Path",
)

_NEWLINES = re.compile(r"\r\n|\r|\n")


@dataclass
class ReportRow:
    """One session as it appears in an exported report."""

    start_date: str
    end_date: str
    client: str
    project: str
    repository: str
    description: str
    start_time: str
    end_time: str
    duration_hours: float
    duration_minutes: int
    message_count: int
    topics: str
    project_path: str
    duration_ms: int = 0

    def values(self) -> list:
        """Field values in report column order."""
        return [
            self.start_date,
            self.end_date,
            self.client,
            self.project,
            self.repository,
            self.description,
            self.start_time,
            self.end_time,
            self.duration_hours,
            self.duration_minutes,
            self.message_count,
            self.topics,
            self.project_path,
        ]

    def to_dict(self) -> dict:
        return {
            "startDate": self.start_date,
            "endDate": self.end_date,
            "client": self.client,
            "project": self.project,
            "repository": self.repository,
            "description": self.description,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "durationHours": self.duration_hours,
            "durationMinutes": self.duration_minutes,
            "messageCount": self.message_count,
            "topics": self.topics,
            "projectPath": self.project_path,
        }


def build_row(session: Session, config: TimesheetConfig) -> ReportRow:
    """Classify a session and attach its billing columns."""
    mapping = config.mapping_for(session.repository_name)
    topics = extract_topics(session.messages)
    duration = session.duration_ms
    return ReportRow(
        start_date=format_date_utc(session.start_time),
        end_date=format_date_utc(session.end_time),
        client=mapping.client,
        project=mapping.project,
        repository=session.repository_name,
        description=create_description(session.messages, topics),
        start_time=format_iso_utc(session.start_time),
        end_time=format_iso_utc(session.end_time),
        duration_hours=duration_hours(duration),
        duration_minutes=duration_minutes(duration),
        message_count=session.message_count,
        topics=topics,
        project_path=session.repository_path,
        duration_ms=duration,
    )


def build_rows(sessions: Sequence[Session], config: TimesheetConfig) -> list[ReportRow]:
    return [build_row(session, config) for session in sessions]


def _text(value: object) -> str:
    return "" if value is None else str(value)


def render_csv(rows: Sequence[ReportRow]) -> str:
    """CSV with minimal quoting; embedded newlines collapse to spaces."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(HEADERS)
    for row in rows:
        writer.writerow([_NEWLINES.sub(" ", _text(value)) for value in row.values()])
    return buffer.getvalue().rstrip("\n")


def render_tsv(rows: Sequence[ReportRow]) -> str:
    """TSV without quoting; tabs and newlines inside fields become spaces."""
    lines = ["\t".join(HEADERS)]
    for row in rows:
        fields = [_NEWLINES.sub(" ", _text(value)).replace("\t", " ") for value in row.values()]
        lines.append("\t".join(fields))
    return "\n".join(lines)


def render_json(rows: Sequence[ReportRow]) -> str:
    return json.dumps([row.to_dict() for row in rows], indent=2, ensure_ascii=False)


RENDERERS = {
    "csv": render_csv,
    "tsv": render_tsv,
    "json": render_json,
}


def render(rows: Sequence[ReportRow], fmt: str) -> str:
    """Render rows in one of the supported formats."""
    try:
        renderer = RENDERERS[fmt]
    except KeyError:
        raise ValueError(f"Unsupported format: {fmt}") from None
    return renderer(rows)


@dataclass
class RepositoryTotals:
    sessions: int = 0
    messages: int = 0
    duration_ms: int = 0

    @property
    def hours(self) -> float:
        return self.duration_ms / MS_PER_HOUR


@dataclass
class ReportStats:
    """Aggregated totals for a set of report rows."""

    sessions: int = 0
    messages: int = 0
    duration_ms: int = 0
    billable: float | None = None
    by_repository: dict[str, RepositoryTotals] = field(default_factory=dict)

    @property
    def hours(self) -> float:
        return self.duration_ms / MS_PER_HOUR

    def merge(self, other: "ReportStats") -> None:
        """Fold other's totals into this one."""
        self.sessions += other.sessions
        self.messages += other.messages
        self.duration_ms += other.duration_ms
        if other.billable is not None:
            self.billable = (self.billable or 0.0) + other.billable
        for repo, totals in other.by_repository.items():
            mine = self.by_repository.setdefault(repo, RepositoryTotals())
            mine.sessions += totals.sessions
            mine.messages += totals.messages
            mine.duration_ms += totals.duration_ms
        self.by_repository = _sorted_by_duration(self.by_repository)


def _sorted_by_duration(totals: dict[str, RepositoryTotals]) -> dict[str, RepositoryTotals]:
    return dict(sorted(totals.items(), key=lambda item: item[1].duration_ms, reverse=True))


def summarize(rows: Sequence[ReportRow], hourly_rate: float | None = None) -> ReportStats:
    """Totals plus a per-repository breakdown sorted by time spent."""
    stats = ReportStats()
    by_repo: dict[str, RepositoryTotals] = {}
    for row in rows:
        stats.sessions += 1
        stats.messages += row.message_count
        stats.duration_ms += row.duration_ms
        totals = by_repo.setdefault(row.repository, RepositoryTotals())
        totals.sessions += 1
        totals.messages += row.message_count
        totals.duration_ms += row.duration_ms

    stats.by_repository = _sorted_by_duration(by_repo)
    if hourly_rate:
        stats.billable = stats.hours * hourly_rate
    return stats

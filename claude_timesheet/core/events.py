"""History log events and the parser that produces them."""

import logging
import math
import posixpath
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from ..utils import JSONLEntry, JSONLParser, is_representable_ms

logger = logging.getLogger(__name__)


class HistoryNotFoundError(FileNotFoundError):
    """The history log is missing or unreadable; nothing can be exported."""


def _unify_separators(project_path: str) -> str:
    # Windows paths arrive either escaped ("C:\\\\Users") or plain ("C:\\Users").
    unified = project_path.replace("\\\\", "\\").replace("\\", "/")
    return posixpath.normpath(unified)


def normalize_project_path(project_path: str | None) -> str:
    """Case-folded, separator-normalized form used to compare project paths."""
    if not project_path:
        return ""
    return _unify_separators(project_path).casefold()


def repository_name(project_path: str | None) -> str:
    """Final path segment of a project path, case preserved."""
    if not project_path:
        return ""
    return posixpath.basename(_unify_separators(project_path))


@dataclass(frozen=True)
class Event:
    """One prompt entry from the history log."""

    timestamp: int  # epoch ms
    project_path: str
    message: str = ""

    @property
    def repository_name(self) -> str:
        return repository_name(self.project_path)

    @property
    def normalized_path(self) -> str:
        return normalize_project_path(self.project_path)


@dataclass
class ParseStats:
    """Counters from one pass over the history log."""

    lines: int = 0
    accepted: int = 0
    skipped: int = 0
    filtered: int = 0


def _event_from_entry(entry: JSONLEntry) -> Event | None:
    timestamp = entry.get("timestamp")
    project = entry.get("project")
    if not timestamp or not project:
        return None
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        return None
    # json.loads accepts NaN, Infinity and overflowing literals like 1e400.
    if isinstance(timestamp, float) and not math.isfinite(timestamp):
        return None
    if not is_representable_ms(int(timestamp)):
        return None
    if not isinstance(project, str):
        return None

    message = entry.get("display")
    if message is None:
        message = ""
    elif not isinstance(message, str):
        message = str(message)
    return Event(timestamp=int(timestamp), project_path=project, message=message)


def parse_events(
    lines: Iterable[str],
    date_from: int | None = None,
    date_to: int | None = None,
    after: int | None = None,
    stats: ParseStats | None = None,
) -> list[Event]:
    """Turn raw history lines into events.

    Args:
        lines: Raw JSONL lines.
        date_from: Inclusive lower bound (epoch ms).
        date_to: Inclusive upper bound (epoch ms).
        after: Exclusive lower bound, used for incremental exports.
        stats: Optional counters to fill in.

    Output order follows the input; callers sort as needed.
    """
    stats = stats if stats is not None else ParseStats()
    parser = JSONLParser()
    events: list[Event] = []

    for entry in parser.iter_lines(lines):
        event = _event_from_entry(entry)
        if event is None:
            stats.skipped += 1
            logger.debug("Skipping line %d: missing or invalid timestamp or project", entry.line_number)
            continue

        if date_from is not None and event.timestamp < date_from:
            stats.filtered += 1
            continue
        if date_to is not None and event.timestamp > date_to:
            stats.filtered += 1
            continue
        if after is not None and event.timestamp <= after:
            stats.filtered += 1
            continue

        events.append(event)

    stats.lines += parser.line_count
    stats.skipped += parser.skipped
    stats.accepted += len(events)
    return events


def load_events(
    path: Path,
    date_from: int | None = None,
    date_to: int | None = None,
    after: int | None = None,
) -> tuple[list[Event], ParseStats]:
    """Read and parse the history file at path.

    Raises HistoryNotFoundError when the file is missing or unreadable.
    """
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            stats = ParseStats()
            events = parse_events(
                f, date_from=date_from, date_to=date_to, after=after, stats=stats
            )
    except OSError as e:
        raise HistoryNotFoundError(f"Cannot read history file {path}: {e}") from e
    return events, stats


def discover_projects(lines: Iterable[str]) -> list[str]:
    """Distinct project paths in first-seen order."""
    seen: dict[str, None] = {}
    for event in parse_events(lines):
        seen.setdefault(event.project_path, None)
    return list(seen)

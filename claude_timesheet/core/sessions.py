"""Reconstruct work sessions from a flat event stream."""

from collections.abc import Iterable
from dataclasses import dataclass, field

from .events import Event, normalize_project_path

# Gaps strictly longer than this start a new session.
SESSION_GAP_MS = 30 * 60 * 1000


@dataclass
class Session:
    """A run of events in one project with no gap above the threshold."""

    repository_path: str
    repository_name: str
    start_time: int
    end_time: int
    messages: list[str] = field(default_factory=list)

    @classmethod
    def open(cls, event: Event) -> "Session":
        """Start a session seeded with a single event."""
        return cls(
            repository_path=event.project_path,
            repository_name=event.repository_name,
            start_time=event.timestamp,
            end_time=event.timestamp,
            messages=[event.message],
        )

    @property
    def context(self) -> str:
        """Normalized project path that later events must share."""
        return normalize_project_path(self.repository_path)

    @property
    def duration_ms(self) -> int:
        return max(0, self.end_time - self.start_time)

    @property
    def message_count(self) -> int:
        return len(self.messages)

    def accepts(self, event: Event, gap_ms: int = SESSION_GAP_MS) -> bool:
        """Whether event continues this session rather than starting a new one."""
        if event.timestamp - self.end_time > gap_ms:
            return False
        return event.normalized_path == self.context

    def extend(self, event: Event) -> None:
        self.end_time = event.timestamp
        self.messages.append(event.message)


def build_sessions(events: Iterable[Event], gap_ms: int = SESSION_GAP_MS) -> list[Session]:
    """Group events into sessions, newest session first.

    Events are sorted by timestamp (stable, so ties keep input order). A new
    session starts whenever the gap since the previous event in the open
    session exceeds gap_ms, or the normalized project path changes.
    """
    ordered = sorted(events, key=lambda event: event.timestamp)

    sessions: list[Session] = []
    current: Session | None = None
    for event in ordered:
        if current is None:
            current = Session.open(event)
        elif current.accepts(event, gap_ms):
            current.extend(event)
        else:
            sessions.append(current)
            current = Session.open(event)

    if current is not None:
        sessions.append(current)

    sessions.sort(key=lambda session: session.start_time, reverse=True)
    return sessions

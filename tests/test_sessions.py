"""Tests for session reconstruction."""

from claude_timesheet.core.events import Event
from claude_timesheet.core.sessions import SESSION_GAP_MS, Session, build_sessions

from conftest import BASE_MS, MINUTE_MS


def _event(offset_ms: int, project: str = "/home/dev/repos/app", message: str = "msg") -> Event:
    return Event(timestamp=BASE_MS + offset_ms, project_path=project, message=message)


class TestBuildSessions:
    """Grouping by time gap and project context."""

    def test_no_events(self):
        assert build_sessions([]) == []

    def test_single_event(self):
        sessions = build_sessions([_event(0)])

        assert len(sessions) == 1
        assert sessions[0].start_time == sessions[0].end_time
        assert sessions[0].duration_ms == 0

    def test_events_ten_minutes_apart_share_a_session(self):
        sessions = build_sessions([_event(0), _event(10 * MINUTE_MS)])

        assert len(sessions) == 1
        assert sessions[0].duration_ms == 10 * MINUTE_MS
        assert sessions[0].message_count == 2

    def test_thirty_one_minute_gap_splits(self):
        sessions = build_sessions([_event(0), _event(31 * MINUTE_MS)])
        assert len(sessions) == 2

    def test_gap_exactly_at_threshold_does_not_split(self):
        sessions = build_sessions([_event(0), _event(SESSION_GAP_MS)])
        assert len(sessions) == 1

    def test_gap_one_ms_over_threshold_splits(self):
        sessions = build_sessions([_event(0), _event(SESSION_GAP_MS + 1)])
        assert len(sessions) == 2

    def test_project_change_splits(self):
        sessions = build_sessions([
            _event(0, "/home/dev/repos/app"),
            _event(5 * MINUTE_MS, "/home/dev/repos/other"),
        ])
        assert len(sessions) == 2

    def test_same_project_different_spelling_stays_together(self):
        sessions = build_sessions([
            _event(0, "C:\\Users\\Dev\\Repos\\App"),
            _event(5 * MINUTE_MS, "c:/users/dev/repos/app"),
        ])

        assert len(sessions) == 1
        assert sessions[0].repository_path == "C:\\Users\\Dev\\Repos\\App"
        assert sessions[0].repository_name == "App"

    def test_gap_measured_from_last_event_not_start(self):
        events = [_event(i * 20 * MINUTE_MS) for i in range(5)]

        sessions = build_sessions(events)

        assert len(sessions) == 1
        assert sessions[0].duration_ms == 80 * MINUTE_MS

    def test_unsorted_input_is_sorted(self):
        events = [
            _event(50 * MINUTE_MS, message="third"),
            _event(0, message="first"),
            _event(5 * MINUTE_MS, message="second"),
        ]

        sessions = build_sessions(events)

        assert [s.messages for s in sessions] == [["third"], ["first", "second"]]

    def test_ties_keep_input_order(self):
        events = [_event(0, message="a"), _event(0, message="b"), _event(0, message="c")]
        assert build_sessions(events)[0].messages == ["a", "b", "c"]

    def test_interleaved_projects_alternate_sessions(self):
        events = [
            _event(0, "/p/a"),
            _event(1 * MINUTE_MS, "/p/b"),
            _event(2 * MINUTE_MS, "/p/a"),
        ]
        assert len(build_sessions(events)) == 3

    def test_output_is_newest_first_and_non_overlapping(self):
        events = [_event(i * 45 * MINUTE_MS) for i in range(4)]
        events += [_event(i * 45 * MINUTE_MS + MINUTE_MS) for i in range(4)]

        sessions = build_sessions(events)

        starts = [s.start_time for s in sessions]
        assert starts == sorted(starts, reverse=True)
        for newer, older in zip(sessions, sessions[1:]):
            assert older.end_time < newer.start_time

    def test_custom_gap(self):
        sessions = build_sessions([_event(0), _event(6 * MINUTE_MS)], gap_ms=5 * MINUTE_MS)
        assert len(sessions) == 2


class TestSession:
    def test_open_and_extend(self):
        session = Session.open(_event(0, message="start"))
        session.extend(_event(3 * MINUTE_MS, message="more"))

        assert session.messages == ["start", "more"]
        assert session.duration_ms == 3 * MINUTE_MS
        assert session.context == "/home/dev/repos/app"

    def test_accepts(self):
        session = Session.open(_event(0))

        assert session.accepts(_event(SESSION_GAP_MS))
        assert not session.accepts(_event(SESSION_GAP_MS + 1))
        assert not session.accepts(_event(1, "/home/dev/repos/elsewhere"))

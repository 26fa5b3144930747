"""Tests for report rows, rendering and totals."""

import csv
import io
import json
from dataclasses import replace

import pytest

from claude_timesheet.core.config import TimesheetConfig
from claude_timesheet.core.report import (
    HEADERS,
    ReportRow,
    ReportStats,
    build_row,
    build_rows,
    render,
    render_csv,
    render_json,
    render_tsv,
    summarize,
)
from claude_timesheet.core.sessions import Session
from claude_timesheet.utils.datetime_utils import (
    duration_hours,
    duration_minutes,
    format_duration_human,
    format_iso_utc,
    is_representable_ms,
)

from conftest import BASE_MS, MINUTE_MS


def _session(repo="personal-finances", start=BASE_MS, minutes=10, messages=None) -> Session:
    return Session(
        repository_path=f"/home/dev/repos/{repo}",
        repository_name=repo,
        start_time=start,
        end_time=start + minutes * MINUTE_MS,
        messages=list(messages or ["fix the login bug", "ok"]),
    )


def _row(description=None, repo="personal-finances", minutes=10) -> ReportRow:
    row = build_row(_session(repo=repo, minutes=minutes), TimesheetConfig())
    return replace(row, description=description) if description else row


@pytest.fixture
def config(sample_config_data):
    return TimesheetConfig.from_dict(sample_config_data)


class TestDurations:
    def test_hours_two_decimals(self):
        assert duration_hours(10 * MINUTE_MS) == 0.17
        assert duration_hours(0) == 0.0

    def test_minutes_round_half_up(self):
        assert duration_minutes(90_000) == 2
        assert duration_minutes(89_999) == 1
        assert duration_minutes(0) == 0

    def test_human(self):
        assert format_duration_human(0) == "<1m"
        assert format_duration_human(45 * MINUTE_MS) == "45m"
        assert format_duration_human(125 * MINUTE_MS) == "2h 5m"

    def test_iso(self):
        assert format_iso_utc(BASE_MS) == "2024-12-01T10:00:00.000Z"

    def test_representable_range(self):
        assert is_representable_ms(BASE_MS)
        assert not is_representable_ms(10**17)
        assert not is_representable_ms(-(10**17))


class TestBuildRow:
    def test_enriched_row(self, config):
        row = build_row(_session(), config)

        assert row.start_date == "2024-12-01"
        assert row.end_date == "2024-12-01"
        assert row.client == "Personal"
        assert row.project == "Finance App"
        assert row.repository == "personal-finances"
        assert row.description == "Bug fixes: authentication"
        assert row.start_time == "2024-12-01T10:00:00.000Z"
        assert row.end_time == "2024-12-01T10:10:00.000Z"
        assert row.duration_hours == 0.17
        assert row.duration_minutes == 10
        assert row.message_count == 2
        assert row.topics == "bug-fix"
        assert row.project_path == "/home/dev/repos/personal-finances"

    def test_session_across_midnight(self, config):
        row = build_row(_session(start=BASE_MS + 13 * 60 * MINUTE_MS + 50 * MINUTE_MS, minutes=20), config)

        assert row.start_date == "2024-12-01"
        assert row.end_date == "2024-12-02"

    def test_build_rows_keeps_order(self, config):
        sessions = [_session(start=BASE_MS + 100 * MINUTE_MS), _session(start=BASE_MS)]
        rows = build_rows(sessions, config)
        assert [r.start_time for r in rows] == [format_iso_utc(s.start_time) for s in sessions]


class TestRender:
    def test_csv_header_order(self, config):
        output = render_csv([build_row(_session(), config)])
        header, first = output.split("\n")

        assert header.split(",") == list(HEADERS)
        assert first.startswith("2024-12-01,2024-12-01,Personal,Finance App,personal-finances,")

    def test_csv_escaping_round_trips(self):
        output = render_csv([
            _row(description='Said "hi", then\nleft'),
            _row(description="carriage\rreturn"),
        ])

        parsed = list(csv.reader(io.StringIO(output)))

        assert len(parsed) == 3
        assert all(len(fields) == len(HEADERS) for fields in parsed)
        assert parsed[1][HEADERS.index("Description")] == 'Said "hi", then left'
        assert parsed[2][HEADERS.index("Description")] == "carriage return"

    def test_tsv_escaping(self):
        output = render_tsv([_row(description="tab\there\r\nnewline\rend")])
        lines = output.split("\n")

        assert len(lines) == 2
        fields = lines[1].split("\t")
        assert len(fields) == len(HEADERS)
        assert fields[HEADERS.index("Description")] == "tab here newline end"

    def test_json(self, config):
        data = json.loads(render_json([build_row(_session(), config)]))

        assert data[0]["client"] == "Personal"
        assert data[0]["durationMinutes"] == 10
        assert data[0]["startDate"] == "2024-12-01"
        assert "duration_ms" not in data[0]

    def test_empty_reports(self):
        assert render_csv([]) == ",".join(HEADERS)
        assert render_tsv([]) == "\t".join(HEADERS)
        assert render_json([]) == "[]"

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            render([], "xml")


class TestSummarize:
    def test_totals_and_breakdown(self):
        rows = [
            _row(repo="a", minutes=30),
            _row(repo="b", minutes=90),
            _row(repo="a", minutes=30),
        ]

        stats = summarize(rows, hourly_rate=100)

        assert stats.sessions == 3
        assert stats.messages == 6
        assert stats.hours == pytest.approx(2.5)
        assert stats.billable == pytest.approx(250.0)
        assert list(stats.by_repository) == ["b", "a"]
        assert stats.by_repository["a"].sessions == 2
        assert stats.by_repository["a"].hours == pytest.approx(1.0)

    def test_no_rate_no_billable(self):
        assert summarize([_row()]).billable is None

    def test_merge(self):
        total = ReportStats()
        total.merge(summarize([_row(repo="a", minutes=60)], hourly_rate=10))
        total.merge(summarize([_row(repo="b", minutes=120), _row(repo="a", minutes=30)], hourly_rate=10))

        assert total.sessions == 3
        assert total.billable == pytest.approx(35.0)
        assert list(total.by_repository) == ["b", "a"]
        assert total.by_repository["a"].duration_ms == 90 * MINUTE_MS

"""Pytest configuration and shared fixtures."""

import json
import shutil
import tempfile
from pathlib import Path

import pytest

# 2024-12-01T10:00:00Z
BASE_MS = 1_733_047_200_000
MINUTE_MS = 60_000


def history_line(timestamp, project, display=None) -> str:
    entry = {"timestamp": timestamp, "project": project}
    if display is not None:
        entry["display"] = display
    return json.dumps(entry)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    path = Path(tempfile.mkdtemp())
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def write_history(temp_dir):
    """Write history lines to <temp_dir>/.claude/history.jsonl."""

    def _write(lines: list[str]) -> Path:
        claude_dir = temp_dir / ".claude"
        claude_dir.mkdir(exist_ok=True)
        path = claude_dir / "history.jsonl"
        path.write_text("\n".join(lines) + "\n")
        return path

    return _write


@pytest.fixture
def sample_history(write_history):
    """Two projects, three sessions, plus a couple of junk lines."""
    return write_history([
        history_line(BASE_MS, "/home/dev/repos/personal-finances", "fix the login bug"),
        history_line(BASE_MS + 10 * MINUTE_MS, "/home/dev/repos/personal-finances", "ok"),
        "not json at all",
        history_line(BASE_MS + 15 * MINUTE_MS, "/home/dev/repos/notebook-ui", "add a modal component for settings"),
        history_line(BASE_MS + 20 * MINUTE_MS, "/home/dev/repos/notebook-ui", "thanks"),
        json.dumps({"timestamp": BASE_MS, "display": "no project"}),
        history_line(BASE_MS + 120 * MINUTE_MS, "/home/dev/repos/personal-finances", "write tests for the tax report"),
    ])


@pytest.fixture
def sample_config_data(temp_dir):
    return {
        "mappings": {
            "personal-finances": {"client": "Personal", "project": "Finance App"},
            "notebook-ui": {"client": "", "project": ""},
        },
        "defaultClient": "Development",
        "hourlyRate": 100,
        "exports": {
            "finance": {
                "repositories": ["personal-finances"],
                "output": str(temp_dir / "out" / "finance.csv"),
            },
            "ui": {
                "repositories": ["Notebook-UI"],
                "output": str(temp_dir / "out" / "ui.json"),
            },
        },
    }


@pytest.fixture
def sample_config_file(temp_dir, sample_config_data):
    path = temp_dir / "config.json"
    path.write_text(json.dumps(sample_config_data))
    return path

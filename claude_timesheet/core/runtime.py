"""Shared runtime locations: the Claude data dir and our own state home."""

from __future__ import annotations

import os
import tempfile
import uuid
from pathlib import Path

HISTORY_FILE_NAME = "history.jsonl"
STATE_FILE_NAME = "export-state.json"
CONFIG_FILE_NAME = "config.json"
LEGACY_CONFIG_FILE_NAME = "time-tracking.json"


def _is_writable_dir(path: Path) -> bool:
    """Return whether path exists and accepts create/write/delete operations."""
    try:
        path.mkdir(parents=True, exist_ok=True)
        probe = path / f".ts-write-probe-{uuid.uuid4().hex}"
        probe.write_text("ok")
        probe.unlink(missing_ok=True)
        return True
    except OSError:
        return False


def claude_dir() -> Path:
    """Return the Claude Code data directory (~/.claude unless overridden)."""
    configured = os.environ.get("CLAUDE_CONFIG_DIR")
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".claude"


def history_path(base: Path | None = None) -> Path:
    """Return the path of the prompt history log."""
    return (base or claude_dir()) / HISTORY_FILE_NAME


def runtime_home() -> Path:
    """Resolve the state home with a writable fallback for restricted envs."""
    configured = os.environ.get("CLAUDE_TIMESHEET_HOME")
    if configured:
        path = Path(configured).expanduser()
        if _is_writable_dir(path):
            return path

    preferred = Path.home() / ".claude-timesheet"
    if _is_writable_dir(preferred):
        return preferred

    fallback = Path(tempfile.gettempdir()) / "claude-timesheet-runtime"
    fallback.mkdir(parents=True, exist_ok=True)
    return fallback


def state_path(home: Path | None = None) -> Path:
    """Return the default location of the export watermark document."""
    return (home or runtime_home()) / STATE_FILE_NAME


def config_search_paths(explicit: Path | None = None, cwd: Path | None = None) -> list[Path]:
    """Candidate config files in priority order; the first readable one wins."""
    candidates = [
        explicit,
        (cwd or Path.cwd()) / CONFIG_FILE_NAME,
        runtime_home() / CONFIG_FILE_NAME,
        claude_dir() / LEGACY_CONFIG_FILE_NAME,
    ]
    return [path for path in candidates if path is not None]

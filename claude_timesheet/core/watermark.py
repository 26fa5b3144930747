"""Per-scope "last exported at" timestamps for incremental exports.

The state document looks like ``{"lastExportTime": {"_all": 1700000000000,
"profile:acme": 1700000500000}}``. Older versions wrote a single number
(``{"lastExportTime": 1700000000000}``); that form is still read, applies to
every scope, and is rewritten in keyed form under ``_all`` on the next save.
"""

import json
import logging
import math
from pathlib import Path

logger = logging.getLogger(__name__)

STATE_KEY = "lastExportTime"
GLOBAL_SCOPE = "_all"
PROFILE_SCOPE_PREFIX = "profile:"


def profile_scope(name: str) -> str:
    """Scope key for a named export profile."""
    return f"{PROFILE_SCOPE_PREFIX}{name}"


def _is_timestamp(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not isinstance(value, float) or math.isfinite(value)


class WatermarkStore:
    """Read and write export watermarks in a single JSON document."""

    def __init__(self, path: Path):
        self.path = path

    def read(self, scope_key: str) -> int | None:
        """Watermark for scope_key, falling back to the global one."""
        raw = self._load_raw().get(STATE_KEY)
        if _is_timestamp(raw):
            return int(raw)
        if not isinstance(raw, dict):
            return None

        for key in (scope_key, GLOBAL_SCOPE):
            value = raw.get(key)
            if _is_timestamp(value):
                return int(value)
        return None

    def write(self, scope_key: str, timestamp: int) -> bool:
        """Set the watermark for scope_key, keeping every other scope intact.

        Returns False (after logging a warning) when the state could not be
        saved; callers treat that as non-fatal.
        """
        data = self._load_raw()
        state = self._canonical(data.get(STATE_KEY))
        state[scope_key] = int(timestamp)
        data[STATE_KEY] = state
        return self._save_raw(data)

    def load_state(self) -> dict[str, int]:
        """All watermarks in keyed form."""
        return self._canonical(self._load_raw().get(STATE_KEY))

    @staticmethod
    def _canonical(raw: object) -> dict[str, int]:
        if _is_timestamp(raw):
            return {GLOBAL_SCOPE: int(raw)}
        if isinstance(raw, dict):
            return {str(key): int(value) for key, value in raw.items() if _is_timestamp(value)}
        return {}

    def _load_raw(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to load export state %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring export state %s: not a JSON object", self.path)
            return {}
        return data

    def _save_raw(self, data: dict) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to save export state %s: %s", self.path, e)
            return False
        return True

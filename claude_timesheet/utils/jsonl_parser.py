"""JSONL history log parser."""

import json
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class JSONLEntry:
    """A single decoded line from a JSONL file."""

    data: dict
    line_number: int

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value from the entry data."""
        return self.data.get(key, default)


class JSONLParser:
    """Parser for JSONL (JSON Lines) files.

    JSONL files contain one JSON object per line, which is the format
    used by the Claude Code prompt history. Lines that are not valid JSON
    objects are skipped and never abort the parse.
    """

    def __init__(self):
        self.line_count = 0
        self.skipped = 0

    def iter_lines(self, lines: Iterable[str]) -> Iterator[JSONLEntry]:
        """Decode lines one by one, counting what was seen and skipped."""
        self.line_count = 0
        self.skipped = 0
        for line_num, line in enumerate(lines, start=1):
            line = line.strip()
            if not line:
                continue
            self.line_count += 1

            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                self.skipped += 1
                logger.debug("Skipping line %d: %s", line_num, e)
                continue

            if not isinstance(data, dict):
                self.skipped += 1
                logger.debug("Skipping line %d: not a JSON object", line_num)
                continue

            yield JSONLEntry(data=data, line_number=line_num)

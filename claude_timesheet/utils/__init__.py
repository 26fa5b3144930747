"""Shared utilities for claude-timesheet."""

from .datetime_utils import (
    format_date_utc,
    format_duration_human,
    format_iso_utc,
    is_representable_ms,
    local_day_end_ms,
    local_day_start_ms,
    now_ms,
    parse_day,
)
from .jsonl_parser import JSONLEntry, JSONLParser

__all__ = [
    "JSONLEntry",
    "JSONLParser",
    "format_date_utc",
    "format_duration_human",
    "format_iso_utc",
    "is_representable_ms",
    "local_day_end_ms",
    "local_day_start_ms",
    "now_ms",
    "parse_day",
]

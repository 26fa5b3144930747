"""Core session reconstruction and export logic."""

from .classifier import create_description, extract_topics, meaningful_messages
from .config import BillingMapping, ExportProfile, TimesheetConfig, generate_config, load_config
from .events import Event, HistoryNotFoundError, ParseStats, load_events, parse_events
from .exporter import (
    BulkExportResult,
    ExportError,
    Exporter,
    ExportRequest,
    ExportResult,
    NoProfilesConfiguredError,
    ProfileNotFoundError,
    RepositorySelector,
)
from .report import ReportRow, ReportStats, build_rows, render, summarize
from .sessions import SESSION_GAP_MS, Session, build_sessions
from .watermark import GLOBAL_SCOPE, WatermarkStore, profile_scope

__all__ = [
    "Event",
    "ParseStats",
    "parse_events",
    "load_events",
    "HistoryNotFoundError",
    "Session",
    "SESSION_GAP_MS",
    "build_sessions",
    "extract_topics",
    "create_description",
    "meaningful_messages",
    "WatermarkStore",
    "GLOBAL_SCOPE",
    "profile_scope",
    "BillingMapping",
    "ExportProfile",
    "TimesheetConfig",
    "load_config",
    "generate_config",
    "ReportRow",
    "ReportStats",
    "build_rows",
    "render",
    "summarize",
    "Exporter",
    "ExportRequest",
    "ExportResult",
    "BulkExportResult",
    "RepositorySelector",
    "ExportError",
    "ProfileNotFoundError",
    "NoProfilesConfiguredError",
]

"""Rebuild work sessions from Claude Code history and export timesheets."""

__version__ = "0.3.0"

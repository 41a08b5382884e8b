"""Utility helpers for the CHIP-8 interpreter."""

from .debug import debug_enabled, debug_log, reload_categories, report_error
from .trace import TraceRecorder

__all__ = [
    "debug_enabled",
    "debug_log",
    "reload_categories",
    "report_error",
    "TraceRecorder",
]

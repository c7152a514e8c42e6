"""Diagnostics exports."""

from .diagnostics_data import (
    DiagnosticsCollector,
    DiagnosticsData,
    DiagnosticsError,
    DiagnosticsRecorder,
    write_diagnostics,
)

__all__ = [
    "DiagnosticsCollector",
    "DiagnosticsData",
    "DiagnosticsError",
    "DiagnosticsRecorder",
    "write_diagnostics",
]

"""Run logging exports."""

from .run_logs import FileBackedLog, RunLogs, configure_console_logging

__all__ = [
    "FileBackedLog",
    "RunLogs",
    "configure_console_logging",
]

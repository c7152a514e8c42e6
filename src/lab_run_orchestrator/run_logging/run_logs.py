"""File-backed logs captured for one orchestrated run."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

_LOG_FORMAT = "%(asctime)s %(message)s"
_CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"


class FileBackedLog:
    """Logger that writes every line to its own file.

    The underlying logger is not registered with the logging manager and has
    no parent, so run logs never leak into the console output configured by
    the CLI and nothing outlives the run.
    """

    def __init__(self, path: Path, description: str) -> None:
        self.path = path
        self.description = description
        self._logger = logging.Logger(f"lab_run_orchestrator.run_logs.{path.name}", logging.DEBUG)
        self._logger.propagate = False
        self._handler = logging.FileHandler(path, encoding="utf-8")
        self._handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        self._logger.addHandler(self._handler)

    def write_line(self, message: str) -> None:
        self._logger.info(message)

    def read_text(self) -> str:
        """Return everything written so far."""
        self._handler.flush()
        if not self.path.exists():
            return ""
        return self.path.read_text(encoding="utf-8", errors="replace")

    def close(self) -> None:
        self._logger.removeHandler(self._handler)
        self._handler.close()


class RunLogs:
    """Collection of the logs created in one run output directory."""

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._logs: list[FileBackedLog] = []

    def create(self, filename: str, description: str) -> FileBackedLog:
        log = FileBackedLog(self.directory / filename, description)
        self._logs.append(log)
        return log

    def __iter__(self) -> Iterator[FileBackedLog]:
        return iter(self._logs)

    def __len__(self) -> int:
        return len(self._logs)

    def close(self) -> None:
        for log in self._logs:
            log.close()


def configure_console_logging(verbosity: str = "info") -> None:
    """Attach one console handler to the package logger."""
    level = logging.getLevelName(verbosity.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log verbosity: {verbosity}")
    package_logger = logging.getLogger("lab_run_orchestrator")
    for handler in list(package_logger.handlers):
        if getattr(handler, "_lab_console", False):
            package_logger.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    handler._lab_console = True  # type: ignore[attr-defined]  # pylint: disable=protected-access
    package_logger.addHandler(handler)
    package_logger.setLevel(level)

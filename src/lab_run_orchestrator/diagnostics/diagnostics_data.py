"""Diagnostics recorded for post-mortem triage of a run."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Protocol

from lab_run_orchestrator.target_selection import ConcreteTarget, DeviceTarget, TestTargetOs


class DiagnosticsError(Exception):
    """Raised when diagnostics cannot be recorded or written."""


@dataclass
class DiagnosticsData:
    """Environment facts about one run, filled in while it progresses."""

    platform: str | None = None
    target_os: str | None = None
    device: str | None = None
    is_device: bool | None = None
    exit_code: int | None = None
    duration_seconds: float | None = None


class DiagnosticsCollector(Protocol):  # pylint: disable=too-few-public-methods
    """Protocol for recording the resolved target of a run."""

    def collect(self, target: TestTargetOs, concrete_target: ConcreteTarget) -> None: ...


class DiagnosticsRecorder:  # pylint: disable=too-few-public-methods
    """Collector that keeps the facts in a DiagnosticsData record."""

    def __init__(self, data: DiagnosticsData | None = None) -> None:
        self.data = data or DiagnosticsData()

    def collect(self, target: TestTargetOs, concrete_target: ConcreteTarget) -> None:
        handle = concrete_target.handle
        self.data.platform = target.target.platform
        self.data.target_os = handle.os_version or target.os_version
        self.data.device = handle.name
        self.data.is_device = isinstance(concrete_target, DeviceTarget)


def write_diagnostics(path: Path | str, data: DiagnosticsData) -> Path:
    """Write the diagnostics record as JSON and return the resolved path."""
    destination = Path(path)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(
            json.dumps(asdict(data), indent=2, sort_keys=True) + "\n", encoding="utf-8"
        )
    except OSError as exc:
        raise DiagnosticsError(f"Failed to write diagnostics to {destination}: {exc}") from exc
    return destination.resolve()

"""Run execution entities."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from lab_run_orchestrator.outcome_codes import ExitCode
from lab_run_orchestrator.test_execution import CommunicationChannel, ResultFormat


@dataclass(frozen=True)
class RunRequest:  # pylint: disable=too-many-instance-attributes
    """Input contract for executing one run.

    `None` means "use the value from the lab configuration".
    """

    config_path: str
    app_path: str
    target: str
    device_name: str | None = None
    output_dir: str | None = None
    timeout_seconds: int | None = None
    launch_timeout_seconds: int | None = None
    communication_channel: CommunicationChannel | None = None
    result_format: ResultFormat | None = None
    skipped_methods: tuple[str, ...] = ()
    skipped_test_classes: tuple[str, ...] = ()
    reset_simulator: bool | None = None
    include_wireless_devices: bool | None = None
    enable_lldb: bool | None = None
    signal_app_end: bool | None = None
    environment_variables: tuple[tuple[str, str], ...] = ()
    extra_app_arguments: tuple[str, ...] = ()


@dataclass(frozen=True)
class RunOutcome:
    """Output contract for one completed run."""

    exit_code: ExitCode
    output_directory: Path
    diagnostics_path: Path | None
    duration_seconds: float

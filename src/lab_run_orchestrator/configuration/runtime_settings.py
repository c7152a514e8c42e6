"""Configuration domain entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from lab_run_orchestrator.outcome_codes import ExitCode
from lab_run_orchestrator.test_execution import CommunicationChannel, ResultFormat


@dataclass(frozen=True)
class RunSettings:  # pylint: disable=too-many-instance-attributes
    """Defaults for one orchestrated run; CLI options override them."""

    timeout_seconds: int = 1800
    launch_timeout_seconds: int = 180
    command_timeout_seconds: int = 300
    communication_channel: CommunicationChannel = CommunicationChannel.USB_TUNNEL
    result_format: ResultFormat = ResultFormat.XUNIT
    reset_simulator: bool = False
    include_wireless_devices: bool = False
    enable_lldb: bool = False
    signal_app_end: bool = False
    environment: Mapping[str, str] = field(default_factory=dict)
    unmatched_crash_exit_code: ExitCode = ExitCode.APP_CRASH


@dataclass(frozen=True)
class OutputSettings:
    """Where run logs and diagnostics are written."""

    directory: Path


@dataclass(frozen=True)
class SimulatorSettings:
    """Simulator declared in the lab inventory."""

    name: str
    udid: str
    platform: str
    os_version: str


@dataclass(frozen=True)
class DeviceSettings:
    """Physical device declared in the lab inventory."""

    name: str
    udid: str
    platform: str
    os_version: str
    wireless: bool


@dataclass(frozen=True)
class TargetInventorySettings:
    """Every target the lab can run tests on."""

    simulators: tuple[SimulatorSettings, ...]
    devices: tuple[DeviceSettings, ...]


@dataclass(frozen=True)
class CommandSettings:
    """Argv templates of the external commands used by a run."""

    install: tuple[str, ...] | None
    uninstall: tuple[str, ...] | None
    test: tuple[str, ...] | None
    desktop_test: tuple[str, ...] | None
    reset_simulator: tuple[str, ...] | None
    cleanup_simulator: tuple[str, ...] | None


@dataclass(frozen=True)
class KnownIssueSettings:
    """Log signature of a known issue."""

    pattern: str
    description: str
    suggested_exit_code: ExitCode | None
    issue_link: str | None


@dataclass(frozen=True)
class Configuration:
    """Top-level lab configuration aggregate."""

    path: Path
    run: RunSettings
    output: OutputSettings
    targets: TargetInventorySettings
    commands: CommandSettings
    known_issues: tuple[KnownIssueSettings, ...]

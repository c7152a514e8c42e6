"""Run execution use-case service."""

from __future__ import annotations

import dataclasses
import logging
import re
import time
from datetime import UTC, datetime
from pathlib import Path

from lab_run_orchestrator.app_bundle import AppBundleInformationParser, PlistBundleParser
from lab_run_orchestrator.app_deployment import CommandAppInstaller, CommandAppUninstaller
from lab_run_orchestrator.cancellation import CancellationToken
from lab_run_orchestrator.configuration import (
    CommandSettings,
    Configuration,
    ConfigurationError,
    RunSettings,
    load_configuration,
)
from lab_run_orchestrator.diagnostics import (
    DiagnosticsError,
    DiagnosticsRecorder,
    write_diagnostics,
)
from lab_run_orchestrator.error_knowledge import (
    KnownIssue,
    KnownIssueSignature,
    PatternErrorKnowledgeBase,
)
from lab_run_orchestrator.orchestration import TestOrchestrator
from lab_run_orchestrator.outcome_codes import ExitCode
from lab_run_orchestrator.process_execution import CommandRunner, SubprocessCommandRunner
from lab_run_orchestrator.run_logging import RunLogs
from lab_run_orchestrator.target_selection import (
    InventoryDevice,
    InventorySimulator,
    InventoryTargetFinder,
    TargetVariant,
    TestTargetOs,
    parse_test_target,
)
from lab_run_orchestrator.test_execution import CommandAppTesterFactory

from .run_contracts import RunOutcome, RunRequest

_LOGGER = logging.getLogger("lab_run_orchestrator.run_execution")


class RunExecutionError(Exception):
    """Raised when a run use case cannot be started."""


def execute_orchestrated_run(
    request: RunRequest,
    *,
    command_runner: CommandRunner | None = None,
    bundle_parser: AppBundleInformationParser | None = None,
    cancellation_token: CancellationToken | None = None,
) -> RunOutcome:
    """Execute one orchestrated test run and return its outcome.

    Bundle parsing and install failures propagate unchanged so the caller can
    tell infrastructure failures from test failures.
    """
    resolved_command_runner = command_runner or SubprocessCommandRunner()
    resolved_bundle_parser = bundle_parser or PlistBundleParser()
    resolved_token = cancellation_token or CancellationToken.none()

    configuration = _load_run_configuration(request.config_path)
    target = _parse_target(request.target)
    _validate_commands_for(target, configuration.commands)
    settings = _resolve_run_settings(configuration.run, request)
    output_directory = _resolve_output_directory(configuration, request, target)

    logs = RunLogs(output_directory)
    main_log = logs.create("main.log", "Main orchestration log")
    command_log = logs.create("commands.log", "Install and simulator command output")
    diagnostics = DiagnosticsRecorder()
    orchestrator = TestOrchestrator(
        resolved_bundle_parser,
        CommandAppInstaller(
            configuration.commands.install or (),
            resolved_command_runner,
            command_log,
            settings.command_timeout_seconds,
        ),
        CommandAppUninstaller(
            configuration.commands.uninstall or (),
            resolved_command_runner,
            command_log,
            settings.command_timeout_seconds,
        ),
        CommandAppTesterFactory(
            test_command=configuration.commands.test,
            desktop_test_command=configuration.commands.desktop_test,
            command_runner=resolved_command_runner,
        ),
        _build_target_finder(configuration, resolved_command_runner, settings),
        main_log,
        logs,
        _build_knowledge_base(configuration),
        diagnostics,
        unmatched_crash_exit_code=settings.unmatched_crash_exit_code,
    )

    environment = {**settings.environment, **dict(request.environment_variables)}
    started = time.monotonic()
    exit_code: ExitCode | None = None
    try:
        exit_code = orchestrator.orchestrate_test(
            request.app_path,
            target,
            request.device_name,
            settings.timeout_seconds,
            settings.launch_timeout_seconds,
            settings.communication_channel,
            settings.result_format,
            request.skipped_methods,
            request.skipped_test_classes,
            include_wireless_devices=settings.include_wireless_devices,
            reset_simulator=settings.reset_simulator,
            enable_lldb=settings.enable_lldb,
            signal_app_end=settings.signal_app_end,
            environment_variables=tuple(environment.items()),
            extra_app_arguments=request.extra_app_arguments,
            cancellation_token=resolved_token,
        )
    finally:
        duration_seconds = round(time.monotonic() - started, 3)
        diagnostics_path = _write_diagnostics(
            diagnostics, target, exit_code, duration_seconds, output_directory
        )
        logs.close()

    return RunOutcome(
        exit_code=exit_code,
        output_directory=output_directory,
        diagnostics_path=diagnostics_path,
        duration_seconds=duration_seconds,
    )


def _load_run_configuration(config_path: str) -> Configuration:
    try:
        return load_configuration(config_path)
    except (ConfigurationError, OSError) as exc:
        raise RunExecutionError(str(exc)) from exc


def _parse_target(text: str) -> TestTargetOs:
    try:
        return parse_test_target(text)
    except ValueError as exc:
        raise RunExecutionError(str(exc)) from exc


def _validate_commands_for(target: TestTargetOs, commands: CommandSettings) -> None:
    if target.variant is TargetVariant.DESKTOP:
        required = ("desktop_test",)
    else:
        required = ("install", "uninstall", "test")
    missing = [name for name in required if getattr(commands, name) is None]
    if missing:
        raise RunExecutionError(
            f"{target.as_string()} runs need commands.{', commands.'.join(missing)} configured."
        )


def _resolve_run_settings(settings: RunSettings, request: RunRequest) -> RunSettings:
    overrides = {
        name: getattr(request, name)
        for name in (
            "timeout_seconds",
            "launch_timeout_seconds",
            "communication_channel",
            "result_format",
            "reset_simulator",
            "include_wireless_devices",
            "enable_lldb",
            "signal_app_end",
        )
        if getattr(request, name) is not None
    }
    return dataclasses.replace(settings, **overrides)


def _resolve_output_directory(
    configuration: Configuration, request: RunRequest, target: TestTargetOs
) -> Path:
    base = Path(request.output_dir) if request.output_dir else configuration.output.directory
    timestamp = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    return (base / f"{target.as_string()}-{timestamp}").resolve()


def _build_target_finder(
    configuration: Configuration, command_runner: CommandRunner, settings: RunSettings
) -> InventoryTargetFinder:
    simulators = [
        InventorySimulator(
            name=item.name,
            udid=item.udid,
            os_version=item.os_version,
            platform=item.platform,
            command_runner=command_runner,
            reset_command=configuration.commands.reset_simulator,
            clean_up_command=configuration.commands.cleanup_simulator,
            command_timeout_seconds=settings.command_timeout_seconds,
        )
        for item in configuration.targets.simulators
    ]
    devices = [
        InventoryDevice(
            name=item.name,
            udid=item.udid,
            os_version=item.os_version,
            platform=item.platform,
            is_wireless=item.wireless,
        )
        for item in configuration.targets.devices
    ]
    return InventoryTargetFinder(simulators=simulators, devices=devices)


def _build_knowledge_base(configuration: Configuration) -> PatternErrorKnowledgeBase:
    return PatternErrorKnowledgeBase(
        [
            KnownIssueSignature(
                pattern=re.compile(item.pattern),
                issue=KnownIssue(
                    description=item.description,
                    suggested_exit_code=item.suggested_exit_code,
                    issue_link=item.issue_link,
                ),
            )
            for item in configuration.known_issues
        ]
    )


def _write_diagnostics(
    diagnostics: DiagnosticsRecorder,
    target: TestTargetOs,
    exit_code: ExitCode | None,
    duration_seconds: float,
    output_directory: Path,
) -> Path | None:
    data = diagnostics.data
    data.platform = data.platform or target.target.platform
    data.exit_code = int(exit_code) if exit_code is not None else None
    data.duration_seconds = duration_seconds
    try:
        return write_diagnostics(output_directory / "diagnostics.json", data)
    except DiagnosticsError as exc:
        _LOGGER.warning("%s", exc)
        return None

"""Command-driven app tester."""

from __future__ import annotations

import re
from collections.abc import Sequence

from lab_run_orchestrator.app_bundle import AppBundleInformation
from lab_run_orchestrator.app_deployment import target_placeholders
from lab_run_orchestrator.cancellation import CancellationToken, OperationCancelledError
from lab_run_orchestrator.process_execution import (
    CommandRunner,
    ProcessExecutionResult,
    render_command,
)
from lab_run_orchestrator.run_logging import FileBackedLog, RunLogs
from lab_run_orchestrator.target_selection import TargetHandle, TestTarget, TestTargetOs

from .execution_outcomes import (
    CommunicationChannel,
    ExecutionOutcome,
    ResultFormat,
    TestExecutingResult,
)

SUMMARY_LINE_PATTERN = re.compile(r"Tests run:.*")
CRASH_MARKERS = (
    "Application crashed",
    "Terminating app due to uncaught exception",
    "EXC_BAD_ACCESS",
    "EXC_CRASH",
)


class CommandTesterConfigurationError(Exception):
    """Raised when the tester has no command for the requested kind of run."""


def extract_summary_line(output: str) -> str | None:
    """Return the last `Tests run: ...` line reported by the test app."""
    matches = SUMMARY_LINE_PATTERN.findall(output)
    if not matches:
        return None
    return matches[-1].strip()


def classify_execution(result: ProcessExecutionResult) -> TestExecutingResult:
    """Map a finished test command onto the four execution outcomes."""
    if result.timed_out:
        return TestExecutingResult.TIMED_OUT
    if result.exit_code < 0 or any(marker in result.output for marker in CRASH_MARKERS):
        return TestExecutingResult.CRASHED
    if result.exit_code == 0:
        return TestExecutingResult.SUCCEEDED
    return TestExecutingResult.FAILED


class CommandAppTester:
    """Runs the configured test command and classifies its result."""

    def __init__(  # pylint: disable=too-many-arguments
        self,
        *,
        test_command: Sequence[str] | None,
        desktop_test_command: Sequence[str] | None,
        command_runner: CommandRunner,
        communication_channel: CommunicationChannel,
        enable_lldb: bool,
        main_log: FileBackedLog,
        logs: RunLogs,
    ) -> None:
        self._test_command = tuple(test_command) if test_command else None
        self._desktop_test_command = tuple(desktop_test_command) if desktop_test_command else None
        self._command_runner = command_runner
        self._communication_channel = communication_channel
        self._enable_lldb = enable_lldb
        self._main_log = main_log
        self._logs = logs

    def test_app(  # pylint: disable=too-many-arguments
        self,
        app_bundle_information: AppBundleInformation,
        target: TestTargetOs,
        device: TargetHandle,
        companion_device: TargetHandle | None,
        timeout_seconds: float,
        launch_timeout_seconds: float,
        signal_app_end: bool,
        extra_app_arguments: Sequence[str],
        environment_variables: Sequence[tuple[str, str]],
        result_format: ResultFormat,
        skipped_methods: Sequence[str] | None,
        skipped_test_classes: Sequence[str] | None,
        cancellation_token: CancellationToken,
    ) -> ExecutionOutcome:
        if self._test_command is None:
            raise CommandTesterConfigurationError("No test command is configured.")
        placeholders = target_placeholders(app_bundle_information, target, device)
        placeholders["companion_udid"] = companion_device.udid if companion_device else ""
        return self._execute(
            self._test_command,
            placeholders,
            timeout_seconds=timeout_seconds,
            launch_timeout_seconds=launch_timeout_seconds,
            signal_app_end=signal_app_end,
            extra_app_arguments=extra_app_arguments,
            environment_variables=environment_variables,
            result_format=result_format,
            skipped_methods=skipped_methods,
            skipped_test_classes=skipped_test_classes,
            cancellation_token=cancellation_token,
        )

    def test_desktop_app(  # pylint: disable=too-many-arguments
        self,
        app_bundle_information: AppBundleInformation,
        timeout_seconds: float,
        launch_timeout_seconds: float,
        signal_app_end: bool,
        extra_app_arguments: Sequence[str],
        environment_variables: Sequence[tuple[str, str]],
        result_format: ResultFormat,
        skipped_methods: Sequence[str] | None,
        skipped_test_classes: Sequence[str] | None,
        cancellation_token: CancellationToken,
    ) -> ExecutionOutcome:
        if self._desktop_test_command is None:
            raise CommandTesterConfigurationError("No desktop test command is configured.")
        placeholders = target_placeholders(
            app_bundle_information, TestTargetOs(TestTarget.MAC_CATALYST), None
        )
        return self._execute(
            self._desktop_test_command,
            placeholders,
            timeout_seconds=timeout_seconds,
            launch_timeout_seconds=launch_timeout_seconds,
            signal_app_end=signal_app_end,
            extra_app_arguments=extra_app_arguments,
            environment_variables=environment_variables,
            result_format=result_format,
            skipped_methods=skipped_methods,
            skipped_test_classes=skipped_test_classes,
            cancellation_token=cancellation_token,
        )

    def _execute(  # pylint: disable=too-many-arguments
        self,
        template: tuple[str, ...],
        placeholders: dict[str, object],
        *,
        timeout_seconds: float,
        launch_timeout_seconds: float,
        signal_app_end: bool,
        extra_app_arguments: Sequence[str],
        environment_variables: Sequence[tuple[str, str]],
        result_format: ResultFormat,
        skipped_methods: Sequence[str] | None,
        skipped_test_classes: Sequence[str] | None,
        cancellation_token: CancellationToken,
    ) -> ExecutionOutcome:
        placeholders.update(
            timeout_seconds=int(timeout_seconds),
            launch_timeout_seconds=int(launch_timeout_seconds),
            result_format=result_format.value,
            communication_channel=self._communication_channel.value,
        )
        command = list(render_command(template, placeholders))
        command.extend(f"--skip-method={method}" for method in skipped_methods or ())
        command.extend(f"--skip-class={test_class}" for test_class in skipped_test_classes or ())
        if signal_app_end:
            command.append("--signal-app-end")
        if self._enable_lldb:
            command.append("--enable-lldb")
        command.extend(extra_app_arguments)

        test_log = self._logs.create("test-run.log", "Test run output")
        try:
            result = self._command_runner.run(
                command,
                log=test_log,
                timeout_seconds=timeout_seconds,
                cancellation_token=cancellation_token,
                environment=dict(environment_variables),
            )
        except OperationCancelledError:
            self._main_log.write_line("Test run was cancelled before it finished.")
            return ExecutionOutcome(
                TestExecutingResult.TIMED_OUT, "Test run was cancelled before it finished"
            )

        execution_result = classify_execution(result)
        summary_line = extract_summary_line(result.output) or _default_summary(
            execution_result, result, timeout_seconds
        )
        self._main_log.write_line(f"Test run finished as {execution_result.value}: {summary_line}")
        # The knowledge base reads the main log, so the raw output has to end up there too.
        if execution_result is TestExecutingResult.CRASHED:
            for line in result.output.splitlines():
                self._main_log.write_line(line)
        return ExecutionOutcome(execution_result, summary_line)


def _default_summary(
    execution_result: TestExecutingResult,
    result: ProcessExecutionResult,
    timeout_seconds: float,
) -> str:
    if execution_result is TestExecutingResult.TIMED_OUT:
        return f"Test run timed out after {int(timeout_seconds)} seconds"
    if execution_result is TestExecutingResult.CRASHED:
        return "App crashed before reporting results"
    if execution_result is TestExecutingResult.SUCCEEDED:
        return "Test run completed"
    return f"Test run failed with exit code {result.exit_code}"


class CommandAppTesterFactory:  # pylint: disable=too-few-public-methods
    """Creates command-driven testers for the commands of a lab configuration."""

    def __init__(
        self,
        *,
        test_command: Sequence[str] | None,
        desktop_test_command: Sequence[str] | None,
        command_runner: CommandRunner,
    ) -> None:
        self._test_command = test_command
        self._desktop_test_command = desktop_test_command
        self._command_runner = command_runner

    def create(
        self,
        communication_channel: CommunicationChannel,
        enable_lldb: bool,
        main_log: FileBackedLog,
        logs: RunLogs,
    ) -> CommandAppTester:
        return CommandAppTester(
            test_command=self._test_command,
            desktop_test_command=self._desktop_test_command,
            command_runner=self._command_runner,
            communication_channel=communication_channel,
            enable_lldb=enable_lldb,
            main_log=main_log,
            logs=logs,
        )

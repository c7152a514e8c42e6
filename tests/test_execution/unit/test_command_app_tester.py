"""Tests for the command-driven app tester."""

from __future__ import annotations

from pathlib import Path

import pytest
from lab_run_orchestrator.app_bundle import AppBundleInformation
from lab_run_orchestrator.cancellation import CancellationToken, OperationCancelledError
from lab_run_orchestrator.process_execution import ProcessExecutionResult
from lab_run_orchestrator.run_logging import RunLogs
from lab_run_orchestrator.target_selection import InventoryDevice, TestTarget, TestTargetOs
from lab_run_orchestrator.test_execution import (
    CommandAppTesterFactory,
    CommandTesterConfigurationError,
    CommunicationChannel,
    ResultFormat,
    TestExecutingResult,
    classify_execution,
    extract_summary_line,
)

BUNDLE = AppBundleInformation(
    app_name="TestApp",
    bundle_identifier="net.dot.TestApp",
    app_path=Path("/builds/TestApp.app"),
)
DEVICE = InventoryDevice("Lab iPhone", "DEV-1", "17.1", "ios")
TARGET = TestTargetOs(TestTarget.DEVICE_IOS)


class ScriptedCommandRunner:
    def __init__(self, result=None, error: Exception | None = None) -> None:
        self.result = result or ProcessExecutionResult(exit_code=0, timed_out=False)
        self.error = error
        self.calls: list[dict] = []

    def run(self, command, *, log, timeout_seconds, cancellation_token, environment=None):
        self.calls.append(
            {
                "command": tuple(command),
                "log": log,
                "timeout_seconds": timeout_seconds,
                "environment": environment,
            }
        )
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def logs(tmp_path: Path):
    run_logs = RunLogs(tmp_path)
    yield run_logs
    run_logs.close()


def _tester(runner, logs, *, enable_lldb=False, desktop_test_command=None):
    factory = CommandAppTesterFactory(
        test_command=("run-tests", "--udid", "{udid}", "--format", "{result_format}"),
        desktop_test_command=desktop_test_command,
        command_runner=runner,
    )
    main_log = logs.create("main.log", "Main log")
    return factory.create(CommunicationChannel.NETWORK, enable_lldb, main_log, logs), main_log


def _test_app(tester, **kwargs):
    arguments = {
        "timeout_seconds": 600,
        "launch_timeout_seconds": 60,
        "signal_app_end": False,
        "extra_app_arguments": (),
        "environment_variables": (),
        "skipped_methods": (),
        "skipped_test_classes": (),
    }
    arguments.update(kwargs)
    return tester.test_app(
        BUNDLE,
        TARGET,
        DEVICE,
        None,
        arguments["timeout_seconds"],
        arguments["launch_timeout_seconds"],
        arguments["signal_app_end"],
        arguments["extra_app_arguments"],
        arguments["environment_variables"],
        ResultFormat.NUNIT_V3,
        arguments["skipped_methods"],
        arguments["skipped_test_classes"],
        CancellationToken.none(),
    )


@pytest.mark.parametrize(
    ("result", "expected"),
    [
        (ProcessExecutionResult(exit_code=0, timed_out=False), TestExecutingResult.SUCCEEDED),
        (ProcessExecutionResult(exit_code=1, timed_out=False), TestExecutingResult.FAILED),
        (ProcessExecutionResult(exit_code=0, timed_out=True), TestExecutingResult.TIMED_OUT),
        (ProcessExecutionResult(exit_code=-11, timed_out=False), TestExecutingResult.CRASHED),
        (
            ProcessExecutionResult(exit_code=0, timed_out=False, output="EXC_BAD_ACCESS"),
            TestExecutingResult.CRASHED,
        ),
    ],
)
def test_classify_execution(result: ProcessExecutionResult, expected: TestExecutingResult) -> None:
    assert classify_execution(result) is expected


def test_extract_summary_line_returns_last_report() -> None:
    output = "Tests run: 1 Passed: 0\nnoise\nTests run: 2 Passed: 2 Failed: 0\n"

    assert extract_summary_line(output) == "Tests run: 2 Passed: 2 Failed: 0"
    assert extract_summary_line("nothing here") is None


def test_test_app_renders_command_with_flags_and_environment(logs) -> None:
    runner = ScriptedCommandRunner(
        ProcessExecutionResult(exit_code=0, timed_out=False, output="Tests run: 5 Passed: 5\n")
    )
    tester, _ = _tester(runner, logs, enable_lldb=True)

    outcome = _test_app(
        tester,
        signal_app_end=True,
        skipped_methods=("Suite.SlowTest",),
        skipped_test_classes=("Suite.Flaky",),
        extra_app_arguments=("--verbose",),
        environment_variables=(("LANG", "C"),),
    )

    assert outcome.result is TestExecutingResult.SUCCEEDED
    assert outcome.summary_line == "Tests run: 5 Passed: 5"
    call = runner.calls[0]
    assert call["command"] == (
        "run-tests",
        "--udid",
        "DEV-1",
        "--format",
        "nunit-v3",
        "--skip-method=Suite.SlowTest",
        "--skip-class=Suite.Flaky",
        "--signal-app-end",
        "--enable-lldb",
        "--verbose",
    )
    assert call["environment"] == {"LANG": "C"}
    assert call["timeout_seconds"] == 600
    assert call["log"].path.name == "test-run.log"


def test_crash_output_is_copied_to_main_log(logs) -> None:
    runner = ScriptedCommandRunner(
        ProcessExecutionResult(exit_code=134, timed_out=False, output="Application crashed\n")
    )
    tester, main_log = _tester(runner, logs)

    outcome = _test_app(tester)

    assert outcome.result is TestExecutingResult.CRASHED
    assert outcome.summary_line == "App crashed before reporting results"
    assert "Application crashed" in main_log.read_text()


def test_timeout_without_summary_gets_default_summary(logs) -> None:
    tester, _ = _tester(
        ScriptedCommandRunner(ProcessExecutionResult(exit_code=0, timed_out=True)), logs
    )

    outcome = _test_app(tester, timeout_seconds=90)

    assert outcome.result is TestExecutingResult.TIMED_OUT
    assert outcome.summary_line == "Test run timed out after 90 seconds"


def test_cancelled_test_run_is_reported_as_timed_out(logs) -> None:
    tester, _ = _tester(ScriptedCommandRunner(error=OperationCancelledError()), logs)

    outcome = _test_app(tester)

    assert outcome.result is TestExecutingResult.TIMED_OUT


def test_desktop_run_requires_desktop_command(logs) -> None:
    tester, _ = _tester(ScriptedCommandRunner(), logs)

    with pytest.raises(CommandTesterConfigurationError):
        tester.test_desktop_app(
            BUNDLE, 60, 10, False, (), (), ResultFormat.XUNIT, (), (), CancellationToken.none()
        )


def test_desktop_run_uses_desktop_command(logs) -> None:
    runner = ScriptedCommandRunner(ProcessExecutionResult(exit_code=1, timed_out=False))
    tester, _ = _tester(
        runner, logs, desktop_test_command=("open", "-W", "{app_path}", "{communication_channel}")
    )

    outcome = tester.test_desktop_app(
        BUNDLE, 60, 10, False, (), (), ResultFormat.XUNIT, (), (), CancellationToken.none()
    )

    assert outcome.result is TestExecutingResult.FAILED
    assert runner.calls[0]["command"] == ("open", "-W", "/builds/TestApp.app", "network")

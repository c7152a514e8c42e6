"""Tests for external command execution."""

from __future__ import annotations

import sys
import threading
from pathlib import Path

import pytest
from lab_run_orchestrator.cancellation import (
    CancellationSource,
    CancellationToken,
    OperationCancelledError,
)
from lab_run_orchestrator.process_execution import (
    CommandTemplateError,
    ProcessExecutionResult,
    SubprocessCommandRunner,
    render_command,
)
from lab_run_orchestrator.run_logging import RunLogs


@pytest.fixture
def command_log(tmp_path: Path):
    logs = RunLogs(tmp_path)
    yield logs.create("commands.log", "Commands")
    logs.close()


def test_render_command_fills_placeholders() -> None:
    rendered = render_command(
        ("xcrun", "simctl", "install", "{udid}", "{app_path}"),
        {"udid": "SIM-1", "app_path": "/builds/App.app", "unused": "x"},
    )

    assert rendered == ("xcrun", "simctl", "install", "SIM-1", "/builds/App.app")


def test_render_command_rejects_unknown_placeholder() -> None:
    with pytest.raises(CommandTemplateError, match="'device'"):
        render_command(("install", "{device}"), {"udid": "SIM-1"})


@pytest.mark.parametrize("item", ["--filter={", "{0}", "{udid!z}"])
def test_render_command_reports_malformed_templates(item: str) -> None:
    with pytest.raises(CommandTemplateError, match="Malformed command template"):
        render_command(("run-tests", item), {"udid": "SIM-1"})


def test_result_succeeds_only_on_zero_exit_without_timeout() -> None:
    assert ProcessExecutionResult(exit_code=0, timed_out=False).succeeded is True
    assert ProcessExecutionResult(exit_code=0, timed_out=True).succeeded is False
    assert ProcessExecutionResult(exit_code=2, timed_out=False).succeeded is False


def test_runner_captures_output_and_exit_code(command_log) -> None:
    result = SubprocessCommandRunner().run(
        [sys.executable, "-c", "import os, sys; print(os.environ['LAB_VALUE']); sys.exit(3)"],
        log=command_log,
        timeout_seconds=30,
        cancellation_token=CancellationToken.none(),
        environment={"LAB_VALUE": "from-env"},
    )

    assert result.exit_code == 3
    assert result.timed_out is False
    assert "from-env" in result.output
    assert "from-env" in command_log.read_text()


def test_runner_reports_timeout(command_log) -> None:
    result = SubprocessCommandRunner().run(
        [sys.executable, "-c", "import time; time.sleep(30)"],
        log=command_log,
        timeout_seconds=0.3,
        cancellation_token=CancellationToken.none(),
    )

    assert result.timed_out is True
    assert result.succeeded is False


def test_runner_terminates_child_on_cancellation(command_log) -> None:
    source = CancellationSource()
    timer = threading.Timer(0.3, source.cancel)
    timer.start()

    try:
        with pytest.raises(OperationCancelledError):
            SubprocessCommandRunner().run(
                [sys.executable, "-c", "import time; time.sleep(30)"],
                log=command_log,
                timeout_seconds=30,
                cancellation_token=source.token,
            )
    finally:
        timer.cancel()


def test_runner_refuses_to_start_when_already_cancelled(command_log) -> None:
    source = CancellationSource()
    source.cancel()

    with pytest.raises(OperationCancelledError):
        SubprocessCommandRunner().run(
            ["true"], log=command_log, timeout_seconds=5, cancellation_token=source.token
        )


def test_missing_program_returns_command_not_found(command_log) -> None:
    result = SubprocessCommandRunner().run(
        ["definitely-not-a-real-program-xyz"],
        log=command_log,
        timeout_seconds=5,
        cancellation_token=CancellationToken.none(),
    )

    assert result.exit_code == 127
    assert "Command not found" in command_log.read_text()

"""Tests for run execution domain entities."""

from __future__ import annotations

from pathlib import Path

from lab_run_orchestrator.outcome_codes import ExitCode
from lab_run_orchestrator.run_execution.run_contracts import RunOutcome, RunRequest


def test_run_request_defaults_defer_to_configuration() -> None:
    request = RunRequest(
        config_path="lab.yaml",
        app_path="TestApp.app",
        target="ios-simulator-64",
    )

    assert request.timeout_seconds is None
    assert request.reset_simulator is None
    assert request.communication_channel is None
    assert request.skipped_methods == ()
    assert request.environment_variables == ()
    assert request.extra_app_arguments == ()


def test_run_outcome_contains_exit_code_and_output_paths() -> None:
    outcome = RunOutcome(
        exit_code=ExitCode.TESTS_FAILED,
        output_directory=Path("/tmp/results/ios-device-20260101-000000"),
        diagnostics_path=Path("/tmp/results/ios-device-20260101-000000/diagnostics.json"),
        duration_seconds=12.5,
    )

    assert int(outcome.exit_code) == 1
    assert outcome.diagnostics_path.name == "diagnostics.json"
    assert outcome.duration_seconds == 12.5

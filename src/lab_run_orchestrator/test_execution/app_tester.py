"""Test runner contracts used by the orchestrator."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from lab_run_orchestrator.app_bundle import AppBundleInformation
from lab_run_orchestrator.cancellation import CancellationToken
from lab_run_orchestrator.run_logging import FileBackedLog, RunLogs
from lab_run_orchestrator.target_selection import TargetHandle, TestTargetOs

from .execution_outcomes import CommunicationChannel, ExecutionOutcome, ResultFormat


class AppTester(Protocol):
    """Runs the test suite of an installed app and classifies how it ended."""

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
    ) -> ExecutionOutcome: ...

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
    ) -> ExecutionOutcome: ...


class AppTesterFactory(Protocol):  # pylint: disable=too-few-public-methods
    """Creates an app tester bound to one run's channel and logs."""

    def create(
        self,
        communication_channel: CommunicationChannel,
        enable_lldb: bool,
        main_log: FileBackedLog,
        logs: RunLogs,
    ) -> AppTester: ...

"""Install and uninstall of the app under test on a resolved target."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from lab_run_orchestrator.app_bundle import AppBundleInformation
from lab_run_orchestrator.cancellation import CancellationToken
from lab_run_orchestrator.process_execution import (
    CommandRunner,
    ProcessExecutionResult,
    render_command,
)
from lab_run_orchestrator.run_logging import FileBackedLog
from lab_run_orchestrator.target_selection import TargetHandle, TestTargetOs


class InstallError(Exception):
    """Raised when the app could not be installed on the target."""


class AppInstaller(Protocol):  # pylint: disable=too-few-public-methods
    """Protocol for deploying the app onto a resolved target."""

    def install_app(
        self,
        app_bundle_information: AppBundleInformation,
        target: TestTargetOs,
        device: TargetHandle,
        cancellation_token: CancellationToken,
    ) -> ProcessExecutionResult: ...


class AppUninstaller(Protocol):  # pylint: disable=too-few-public-methods
    """Protocol for removing the app from a resolved target."""

    def uninstall_app(
        self,
        app_bundle_information: AppBundleInformation,
        target: TestTargetOs,
        device: TargetHandle,
        cancellation_token: CancellationToken,
    ) -> ProcessExecutionResult: ...


def target_placeholders(
    app_bundle_information: AppBundleInformation,
    target: TestTargetOs,
    device: TargetHandle | None,
) -> dict[str, object]:
    """Placeholder values shared by every command template."""
    values: dict[str, object] = {
        "app_path": str(app_bundle_information.app_path),
        "app_name": app_bundle_information.app_name,
        "bundle_id": app_bundle_information.bundle_identifier,
        "platform": target.target.platform,
        "target": target.target.value,
        "os_version": target.os_version or "",
        "udid": "",
        "target_name": "",
    }
    if device is not None:
        values.update(udid=device.udid, target_name=device.name, os_version=device.os_version)
    return values


class _CommandDeployment:  # pylint: disable=too-few-public-methods
    def __init__(
        self,
        command_template: Sequence[str],
        command_runner: CommandRunner,
        log: FileBackedLog,
        timeout_seconds: float,
    ) -> None:
        self._command_template = tuple(command_template)
        self._command_runner = command_runner
        self._log = log
        self._timeout_seconds = timeout_seconds

    def _run(
        self,
        app_bundle_information: AppBundleInformation,
        target: TestTargetOs,
        device: TargetHandle,
        cancellation_token: CancellationToken,
    ) -> ProcessExecutionResult:
        command = render_command(
            self._command_template,
            target_placeholders(app_bundle_information, target, device),
        )
        return self._command_runner.run(
            command,
            log=self._log,
            timeout_seconds=self._timeout_seconds,
            cancellation_token=cancellation_token,
        )


class CommandAppInstaller(_CommandDeployment):  # pylint: disable=too-few-public-methods
    """Installs the app by running the configured install command."""

    def install_app(
        self,
        app_bundle_information: AppBundleInformation,
        target: TestTargetOs,
        device: TargetHandle,
        cancellation_token: CancellationToken,
    ) -> ProcessExecutionResult:
        self._log.write_line(
            f"Installing {app_bundle_information.bundle_identifier} on {device.name}"
        )
        return self._run(app_bundle_information, target, device, cancellation_token)


class CommandAppUninstaller(_CommandDeployment):  # pylint: disable=too-few-public-methods
    """Removes the app by running the configured uninstall command."""

    def uninstall_app(
        self,
        app_bundle_information: AppBundleInformation,
        target: TestTargetOs,
        device: TargetHandle,
        cancellation_token: CancellationToken,
    ) -> ProcessExecutionResult:
        self._log.write_line(
            f"Uninstalling {app_bundle_information.bundle_identifier} from {device.name}"
        )
        return self._run(app_bundle_information, target, device, cancellation_token)

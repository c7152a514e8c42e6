"""Target discovery services."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol, TypeVar

from lab_run_orchestrator.cancellation import CancellationToken
from lab_run_orchestrator.process_execution import (
    CommandRunner,
    ProcessExecutionResult,
    render_command,
)
from lab_run_orchestrator.run_logging import FileBackedLog

from .target_models import (
    ConcreteTarget,
    DeviceTarget,
    SimulatorTarget,
    TargetVariant,
    TestTargetOs,
)


class TargetNotFoundError(Exception):
    """Raised when no target satisfies the requested descriptor."""


class SimulatorOperationError(Exception):
    """Raised when a simulator reset or clean-up command fails."""


class TargetFinder(Protocol):  # pylint: disable=too-few-public-methods
    """Protocol for resolving a descriptor into a concrete target."""

    def find_target(
        self,
        target: TestTargetOs,
        device_name: str | None,
        log: FileBackedLog,
        include_wireless_devices: bool,
        exact_match: bool,
        cancellation_token: CancellationToken,
    ) -> ConcreteTarget: ...


@dataclass(frozen=True)
class InventorySimulator:
    """Simulator declared in the lab inventory, driven through commands."""

    name: str
    udid: str
    os_version: str
    platform: str
    command_runner: CommandRunner = field(repr=False, compare=False)
    reset_command: tuple[str, ...] | None = None
    clean_up_command: tuple[str, ...] | None = None
    command_timeout_seconds: float = 300.0

    def reset(self, log: FileBackedLog, cancellation_token: CancellationToken) -> None:
        """Wipe the simulator's content and settings."""
        self._run(self.reset_command, "reset", log, cancellation_token)

    def clean_up(self, log: FileBackedLog, cancellation_token: CancellationToken) -> None:
        """Tear down the simulator after a run (shutdown, kill leftovers)."""
        self._run(self.clean_up_command, "clean-up", log, cancellation_token)

    def _run(
        self,
        template: tuple[str, ...] | None,
        operation: str,
        log: FileBackedLog,
        cancellation_token: CancellationToken,
    ) -> None:
        if template is None:
            log.write_line(f"No simulator {operation} command configured, skipping.")
            return
        command = render_command(template, self._placeholders())
        result: ProcessExecutionResult = self.command_runner.run(
            command,
            log=log,
            timeout_seconds=self.command_timeout_seconds,
            cancellation_token=cancellation_token,
        )
        if not result.succeeded:
            raise SimulatorOperationError(
                f"Simulator {operation} failed for {self.name} "
                f"(exit code {result.exit_code}, timed out: {result.timed_out})"
            )

    def _placeholders(self) -> Mapping[str, object]:
        return {
            "udid": self.udid,
            "target_name": self.name,
            "os_version": self.os_version,
            "platform": self.platform,
        }


@dataclass(frozen=True)
class InventoryDevice:
    """Physical device declared in the lab inventory."""

    name: str
    udid: str
    os_version: str
    platform: str
    is_wireless: bool = False


_InventoryItemT = TypeVar("_InventoryItemT", InventorySimulator, InventoryDevice)


class InventoryTargetFinder:  # pylint: disable=too-few-public-methods
    """Resolves descriptors against the simulators and devices a lab declares."""

    def __init__(
        self,
        simulators: Sequence[InventorySimulator] = (),
        devices: Sequence[InventoryDevice] = (),
    ) -> None:
        self._simulators = tuple(simulators)
        self._devices = tuple(devices)

    def find_target(
        self,
        target: TestTargetOs,
        device_name: str | None,
        log: FileBackedLog,
        include_wireless_devices: bool,
        exact_match: bool,
        cancellation_token: CancellationToken,
    ) -> ConcreteTarget:
        cancellation_token.raise_if_cancelled()
        log.write_line(f"Looking for a target matching {target.as_string()}")
        if target.variant is TargetVariant.SIMULATOR:
            simulator = _select(
                [item for item in self._simulators if item.platform == target.target.platform],
                target,
                device_name,
                exact_match,
            )
            cancellation_token.raise_if_cancelled()
            log.write_line(f"Selected simulator {simulator.name} ({simulator.udid})")
            return SimulatorTarget(simulator=simulator)
        if target.variant is TargetVariant.DEVICE:
            candidates = [
                item
                for item in self._devices
                if item.platform == target.target.platform
                and (include_wireless_devices or not item.is_wireless)
            ]
            device = _select(candidates, target, device_name, exact_match)
            cancellation_token.raise_if_cancelled()
            log.write_line(f"Selected device {device.name} ({device.udid})")
            return DeviceTarget(device=device)
        raise TargetNotFoundError(f"{target.as_string()} runs locally and has no target to find.")


def _select(
    candidates: Sequence[_InventoryItemT],
    target: TestTargetOs,
    device_name: str | None,
    exact_match: bool,
) -> _InventoryItemT:
    if device_name:
        candidates = [item for item in candidates if device_name in (item.name, item.udid)]
    if target.os_version:
        wanted = _version_key(target.os_version)
        if exact_match:
            candidates = [item for item in candidates if _version_key(item.os_version) == wanted]
        else:
            candidates = [item for item in candidates if _version_key(item.os_version) >= wanted]
    if not candidates:
        name_hint = f" named '{device_name}'" if device_name else ""
        raise TargetNotFoundError(f"No {target.as_string()} target{name_hint} is available.")
    return max(candidates, key=lambda item: _version_key(item.os_version))


def _version_key(version: str) -> tuple[int, ...]:
    parts: list[int] = []
    for piece in version.split("."):
        digits = "".join(char for char in piece if char.isdigit())
        parts.append(int(digits) if digits else 0)
    while len(parts) > 1 and parts[-1] == 0:
        parts.pop()
    return tuple(parts)

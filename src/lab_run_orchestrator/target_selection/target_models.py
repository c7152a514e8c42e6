"""Target domain entities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from lab_run_orchestrator.cancellation import CancellationToken
    from lab_run_orchestrator.run_logging import FileBackedLog


class TargetVariant(str, Enum):
    """Kind of execution target, which decides the lifecycle steps of a run."""

    SIMULATOR = "simulator"
    DEVICE = "device"
    DESKTOP = "desktop"


class TestTarget(str, Enum):
    """Platform targets tests can be run against."""

    __test__ = False

    SIMULATOR_IOS = "ios-simulator"
    SIMULATOR_IOS32 = "ios-simulator-32"
    SIMULATOR_IOS64 = "ios-simulator-64"
    SIMULATOR_TVOS = "tvos-simulator"
    SIMULATOR_WATCHOS = "watchos-simulator"
    DEVICE_IOS = "ios-device"
    DEVICE_TVOS = "tvos-device"
    DEVICE_WATCHOS = "watchos-device"
    MAC_CATALYST = "maccatalyst"

    @property
    def variant(self) -> TargetVariant:
        if self is TestTarget.MAC_CATALYST:
            return TargetVariant.DESKTOP
        if self.value.endswith("-device"):
            return TargetVariant.DEVICE
        return TargetVariant.SIMULATOR

    @property
    def platform(self) -> str:
        """Return the OS family name (ios, tvos, watchos, maccatalyst)."""
        return self.value.split("-", 1)[0]

    @property
    def is_simulator(self) -> bool:
        return self.variant is TargetVariant.SIMULATOR


@dataclass(frozen=True)
class TestTargetOs:
    """Requested kind of target plus an optional OS version constraint."""

    __test__ = False

    target: TestTarget
    os_version: str | None = None

    @property
    def variant(self) -> TargetVariant:
        return self.target.variant

    def as_string(self) -> str:
        if self.os_version:
            return f"{self.target.value}_{self.os_version}"
        return self.target.value


def parse_test_target(text: str) -> TestTargetOs:
    """Parse `<target>[_<os-version>]`, e.g. `ios-simulator-64_13.5`."""
    raw = text.strip().lower()
    target_text, _, os_version = raw.partition("_")
    try:
        target = TestTarget(target_text)
    except ValueError as exc:
        supported = ", ".join(item.value for item in TestTarget)
        raise ValueError(f"Unknown test target '{text}'. Supported targets: {supported}") from exc
    return TestTargetOs(target=target, os_version=os_version or None)


class TargetHandle(Protocol):
    """Identity shared by simulators and physical devices."""

    @property
    def name(self) -> str: ...

    @property
    def udid(self) -> str: ...

    @property
    def os_version(self) -> str: ...


class SimulatorHandle(TargetHandle, Protocol):
    """Simulator that can be wiped and torn down after a run."""

    def reset(self, log: FileBackedLog, cancellation_token: CancellationToken) -> None: ...

    def clean_up(self, log: FileBackedLog, cancellation_token: CancellationToken) -> None: ...


class DeviceHandle(TargetHandle, Protocol):
    """Physical device paired with the host."""

    @property
    def is_wireless(self) -> bool: ...


@dataclass(frozen=True)
class SimulatorTarget:
    """Resolved simulator bound to one run."""

    simulator: SimulatorHandle

    @property
    def handle(self) -> SimulatorHandle:
        return self.simulator


@dataclass(frozen=True)
class DeviceTarget:
    """Resolved physical device bound to one run."""

    device: DeviceHandle

    @property
    def handle(self) -> DeviceHandle:
        return self.device


ConcreteTarget = SimulatorTarget | DeviceTarget

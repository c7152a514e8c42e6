"""Target selection exports."""

from .target_finder import (
    InventoryDevice,
    InventorySimulator,
    InventoryTargetFinder,
    SimulatorOperationError,
    TargetFinder,
    TargetNotFoundError,
)
from .target_models import (
    ConcreteTarget,
    DeviceHandle,
    DeviceTarget,
    SimulatorHandle,
    SimulatorTarget,
    TargetHandle,
    TargetVariant,
    TestTarget,
    TestTargetOs,
    parse_test_target,
)

__all__ = [
    "ConcreteTarget",
    "DeviceHandle",
    "DeviceTarget",
    "InventoryDevice",
    "InventorySimulator",
    "InventoryTargetFinder",
    "SimulatorHandle",
    "SimulatorOperationError",
    "SimulatorTarget",
    "TargetFinder",
    "TargetHandle",
    "TargetNotFoundError",
    "TargetVariant",
    "TestTarget",
    "TestTargetOs",
    "parse_test_target",
]

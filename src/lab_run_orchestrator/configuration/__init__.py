"""Configuration domain exports."""

from .config_scaffold_builder import (
    DEFAULT_CONFIG_FILENAME,
    build_placeholder_configuration,
    write_placeholder_configuration,
)
from .loader import ConfigurationError, load_configuration
from .runtime_settings import (
    CommandSettings,
    Configuration,
    DeviceSettings,
    KnownIssueSettings,
    OutputSettings,
    RunSettings,
    SimulatorSettings,
    TargetInventorySettings,
)

__all__ = [
    "CommandSettings",
    "Configuration",
    "DeviceSettings",
    "KnownIssueSettings",
    "OutputSettings",
    "RunSettings",
    "SimulatorSettings",
    "TargetInventorySettings",
    "ConfigurationError",
    "load_configuration",
    "DEFAULT_CONFIG_FILENAME",
    "build_placeholder_configuration",
    "write_placeholder_configuration",
]

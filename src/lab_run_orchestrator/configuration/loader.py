"""Configuration loader service."""

from __future__ import annotations

import re
import shlex
import string
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

from lab_run_orchestrator.outcome_codes import ExitCode, parse_exit_code
from lab_run_orchestrator.test_execution import CommunicationChannel, ResultFormat

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

SUPPORTED_PLATFORMS = ("ios", "tvos", "watchos")
_COMMAND_NAMES = (
    "install",
    "uninstall",
    "test",
    "desktop_test",
    "reset_simulator",
    "cleanup_simulator",
)
_SIMULATOR_PLACEHOLDERS = frozenset({"udid", "target_name", "os_version", "platform"})
_DEPLOYMENT_PLACEHOLDERS = _SIMULATOR_PLACEHOLDERS | {
    "app_path",
    "app_name",
    "bundle_id",
    "target",
}
_TEST_RUN_PLACEHOLDERS = _DEPLOYMENT_PLACEHOLDERS | {
    "companion_udid",
    "timeout_seconds",
    "launch_timeout_seconds",
    "result_format",
    "communication_channel",
}
_PLACEHOLDERS_BY_COMMAND = {
    "install": _DEPLOYMENT_PLACEHOLDERS,
    "uninstall": _DEPLOYMENT_PLACEHOLDERS,
    "test": _TEST_RUN_PLACEHOLDERS,
    "desktop_test": _TEST_RUN_PLACEHOLDERS,
    "reset_simulator": _SIMULATOR_PLACEHOLDERS,
    "cleanup_simulator": _SIMULATOR_PLACEHOLDERS,
}
_FIELD_NAME_END = re.compile(r"[.\[]")


class ConfigurationError(Exception):
    """Raised when the configuration file is invalid."""


def load_configuration(config_path: Path | str) -> Configuration:
    """Load and validate the lab configuration file."""
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:  # pragma: no cover - exercised indirectly
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc

    if parsed is None:
        parsed = {}

    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")

    run = _parse_run_section(parsed.get("run"))
    output = _parse_output_section(parsed.get("output"), path.parent)
    targets = _parse_targets_section(parsed.get("targets"))
    commands = _parse_commands_section(parsed.get("commands"))
    known_issues = _parse_known_issues_section(parsed.get("known_issues"))

    return Configuration(
        path=path,
        run=run,
        output=output,
        targets=targets,
        commands=commands,
        known_issues=known_issues,
    )


def _parse_run_section(value: Any) -> RunSettings:
    section = _optional_mapping(value, "run")
    defaults = RunSettings()
    timeout_seconds = _require_positive_int(
        section.get("timeout_seconds", defaults.timeout_seconds), "run.timeout_seconds"
    )
    launch_timeout_seconds = _require_positive_int(
        section.get("launch_timeout_seconds", defaults.launch_timeout_seconds),
        "run.launch_timeout_seconds",
    )
    command_timeout_seconds = _require_positive_int(
        section.get("command_timeout_seconds", defaults.command_timeout_seconds),
        "run.command_timeout_seconds",
    )
    communication_channel = _parse_enum(
        CommunicationChannel,
        section.get("communication_channel", defaults.communication_channel.value),
        "run.communication_channel",
    )
    result_format = _parse_enum(
        ResultFormat,
        section.get("result_format", defaults.result_format.value),
        "run.result_format",
    )
    try:
        unmatched_crash_exit_code = parse_exit_code(
            section.get("unmatched_crash_exit_code", defaults.unmatched_crash_exit_code.name)
        )
    except ValueError as exc:
        raise ConfigurationError(f"run.unmatched_crash_exit_code: {exc}") from exc
    return RunSettings(
        timeout_seconds=timeout_seconds,
        launch_timeout_seconds=launch_timeout_seconds,
        command_timeout_seconds=command_timeout_seconds,
        communication_channel=communication_channel,
        result_format=result_format,
        reset_simulator=_optional_bool(section.get("reset_simulator"), "run.reset_simulator"),
        include_wireless_devices=_optional_bool(
            section.get("include_wireless_devices"), "run.include_wireless_devices"
        ),
        enable_lldb=_optional_bool(section.get("enable_lldb"), "run.enable_lldb"),
        signal_app_end=_optional_bool(section.get("signal_app_end"), "run.signal_app_end"),
        environment=_parse_environment(section.get("environment")),
        unmatched_crash_exit_code=unmatched_crash_exit_code,
    )


def _parse_output_section(value: Any, base_path: Path) -> OutputSettings:
    section = _optional_mapping(value, "output")
    directory = _optional_string(section.get("directory"), "output.directory") or "results"
    return OutputSettings(directory=_resolve_path(base_path, directory))


def _parse_targets_section(value: Any) -> TargetInventorySettings:
    section = _optional_mapping(value, "targets")
    simulators = tuple(
        SimulatorSettings(
            name=_require_non_empty_string(item.get("name"), f"{label}.name"),
            udid=_require_non_empty_string(item.get("udid"), f"{label}.udid"),
            platform=_require_platform(item.get("platform", "ios"), f"{label}.platform"),
            os_version=_require_version(item.get("os_version"), f"{label}.os_version"),
        )
        for label, item in _mapping_entries(section.get("simulators"), "targets.simulators")
    )
    devices = tuple(
        DeviceSettings(
            name=_require_non_empty_string(item.get("name"), f"{label}.name"),
            udid=_require_non_empty_string(item.get("udid"), f"{label}.udid"),
            platform=_require_platform(item.get("platform", "ios"), f"{label}.platform"),
            os_version=_require_version(item.get("os_version"), f"{label}.os_version"),
            wireless=_optional_bool(item.get("wireless"), f"{label}.wireless"),
        )
        for label, item in _mapping_entries(section.get("devices"), "targets.devices")
    )
    return TargetInventorySettings(simulators=simulators, devices=devices)


def _parse_commands_section(value: Any) -> CommandSettings:
    section = _optional_mapping(value, "commands")
    unknown = sorted(set(section) - set(_COMMAND_NAMES))
    if unknown:
        raise ConfigurationError(f"Unknown commands: {', '.join(map(str, unknown))}")
    parsed = {
        name: _parse_command(section.get(name), f"commands.{name}") for name in _COMMAND_NAMES
    }
    for name, command in parsed.items():
        if command is not None:
            _validate_placeholders(command, _PLACEHOLDERS_BY_COMMAND[name], f"commands.{name}")
    return CommandSettings(**parsed)


def _validate_placeholders(
    command: tuple[str, ...], allowed: frozenset[str], field_name: str
) -> None:
    formatter = string.Formatter()
    for item in command:
        try:
            fields = [
                (name, conversion)
                for _, name, _, conversion in formatter.parse(item)
                if name is not None
            ]
        except ValueError as exc:
            raise ConfigurationError(
                f"{field_name} has a malformed template '{item}': {exc}"
            ) from exc
        for name, conversion in fields:
            placeholder = _FIELD_NAME_END.split(name, maxsplit=1)[0]
            if placeholder not in allowed:
                raise ConfigurationError(
                    f"{field_name} uses unknown placeholder '{{{name}}}'. "
                    f"Known placeholders: {', '.join(sorted(allowed))}"
                )
            if conversion not in (None, "r", "s", "a"):
                raise ConfigurationError(
                    f"{field_name} uses unknown conversion '!{conversion}' in '{item}'"
                )


def _parse_known_issues_section(value: Any) -> tuple[KnownIssueSettings, ...]:
    issues: list[KnownIssueSettings] = []
    for label, item in _mapping_entries(value, "known_issues"):
        pattern = _require_non_empty_string(item.get("pattern"), f"{label}.pattern")
        try:
            re.compile(pattern)
        except re.error as exc:
            raise ConfigurationError(f"{label}.pattern is not a valid regex: {exc}") from exc
        suggested_exit_code: ExitCode | None = None
        if item.get("suggested_exit_code") is not None:
            try:
                suggested_exit_code = parse_exit_code(item["suggested_exit_code"])
            except ValueError as exc:
                raise ConfigurationError(f"{label}.suggested_exit_code: {exc}") from exc
        issues.append(
            KnownIssueSettings(
                pattern=pattern,
                description=_require_non_empty_string(
                    item.get("description"), f"{label}.description"
                ),
                suggested_exit_code=suggested_exit_code,
                issue_link=_optional_string(item.get("issue_link"), f"{label}.issue_link"),
            )
        )
    return tuple(issues)


def _parse_command(value: Any, field_name: str) -> tuple[str, ...] | None:
    if value is None:
        return None
    if isinstance(value, str):
        parts = shlex.split(value)
    elif isinstance(value, Sequence):
        parts = []
        for item in value:
            if not isinstance(item, str):
                raise ConfigurationError(f"{field_name} entries must be strings.")
            parts.append(item)
    else:
        raise ConfigurationError(f"{field_name} must be a string or list of strings.")
    if not parts:
        raise ConfigurationError(f"{field_name} must not be empty.")
    return tuple(parts)


def _parse_environment(value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError("run.environment must be a mapping.")
    environment: dict[str, str] = {}
    for key, item in value.items():
        if not isinstance(key, str) or not key.strip():
            raise ConfigurationError("run.environment keys must be non-empty strings.")
        if isinstance(item, (dict, list)) or item is None:
            raise ConfigurationError(f"run.environment.{key} must be a scalar value.")
        environment[key.strip()] = str(item)
    return environment


def _parse_enum(enum_type, value: Any, field_name: str):
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    try:
        return enum_type(value.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(item.value for item in enum_type)
        raise ConfigurationError(f"{field_name} must be one of: {allowed}.") from exc


def _mapping_entries(value: Any, section_name: str) -> list[tuple[str, Mapping[str, Any]]]:
    if value is None:
        return []
    if isinstance(value, (str, Mapping)) or not isinstance(value, Sequence):
        raise ConfigurationError(f"{section_name} must be a list.")
    entries = []
    for index, item in enumerate(value):
        label = f"{section_name}[{index}]"
        if not isinstance(item, Mapping):
            raise ConfigurationError(f"{label} must be a mapping.")
        entries.append((label, item))
    return entries


def _resolve_path(base_path: Path, raw_path: str) -> Path:
    candidate = Path(raw_path)
    if not candidate.is_absolute():
        return (base_path / candidate).resolve()
    return candidate


def _optional_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section '{section_name}' must be a mapping.")
    return value


def _require_platform(value: Any, field_name: str) -> str:
    platform = _require_non_empty_string(value, field_name).lower()
    if platform not in SUPPORTED_PLATFORMS:
        raise ConfigurationError(f"{field_name} must be one of: {', '.join(SUPPORTED_PLATFORMS)}.")
    return platform


def _require_version(value: Any, field_name: str) -> str:
    # YAML reads 16.4 as a float.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    return _require_non_empty_string(value, field_name)


def _require_non_empty_string(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    if not stripped:
        raise ConfigurationError(f"{field_name} must not be empty.")
    return stripped


def _optional_string(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    return stripped or None


def _optional_bool(value: Any, field_name: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be true or false.")
    return value


def _require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if not isinstance(value, int):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if value <= 0:
        raise ConfigurationError(f"{field_name} must be greater than zero.")
    return value

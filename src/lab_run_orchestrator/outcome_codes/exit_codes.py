"""Outcome codes returned by an orchestrated run."""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """Final, caller-visible result of one orchestrated run.

    The CLI uses the value as process exit status.
    """

    SUCCESS = 0
    TESTS_FAILED = 1
    INVALID_ARGUMENTS = 3
    TIMED_OUT = 70
    GENERAL_FAILURE = 71
    PACKAGE_INSTALLATION_FAILURE = 78
    FAILED_TO_GET_BUNDLE_INFO = 79
    APP_CRASH = 80
    DEVICE_NOT_FOUND = 81
    APP_LAUNCH_FAILURE = 83
    SIMULATOR_FAILURE = 85
    DEVICE_FAILURE = 86
    APP_LAUNCH_TIMEOUT = 90


def parse_exit_code(value: object) -> ExitCode:
    """Accept an ExitCode, its integer value or its case-insensitive name."""
    if isinstance(value, ExitCode):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Unknown exit code: {value!r}")
    if isinstance(value, int):
        return ExitCode(value)
    if isinstance(value, str):
        name = value.strip().upper().replace("-", "_")
        try:
            return ExitCode[name]
        except KeyError as exc:
            raise ValueError(f"Unknown exit code: {value!r}") from exc
    raise ValueError(f"Unknown exit code: {value!r}")

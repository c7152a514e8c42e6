"""Process execution exports."""

from .command_runner import (
    CommandRunner,
    CommandTemplateError,
    ProcessExecutionResult,
    SubprocessCommandRunner,
    render_command,
)

__all__ = [
    "CommandRunner",
    "CommandTemplateError",
    "ProcessExecutionResult",
    "SubprocessCommandRunner",
    "render_command",
]

"""Cancellable subprocess execution for install, test and simulator commands."""

from __future__ import annotations

import os
import shlex
import subprocess
import threading
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import IO, Protocol

from lab_run_orchestrator.cancellation import CancellationToken, OperationCancelledError
from lab_run_orchestrator.run_logging import FileBackedLog

_POLL_INTERVAL_SECONDS = 0.1
_TERMINATE_GRACE_SECONDS = 5.0
_COMMAND_NOT_FOUND_EXIT_CODE = 127


class CommandTemplateError(Exception):
    """Raised when a command template cannot be rendered."""


@dataclass(frozen=True)
class ProcessExecutionResult:
    """Outcome of one external command."""

    exit_code: int
    timed_out: bool
    output: str = ""

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


class CommandRunner(Protocol):  # pylint: disable=too-few-public-methods
    """Protocol for anything able to run an external command."""

    def run(
        self,
        command: Sequence[str],
        *,
        log: FileBackedLog,
        timeout_seconds: float,
        cancellation_token: CancellationToken,
        environment: Mapping[str, str] | None = None,
    ) -> ProcessExecutionResult: ...


def render_command(template: Sequence[str], values: Mapping[str, object]) -> tuple[str, ...]:
    """Fill `{placeholder}` fields of every argv item."""
    rendered: list[str] = []
    for item in template:
        try:
            rendered.append(item.format_map(values))
        except KeyError as exc:
            raise CommandTemplateError(
                f"Unknown placeholder {exc} in command template: {shlex.join(template)}"
            ) from exc
        except (IndexError, ValueError) as exc:
            raise CommandTemplateError(
                f"Malformed command template {shlex.join(template)}: {exc}"
            ) from exc
    return tuple(rendered)


class SubprocessCommandRunner:  # pylint: disable=too-few-public-methods
    """Command runner backed by subprocess.Popen.

    Output (stdout and stderr merged) is mirrored line by line into the given
    log. The child is terminated when the timeout expires, which is reported
    as `timed_out`, or when the cancellation token fires, which raises
    OperationCancelledError.
    """

    def run(
        self,
        command: Sequence[str],
        *,
        log: FileBackedLog,
        timeout_seconds: float,
        cancellation_token: CancellationToken,
        environment: Mapping[str, str] | None = None,
    ) -> ProcessExecutionResult:
        cancellation_token.raise_if_cancelled()
        command_text = shlex.join(command)
        log.write_line(f"Running: {command_text}")
        env = {**os.environ, **environment} if environment else None
        try:
            process = subprocess.Popen(  # pylint: disable=consider-using-with
                list(command),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=env,
            )
        except FileNotFoundError as exc:
            log.write_line(f"Command not found: {command_text}")
            return ProcessExecutionResult(
                exit_code=_COMMAND_NOT_FOUND_EXIT_CODE, timed_out=False, output=str(exc)
            )

        lines: list[str] = []
        reader = threading.Thread(
            target=_pump_output, args=(process.stdout, lines, log), daemon=True
        )
        reader.start()
        deadline = time.monotonic() + timeout_seconds
        timed_out = False
        try:
            while process.poll() is None:
                if cancellation_token.wait(_POLL_INTERVAL_SECONDS):
                    _terminate(process)
                    log.write_line(f"Cancelled: {command_text}")
                    raise OperationCancelledError(f"Command was cancelled: {command_text}")
                if time.monotonic() >= deadline:
                    timed_out = True
                    _terminate(process)
                    log.write_line(f"Timed out after {timeout_seconds}s: {command_text}")
                    break
        finally:
            reader.join(timeout=_TERMINATE_GRACE_SECONDS)

        log.write_line(f"Exit code {process.returncode}: {command_text}")
        return ProcessExecutionResult(
            exit_code=process.returncode,
            timed_out=timed_out,
            output="".join(lines),
        )


def _pump_output(stream: IO[str] | None, lines: list[str], log: FileBackedLog) -> None:
    if stream is None:
        return
    for line in stream:
        lines.append(line)
        log.write_line(line.rstrip("\n"))
    stream.close()


def _terminate(process: subprocess.Popen[str]) -> None:
    process.terminate()
    try:
        process.wait(timeout=_TERMINATE_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()

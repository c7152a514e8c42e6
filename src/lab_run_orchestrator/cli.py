"""Command line interface entry point."""

from __future__ import annotations

import signal
import sys

import click

from lab_run_orchestrator.app_bundle import BundleParseError
from lab_run_orchestrator.app_deployment import InstallError
from lab_run_orchestrator.cancellation import CancellationSource, OperationCancelledError
from lab_run_orchestrator.configuration import (
    DEFAULT_CONFIG_FILENAME,
    ConfigurationError,
    load_configuration,
    write_placeholder_configuration,
)
from lab_run_orchestrator.outcome_codes import ExitCode
from lab_run_orchestrator.process_execution import CommandTemplateError
from lab_run_orchestrator.run_execution import (
    RunExecutionError,
    RunRequest,
    execute_orchestrated_run,
)
from lab_run_orchestrator.run_logging import configure_console_logging
from lab_run_orchestrator.test_execution import CommunicationChannel, ResultFormat


class CliError(Exception):
    """Custom CLI error carrying the exit code to report."""

    def __init__(self, message: str, exit_code: ExitCode = ExitCode.GENERAL_FAILURE) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class _RunExit(Exception):
    """Carries the outcome of a completed run out of click."""

    def __init__(self, exit_code: ExitCode) -> None:
        super().__init__(exit_code.name)
        self.exit_code = exit_code


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="lab-run-orchestrator")
@click.option(
    "--verbosity",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="info",
    show_default=True,
    help="Console log level",
)
def cli(verbosity: str) -> None:
    """Run an app's test suite on a simulator, device or the local desktop."""
    configure_console_logging(verbosity)


@cli.command(name="generate-config")
@click.option(
    "--output",
    "output_path",
    required=False,
    default=DEFAULT_CONFIG_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to the YAML lab configuration template to write",
)
def generate_config(output_path: str) -> None:
    """Generate a placeholder YAML lab configuration with guidance comments."""
    try:
        resolved_output = write_placeholder_configuration(output_path)
    except (FileExistsError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(resolved_output))


@cli.command(name="list-targets")
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to YAML/JSON lab configuration file",
)
def list_targets(config_path: str) -> None:
    """List the simulators and devices declared in the lab configuration."""
    try:
        configuration = load_configuration(config_path)
    except (ConfigurationError, OSError) as exc:
        raise CliError(str(exc), ExitCode.INVALID_ARGUMENTS) from exc
    for simulator in configuration.targets.simulators:
        click.echo(
            f"simulator\t{simulator.platform}\t{simulator.os_version}\t"
            f"{simulator.name}\t{simulator.udid}"
        )
    for device in configuration.targets.devices:
        wireless = "\twireless" if device.wireless else ""
        click.echo(
            f"device\t{device.platform}\t{device.os_version}\t"
            f"{device.name}\t{device.udid}{wireless}"
        )


@cli.command(name="run")
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to YAML/JSON lab configuration file",
)
@click.option(
    "--app",
    "app_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to the built app bundle",
)
@click.option(
    "--target",
    required=True,
    help="Target to run on, e.g. ios-simulator-64_13.5, ios-device, maccatalyst",
)
@click.option("--device-name", default=None, help="Name or UDID of the device/simulator to use")
@click.option("--output-dir", default=None, type=click.Path(path_type=str), help="Log directory")
@click.option(
    "--timeout",
    "timeout_seconds",
    type=click.IntRange(min=1),
    default=None,
    help="Seconds the whole test run may take",
)
@click.option(
    "--launch-timeout",
    "launch_timeout_seconds",
    type=click.IntRange(min=1),
    default=None,
    help="Seconds allowed for finding the target",
)
@click.option(
    "--communication-channel",
    type=click.Choice([item.value for item in CommunicationChannel]),
    default=None,
)
@click.option(
    "--result-format",
    type=click.Choice([item.value for item in ResultFormat]),
    default=None,
)
@click.option("--skip-method", "skipped_methods", multiple=True, help="Test method to skip")
@click.option("--skip-class", "skipped_test_classes", multiple=True, help="Test class to skip")
@click.option("--reset-simulator/--no-reset-simulator", default=None)
@click.option("--include-wireless-devices/--no-include-wireless-devices", default=None)
@click.option("--enable-lldb/--no-enable-lldb", default=None)
@click.option("--signal-app-end/--no-signal-app-end", default=None)
@click.option(
    "--set-env",
    "environment_variables",
    multiple=True,
    help="Environment variable for the app, as NAME=VALUE",
)
@click.argument("extra_app_arguments", nargs=-1, type=click.UNPROCESSED)
def run_tests(  # pylint: disable=too-many-arguments,too-many-locals
    config_path: str,
    app_path: str,
    target: str,
    device_name: str | None,
    output_dir: str | None,
    timeout_seconds: int | None,
    launch_timeout_seconds: int | None,
    communication_channel: str | None,
    result_format: str | None,
    skipped_methods: tuple[str, ...],
    skipped_test_classes: tuple[str, ...],
    reset_simulator: bool | None,
    include_wireless_devices: bool | None,
    enable_lldb: bool | None,
    signal_app_end: bool | None,
    environment_variables: tuple[str, ...],
    extra_app_arguments: tuple[str, ...],
) -> None:
    """Find a target, install the app, run its tests and clean up.

    Arguments after `--` are passed to the app unchanged.
    """
    request = RunRequest(
        config_path=config_path,
        app_path=app_path,
        target=target,
        device_name=device_name,
        output_dir=output_dir,
        timeout_seconds=timeout_seconds,
        launch_timeout_seconds=launch_timeout_seconds,
        communication_channel=(
            CommunicationChannel(communication_channel) if communication_channel else None
        ),
        result_format=ResultFormat(result_format) if result_format else None,
        skipped_methods=skipped_methods,
        skipped_test_classes=skipped_test_classes,
        reset_simulator=reset_simulator,
        include_wireless_devices=include_wireless_devices,
        enable_lldb=enable_lldb,
        signal_app_end=signal_app_end,
        environment_variables=_parse_environment_variables(environment_variables),
        extra_app_arguments=extra_app_arguments,
    )

    with CancellationSource() as cancellation_source:
        previous_handler = signal.signal(signal.SIGTERM, lambda *_: cancellation_source.cancel())
        try:
            outcome = execute_orchestrated_run(
                request, cancellation_token=cancellation_source.token
            )
        except (RunExecutionError, CommandTemplateError) as exc:
            raise CliError(str(exc), ExitCode.INVALID_ARGUMENTS) from exc
        except BundleParseError as exc:
            raise CliError(str(exc), ExitCode.FAILED_TO_GET_BUNDLE_INFO) from exc
        except InstallError as exc:
            raise CliError(str(exc), ExitCode.PACKAGE_INSTALLATION_FAILURE) from exc
        except OperationCancelledError as exc:
            raise CliError(f"Run was cancelled: {exc}") from exc
        finally:
            signal.signal(signal.SIGTERM, previous_handler)

    click.echo(f"{outcome.exit_code.name} ({int(outcome.exit_code)})")
    click.echo(f"Logs: {outcome.output_directory}")
    raise _RunExit(outcome.exit_code)


def _parse_environment_variables(values: tuple[str, ...]) -> tuple[tuple[str, str], ...]:
    pairs = []
    for value in values:
        name, separator, content = value.partition("=")
        if not separator or not name.strip():
            raise click.BadParameter(f"Expected NAME=VALUE, got '{value}'", param_hint="--set-env")
        pairs.append((name.strip(), content))
    return tuple(pairs)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=list(argv), standalone_mode=False)
    except _RunExit as exc:
        return int(exc.exit_code)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return int(exc.exit_code)
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return int(ExitCode.GENERAL_FAILURE)
    return int(ExitCode.SUCCESS)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

"""Configuration scaffold generation helpers."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_FILENAME = "lab.yaml"

_CONFIG_SCAFFOLD_TEMPLATE = """# Lab configuration template for lab-run-orchestrator.
# Replace every <REQUIRED> placeholder before running `run`.
# Replace <OPTIONAL> placeholders only when your lab needs them.

run:
  # Defaults for every run; the matching `run` options override them.
  timeout_seconds: 1800
  launch_timeout_seconds: 180
  command_timeout_seconds: 300
  # usb-tunnel or network
  communication_channel: usb-tunnel
  # xunit, nunit-v2, nunit-v3 or touch-unit
  result_format: xunit
  reset_simulator: false
  include_wireless_devices: false
  enable_lldb: false
  signal_app_end: false
  # Exit code reported for crashes that match no known issue.
  unmatched_crash_exit_code: APP_CRASH
  environment:
    # SOME_VARIABLE: "<OPTIONAL>"

output:
  # Relative paths are resolved against this file's directory.
  directory: "results"

targets:
  simulators:
    - name: "<REQUIRED>"
      udid: "<REQUIRED>"
      # ios, tvos or watchos
      platform: "ios"
      os_version: "<REQUIRED>"
  devices:
    - name: "<OPTIONAL>"
      udid: "<OPTIONAL>"
      platform: "ios"
      os_version: "<OPTIONAL>"
      wireless: false

# Command templates. Placeholders: {app_path} {app_name} {bundle_id} {udid}
# {target_name} {os_version} {platform} {target}; test commands also get
# {timeout_seconds} {launch_timeout_seconds} {result_format} {communication_channel}
# {companion_udid}. Simulator reset and clean-up only get {udid} {target_name}
# {os_version} {platform}.
commands:
  install: ["xcrun", "simctl", "install", "{udid}", "{app_path}"]
  uninstall: ["xcrun", "simctl", "uninstall", "{udid}", "{bundle_id}"]
  test: "<REQUIRED>"
  desktop_test: "<OPTIONAL>"
  reset_simulator: ["xcrun", "simctl", "erase", "{udid}"]
  cleanup_simulator: ["xcrun", "simctl", "shutdown", "{udid}"]

known_issues:
  - pattern: "<OPTIONAL>"
    description: "<OPTIONAL>"
    suggested_exit_code: APP_CRASH
    issue_link: "<OPTIONAL>"
"""


def build_placeholder_configuration() -> str:
    """Build a YAML lab configuration template with placeholders and inline guidance."""
    return _CONFIG_SCAFFOLD_TEMPLATE


def write_placeholder_configuration(output_path: Path | str) -> Path:
    """Write the placeholder lab configuration template to the requested output path.

    Args:
      output_path: Destination file path for the scaffold.

    Returns:
      The resolved destination path.

    Raises:
      FileExistsError: If the destination file already exists.
      OSError: If writing the scaffold fails.
    """
    destination = Path(output_path)
    if destination.exists():
        raise FileExistsError(f"Lab configuration file already exists: {destination.resolve()}")
    destination.write_text(build_placeholder_configuration(), encoding="utf-8")
    return destination.resolve()

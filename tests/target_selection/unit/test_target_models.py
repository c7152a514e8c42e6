"""Tests for target descriptors."""

from __future__ import annotations

import pytest
from lab_run_orchestrator.target_selection import (
    TargetVariant,
    TestTarget,
    TestTargetOs,
    parse_test_target,
)


@pytest.mark.parametrize(
    ("target", "variant", "platform"),
    [
        (TestTarget.SIMULATOR_IOS64, TargetVariant.SIMULATOR, "ios"),
        (TestTarget.SIMULATOR_WATCHOS, TargetVariant.SIMULATOR, "watchos"),
        (TestTarget.DEVICE_TVOS, TargetVariant.DEVICE, "tvos"),
        (TestTarget.MAC_CATALYST, TargetVariant.DESKTOP, "maccatalyst"),
    ],
)
def test_target_variant_and_platform(
    target: TestTarget, variant: TargetVariant, platform: str
) -> None:
    assert target.variant is variant
    assert target.platform == platform
    assert target.is_simulator is (variant is TargetVariant.SIMULATOR)


def test_parse_target_with_os_version() -> None:
    parsed = parse_test_target("iOS-Simulator-64_13.5")

    assert parsed == TestTargetOs(TestTarget.SIMULATOR_IOS64, "13.5")
    assert parsed.variant is TargetVariant.SIMULATOR
    assert parsed.as_string() == "ios-simulator-64_13.5"


def test_parse_target_without_os_version() -> None:
    parsed = parse_test_target("ios-device")

    assert parsed.os_version is None
    assert parsed.as_string() == "ios-device"


def test_parse_unknown_target_lists_supported_targets() -> None:
    with pytest.raises(ValueError, match="Supported targets: ios-simulator"):
        parse_test_target("android-emulator")

"""Tests for Info.plist bundle parsing."""

from __future__ import annotations

import plistlib
from pathlib import Path

import pytest
from lab_run_orchestrator.app_bundle import BundleParseError, PlistBundleParser
from lab_run_orchestrator.target_selection import TestTarget


def _write_bundle(directory: Path, info: dict, *, desktop: bool = False) -> Path:
    plist_directory = directory / "Contents" if desktop else directory
    plist_directory.mkdir(parents=True)
    with (plist_directory / "Info.plist").open("wb") as handle:
        plistlib.dump(info, handle)
    return directory


def test_parses_mobile_bundle(tmp_path: Path) -> None:
    bundle = _write_bundle(
        tmp_path / "TestApp.app",
        {
            "CFBundleIdentifier": "net.dot.TestApp",
            "CFBundleName": "Test App",
            "CFBundleExecutable": "TestApp",
            "MinimumOSVersion": "13.0",
        },
    )

    info = PlistBundleParser().parse_from_app_bundle(bundle, TestTarget.SIMULATOR_IOS64)

    assert info.bundle_identifier == "net.dot.TestApp"
    assert info.app_name == "Test App"
    assert info.bundle_executable == "TestApp"
    assert info.minimum_os_version == "13.0"
    assert info.app_path == bundle.resolve()


def test_desktop_bundle_reads_contents_plist(tmp_path: Path) -> None:
    bundle = _write_bundle(
        tmp_path / "TestApp.app",
        {"CFBundleIdentifier": "net.dot.TestApp", "LSMinimumSystemVersion": "12.0"},
        desktop=True,
    )

    info = PlistBundleParser().parse_from_app_bundle(bundle, TestTarget.MAC_CATALYST)

    assert info.app_name == "TestApp"
    assert info.minimum_os_version == "12.0"


def test_missing_bundle_identifier_is_rejected(tmp_path: Path) -> None:
    bundle = _write_bundle(tmp_path / "TestApp.app", {"CFBundleName": "TestApp"})

    with pytest.raises(BundleParseError, match="CFBundleIdentifier is missing"):
        PlistBundleParser().parse_from_app_bundle(bundle, TestTarget.DEVICE_IOS)


def test_missing_bundle_directory_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(BundleParseError, match="App bundle not found"):
        PlistBundleParser().parse_from_app_bundle(tmp_path / "Nope.app", TestTarget.DEVICE_IOS)


def test_missing_plist_is_rejected(tmp_path: Path) -> None:
    bundle = tmp_path / "TestApp.app"
    bundle.mkdir()

    with pytest.raises(BundleParseError, match="Info.plist not found"):
        PlistBundleParser().parse_from_app_bundle(bundle, TestTarget.DEVICE_IOS)


def test_corrupt_plist_is_rejected(tmp_path: Path) -> None:
    bundle = tmp_path / "TestApp.app"
    bundle.mkdir()
    (bundle / "Info.plist").write_bytes(b"not a plist")

    with pytest.raises(BundleParseError, match="Failed to read"):
        PlistBundleParser().parse_from_app_bundle(bundle, TestTarget.DEVICE_IOS)

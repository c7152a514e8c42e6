"""App bundle metadata parsing service."""

from __future__ import annotations

import plistlib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from lab_run_orchestrator.target_selection import TestTarget

from .bundle_models import AppBundleInformation


class BundleParseError(Exception):
    """Raised when the app bundle metadata cannot be read."""


class AppBundleInformationParser(Protocol):  # pylint: disable=too-few-public-methods
    """Protocol for reading bundle metadata before a run starts."""

    def parse_from_app_bundle(self, app_path: Path, target: TestTarget) -> AppBundleInformation: ...


class PlistBundleParser:  # pylint: disable=too-few-public-methods
    """Reads bundle metadata from the bundle's Info.plist."""

    def parse_from_app_bundle(self, app_path: Path, target: TestTarget) -> AppBundleInformation:
        bundle_path = Path(app_path)
        if not bundle_path.is_dir():
            raise BundleParseError(f"App bundle not found: {bundle_path}")
        plist_path = _info_plist_path(bundle_path, target)
        if not plist_path.exists():
            raise BundleParseError(f"Info.plist not found: {plist_path}")
        try:
            with plist_path.open("rb") as handle:
                info = plistlib.load(handle)
        except (plistlib.InvalidFileException, ValueError, OSError) as exc:
            raise BundleParseError(f"Failed to read {plist_path}: {exc}") from exc
        if not isinstance(info, Mapping):
            raise BundleParseError(f"{plist_path} must contain a dictionary.")

        bundle_identifier = _require_key(info, "CFBundleIdentifier", plist_path)
        app_name = _optional_key(info, "CFBundleName") or bundle_path.stem
        return AppBundleInformation(
            app_name=app_name,
            bundle_identifier=bundle_identifier,
            app_path=bundle_path.resolve(),
            bundle_executable=_optional_key(info, "CFBundleExecutable"),
            minimum_os_version=_optional_key(info, "MinimumOSVersion")
            or _optional_key(info, "LSMinimumSystemVersion"),
        )


def _info_plist_path(bundle_path: Path, target: TestTarget) -> Path:
    # Desktop bundles keep their metadata under Contents/.
    if target is TestTarget.MAC_CATALYST:
        return bundle_path / "Contents" / "Info.plist"
    return bundle_path / "Info.plist"


def _require_key(info: Mapping[str, Any], key: str, plist_path: Path) -> str:
    value = _optional_key(info, key)
    if value is None:
        raise BundleParseError(f"{key} is missing from {plist_path}")
    return value


def _optional_key(info: Mapping[str, Any], key: str) -> str | None:
    value = info.get(key)
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None

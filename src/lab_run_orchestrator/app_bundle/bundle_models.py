"""App bundle domain entities."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppBundleInformation:
    """Metadata of the built application under test."""

    app_name: str
    bundle_identifier: str
    app_path: Path
    bundle_executable: str | None = None
    minimum_os_version: str | None = None

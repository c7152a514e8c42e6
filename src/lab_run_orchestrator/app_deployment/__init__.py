"""App deployment exports."""

from .app_installation import (
    AppInstaller,
    AppUninstaller,
    CommandAppInstaller,
    CommandAppUninstaller,
    InstallError,
    target_placeholders,
)

__all__ = [
    "AppInstaller",
    "AppUninstaller",
    "CommandAppInstaller",
    "CommandAppUninstaller",
    "InstallError",
    "target_placeholders",
]

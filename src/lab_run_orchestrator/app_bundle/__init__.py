"""App bundle exports."""

from .bundle_models import AppBundleInformation
from .bundle_parser import AppBundleInformationParser, BundleParseError, PlistBundleParser

__all__ = [
    "AppBundleInformation",
    "AppBundleInformationParser",
    "BundleParseError",
    "PlistBundleParser",
]

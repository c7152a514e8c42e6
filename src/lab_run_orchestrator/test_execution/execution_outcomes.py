"""Test execution domain entities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TestExecutingResult(str, Enum):
    """How a test run ended, as classified by the app tester."""

    __test__ = False

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CRASHED = "crashed"


class CommunicationChannel(str, Enum):
    """Channel the test app uses to report back to the host."""

    USB_TUNNEL = "usb-tunnel"
    NETWORK = "network"


class ResultFormat(str, Enum):
    """Flavour of the XML results the test app produces."""

    XUNIT = "xunit"
    NUNIT_V2 = "nunit-v2"
    NUNIT_V3 = "nunit-v3"
    TOUCH_UNIT = "touch-unit"


@dataclass(frozen=True)
class ExecutionOutcome:
    """Classified test run result with its human-readable summary line."""

    result: TestExecutingResult
    summary_line: str

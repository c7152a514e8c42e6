"""Test execution exports."""

from .app_tester import AppTester, AppTesterFactory
from .command_app_tester import (
    CommandAppTester,
    CommandAppTesterFactory,
    CommandTesterConfigurationError,
    classify_execution,
    extract_summary_line,
)
from .execution_outcomes import (
    CommunicationChannel,
    ExecutionOutcome,
    ResultFormat,
    TestExecutingResult,
)

__all__ = [
    "AppTester",
    "AppTesterFactory",
    "CommandAppTester",
    "CommandAppTesterFactory",
    "CommandTesterConfigurationError",
    "CommunicationChannel",
    "ExecutionOutcome",
    "ResultFormat",
    "TestExecutingResult",
    "classify_execution",
    "extract_summary_line",
]

"""Recognition of known crash and failure signatures in run logs."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from lab_run_orchestrator.outcome_codes import ExitCode
from lab_run_orchestrator.run_logging import FileBackedLog


@dataclass(frozen=True)
class KnownIssue:
    """Recognized issue with the exit code it should be reported as."""

    description: str
    suggested_exit_code: ExitCode | None = None
    issue_link: str | None = None


@dataclass(frozen=True)
class KnownIssueSignature:
    """Log pattern that identifies one known issue."""

    pattern: re.Pattern[str]
    issue: KnownIssue


class ErrorKnowledgeBase(Protocol):  # pylint: disable=too-few-public-methods
    """Protocol for looking up known issues in a captured run log."""

    def is_known_test_issue(self, log: FileBackedLog) -> KnownIssue | None: ...


class PatternErrorKnowledgeBase:  # pylint: disable=too-few-public-methods
    """Knowledge base matching regular expressions against the log text.

    Signatures are tried in declaration order; the first match wins.
    """

    def __init__(self, signatures: Sequence[KnownIssueSignature] = ()) -> None:
        self._signatures = tuple(signatures)

    def is_known_test_issue(self, log: FileBackedLog) -> KnownIssue | None:
        if not self._signatures:
            return None
        text = log.read_text()
        for signature in self._signatures:
            if signature.pattern.search(text):
                return signature.issue
        return None

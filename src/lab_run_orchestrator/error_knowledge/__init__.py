"""Error knowledge base exports."""

from .known_issues import (
    ErrorKnowledgeBase,
    KnownIssue,
    KnownIssueSignature,
    PatternErrorKnowledgeBase,
)

__all__ = [
    "ErrorKnowledgeBase",
    "KnownIssue",
    "KnownIssueSignature",
    "PatternErrorKnowledgeBase",
]

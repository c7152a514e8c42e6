"""Cancellation domain exports."""

from .cancellation_token import CancellationSource, CancellationToken, OperationCancelledError

__all__ = [
    "CancellationSource",
    "CancellationToken",
    "OperationCancelledError",
]

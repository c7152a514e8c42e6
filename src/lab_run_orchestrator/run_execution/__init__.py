"""Run execution domain exports."""

from .orchestrated_run_use_case import RunExecutionError, execute_orchestrated_run
from .run_contracts import RunOutcome, RunRequest

__all__ = [
    "RunRequest",
    "RunOutcome",
    "RunExecutionError",
    "execute_orchestrated_run",
]

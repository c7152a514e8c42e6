"""Outcome code exports."""

from .exit_codes import ExitCode, parse_exit_code

__all__ = ["ExitCode", "parse_exit_code"]

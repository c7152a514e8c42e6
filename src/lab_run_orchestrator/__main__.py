"""Module entry point for `python -m lab_run_orchestrator`."""

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

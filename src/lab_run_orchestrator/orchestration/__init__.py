"""Orchestration exports."""

from .test_orchestrator import OrchestrationPhase, TestOrchestrator

__all__ = ["OrchestrationPhase", "TestOrchestrator"]

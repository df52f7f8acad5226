"""Orchestration layer: job runner, progress and workflows."""

from audience_manager.orchestration.progress import ProgressTracker
from audience_manager.orchestration.runner import JobRunner, RunnerState
from audience_manager.orchestration.workflows import (
    AudienceWorkflow,
    build_dispatcher,
    build_workflow,
    resolve_account,
)

__all__ = [
    "AudienceWorkflow",
    "JobRunner",
    "ProgressTracker",
    "RunnerState",
    "build_dispatcher",
    "build_workflow",
    "resolve_account",
]

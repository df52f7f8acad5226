"""CM360 Audience Manager.

Maintains Campaign Manager 360 remarketing lists from a workbook: detects
which audience rows changed since the last run, derives the remote mutations
they need and executes them as bounded-concurrency job batches.
"""

__version__ = "0.1.0"

from audience_manager.models.enums import Action, JobName, JobStatus, JobType

__all__ = [
    "__version__",
    "Action",
    "JobName",
    "JobStatus",
    "JobType",
]

"""Background parsing jobs."""

from repscope.jobs.models import Job, JobStatus
from repscope.jobs.orchestrator import ParsingOrchestrator
from repscope.jobs.progress import ProgressEvent, ProgressStream, compute_progress
from repscope.jobs.registry import JobRegistry

__all__ = [
    "Job",
    "JobRegistry",
    "JobStatus",
    "ParsingOrchestrator",
    "ProgressEvent",
    "ProgressStream",
    "compute_progress",
]

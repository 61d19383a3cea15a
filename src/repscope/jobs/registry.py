"""Active job registry.

Owned by the orchestrator and only touched from the event loop thread, so
it needs no locking.
"""

from __future__ import annotations

from repscope.jobs.models import Job, JobStatus


class JobRegistry:
    def __init__(self) -> None:
        self._jobs: dict[str, Job] = {}

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs

    def add(self, job: Job) -> None:
        self._jobs[job.id] = job

    def get(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

    def remove(self, job_id: str) -> Job | None:
        return self._jobs.pop(job_id, None)

    def list(self) -> list[Job]:
        return list(self._jobs.values())

    def find_running(self, entity_id: str) -> Job | None:
        """The running job for an entity, if any."""
        for job in self._jobs.values():
            if job.entity_id == entity_id and job.status == JobStatus.running:
                return job
        return None

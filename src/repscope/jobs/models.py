"""In-memory job records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from repscope.storage.models import Parsing, new_id, utcnow


class JobStatus(StrEnum):
    running = "running"
    completed = "completed"
    error = "error"


@dataclass
class Job:
    """One run of the retrieve, classify, aggregate and persist pipeline.

    Only the job's own execution mutates it. Jobs are never persisted.
    """

    project_id: str
    entity_id: str
    entity_name: str
    id: str = field(default_factory=new_id)
    status: JobStatus = JobStatus.running
    progress: int = 0
    stage: str = "Starting"
    result: Parsing | None = None
    error: str | None = None
    started_at: datetime = field(default_factory=utcnow)
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status != JobStatus.running

    def complete(self, parsing: Parsing) -> None:
        self.status = JobStatus.completed
        self.progress = 100
        self.stage = "Completed"
        self.result = parsing
        self.completed_at = utcnow()

    def fail(self, message: str) -> None:
        self.status = JobStatus.error
        self.stage = "Error"
        self.error = message
        self.completed_at = utcnow()

    def to_dict(self) -> dict[str, Any]:
        """Status payload with camelCase keys."""
        return {
            "taskId": self.id,
            "projectId": self.project_id,
            "entityId": self.entity_id,
            "entityName": self.entity_name,
            "status": self.status.value,
            "progress": self.progress,
            "stage": self.stage,
            "result": self.result.to_json_dict() if self.result else None,
            "error": self.error,
            "startedAt": self.started_at.isoformat(),
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }

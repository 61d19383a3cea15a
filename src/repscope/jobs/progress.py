"""Job progress events.

Progress of a job over ``engine_count`` engines is

    round(100 * (engine_index / engine_count
                 + (sub_step + sub_progress) / (2 * engine_count)))

Each engine owns an equal share of the bar, split evenly between retrieval
and classification. ``sub_step`` marks the phase boundary (0 = retrieval
starts, 1 = retrieval done and classification starts, 2 = classification
done) and ``sub_progress`` in [0, 1] is the fraction of the current phase.
Rounding is half up.
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, field
from datetime import datetime

from repscope.jobs.models import JobStatus
from repscope.storage.models import utcnow


def compute_progress(
    engine_index: int,
    engine_count: int,
    sub_step: int,
    sub_progress: float = 0.0,
) -> int:
    """Overall job progress in percent."""
    if engine_count <= 0:
        return 100
    sub_progress = min(max(sub_progress, 0.0), 1.0)
    value = 100 * (engine_index / engine_count + (sub_step + sub_progress) / (2 * engine_count))
    return min(max(math.floor(value + 0.5), 0), 100)


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    job_id: str
    entity_id: str
    status: JobStatus
    progress: int
    stage: str
    engine: str | None = None
    timestamp: datetime = field(default_factory=utcnow)


class ProgressStream:
    """Fan-out of progress events to subscriber queues.

    Subscribers either follow one job or every job. Queues are unbounded;
    a subscriber that stops reading should unsubscribe.
    """

    def __init__(self) -> None:
        self._subscribers: dict[asyncio.Queue[ProgressEvent], str | None] = {}

    def subscribe(self, job_id: str | None = None) -> asyncio.Queue[ProgressEvent]:
        queue: asyncio.Queue[ProgressEvent] = asyncio.Queue()
        self._subscribers[queue] = job_id
        return queue

    def unsubscribe(self, queue: asyncio.Queue[ProgressEvent]) -> None:
        self._subscribers.pop(queue, None)

    def publish(self, event: ProgressEvent) -> None:
        for queue, job_id in self._subscribers.items():
            if job_id is None or job_id == event.job_id:
                queue.put_nowait(event)

"""
Simulation timeline.

Arrivals and completions share a single priority queue so that the global ordering and its
tie-break live in one place: events are ordered by time, completions come before arrivals at the
same instant (released nodes are visible to the scheduler before same-instant submissions), and
events of the same kind are ordered by job id.
"""
import heapq
from dataclasses import dataclass, field
from enum import IntEnum

from schedsim.job import Job


class EventType(IntEnum):
    """Event kinds. The integer value is the tie-break rank at equal timestamps."""
    COMPLETION = 0
    ARRIVAL = 1


@dataclass(order=True, frozen=True)
class Event:
    time: int
    kind: EventType
    job_id: int
    job: Job | None = field(default=None, compare=False)

    @classmethod
    def arrival(cls, job: Job) -> "Event":
        return cls(job.submit_time, EventType.ARRIVAL, job.id, job)

    @classmethod
    def completion(cls, time: int, job_id: int) -> "Event":
        return cls(time, EventType.COMPLETION, job_id)


class EventQueue:
    """Min-heap of events."""

    def __init__(self, events=None):
        self._heap: list[Event] = list(events or [])
        heapq.heapify(self._heap)

    def push(self, event: Event):
        heapq.heappush(self._heap, event)

    def pop(self) -> Event:
        if not self._heap:
            raise IndexError("pop from an empty event queue")
        return heapq.heappop(self._heap)

    def peek_time(self) -> int | None:
        return self._heap[0].time if self._heap else None

    def __len__(self):
        return len(self._heap)

    def __bool__(self):
        return bool(self._heap)

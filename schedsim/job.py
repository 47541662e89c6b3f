"""
Job records replayed through the simulator.

A job is created from one trace record when its arrival event fires. Its descriptive fields never
change afterwards; the scheduling outcome (start time, expected end) is written exactly once, when
the cluster admits it.
"""
from enum import Enum
from functools import total_ordering


class JobState(Enum):
    """Lifecycle of a job inside the simulator."""
    PENDING = 'pending'
    RUNNING = 'running'
    COMPLETED = 'completed'


def job_dict(*, id, nodes, submit_time, run_time, requested_run_time):
    """ Return a dict of the fields needed to construct a Job """
    return {
        'id': id,
        'nodes': nodes,
        'submit_time': submit_time,
        'run_time': run_time,
        'requested_run_time': requested_run_time,
    }


@total_ordering
class Job:
    """
    One workload item.

    Equality, ordering and hashing only look at `id`. Jobs are stored in keyed and ordered
    structures and compared for tie-breaking inside the schedulers.
    """

    def __init__(self, job_info: dict | None = None, **kwargs):
        info = {**(job_info or {}), **kwargs}
        self.id: int = int(info['id'])
        self.nodes: int = int(info['nodes'])
        self.submit_time: int = int(info['submit_time'])
        self.run_time: int = int(info['run_time'])
        self.requested_run_time: int = int(info['requested_run_time'])

        if self.nodes <= 0:
            raise ValueError(f"Job {self.id} must require at least one node, got {self.nodes}")
        for field in ('submit_time', 'run_time', 'requested_run_time'):
            if getattr(self, field) < 0:
                raise ValueError(f"Job {self.id} has negative {field}: {getattr(self, field)}")

        self.scheduled = False
        # Only meaningful once scheduled
        self.schedule_time: int | None = None
        self.expected_end: int | None = None
        self.end_time: int | None = None
        self.current_state = JobState.PENDING

    def admit(self, clock: int):
        """Mark the job as started at `clock`. A job can only be admitted once."""
        if self.scheduled:
            raise RuntimeError(f"Job {self.id} was already scheduled at {self.schedule_time}")
        self.scheduled = True
        self.schedule_time = clock
        self.expected_end = clock + self.requested_run_time
        self.current_state = JobState.RUNNING

    def complete(self, clock: int):
        if self.current_state != JobState.RUNNING:
            raise RuntimeError(f"Job {self.id} cannot complete from state {self.current_state.value}")
        self.end_time = clock
        self.current_state = JobState.COMPLETED

    def wait_time(self) -> int:
        if not self.scheduled:
            raise RuntimeError(f"Job {self.id} has not been scheduled yet")
        return self.schedule_time - self.submit_time

    def wait_time_from(self, clock: int) -> int:
        """Wait time if the job were started at `clock`."""
        return clock - self.submit_time

    def __eq__(self, other):
        if not isinstance(other, Job):
            return NotImplemented
        return self.id == other.id

    def __lt__(self, other):
        if not isinstance(other, Job):
            return NotImplemented
        return self.id < other.id

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return (f"Job(id={self.id}, nodes={self.nodes}, submit_time={self.submit_time}, "
                f"run_time={self.run_time}, requested_run_time={self.requested_run_time}, "
                f"state={self.current_state.value})")

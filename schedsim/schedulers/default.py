"""
Queue-selection policies.

Every policy answers one question: given the simulation clock, the pending queue (in arrival order)
and the cluster, which queued job may start right now? The answer is a position in the queue, or
None if nothing can start. Policies never mutate the queue or the cluster; the engine removes the
chosen job and asks again until the answer is None.
"""
from typing import Protocol, Sequence

from schedsim.job import Job
from schedsim.resmgr import Cluster


class Scheduler(Protocol):
    name: str

    def schedule(self, clock: int, queue: Sequence[Job], cluster: Cluster) -> int | None:
        ...


def _check_queue(queue: Sequence[Job]):
    if not queue:
        raise ValueError("schedule() called with an empty queue")


class FCFS:
    """Only the head of the queue may start. A blocked head blocks everything behind it."""
    name = "FCFS"

    def schedule(self, clock, queue, cluster):
        _check_queue(queue)
        if queue[0].nodes <= cluster.available_nodes:
            return 0
        return None


class FF:
    """First job, in arrival order, that fits in the free nodes."""
    name = "FF"

    def schedule(self, clock, queue, cluster):
        _check_queue(queue)
        for index, job in enumerate(queue):
            if job.nodes <= cluster.available_nodes:
                return index
        return None


class SJF:
    """Among the jobs that fit, the one with the smallest requested run time (then lowest id)."""
    name = "SJF"

    def schedule(self, clock, queue, cluster):
        _check_queue(queue)
        best = None
        for index, job in enumerate(queue):
            if job.nodes > cluster.available_nodes:
                continue
            if best is None or (job.requested_run_time, job.id) < \
                    (queue[best].requested_run_time, queue[best].id):
                best = index
        return best


class FCFSEasy:
    """
    FCFS with EASY backfilling.

    When the head job does not fit, a reservation is made for it: running jobs are released in
    order of requested run time until enough nodes would be free, and the time until that job's
    expected end is the reservation window. A later job may jump ahead if it fits in the nodes
    free *now* and its requested run time is strictly shorter than the window.

    Running jobs are ordered by requested run time, not remaining time. This is a simplification
    of textbook EASY, which uses the remaining run time.
    """
    name = "FCFSEasy"

    def reservation_window(self, clock: int, head: Job, cluster: Cluster) -> int:
        """Time until enough nodes are projected to be free for `head`. 0 if nothing is running."""
        available = cluster.available_nodes
        running = sorted(cluster.running_jobs.values(), key=lambda job: (job.requested_run_time, job.id))
        for job in running:
            available += job.nodes
            if available >= head.nodes:
                # A job running past its requested time has a reservation that is already due
                return max(0, job.expected_end - clock)
        return 0

    def schedule(self, clock, queue, cluster):
        _check_queue(queue)
        head = queue[0]
        if head.nodes <= cluster.available_nodes:
            return 0

        window = self.reservation_window(clock, head, cluster)
        for index in range(1, len(queue)):
            job = queue[index]
            if job.requested_run_time < window and job.nodes <= cluster.available_nodes:
                return index
        return None

from dataclasses import dataclass

from schedsim.job import Job


@dataclass(frozen=True)
class ClusterUsage:
    """Node-second accounting over a whole run."""
    used_node_seconds: int
    total_node_seconds: int
    idle_node_seconds: int
    idle_percent: float

    @property
    def utilization(self) -> float:
        return 100.0 - self.idle_percent


class Cluster:
    """
    Node-count resource manager: a fixed pool of interchangeable nodes.

    Jobs get whole nodes and only the count matters, there is no placement. Only the engine and
    the cluster itself mutate this state, schedulers read `available_nodes` and `running_jobs`.
    """

    def __init__(self, total_nodes: int, debug: bool = False):
        """
        Parameters:
        - total_nodes: Number of nodes in the cluster, fixed for the run
        - debug: Print every admission and release
        """
        if total_nodes <= 0:
            raise ValueError(f"Cluster needs at least one node, got {total_nodes}")
        self.total_nodes = total_nodes
        self.available_nodes = total_nodes
        self.used_node_seconds = 0
        self.running_jobs: dict[int, Job] = {}
        self.debug = debug

    @property
    def allocated_nodes(self) -> int:
        return sum(job.nodes for job in self.running_jobs.values())

    def admit(self, job: Job, clock: int) -> bool:
        """Start `job` at `clock`. Returns False, without touching any state, if it does not fit."""
        if job.nodes > self.available_nodes:
            print(f"[WARN] [t={clock}] Job {job.id} is trying to run on {job.nodes} nodes "
                  f"but only {self.available_nodes} are available.")
            return False
        if job.id in self.running_jobs:
            raise RuntimeError(f"Job {job.id} is already running")

        job.admit(clock)
        self.available_nodes -= job.nodes
        self.running_jobs[job.id] = job
        if self.debug:
            print(f"[DEBUG] [t={clock}] Job {job.id} started on {job.nodes} nodes, "
                  f"{self.available_nodes} nodes left")
        return True

    def release(self, job_id: int, clock: int | None = None) -> Job | None:
        """
        Return a finished job's nodes to the pool and account its node-seconds.

        Unknown ids are ignored and None is returned.
        """
        job = self.running_jobs.pop(job_id, None)
        if job is None:
            return None

        self.available_nodes += job.nodes
        self.used_node_seconds += job.nodes * job.run_time
        if clock is not None:
            job.complete(clock)
        if self.debug:
            print(f"[DEBUG] [t={clock}] Job {job_id} released {job.nodes} nodes, "
                  f"{self.available_nodes} nodes available")
        return job

    def check_capacity(self):
        """Raise if available + allocated nodes no longer add up to the total."""
        allocated = self.allocated_nodes
        if not 0 <= self.available_nodes <= self.total_nodes or \
           self.available_nodes + allocated != self.total_nodes:
            raise AssertionError(
                f"Capacity invariant broken: {self.available_nodes} available + "
                f"{allocated} allocated != {self.total_nodes} total")

    def utilization(self, makespan: int) -> ClusterUsage:
        """Idle and used node-seconds over a run of length `makespan`."""
        if makespan <= 0:
            raise ValueError(f"Cannot compute utilization for a makespan of {makespan}")
        total = makespan * self.total_nodes
        idle = total - self.used_node_seconds
        return ClusterUsage(
            used_node_seconds=self.used_node_seconds,
            total_node_seconds=total,
            idle_node_seconds=idle,
            idle_percent=idle * 100 / total,
        )

"""
Discrete-event simulation engine.

The engine owns the timeline, the pending queue, the cluster and one scheduler. Each iteration of
the main loop first lets the scheduler start as many pending jobs as it wants at the current
clock, then advances the clock to the next event:

    while events or pending jobs:
        while pending and (index := scheduler.schedule(...)) is not None:
            start queue[index], push its completion event
        pop the next event, set the clock
            arrival    -> append the job to the pending queue
            completion -> release the job's nodes

Jobs always release their nodes after their *actual* run time. The requested run time is only
used by the schedulers for planning.
"""
import time
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum

from schedsim.events import Event, EventQueue, EventType
from schedsim.job import Job
from schedsim.resmgr import Cluster, make_cluster
from schedsim.schedulers import Scheduler, make_scheduler
from schedsim.sim_config import SingleSimConfig


class EngineState(Enum):
    LOADING = 'loading'
    RUNNING = 'running'
    FINISHED = 'finished'


@dataclass
class TickData:
    """ Represents the state after processing one event """
    current_time: int
    event_kind: EventType
    job_id: int
    started: list[int] = field(default_factory=list)
    """ Ids of the jobs started at current_time, before the event was processed """
    queue_length: int = 0
    running: int = 0
    available_nodes: int = 0


class Engine:
    """Replays a job stream through one scheduling policy on a cluster of fixed size."""

    def __init__(self, scheduler: Scheduler, total_nodes: int, jobs: Iterable[Job], *,
                 verbose=False, debug=False):
        self.state = EngineState.LOADING
        self.scheduler = scheduler
        self.verbose = verbose
        self.debug = debug
        self.cluster: Cluster = make_cluster(total_nodes, debug=debug)
        self.events = EventQueue()
        self.queue: list[Job] = []
        self.current_time = 0
        self.workload = None

        self.total_initial_jobs = 0
        for job in jobs:
            if job.nodes > total_nodes:
                raise ValueError(f"Job {job.id} needs {job.nodes} nodes, the cluster only has {total_nodes}")
            self.events.push(Event.arrival(job))
            self.total_initial_jobs += 1

        self.wait_times: list[int] = []
        self.completion_times: list[int] = []
        self.job_history_dict: list[dict] = []
        self.scheduler_queue_history: list[tuple[int, int]] = []
        # (time, allocated nodes), holding until the next entry
        self.node_usage_history: list[tuple[int, int]] = []
        self.jobs_completed = 0
        self.time_took = 0.0

        if self.verbose:
            print(f"Created a new Engine with scheduler {scheduler.name} on {total_nodes} nodes, "
                  f"{self.total_initial_jobs} jobs to schedule.")

    @classmethod
    def from_sim_config(cls, sim_config: SingleSimConfig) -> "Engine":
        """Load the configured trace and build an engine for it. Raises TraceLoadError."""
        from schedsim.dataloaders import load_data

        workload = load_data(
            sim_config.trace, sim_config.nodes,
            procs_per_node=sim_config.procs_per_node,
            limit=sim_config.numjobs,
            comment_marker=sim_config.comment_marker,
            debug=sim_config.debug,
            progress=sim_config.verbose,
        )
        if sim_config.verbose:
            print(f"Finished reading {sim_config.trace}, {len(workload.jobs)} jobs will be scheduled on "
                  f"{sim_config.nodes} nodes ({workload.skipped} too large, skipped).")
        engine = cls(make_scheduler(sim_config.policy_type), sim_config.nodes, workload.jobs,
                     verbose=sim_config.verbose, debug=sim_config.debug)
        engine.workload = workload
        return engine

    @property
    def running(self) -> list[Job]:
        return list(self.cluster.running_jobs.values())

    def _start_job(self, index: int) -> Job:
        job = self.queue.pop(index)
        end_time = self.current_time + job.run_time
        wait_time = job.wait_time_from(self.current_time)

        if not self.cluster.admit(job, self.current_time):
            raise RuntimeError(
                f"Scheduler {self.scheduler.name} picked job {job.id} ({job.nodes} nodes) "
                f"with only {self.cluster.available_nodes} nodes available")

        self.events.push(Event.completion(end_time, job.id))
        self.wait_times.append(wait_time)
        self.completion_times.append(end_time)
        self.job_history_dict.append({
            'id': job.id,
            'num_nodes': job.nodes,
            'submit_time': job.submit_time,
            'start_time': self.current_time,
            'end_time': end_time,
            'wait_time': wait_time,
            'run_time': job.run_time,
            'requested_run_time': job.requested_run_time,
        })
        if self.verbose and len(self.wait_times) % 1000 == 0:
            print(f"Scheduled the {len(self.wait_times)}th job.")
        return job

    def schedule_pending(self) -> list[int]:
        """Start jobs from the pending queue until the scheduler declines. Returns the started ids."""
        started = []
        if self.debug and self.queue:
            print(f"[DEBUG] [t={self.current_time}] Jobs in the queue to schedule: "
                  f"{[job.id for job in self.queue]}")
        while self.queue:
            index = self.scheduler.schedule(self.current_time, self.queue, self.cluster)
            if index is None:
                break
            started.append(self._start_job(index).id)
        return started

    def _record_usage(self):
        allocated = self.cluster.total_nodes - self.cluster.available_nodes
        if self.node_usage_history and self.node_usage_history[-1][0] == self.current_time:
            self.node_usage_history[-1] = (self.current_time, allocated)
        else:
            self.node_usage_history.append((self.current_time, allocated))

    def process_event(self, event: Event):
        if event.time < self.current_time:
            raise AssertionError(f"Event at {event.time} popped after the clock reached {self.current_time}")
        self.current_time = event.time

        if event.kind == EventType.ARRIVAL:
            self.queue.append(event.job)
            if self.verbose:
                print(f"[t={self.current_time}] Job {event.job_id} was submitted. "
                      f"The queue now has {len(self.queue)} jobs.")
        else:
            if self.cluster.release(event.job_id, self.current_time) is not None:
                self.jobs_completed += 1
            if self.verbose:
                print(f"[t={self.current_time}] Job {event.job_id} finished. "
                      f"The cluster now has {self.cluster.available_nodes} nodes available.")

    def run_simulation(self) -> Iterator[TickData]:
        """ Generator that runs the simulation to completion, yielding one TickData per event """
        if self.state != EngineState.LOADING:
            raise RuntimeError(f"Engine cannot run from state {self.state.value}")
        self.state = EngineState.RUNNING
        start = time.perf_counter()
        if self.verbose:
            print("Starting the simulation.")

        while self.events or self.queue:
            started = self.schedule_pending()
            self._record_usage()

            # The loop guard and the drain above ensure there is an event left unless the
            # scheduler refuses to start anything on an idle cluster.
            if self.events.peek_time() is None:
                raise RuntimeError(
                    f"Scheduler {self.scheduler.name} left {len(self.queue)} jobs pending "
                    f"with no events left to process")
            event = self.events.pop()
            self.process_event(event)
            self.scheduler_queue_history.append((self.current_time, len(self.queue)))

            yield TickData(
                current_time=self.current_time,
                event_kind=event.kind,
                job_id=event.job_id,
                started=started,
                queue_length=len(self.queue),
                running=len(self.cluster.running_jobs),
                available_nodes=self.cluster.available_nodes,
            )

        if self.queue:
            raise AssertionError(f"{len(self.queue)} jobs still pending at the end of the simulation")
        self._record_usage()
        self.time_took = (time.perf_counter() - start) * 1000
        self.state = EngineState.FINISHED
        if self.verbose:
            print(f"Simulation finished at t={self.current_time} after {self.time_took:.0f} ms.")

    def run(self):
        """ Run the simulation to completion and return its EngineReport """
        from schedsim.stats import get_engine_report

        for _ in self.run_simulation():
            pass
        return get_engine_report(self)

    def get_job_history_dict(self):
        return self.job_history_dict

    def get_scheduler_queue_history(self):
        return [{'time': t, 'queue_length': n} for t, n in self.scheduler_queue_history]

    def get_node_usage_history(self):
        total = self.cluster.total_nodes
        return [
            {'time': t, 'allocated_nodes': n, 'utilization': n * 100 / total}
            for t, n in self.node_usage_history
        ]

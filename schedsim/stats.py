"""
This module provides functionality for generating statistics.
These are statistics on
the engine (makespan, cluster usage)
the jobs (wait and completion times)
the scheduler (pending queue)

Runs in which nothing was scheduled report -1 for every figure that cannot be computed.
"""
import numpy as np
import pandas as pd

from schedsim.utils import SimBaseModel, convert_seconds_to_hhmmss

from .engine import Engine, EngineState

NO_DATA = -1
""" Sentinel for statistics of runs where nothing ran """


class EngineReport(SimBaseModel):
    """ Summary of one (policy, cluster size) run """
    scheduler_name: str
    total_nodes: int
    jobs_scheduled: int

    makespan: int
    """ Clock value of the last event, from time 0 """
    total_completion_time: int
    """ Sum over all jobs of their completion time """
    min_wait: int
    max_wait: int
    avg_wait: float
    median_wait: int
    """ Element len // 2 of the sorted wait times """
    total_wait: int

    used_node_seconds: int
    total_node_seconds: int
    idle_node_seconds: int
    idle_percent: float
    utilization: float

    time_took: float
    """ Wall-clock time of the simulation loop in milliseconds """


def get_engine_report(engine: Engine) -> EngineReport:
    """ Aggregate the per-job figures of a finished run """
    if engine.state != EngineState.FINISHED:
        raise RuntimeError(f"Report requested for an engine in state {engine.state.value}")

    wait_times = np.sort(np.asarray(engine.wait_times, dtype=np.int64))
    makespan = engine.current_time

    if wait_times.size:
        min_wait = int(wait_times[0])
        max_wait = int(wait_times[-1])
        total_wait = int(wait_times.sum())
        avg_wait = total_wait / wait_times.size
        median_wait = int(wait_times[wait_times.size // 2])
    else:
        min_wait = max_wait = total_wait = median_wait = NO_DATA
        avg_wait = float(NO_DATA)

    if makespan > 0:
        usage = engine.cluster.utilization(makespan)
        total_node_seconds = usage.total_node_seconds
        idle_node_seconds = usage.idle_node_seconds
        idle_percent = usage.idle_percent
        utilization = usage.utilization
    else:
        total_node_seconds = idle_node_seconds = NO_DATA
        idle_percent = utilization = float(NO_DATA)

    return EngineReport(
        scheduler_name=engine.scheduler.name,
        total_nodes=engine.cluster.total_nodes,
        jobs_scheduled=len(engine.wait_times),
        makespan=makespan,
        total_completion_time=sum(engine.completion_times),
        min_wait=min_wait,
        max_wait=max_wait,
        avg_wait=avg_wait,
        median_wait=median_wait,
        total_wait=total_wait,
        used_node_seconds=engine.cluster.used_node_seconds,
        total_node_seconds=total_node_seconds,
        idle_node_seconds=idle_node_seconds,
        idle_percent=idle_percent,
        utilization=utilization,
        time_took=engine.time_took,
    )


def get_engine_stats(engine: Engine):
    """
    Return engine statistics
    """
    return {
        'scheduler': engine.scheduler.name,
        'total_nodes': engine.cluster.total_nodes,
        'time_simulated': convert_seconds_to_hhmmss(engine.current_time),
        'jobs_total': engine.total_initial_jobs,
        'jobs_completed': engine.jobs_completed,
        'jobs_still_running': [job.id for job in engine.running],
        'jobs_still_in_queue': [job.id for job in engine.queue],
    }


def get_scheduler_stats(engine: Engine):
    queue_lengths = [n for _, n in engine.scheduler_queue_history]
    if queue_lengths:
        average_queue = sum(queue_lengths) / len(queue_lengths)
        max_queue = max(queue_lengths)
    else:
        average_queue = 0
        max_queue = 0

    return {
        'average_queue': average_queue,
        'max_queue': max_queue,
    }


def get_stats(engine: Engine):
    return {
        'engine': get_engine_stats(engine),
        'report': get_engine_report(engine).model_dump(),
        'scheduler': get_scheduler_stats(engine),
    }


def reports_to_dataframe(reports: list[EngineReport]) -> pd.DataFrame:
    """ One row per run, sorted by cluster size then scheduler """
    df = pd.DataFrame([r.model_dump() for r in reports])
    if not df.empty:
        df = df.sort_values(["total_nodes", "scheduler_name"], kind="stable").reset_index(drop=True)
    return df


def print_formatted_report(engine_stats=None,
                           report=None,
                           scheduler_stats=None,
                           ):
    def print_report_section(name, data, templates):
        if data:
            rep_str = f"--- {name} ---"
            print(rep_str)
            for key, value in data.items():
                pretty_key = key.replace('_', ' ').title()
                if value is None or (isinstance(value, (int, float)) and value == NO_DATA):
                    pretty_value = "N/A"
                elif key in templates:
                    pretty_value = templates[key].format(value)
                elif isinstance(value, float):
                    pretty_value = f"{value:.2f}"
                else:
                    pretty_value = str(value)
                print(f"{pretty_key}: {pretty_value}")
            print(f"{'-' * len(rep_str)}\n")

    # Print a formatted report
    print()
    print_report_section("Simulation Report", engine_stats, {})
    if isinstance(report, EngineReport):
        report = report.model_dump()
    print_report_section("Job Stat Report", report, {
        'makespan': '{} s',
        'avg_wait': '{:.2f} s',
        'used_node_seconds': '{} node-s',
        'total_node_seconds': '{} node-s',
        'idle_node_seconds': '{} node-s',
        'idle_percent': '{:.2f}%',
        'utilization': '{:.2f}%',
        'time_took': '{:.0f} ms',
    })
    print_report_section("Scheduler Report", scheduler_stats, {
        'average_queue': '{:.2f} jobs',
    })

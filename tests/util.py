import os
import random
from pathlib import Path
from typing import Any
from schedsim.engine import Engine
from schedsim.job import Job, job_dict
from schedsim.schedulers import make_scheduler
from schedsim.stats import get_stats


def find_project_root():
    path = Path(__file__).resolve()
    while not (path / "pyproject.toml").exists():
        if path.parent == path:
            raise RuntimeError("Could not find project root.")
        path = path.parent
    return path


PROJECT_ROOT = find_project_root()
DATA_PATH = Path(os.getenv("SCHEDSIM_DATA_DIR", PROJECT_ROOT / "tests" / "data")).resolve()
SAMPLE_TRACE = DATA_PATH / "sample.swf"

POLICIES = ["fcfs", "ff", "sjf", "fcfs-easy"]


def make_jobs(*specs) -> list[Job]:
    """ Build jobs from (id, nodes, submit_time, run_time, requested_run_time) tuples """
    return [
        Job(job_dict(id=id, nodes=nodes, submit_time=submit, run_time=run, requested_run_time=req))
        for id, nodes, submit, run, req in specs
    ]


def random_jobs(count, max_nodes, seed=0) -> list[Job]:
    """ Reproducible random workload, including jobs that outlive or undershoot their request """
    rng = random.Random(seed)
    specs = []
    submit = 0
    for i in range(1, count + 1):
        submit += rng.choice([0, 0, 1, 2, 5, 10])
        run = rng.randint(0, 50)
        requested = max(0, run + rng.randint(-10, 30))
        specs.append((i, rng.randint(1, max_nodes), submit, run, requested))
    return make_jobs(*specs)


def run_engine(policy, total_nodes, jobs, include_ticks=False) -> tuple[Engine, dict[str, Any]]:
    """
    Run a simulation to completion. Returns the completed Engine and a dict containing the engine
    stats. If include_ticks is True, the dict will also include a list of all the TickDatas.
    """
    engine = Engine(make_scheduler(policy), total_nodes, jobs)
    gen = engine.run_simulation()

    stats = {
        "tick_count": 0,
        "tick_datas": [] if include_ticks else None,
    }

    for tick in gen:
        stats['tick_count'] += 1
        if include_ticks:
            stats['tick_datas'].append(tick)

    stats.update(get_stats(engine))

    return engine, stats

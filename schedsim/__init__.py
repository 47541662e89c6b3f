from .job import Job, JobState
from .policy import PolicyType
from .resmgr import Cluster
from .schedulers import FCFS, FF, SJF, FCFSEasy, make_scheduler
from .sim_config import SimConfig, SingleSimConfig, SweepSimConfig
from .engine import Engine, EngineState
from .stats import EngineReport

__all__ = [
    "Job", "JobState",
    "PolicyType",
    "Cluster",
    "FCFS", "FF", "SJF", "FCFSEasy", "make_scheduler",
    "SimConfig", "SingleSimConfig", "SweepSimConfig",
    "Engine", "EngineState", "EngineReport",
]

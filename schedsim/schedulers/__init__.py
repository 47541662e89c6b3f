"""
Scheduler registry. Maps each PolicyType to its queue-selection policy.
"""
from schedsim.policy import PolicyType

from .default import Scheduler, FCFS, FF, SJF, FCFSEasy

SCHEDULERS = {
    PolicyType.FCFS: FCFS,
    PolicyType.FF: FF,
    PolicyType.SJF: SJF,
    PolicyType.FCFS_EASY: FCFSEasy,
}


def make_scheduler(policy: PolicyType | str) -> Scheduler:
    """Return a fresh scheduler for `policy` (a PolicyType or its string value)."""
    try:
        policy = PolicyType(policy)
    except ValueError:
        valid = sorted(p.value for p in PolicyType)
        raise ValueError(f"policy {policy} not implemented. Valid selections: {valid}") from None
    return SCHEDULERS[policy]()


__all__ = [
    "Scheduler", "FCFS", "FF", "SJF", "FCFSEasy",
    "SCHEDULERS", "make_scheduler",
]

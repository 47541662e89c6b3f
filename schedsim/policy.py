from .utils import ValueComparableEnum


class PolicyType(ValueComparableEnum):
    """Supported scheduling policies."""
    FCFS = 'fcfs'  # First come first served, strict head-of-line blocking
    FF = 'ff'  # First fit
    SJF = 'sjf'  # Shortest (requested) job first among the jobs that fit
    FCFS_EASY = 'fcfs-easy'  # FCFS with EASY backfilling

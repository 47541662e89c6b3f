"""
This is the dataloader for traces in the Standard Workload Format (SWF) used by the Parallel
Workloads Archive:

    Feitelson, Dror G., Dan Tsafrir, and David Krakov. "Experience with using the Parallel
    Workloads Archive." Journal of Parallel and Distributed Computing 74.10 (2014).
    https://www.cs.huji.ac.il/labs/parallel/workload/swf.html

Each data line holds 18 whitespace separated fields. Only these are used:

    0  job number
    1  submit time (seconds)
    3  run time (seconds, actual)
    7  requested number of processors
    8  requested time (seconds)

Lines starting with ';' are comments. Header comments of the form `; Key: value` (e.g.
`; MaxNodes: 40960`, `; UnixStartTime: 1230796800`) are kept as metadata.

The simulator models nodes, not processors, so the node count of a job is
ceil(requested processors / processors per node). Jobs that need more nodes than the simulated
cluster has are dropped.

Running a replay simulation, e.g. with the ANL Intrepid log:

    python main.py run -f ANL-Intrepid-2009-1.swf --nodes 8192 --policy fcfs-easy

"""
import math
import re

from tqdm import tqdm

from schedsim.job import Job, job_dict
from schedsim.utils import WorkloadData, unix_to_datetime

SWF_NUM_FIELDS = 18
DEFAULT_PROCS_PER_NODE = 4

JOB_ID, SUBMIT_TIME, RUN_TIME, REQUESTED_PROCS, REQUESTED_TIME = 0, 1, 3, 7, 8

HEADER_RE = re.compile(r"^\s*(\w+)\s*:\s*(.*?)\s*$")


class TraceLoadError(Exception):
    """The trace could not be turned into a workload."""


class TraceReadError(TraceLoadError):
    """The trace source could not be read."""


class TraceParseError(TraceLoadError):
    """A trace record is malformed."""

    def __init__(self, message, path=None, line_number=None):
        self.path = path
        self.line_number = line_number
        location = f"{path}:{line_number}: " if line_number is not None else ""
        super().__init__(location + message)


def _parse_field(fields, index, name):
    try:
        value = int(fields[index])
    except ValueError:
        raise ValueError(f"{name} is not an integer: {fields[index]!r}") from None
    if value < 0:
        raise ValueError(f"{name} is negative: {value}")
    return value


def parse_record(line: str, procs_per_node: int = DEFAULT_PROCS_PER_NODE,
                 num_fields: int = SWF_NUM_FIELDS) -> dict:
    """
    Parse one SWF data line into the keyword dict for a Job.
    Raises ValueError if the record is malformed.
    """
    fields = line.split()
    if len(fields) != num_fields:
        raise ValueError(f"expected {num_fields} fields, got {len(fields)}")

    procs = _parse_field(fields, REQUESTED_PROCS, "requested processors")
    nodes = math.ceil(procs / procs_per_node)
    if nodes <= 0:
        raise ValueError("job requests no processors")

    return job_dict(
        id=_parse_field(fields, JOB_ID, "job id"),
        nodes=nodes,
        submit_time=_parse_field(fields, SUBMIT_TIME, "submit time"),
        run_time=_parse_field(fields, RUN_TIME, "run time"),
        requested_run_time=_parse_field(fields, REQUESTED_TIME, "requested time"),
    )


def load_data(path, total_nodes: int, *, procs_per_node: int = DEFAULT_PROCS_PER_NODE,
              limit: int | None = None, comment_marker: str = ';', num_fields: int = SWF_NUM_FIELDS,
              debug: bool = False, progress: bool = False) -> WorkloadData:
    """
    Load an SWF trace into Job objects.

    Args:
        path: The .swf file.
        total_nodes: Size of the simulated cluster, larger jobs are skipped.
        limit: Stop after this many jobs have been kept.

    Returns:
        WorkloadData

    Raises:
        TraceReadError if the file cannot be read, TraceParseError on a malformed record.
    """
    if procs_per_node <= 0:
        raise ValueError(f"procs_per_node must be positive, got {procs_per_node}")
    if limit is not None and limit <= 0:
        raise ValueError(f"limit must be positive, got {limit}")

    jobs = []
    header = {}
    skipped = 0

    try:
        with open(path, encoding="utf-8") as f:
            for line_number, line in enumerate(tqdm(f, desc="Loading trace", unit=" lines",
                                                    disable=not progress), start=1):
                stripped = line.strip()
                if not stripped:
                    continue
                if stripped.startswith(comment_marker):
                    match = HEADER_RE.match(stripped[len(comment_marker):])
                    if match:
                        header.setdefault(match[1], match[2])
                    continue

                try:
                    info = parse_record(stripped, procs_per_node, num_fields)
                except ValueError as e:
                    raise TraceParseError(str(e), path=path, line_number=line_number) from e

                if info['nodes'] > total_nodes:
                    skipped += 1
                    if debug:
                        print(f"Skipping job {info['id']} as it requires {info['nodes']} > {total_nodes} nodes")
                    continue

                jobs.append(Job(info))
                if limit is not None and len(jobs) >= limit:
                    break
    except (OSError, UnicodeDecodeError) as e:
        raise TraceReadError(f"Unable to read the input file {path}: {e}") from e

    start_date = None
    if header.get('UnixStartTime', '').lstrip('-').isdigit():
        start_date = unix_to_datetime(header['UnixStartTime'])

    return WorkloadData(jobs=jobs, skipped=skipped, header=header, start_date=start_date)

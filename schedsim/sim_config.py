import abc
from collections.abc import Iterator
from pathlib import Path
from typing import Literal, Annotated as A
from annotated_types import Len
from pydantic import model_validator, Field, PositiveInt, field_validator

from schedsim.policy import PolicyType
from schedsim.utils import ResolvedPath, create_casename, SimBaseModel, yaml_dump

PolicyName = Literal['fcfs', 'ff', 'sjf', 'fcfs-easy']
RunPlot = Literal["wait", "util", "queue"]
SweepPlot = Literal["wait", "util", "makespan"]


class SimConfig(SimBaseModel, abc.ABC):
    trace: ResolvedPath
    """ Path to the workload trace in Standard Workload Format (.swf) """

    procs_per_node: PositiveInt = 4
    """ Processors per node, used to turn the requested processor count into nodes """

    numjobs: PositiveInt | None = None
    """ Only replay the first N jobs that fit on the cluster """

    comment_marker: A[str, Field(min_length=1)] = ";"
    """ Lines of the trace starting with this are comments """

    debug: bool = False
    """ Print every scheduling decision and the pending queue """
    verbose: bool = False
    """ Enable verbose output """

    output: ResolvedPath | Literal['none'] | None = None
    """
    Where to write the report, job history and plots.
    If omitted it will output to schedsim-output-<id> by default.
    Set to "none" to disable file output entirely.
    """

    _random_output: Path | None = None

    def get_output(self) -> Path | None:
        if self.output is None:  # by default, output to a random directory
            if not self._random_output:
                self._random_output = Path(create_casename("schedsim-output-")).resolve()
            return self._random_output
        elif self.output == "none":  # allow explicitly disabling output with "none"
            return None
        else:
            return self.output  # return user defined output path

    plot: list[str] | None = None
    """ Plots to generate, the choices depend on the command """

    imtype: Literal["png", "svg", "jpg", "pdf", "eps"] = "png"
    """ Plot image type """

    @model_validator(mode="after")
    def _validate_after(self):
        if self.plot and self.output == "none":
            raise ValueError("plot requires an output directory to be set")
        return self

    @property
    @abc.abstractmethod
    def runs(self) -> list["SingleSimConfig"]:
        """ One SingleSimConfig per simulation this config describes """
        pass

    def dump_yaml(self, exclude_unset=True):
        return yaml_dump(self.model_dump(mode="json", exclude_unset=exclude_unset))


class SingleSimConfig(SimConfig):
    nodes: PositiveInt = 64
    """ Number of nodes in the simulated cluster """

    policy: PolicyName = "fcfs"
    """ Scheduling policy """

    plot: list[RunPlot] | None = None
    """
    Plots to generate:
    wait: histogram of the job wait times,
    util: percentage of allocated nodes over time,
    queue: pending queue length over time.
    """

    @property
    def policy_type(self) -> PolicyType:
        return PolicyType(self.policy)

    @property
    def runs(self) -> list["SingleSimConfig"]:
        return [self]


class SweepSimConfig(SimConfig):
    node_counts: A[list[PositiveInt], Len(min_length=1)] = [
        64, 128, 256, 512, 1024, 2048, 4096, 8192, 16384, 32768, 65536, 131072,
    ]
    """ Cluster sizes to simulate """

    policies: A[list[PolicyName], Len(min_length=1)] = ['fcfs', 'ff', 'sjf', 'fcfs-easy']
    """ Scheduling policies to simulate for every cluster size """

    plot: list[SweepPlot] | None = None
    """ Report metric against cluster size, one line per policy: wait (average wait), util, makespan """

    @field_validator("node_counts", "policies")
    @classmethod
    def _dedupe(cls, values):
        return list(dict.fromkeys(values))

    def iter_runs(self) -> Iterator[SingleSimConfig]:
        shared = self.model_dump(exclude={"node_counts", "policies", "plot"})
        # Per-run output is handled by the sweep itself
        shared["output"] = "none"
        for nodes in self.node_counts:
            for policy in self.policies:
                yield SingleSimConfig.model_validate({**shared, "nodes": nodes, "policy": policy})

    @property
    def runs(self) -> list[SingleSimConfig]:
        return list(self.iter_runs())


SIM_SHORTCUTS = {
    "trace": "f",
    "numjobs": "j",
    "debug": "d",
    "verbose": "v",
    "output": "o",
}

SINGLE_SHORTCUTS = {
    **SIM_SHORTCUTS,
    "nodes": "n",
    "policy": "p",
}

SWEEP_SHORTCUTS = {
    **SIM_SHORTCUTS,
    "node-counts": "N",
}

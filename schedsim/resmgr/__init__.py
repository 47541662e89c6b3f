"""
ResourceManager package initializer.
Exports the cluster model and a factory used by the engine.
"""
from .default import Cluster, ClusterUsage


def make_cluster(total_nodes, debug=False):
    """
    Build the resource manager for a run.

    Parameters:
    - total_nodes: Total number of nodes in the system
    - debug: Print admissions and releases
    """
    return Cluster(total_nodes, debug=debug)


__all__ = [
    "make_cluster",
    "Cluster",
    "ClusterUsage",
]

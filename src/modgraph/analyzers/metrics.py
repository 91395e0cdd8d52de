"""Connectivity metrics over a finished dependency graph."""

from dataclasses import dataclass
from typing import Optional

import networkx as nx

from ..graph.graph_builder import DependencyGraph


@dataclass(frozen=True)
class GraphMetrics:
    """Aggregate statistics of one dependency graph."""
    total_modules: int = 0
    total_edges: int = 0
    internal_edges: int = 0
    external_edges: int = 0
    avg_fan_out: float = 0.0
    most_connected_module: Optional[str] = None
    most_connected_degree: int = 0
    errored_modules: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "totalModules": self.total_modules,
            "totalEdges": self.total_edges,
            "internalEdges": self.internal_edges,
            "externalEdges": self.external_edges,
            "avgFanOut": self.avg_fan_out,
            "mostConnectedModule": self.most_connected_module,
            "mostConnectedDegree": self.most_connected_degree,
            "erroredModules": self.errored_modules
        }


def calculate_metrics(graph: Optional[DependencyGraph]) -> GraphMetrics:
    """Compute metrics for ``graph``; None or an empty graph gives zeros.

    Fan-out and connectivity count distinct internal (source, target) pairs,
    so parallel imports between two modules count once. Degree ties go to
    the module that comes first in node order.
    """
    if graph is None or not graph.nodes:
        return GraphMetrics()

    internal = graph.internal_edges
    pairs = list(dict.fromkeys((e.source, e.target) for e in internal))

    simple = nx.DiGraph()
    simple.add_nodes_from(graph.nodes)
    simple.add_edges_from(pairs)

    most_connected = None
    best_degree = 0
    if pairs:
        for node in graph.nodes:
            degree = simple.degree(node)
            if degree > best_degree:
                most_connected, best_degree = node, degree

    return GraphMetrics(
        total_modules=len(graph.nodes),
        total_edges=len(graph.edges),
        internal_edges=len(internal),
        external_edges=len(graph.edges) - len(internal),
        avg_fan_out=len(pairs) / len(graph.nodes),
        most_connected_module=most_connected,
        most_connected_degree=best_degree,
        errored_modules=len(graph.errored)
    )

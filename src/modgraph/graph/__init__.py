"""Module resolution and dependency graph construction."""

from .graph_builder import DependencyEdge, DependencyGraph, GraphBuilder, GraphStatistics
from .resolver import ModuleResolver, ResolvedTarget, ResolverContext

__all__ = [
    "DependencyEdge",
    "DependencyGraph",
    "GraphBuilder",
    "GraphStatistics",
    "ModuleResolver",
    "ResolvedTarget",
    "ResolverContext"
]

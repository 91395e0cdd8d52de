"""Analyses over the dependency graph and module records."""

from .dead_export_analyzer import DeadExportAnalyzer, DeadExportEntry, DeadExportResult
from .dependency_analyzer import CircularDependency, CircularDependencyResult, CycleDetector
from .metrics import GraphMetrics, calculate_metrics
from .unused_import_analyzer import UnusedImportEntry, UnusedImportResult, find_unused_imports

__all__ = [
    "DeadExportAnalyzer",
    "DeadExportEntry",
    "DeadExportResult",
    "CircularDependency",
    "CircularDependencyResult",
    "CycleDetector",
    "GraphMetrics",
    "calculate_metrics",
    "UnusedImportEntry",
    "UnusedImportResult",
    "find_unused_imports"
]

"""Circular import detection over the module dependency graph."""

from dataclasses import dataclass, field
from itertools import islice
from typing import Optional

import networkx as nx

from ..graph.graph_builder import DependencyGraph
from ..utils.logger import get_logger


@dataclass
class CircularDependency:
    """Represents a circular import chain.

    ``modules`` starts at the cycle's earliest module (graph node order) and
    does not repeat it at the tail.
    """
    modules: list[str]
    length: int = 0
    severity: str = "medium"  # low, medium, high
    import_kinds: list[str] = field(default_factory=list)

    def format(self) -> str:
        """Format cycle for display."""
        lines = [
            f"CIRCULAR DEPENDENCY ({self.severity})",
            f"Length: {self.length} modules",
            ""
        ]

        for i, module in enumerate(self.modules):
            arrow = " →" if i < len(self.modules) - 1 else " ↩"
            lines.append(f"  [{i+1}] {module}{arrow}")

        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "modules": list(self.modules),
            "length": self.length,
            "severity": self.severity,
            "importKinds": list(self.import_kinds)
        }


@dataclass
class CircularDependencyResult:
    """Result of circular dependency detection."""
    total_cycles: int = 0
    cycles: list[CircularDependency] = field(default_factory=list)
    by_severity: dict[str, int] = field(default_factory=dict)
    truncated: bool = False

    def as_paths(self) -> list[list[str]]:
        """Cycles as plain path lists."""
        return [list(c.modules) for c in self.cycles]

    def format(self) -> str:
        """Format all cycles for display."""
        if self.total_cycles == 0:
            return "NO CIRCULAR DEPENDENCIES FOUND"

        lines = [
            f"CIRCULAR DEPENDENCIES DETECTED: {self.total_cycles}",
            "",
            "By severity:"
        ]

        for severity, count in sorted(self.by_severity.items(), key=lambda x: -x[1]):
            lines.append(f"  {severity}: {count}")

        lines.append("")

        for i, cycle in enumerate(self.cycles[:10], 1):
            lines.append(f"--- Cycle {i} ---")
            lines.append(cycle.format())
            lines.append("")

        if len(self.cycles) > 10:
            lines.append(f"... and {len(self.cycles) - 10} more cycles")
        if self.truncated:
            lines.append("(cycle list truncated by max_cycles)")

        return "\n".join(lines)


def cycle_severity(length: int) -> str:
    """Shorter cycles are tighter couplings."""
    if length <= 2:
        return "high"
    elif length <= 4:
        return "medium"
    return "low"


class CycleDetector:
    """Finds circular imports among internal edges.

    External edges cannot take part in a cycle: no node stands for an
    external target.
    """

    def __init__(self, graph: DependencyGraph):
        self.graph = graph
        self.logger = get_logger("cycles")
        self._order = {node: i for i, node in enumerate(graph.nodes)}

        # Distinct internal pairs with the import kinds seen on each
        self._pair_kinds: dict[tuple[str, str], set[str]] = {}
        for edge in graph.internal_edges:
            self._pair_kinds.setdefault((edge.source, edge.target), set()).add(edge.import_kind.value)

    def _simple_graph(self) -> nx.DiGraph:
        simple = nx.DiGraph()
        simple.add_nodes_from(self.graph.nodes)
        simple.add_edges_from(self._pair_kinds)
        return simple

    def _successors(self, node: str) -> list[str]:
        return sorted(
            (t for (s, t) in self._pair_kinds if s == node),
            key=lambda n: self._order.get(n, len(self._order))
        )

    def _canonical(self, cycle: list[str]) -> list[str]:
        """Rotate so the earliest module in node order comes first."""
        start = min(range(len(cycle)), key=lambda i: self._order.get(cycle[i], len(self._order)))
        return cycle[start:] + cycle[:start]

    def _sort_key(self, cycle: list[str]) -> tuple:
        return (len(cycle), [self._order.get(n, len(self._order)) for n in cycle])

    def detect(self, max_cycles: Optional[int] = None) -> CircularDependencyResult:
        """Report every simple cycle, each exactly once.

        Enumeration stops after ``max_cycles + 1`` cycles, so a densely
        coupled graph costs no more than the limit allows. The ordering then
        applies to the cycles found before the stop, not to all of them.

        Args:
            max_cycles: Maximum number of cycles to return. None = all.

        Returns:
            CircularDependencyResult, cycles sorted by (length, node order)
        """
        result = CircularDependencyResult()
        simple = self._simple_graph()

        # Self-imports are 1-cycles
        found = [[node] for node in nx.nodes_with_selfloops(simple)]
        simple.remove_edges_from(list(nx.selfloop_edges(simple)))

        # Johnson's algorithm, lazily
        johnson = nx.simple_cycles(simple)
        if max_cycles is not None:
            johnson = islice(johnson, max(max_cycles - len(found), 0) + 1)
        found.extend(list(cycle) for cycle in johnson)

        cycles = sorted((self._canonical(c) for c in found), key=self._sort_key)

        if max_cycles is not None and len(cycles) > max_cycles:
            self.logger.warning(f"More than {max_cycles} cycles, reporting the first {max_cycles}")
            cycles = cycles[:max_cycles]
            result.truncated = True

        for modules in cycles:
            kinds = set()
            for i, module in enumerate(modules):
                next_module = modules[(i + 1) % len(modules)]
                kinds |= self._pair_kinds.get((module, next_module), set())

            severity = cycle_severity(len(modules))
            result.cycles.append(CircularDependency(
                modules=modules,
                length=len(modules),
                severity=severity,
                import_kinds=sorted(kinds)
            ))
            result.by_severity[severity] = result.by_severity.get(severity, 0) + 1

        result.total_cycles = len(result.cycles)
        if result.total_cycles:
            self.logger.info(f"Detected {result.total_cycles} circular dependencies")
        return result

    def find_back_edge_cycles(self) -> list[list[str]]:
        """Three-colour depth-first search, one cycle per back edge.

        Cheaper than ``detect`` and enough to answer "is there any cycle";
        it does not enumerate every simple cycle.
        """
        WHITE, GRAY, BLACK = 0, 1, 2
        color = {node: WHITE for node in self.graph.nodes}
        cycles = []

        for root in self.graph.nodes:
            if color[root] != WHITE:
                continue

            color[root] = GRAY
            path = [root]
            stack = [(root, iter(self._successors(root)))]

            while stack:
                node, successors = stack[-1]
                next_node = next(successors, None)

                if next_node is None:
                    color[node] = BLACK
                    stack.pop()
                    path.pop()
                elif color.get(next_node, BLACK) == WHITE:
                    color[next_node] = GRAY
                    path.append(next_node)
                    stack.append((next_node, iter(self._successors(next_node))))
                elif color[next_node] == GRAY:
                    # Back edge: the in-progress path from next_node closes a cycle
                    cycles.append(self._canonical(path[path.index(next_node):]))

        return sorted(cycles, key=self._sort_key)

    def has_cycles(self) -> bool:
        return bool(self.find_back_edge_cycles())

"""Graph builder for constructing the module dependency graph."""

import json
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path
from typing import Callable, Iterable, Optional

import networkx as nx

from ..parsers.base_parser import (
    ImportKind,
    ModuleRecord,
    ParseResult,
    SourceFile,
    normalize_path,
)
from ..parsers.typescript_parser import TypeScriptParser
from ..utils.logger import get_logger
from .resolver import DEFAULT_EXTENSIONS, ModuleResolver, ResolverContext


@dataclass(frozen=True)
class DependencyEdge:
    """One import relation. Parallel edges are kept, one per declaration."""
    source: str
    target: str
    import_kind: ImportKind
    is_external: bool
    specifier: str = ""
    line: int = 0
    is_re_export: bool = False
    is_dynamic: bool = False
    is_type_only: bool = False
    target_errored: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "from": self.source,
            "to": self.target,
            "importKind": self.import_kind.value,
            "isExternal": self.is_external,
            "specifier": self.specifier,
            "line": self.line,
            "isReExport": self.is_re_export,
            "isDynamic": self.is_dynamic,
            "isTypeOnly": self.is_type_only,
            "targetErrored": self.target_errored
        }


@dataclass
class DependencyGraph:
    """Modules and the import edges between them.

    Every edge source is a node; a target is either a node or the edge is
    flagged external. External targets never become nodes.
    """
    nodes: list[str] = field(default_factory=list)
    edges: list[DependencyEdge] = field(default_factory=list)
    errored: frozenset[str] = frozenset()

    @property
    def internal_edges(self) -> list[DependencyEdge]:
        return [e for e in self.edges if not e.is_external]

    @property
    def external_edges(self) -> list[DependencyEdge]:
        return [e for e in self.edges if e.is_external]

    def to_networkx(self) -> nx.MultiDiGraph:
        """Internal edges as a MultiDiGraph, nodes in graph order."""
        graph = nx.MultiDiGraph()
        for node in self.nodes:
            graph.add_node(node, errored=node in self.errored)
        for edge in self.internal_edges:
            graph.add_edge(
                edge.source,
                edge.target,
                import_kind=edge.import_kind.value,
                specifier=edge.specifier,
                line=edge.line,
                is_re_export=edge.is_re_export
            )
        return graph

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "nodes": list(self.nodes),
            "edges": [e.to_dict() for e in self.edges],
            "errored": sorted(self.errored)
        }

    def export_json(self, output_path: Path) -> None:
        """Export the graph to JSON format."""
        data = {"format": "modgraph_graph_v1", **self.to_dict()}

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)


@dataclass
class GraphStatistics:
    """Statistics about one graph build."""
    total_files: int = 0
    parsed_files: int = 0
    failed_files: int = 0

    total_nodes: int = 0
    total_edges: int = 0
    internal_edges: int = 0
    external_edges: int = 0
    unresolved_edges: int = 0

    edges_by_kind: dict[str, int] = field(default_factory=dict)
    ambiguous_imports: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "files": {
                "total": self.total_files,
                "parsed": self.parsed_files,
                "failed": self.failed_files
            },
            "graph": {
                "total_nodes": self.total_nodes,
                "total_edges": self.total_edges,
                "internal_edges": self.internal_edges,
                "external_edges": self.external_edges,
                "edges_by_kind": self.edges_by_kind,
            },
            "quality": {
                "unresolved_edges": self.unresolved_edges,
                "ambiguous_imports": self.ambiguous_imports
            }
        }

    def __str__(self) -> str:
        """Human-readable summary."""
        lines = [
            "=== Graph Statistics ===",
            f"Files: {self.total_files} total ({self.parsed_files} parsed, {self.failed_files} failed)",
            f"Nodes: {self.total_nodes}",
            f"Edges: {self.total_edges} ({self.internal_edges} internal, {self.external_edges} external)",
            "",
            "Edges by import kind:"
        ]
        for kind, count in sorted(self.edges_by_kind.items(), key=lambda x: -x[1]):
            lines.append(f"  {kind}: {count}")

        if self.unresolved_edges > 0 or self.ambiguous_imports > 0:
            lines.extend([
                "",
                "Quality warnings:",
                f"  Unresolved relative imports: {self.unresolved_edges}",
                f"  Ambiguous imports: {self.ambiguous_imports}"
            ])

        return "\n".join(lines)


class GraphBuilder:
    """Parses modules and folds their records into a dependency graph."""

    def __init__(self, project_root: Optional[Path] = None, config: Optional[dict] = None):
        """Initialize the graph builder.

        Args:
            project_root: Root directory of the project to analyze. Only
                needed for scanning and parsing files from disk.
            config: Optional configuration dictionary
        """
        self.project_root = Path(project_root) if project_root is not None else None
        self.config = config or {}
        self.logger = get_logger("graph_builder")

        self.parser = TypeScriptParser(self.project_root)

        # Configuration
        self.include_patterns = self.config.get("include_patterns", [
            "**/*.ts", "**/*.tsx", "**/*.js", "**/*.jsx"
        ])
        self.exclude_patterns = self.config.get("exclude_patterns", [
            "**/node_modules/**",
            "**/dist/**",
            "**/.git/**"
        ])
        self.extensions = tuple(self.config.get("extensions", DEFAULT_EXTENSIONS))

        # Populated by build_graph
        self.context: Optional[ResolverContext] = None
        self.statistics = GraphStatistics()

    def scan_files(self) -> list[Path]:
        """Scan project directory for files to parse.

        Returns:
            List of file paths matching include patterns and not excluded
        """
        if self.project_root is None:
            raise ValueError("scan_files needs a project root")

        files = []

        for pattern in self.include_patterns:
            for file_path in self.project_root.glob(pattern):
                if file_path.is_file() and not self._is_excluded(file_path):
                    files.append(file_path)

        return sorted(set(files))

    def _is_excluded(self, file_path: Path) -> bool:
        """Check if a file should be excluded from analysis."""
        rel_path = str(file_path.relative_to(self.project_root)).replace("\\", "/")

        for pattern in self.exclude_patterns:
            if fnmatch(rel_path, pattern):
                return True
            # Patterns like **/dist/** also apply at the root
            if fnmatch(f"/{rel_path}", pattern):
                return True

        return False

    def parse_files(self, files: Iterable[Path], workers: int = 1) -> list[ParseResult]:
        """Read and parse files from disk, sorted by module path."""
        return self._run_batch(list(files), self._parse_path, workers)

    def parse_sources(self, sources: Iterable[SourceFile], workers: int = 1) -> list[ParseResult]:
        """Parse in-memory sources, sorted by module path."""
        return self._run_batch(list(sources), self._parse_source, workers)

    def _run_batch(self, items: list, parse: Callable, workers: int) -> list[ParseResult]:
        self.logger.info(f"Parsing {len(items)} files with {workers} worker(s)...")

        if workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = list(pool.map(parse, items))
        else:
            results = [parse(item) for item in items]

        # Completion order must never leak into the output
        results.sort(key=lambda r: r.file_path)

        failed = [r for r in results if not r.success]
        for result in failed:
            self.logger.warning(f"Failed to parse {result.file_path}: {'; '.join(result.errors)}")
        self.logger.info(f"Parsed {len(results) - len(failed)} files, {len(failed)} failed")

        return results

    def _parse_path(self, file_path: Path) -> ParseResult:
        self.logger.debug(f"Parsing {file_path}")
        return self.parser.parse_file(file_path)

    def _parse_source(self, source: SourceFile) -> ParseResult:
        self.logger.debug(f"Parsing {source.path}")
        return self.parser.parse_text(source.path, source.text)

    def build_graph(
        self,
        records: Iterable[ModuleRecord],
        failed_paths: Iterable[str] = (),
        context: Optional[ResolverContext] = None
    ) -> DependencyGraph:
        """Fold module records into one dependency graph.

        Args:
            records: Successfully parsed modules
            failed_paths: Modules that failed to parse; they become error
                stub nodes so imports of them stay internal
            context: Resolver context to reuse; built from the node set
                when omitted

        Returns:
            The dependency graph, nodes and edges in path order
        """
        by_path: dict[str, ModuleRecord] = {}
        for record in sorted(records, key=lambda r: r.path):
            if record.path in by_path:
                self.logger.warning(f"Duplicate module {record.path}, keeping the first record")
                continue
            by_path[record.path] = record

        errored = frozenset(normalize_path(p) for p in failed_paths) - set(by_path)
        nodes = sorted(set(by_path) | errored)

        if context is None:
            context = ResolverContext.from_paths(nodes, self.extensions)
        self.context = context
        resolver = ModuleResolver(context)

        graph = DependencyGraph(nodes=nodes, errored=errored)
        stats = GraphStatistics(
            total_files=len(nodes),
            parsed_files=len(by_path),
            failed_files=len(errored)
        )

        self.logger.info(f"Building graph from {len(nodes)} modules...")

        for path, record in by_path.items():
            for imp in record.imports:
                target = resolver.resolve(imp.source_specifier, path)
                if target.unresolved:
                    stats.unresolved_edges += 1
                graph.edges.append(DependencyEdge(
                    source=path,
                    target=target.target,
                    import_kind=imp.kind,
                    is_external=target.is_external,
                    specifier=imp.source_specifier,
                    line=imp.line,
                    is_re_export=imp.is_re_export,
                    is_dynamic=imp.is_dynamic,
                    is_type_only=imp.is_type_only,
                    target_errored=target.internal_path in errored
                ))

        # Calculate statistics
        stats.total_nodes = len(graph.nodes)
        stats.total_edges = len(graph.edges)
        stats.internal_edges = len(graph.internal_edges)
        stats.external_edges = stats.total_edges - stats.internal_edges
        stats.ambiguous_imports = len(context.ambiguities)
        for edge in graph.edges:
            kind = edge.import_kind.value
            stats.edges_by_kind[kind] = stats.edges_by_kind.get(kind, 0) + 1
        self.statistics = stats

        self.logger.info(f"Graph built: {stats.total_nodes} nodes, {stats.total_edges} edges")

        return graph

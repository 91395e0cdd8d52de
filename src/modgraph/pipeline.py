"""End-to-end analysis: parse, build the graph, run every analyzer."""

import json
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable, Optional

from .analyzers.dead_export_analyzer import DeadExportAnalyzer, DeadExportResult
from .analyzers.dependency_analyzer import CircularDependencyResult, CycleDetector
from .analyzers.metrics import GraphMetrics, calculate_metrics
from .analyzers.unused_import_analyzer import UnusedImportResult, find_unused_imports
from .errors import ConfigError, EmptyInputError, ResolutionAmbiguity
from .graph.graph_builder import DependencyGraph, GraphBuilder, GraphStatistics
from .graph.resolver import DEFAULT_EXTENSIONS
from .parsers.base_parser import ModuleRecord, ParseFailure, ParseResult, SourceFile
from .utils.config import NAMESPACE_POLICIES, Config
from .utils.logger import get_logger


logger = get_logger("pipeline")


@dataclass
class AnalysisOptions:
    """Knobs of one analysis run."""
    namespace_policy: str = "suppress"
    entry_points: tuple[str, ...] = ()
    max_cycles: Optional[int] = None
    workers: int = 1
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS

    def __post_init__(self):
        if self.namespace_policy not in NAMESPACE_POLICIES:
            raise ConfigError(
                f"namespace_policy must be one of {NAMESPACE_POLICIES}, got {self.namespace_policy!r}"
            )
        if self.workers < 1:
            raise ConfigError(f"workers must be at least 1, got {self.workers}")
        self.entry_points = tuple(self.entry_points)
        self.extensions = tuple(self.extensions)

    @classmethod
    def from_config(cls, cfg: Config) -> "AnalysisOptions":
        return cls(
            namespace_policy=cfg.namespace_policy,
            entry_points=tuple(cfg.entry_points),
            max_cycles=cfg.max_cycles,
            workers=cfg.workers,
            extensions=tuple(cfg.extensions)
        )


@dataclass
class AnalysisReport:
    """Everything one analysis produced, failures included."""
    graph: DependencyGraph
    metrics: GraphMetrics
    cycles: CircularDependencyResult
    dead_exports: DeadExportResult
    unused_imports: UnusedImportResult = field(default_factory=UnusedImportResult)
    failures: list[ParseFailure] = field(default_factory=list)
    records: list[ModuleRecord] = field(default_factory=list)
    ambiguities: list[ResolutionAmbiguity] = field(default_factory=list)
    statistics: GraphStatistics = field(default_factory=GraphStatistics)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "graph": self.graph.to_dict(),
            "metrics": self.metrics.to_dict(),
            "cycles": self.cycles.as_paths(),
            "deadExports": [e.to_dict() for e in self.dead_exports.entries],
            "unusedImports": [u.to_dict() for u in self.unused_imports.entries],
            "failures": [f.to_dict() for f in self.failures],
            "ambiguities": [str(a) for a in self.ambiguities]
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def format(self) -> str:
        """Plain-text report."""
        sections = [
            str(self.statistics),
            "",
            self.cycles.format(),
            "",
            self.dead_exports.format(),
            "",
            self.unused_imports.format()
        ]
        if self.failures:
            sections.extend(["", f"FAILED TO PARSE: {len(self.failures)}"])
            for failure in self.failures:
                location = f"{failure.path}:{failure.line}" if failure.line else failure.path
                sections.append(f"  {location}: {failure.message}")
        return "\n".join(sections)


def is_entry_point(module: str, patterns: Iterable[str]) -> bool:
    """True when the module path matches one of the glob patterns."""
    return any(fnmatch(module, pattern) or fnmatch(f"/{module}", pattern) for pattern in patterns)


def run_analysis(
    sources: Iterable[SourceFile],
    options: Optional[AnalysisOptions] = None
) -> AnalysisReport:
    """Analyze in-memory sources.

    Raises:
        EmptyInputError: no sources were supplied
    """
    options = options or AnalysisOptions()
    sources = list(sources)
    if not sources:
        raise EmptyInputError()

    builder = GraphBuilder(config={"extensions": options.extensions})
    results = builder.parse_sources(sources, workers=options.workers)
    return _analyze_results(builder, results, options)


def analyze_project(
    project_root: Path,
    options: Optional[AnalysisOptions] = None,
    include_patterns: Optional[list[str]] = None,
    exclude_patterns: Optional[list[str]] = None
) -> AnalysisReport:
    """Scan a directory and analyze every matching file.

    Raises:
        EmptyInputError: no file under the root matched the patterns
    """
    options = options or AnalysisOptions()
    builder_config = {"extensions": options.extensions}
    if include_patterns:
        builder_config["include_patterns"] = list(include_patterns)
    if exclude_patterns:
        builder_config["exclude_patterns"] = list(exclude_patterns)

    builder = GraphBuilder(project_root, builder_config)
    files = builder.scan_files()
    if not files:
        raise EmptyInputError(f"No source files found under {project_root}")

    results = builder.parse_files(files, workers=options.workers)
    return _analyze_results(builder, results, options)


def _analyze_results(
    builder: GraphBuilder,
    results: list[ParseResult],
    options: AnalysisOptions
) -> AnalysisReport:
    records = [r.record for r in results if r.success]
    failures = [ParseFailure.from_result(r) for r in results if not r.success]

    graph = builder.build_graph(records, [f.path for f in failures])
    cycles = CycleDetector(graph).detect(max_cycles=options.max_cycles)
    metrics = calculate_metrics(graph)

    dead_exports = DeadExportAnalyzer(builder.context, options.namespace_policy).analyze(records, graph.errored)
    if options.entry_points:
        kept = [e for e in dead_exports.entries if not is_entry_point(e.module, options.entry_points)]
        logger.debug(f"Entry points hid {len(dead_exports.entries) - len(kept)} dead exports")
        dead_exports.entries = kept

    unused_imports = find_unused_imports(records)

    return AnalysisReport(
        graph=graph,
        metrics=metrics,
        cycles=cycles,
        dead_exports=dead_exports,
        unused_imports=unused_imports,
        failures=failures,
        records=records,
        ambiguities=list(builder.context.ambiguities),
        statistics=builder.statistics
    )

"""Whole-project dead export detection."""

from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..graph.resolver import ModuleResolver, ResolverContext
from ..parsers.base_parser import Confidence, ExportKind, ImportKind, ModuleRecord
from ..utils.config import NAMESPACE_POLICIES
from ..errors import ConfigError
from ..utils.logger import get_logger


OPAQUE_IMPORT_KINDS = (ImportKind.NAMESPACE, ImportKind.SIDE_EFFECT)


@dataclass(frozen=True)
class DeadExportEntry:
    """An export nothing in the analyzed set imports."""
    module: str
    export_name: str
    export_kind: ExportKind
    confidence: Confidence
    line: int = 0
    reason: str = ""
    local_name: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "module": self.module,
            "exportName": self.export_name,
            "exportKind": self.export_kind.value,
            "confidence": self.confidence.value,
            "line": self.line,
            "reason": self.reason
        }


@dataclass
class DeadExportResult:
    """Result of dead export detection."""
    entries: list[DeadExportEntry] = field(default_factory=list)
    total_exports: int = 0
    used_exports: int = 0
    suppressed_exports: int = 0
    opaque_modules: list[str] = field(default_factory=list)
    errored_modules: list[str] = field(default_factory=list)

    @property
    def total_dead(self) -> int:
        return len(self.entries)

    def by_confidence(self, confidence: Confidence) -> list[DeadExportEntry]:
        return [e for e in self.entries if e.confidence == confidence]

    def format(self) -> str:
        """Format dead export results for display."""
        lines = [
            "DEAD EXPORT ANALYSIS",
            f"Exports: {self.total_exports} ({self.used_exports} used)",
            f"Potentially dead: {self.total_dead}",
            ""
        ]

        for confidence in (Confidence.HIGH, Confidence.MEDIUM, Confidence.LOW):
            entries = self.by_confidence(confidence)
            if not entries:
                continue
            lines.append(f"=== {confidence.value.upper()} CONFIDENCE ({len(entries)}) ===")
            for entry in entries[:20]:
                lines.append(f"  {entry.export_kind.value} {entry.export_name}")
                lines.append(f"       @ {entry.module}:{entry.line}")
            if len(entries) > 20:
                lines.append(f"  ... and {len(entries) - 20} more")
            lines.append("")

        if self.suppressed_exports:
            lines.append(
                f"{self.suppressed_exports} unreferenced exports suppressed in "
                f"{len(self.opaque_modules)} namespace-imported modules"
            )

        if self.errored_modules:
            lines.append(
                f"{len(self.errored_modules)} modules failed to parse; "
                f"findings capped at medium confidence"
            )

        if self.total_dead == 0:
            lines.append("No dead exports detected!")

        return "\n".join(lines)


class DeadExportAnalyzer:
    """Cross-references every export against every import in the project.

    References are keyed by ``(module, name)``; default imports use the
    ``"default"`` name. Namespace, side-effect and dynamic imports make the
    whole target module opaque: any of its exports could be in use.
    """

    def __init__(self, context: ResolverContext, namespace_policy: str = "suppress"):
        if namespace_policy not in NAMESPACE_POLICIES:
            raise ConfigError(
                f"namespace_policy must be one of {NAMESPACE_POLICIES}, got {namespace_policy!r}"
            )
        self.resolver = ModuleResolver(context)
        self.namespace_policy = namespace_policy
        self.logger = get_logger("dead_exports")

    def analyze(
        self,
        records: Iterable[ModuleRecord],
        errored: Iterable[str] = ()
    ) -> DeadExportResult:
        """Classify every export of ``records`` as used or dead.

        Args:
            records: Successfully parsed modules
            errored: Modules that failed to parse. Their imports are unknown,
                so no finding is rated above MEDIUM while any exist.

        Returns:
            DeadExportResult, entries ordered by module path then export order
        """
        modules = {}
        for record in sorted(records, key=lambda r: r.path):
            modules.setdefault(record.path, record)

        references: Counter = Counter()
        opaque: set[str] = set()
        star_sources: dict[str, list[str]] = {}

        for path, record in modules.items():
            for imp in record.imports:
                target = self.resolver.resolve(imp.source_specifier, path)
                if not target.is_internal:
                    continue
                module = target.internal_path

                if imp.is_star_re_export:
                    star_sources.setdefault(path, []).append(module)
                elif imp.is_dynamic or imp.kind in OPAQUE_IMPORT_KINDS:
                    opaque.add(module)
                else:
                    for name in imp.imported_names:
                        references[(module, name)] += 1

        self._forward_star_references(references, modules, star_sources)
        opaque = self._propagate_opacity(opaque, star_sources)
        star_reachable = self._star_reachable(star_sources)

        result = DeadExportResult(
            opaque_modules=sorted(opaque & set(modules)),
            errored_modules=sorted(set(errored) - set(modules))
        )

        for path, record in modules.items():
            for export in record.exports:
                result.total_exports += 1
                if references[(path, export.name)] > 0:
                    result.used_exports += 1
                    continue

                entry = self._classify(path, export, opaque, star_reachable, len(result.errored_modules))
                if entry is None:
                    result.suppressed_exports += 1
                    continue
                result.entries.append(entry)

        self.logger.info(
            f"Dead export analysis: {result.total_dead} of {result.total_exports} exports unreferenced"
        )
        return result

    def _classify(
        self,
        path,
        export,
        opaque: set[str],
        star_reachable: set[str],
        failed_count: int = 0
    ) -> Optional[DeadExportEntry]:
        if path in opaque:
            if self.namespace_policy == "suppress":
                return None
            confidence = Confidence.LOW
            reason = "module is imported as a namespace or dynamically"
        elif path in star_reachable and export.name != "default":
            confidence = Confidence.MEDIUM
            reason = "no direct import; module is re-exported through export *"
        else:
            confidence = Confidence.HIGH
            reason = (
                "re-export is never imported from this module"
                if export.is_re_export else "never imported"
            )

        if confidence == Confidence.HIGH and failed_count:
            confidence = Confidence.MEDIUM
            reason = f"{reason}; {failed_count} modules failed to parse"

        return DeadExportEntry(
            module=path,
            export_name=export.name,
            export_kind=export.kind,
            confidence=confidence,
            line=export.line,
            reason=reason,
            local_name=export.local_name
        )

    def _forward_star_references(
        self,
        references: Counter,
        modules: dict[str, ModuleRecord],
        star_sources: dict[str, list[str]]
    ) -> None:
        """Credit names a barrel does not declare to its `export *` sources.

        The walk stops at the first module declaring the name and never
        forwards ``default``.
        """
        for (barrel, name), count in list(references.items()):
            if name == "default" or barrel not in star_sources:
                continue
            if self._declares(modules, barrel, name):
                continue

            seen = {barrel}
            queue = deque(star_sources[barrel])
            while queue:
                module = queue.popleft()
                if module in seen:
                    continue
                seen.add(module)
                if self._declares(modules, module, name):
                    references[(module, name)] += count
                else:
                    queue.extend(star_sources.get(module, []))

    def _declares(self, modules: dict[str, ModuleRecord], path: str, name: str) -> bool:
        record = modules.get(path)
        return record is not None and record.get_export(name) is not None

    def _propagate_opacity(self, opaque: set[str], star_sources: dict[str, list[str]]) -> set[str]:
        """Member access through an opaque barrel can reach its star sources."""
        result = set(opaque)
        queue = deque(opaque)
        while queue:
            module = queue.popleft()
            for source in star_sources.get(module, []):
                if source not in result:
                    result.add(source)
                    queue.append(source)
        return result

    def _star_reachable(self, star_sources: dict[str, list[str]]) -> set[str]:
        return {source for sources in star_sources.values() for source in sources}

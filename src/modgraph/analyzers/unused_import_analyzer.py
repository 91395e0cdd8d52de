"""Imports a module declares but never uses."""

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Iterable

from ..parsers.base_parser import Confidence, ImportKind, ModuleRecord, UnusedImport
from ..utils.logger import get_logger


# Bindings a JSX transform may reference without any mention in the source
IMPLICIT_JSX_BINDINGS = ("React", "h", "Fragment")
JSX_SUFFIXES = (".tsx", ".jsx")

logger = get_logger("unused_imports")


@dataclass(frozen=True)
class UnusedImportEntry:
    """One unused imported binding."""
    module: str
    local_name: str
    imported_name: str
    specifier: str
    import_kind: ImportKind
    confidence: Confidence
    line: int = 0
    reason: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "module": self.module,
            "localName": self.local_name,
            "importedName": self.imported_name,
            "specifier": self.specifier,
            "importKind": self.import_kind.value,
            "confidence": self.confidence.value,
            "line": self.line,
            "reason": self.reason
        }


@dataclass
class UnusedImportResult:
    """Unused imports across the analyzed modules."""
    entries: list[UnusedImportEntry] = field(default_factory=list)
    total_bindings: int = 0

    @property
    def total_unused(self) -> int:
        return len(self.entries)

    def format(self) -> str:
        if not self.entries:
            return "No unused imports detected!"

        lines = [f"UNUSED IMPORTS: {self.total_unused}", ""]
        for entry in self.entries[:30]:
            lines.append(
                f"  {entry.module}:{entry.line}  {entry.local_name} from '{entry.specifier}'"
                f" ({entry.confidence.value})"
            )
        if self.total_unused > 30:
            lines.append(f"  ... and {self.total_unused - 30} more")
        return "\n".join(lines)


def classify_unused_import(module: str, unused: UnusedImport) -> UnusedImportEntry:
    """HIGH unless the binding may be the implicit JSX factory."""
    implicit = (
        unused.local_name in IMPLICIT_JSX_BINDINGS
        and PurePosixPath(module).suffix.lower() in JSX_SUFFIXES
    )
    if implicit:
        confidence = Confidence.MEDIUM
        reason = "may be used implicitly by the JSX transform"
    else:
        confidence = Confidence.HIGH
        reason = "imported but never used in this module"

    return UnusedImportEntry(
        module=module,
        local_name=unused.local_name,
        imported_name=unused.imported_name,
        specifier=unused.source_specifier,
        import_kind=unused.kind,
        confidence=confidence,
        line=unused.line,
        reason=reason
    )


def find_unused_imports(records: Iterable[ModuleRecord]) -> UnusedImportResult:
    """Collect unused imports, ordered by module path then line."""
    result = UnusedImportResult()
    for record in sorted(records, key=lambda r: r.path):
        result.total_bindings += sum(
            len(imp.local_names) for imp in record.imports
            if not imp.is_re_export and not imp.is_dynamic
        )
        result.entries.extend(classify_unused_import(record.path, u) for u in record.unused_imports)

    logger.info(f"Unused imports: {result.total_unused} of {result.total_bindings} imported bindings")
    return result

"""Base parser class and data models for module symbol extraction."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional
import hashlib
import posixpath

from ..errors import ParseError


class ExportKind(Enum):
    """Kinds of exported bindings."""
    FUNCTION = "function"
    CLASS = "class"
    VARIABLE = "variable"
    DEFAULT = "default"
    INTERFACE = "interface"
    TYPE = "type"
    ENUM = "enum"


class ImportKind(Enum):
    """Shapes of an import declaration."""
    DEFAULT = "default"
    NAMED = "named"
    NAMESPACE = "namespace"
    SIDE_EFFECT = "side-effect"


class Confidence(Enum):
    """Confidence level for a dead-export finding."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class ClassMember:
    """A method or property declared in an exported class body."""
    name: str
    is_private: bool = False
    is_static: bool = False
    line: int = 0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "is_private": self.is_private,
            "is_static": self.is_static,
            "line": self.line
        }


@dataclass(frozen=True)
class ExportedSymbol:
    """A binding a module exposes to other modules.

    ``name`` is the exported name (``"default"`` for the default slot). Re-exports
    carry the specifier and the name they forward from.
    """
    name: str
    kind: ExportKind
    is_re_export: bool = False
    line: int = 0
    local_name: Optional[str] = None
    source_specifier: Optional[str] = None
    imported_name: Optional[str] = None
    declared_kind: Optional[ExportKind] = None
    members: tuple[ClassMember, ...] = ()

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        data = {
            "name": self.name,
            "kind": self.kind.value,
            "is_re_export": self.is_re_export,
            "line": self.line,
        }
        if self.local_name is not None:
            data["local_name"] = self.local_name
        if self.source_specifier is not None:
            data["source_specifier"] = self.source_specifier
            data["imported_name"] = self.imported_name
        if self.declared_kind is not None:
            data["declared_kind"] = self.declared_kind.value
        if self.members:
            data["members"] = [m.to_dict() for m in self.members]
        return data


@dataclass(frozen=True)
class ImportDeclaration:
    """One import (or re-export) relationship declared by a module."""
    source_specifier: str
    kind: ImportKind
    imported_names: tuple[str, ...] = ()
    line: int = 0
    local_names: tuple[str, ...] = ()
    is_re_export: bool = False
    is_type_only: bool = False
    is_dynamic: bool = False

    @property
    def is_relative(self) -> bool:
        return is_relative_specifier(self.source_specifier)

    @property
    def is_star_re_export(self) -> bool:
        """`export * from '...'` without an `as` name."""
        return self.is_re_export and self.kind == ImportKind.NAMESPACE and not self.local_names

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "source": self.source_specifier,
            "kind": self.kind.value,
            "imported_names": list(self.imported_names),
            "local_names": list(self.local_names),
            "line": self.line,
            "is_re_export": self.is_re_export,
            "is_type_only": self.is_type_only,
            "is_dynamic": self.is_dynamic
        }


@dataclass(frozen=True)
class UnusedImport:
    """An imported local binding the module body never mentions."""
    local_name: str
    imported_name: str  # "default", "*", or the exported name
    source_specifier: str
    kind: ImportKind
    line: int = 0
    is_type_only: bool = False


@dataclass(frozen=True)
class ModuleRecord:
    """Symbol table of one analyzed module. Immutable once built."""
    path: str
    exports: tuple[ExportedSymbol, ...] = ()
    imports: tuple[ImportDeclaration, ...] = ()
    warnings: tuple[str, ...] = ()
    unused_imports: tuple[UnusedImport, ...] = ()

    def export_names(self) -> list[str]:
        return [e.name for e in self.exports]

    def get_export(self, name: str) -> Optional[ExportedSymbol]:
        for export in self.exports:
            if export.name == name:
                return export
        return None

    @property
    def star_re_exports(self) -> list[ImportDeclaration]:
        """``export * from '...'`` declarations, in source order."""
        return [imp for imp in self.imports if imp.is_star_re_export]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "path": self.path,
            "exports": [e.to_dict() for e in self.exports],
            "imports": [i.to_dict() for i in self.imports],
            "warnings": list(self.warnings),
            "unused_imports": [u.local_name for u in self.unused_imports]
        }


@dataclass
class ParseResult:
    """Result of parsing a file."""
    file_path: str
    file_hash: str
    record: Optional[ModuleRecord] = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error_line: Optional[int] = None

    @property
    def success(self) -> bool:
        """Check if parsing was successful (no critical errors)."""
        return len(self.errors) == 0 and self.record is not None

    @property
    def export_count(self) -> int:
        return len(self.record.exports) if self.record else 0

    @property
    def import_count(self) -> int:
        return len(self.record.imports) if self.record else 0


@dataclass(frozen=True)
class ParseFailure:
    """A file that could not be parsed, kept in the report next to the results."""
    path: str
    message: str
    line: Optional[int] = None

    @classmethod
    def from_result(cls, result: ParseResult) -> "ParseFailure":
        return cls(
            path=result.file_path,
            message="; ".join(result.errors) or "no module record produced",
            line=result.error_line
        )

    def to_dict(self) -> dict:
        return {"path": self.path, "message": self.message, "line": self.line}


@dataclass(frozen=True)
class SourceFile:
    """A module path paired with its UTF-8 source text."""
    path: str
    text: str


def is_relative_specifier(specifier: str) -> bool:
    """True for specifiers resolved against the file system (./, ../, /)."""
    return (
        specifier in (".", "..")
        or specifier.startswith("./")
        or specifier.startswith("../")
        or specifier.startswith("/")
    )


def normalize_path(path: str) -> str:
    """Canonical module identifier: forward slashes, no '.' or '..' segments."""
    return posixpath.normpath(str(path).replace("\\", "/"))


class BaseParser(ABC):
    """Base class for all language-specific source parsers.

    Concrete parsers turn source text into a ``ModuleRecord``; nothing outside
    the parser sees parser-internal structures.
    """

    def __init__(self, project_root: Optional[Path] = None):
        self.project_root = project_root

    @abstractmethod
    def parse_source(self, path: str, text: str) -> ModuleRecord:
        """Parse source text. Raises ParseError on malformed input."""
        pass

    @abstractmethod
    def supported_extensions(self) -> list[str]:
        """Return list of file extensions this parser handles."""
        pass

    def can_parse(self, file_path: Path) -> bool:
        """Check if this parser can handle the given file."""
        name = Path(file_path).name.lower()
        return any(name.endswith(ext) for ext in self.supported_extensions())

    def parse_text(self, path: str, text: str) -> ParseResult:
        """Parse already-loaded text, isolating syntax errors in the result."""
        path = normalize_path(path)
        result = ParseResult(file_path=path, file_hash=self.compute_text_hash(text))

        try:
            record = self.parse_source(path, text)
        except ParseError as e:
            result.errors.append(e.message)
            result.error_line = e.line
            return result

        result.record = record
        result.warnings.extend(record.warnings)
        return result

    def parse_file(self, file_path: Path) -> ParseResult:
        """Read and parse a single file.

        The module is identified by its path relative to the project root
        when one is set.
        """
        module_path = self.get_relative_path(str(file_path))
        try:
            text = Path(file_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            result = ParseResult(file_path=module_path, file_hash="")
            result.errors.append(f"Failed to read file: {e}")
            return result

        return self.parse_text(module_path, text)

    def compute_text_hash(self, text: str) -> str:
        """Compute MD5 hash of source text for change detection."""
        return hashlib.md5(text.encode("utf-8")).hexdigest()

    def get_relative_path(self, file_path: str) -> str:
        """Get path relative to project root as string."""
        if self.project_root is None:
            return normalize_path(file_path)
        try:
            return normalize_path(str(Path(file_path).relative_to(self.project_root)))
        except ValueError:
            return normalize_path(file_path)

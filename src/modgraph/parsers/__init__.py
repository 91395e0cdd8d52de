"""Parsers that turn module source text into symbol tables."""

from .base_parser import (
    BaseParser,
    ClassMember,
    Confidence,
    ExportKind,
    ExportedSymbol,
    ImportDeclaration,
    ImportKind,
    ModuleRecord,
    ParseFailure,
    ParseResult,
    SourceFile,
)
from .typescript_parser import TypeScriptParser

__all__ = [
    "BaseParser",
    "ClassMember",
    "Confidence",
    "ExportKind",
    "ExportedSymbol",
    "ImportDeclaration",
    "ImportKind",
    "ModuleRecord",
    "ParseFailure",
    "ParseResult",
    "SourceFile",
    "TypeScriptParser"
]

"""TypeScript/JavaScript parser for extracting exports and import declarations."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import regex

from ..errors import ParseError
from .base_parser import (
    BaseParser,
    ClassMember,
    ExportKind,
    ExportedSymbol,
    ImportDeclaration,
    ImportKind,
    ModuleRecord,
    UnusedImport,
    normalize_path,
)
from .source_scanner import ScannedSource, scan_source


IDENT = r"[\w$]+"

STATEMENT_STARTERS = ("", ";", "}", ")", "]")

# Characters that keep a statement going across a line break
CONTINUATION_BEFORE = set(",=+-*/%&|^!?:<>.([{")
CONTINUATION_AFTER = set(",.?:+-*/%&|^=)]}>")


@dataclass
class ImportedBinding:
    """A local name introduced by an import declaration."""
    specifier: str
    imported_name: str  # "default", "*", or the exported name


@dataclass
class _Extraction:
    """Mutable accumulator for one parse; frozen into a ModuleRecord at the end."""
    path: str
    exports: list[tuple[int, ExportedSymbol]] = field(default_factory=list)
    imports: list[tuple[int, ImportDeclaration]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    consumed: list[tuple[int, int]] = field(default_factory=list)
    # Import and re-export clauses: names there refer to other modules
    clause_spans: list[tuple[int, int]] = field(default_factory=list)
    namespace_names: set[str] = field(default_factory=set)

    def is_consumed(self, pos: int) -> bool:
        return any(start <= pos < end for start, end in self.consumed)

    def in_clause(self, pos: int) -> bool:
        return any(start <= pos < end for start, end in self.clause_spans)


class TypeScriptParser(BaseParser):
    """Parser for TypeScript and JavaScript modules (.ts, .tsx, .js, ...)."""

    # Regex patterns, matched against comment- and literal-masked source
    PATTERNS = {
        # Statement keywords at the top level
        "statement": regex.compile(r"(?<![\w$.#])(import|export)(?![\w$])"),

        # Imports
        "import_side_effect": regex.compile(r"import\s*(?P<q>['\"])"),
        "import_equals": regex.compile(
            rf"import\s+(?:type\s+)?(?P<local>{IDENT})\s*=\s*require\s*\(\s*(?P<q>['\"])"
        ),
        "import_alias": regex.compile(rf"import\s+{IDENT}\s*=(?!=)(?!\s*require\s*\()"),
        "import_from": regex.compile(
            r"import\s+(?P<type>type\s+(?=[\w${*]))?(?P<clause>[^;'\"]*?)\s*(?<![\w$])from\s*(?P<q>['\"])"
        ),
        "import_clause": regex.compile(
            rf"(?:(?P<default>{IDENT})\s*(?:,\s*|$))?"
            rf"(?:(?P<named>\{{[^{{}}]*\}})|\*\s*as\s+(?P<ns>{IDENT}))?"
        ),
        "specifier": regex.compile(
            rf"(?:(?P<type>type)\s+(?=[\w$'\"]))?(?P<name>{IDENT}|['\"][^'\"]*['\"])"
            rf"(?:\s+as\s+(?P<alias>{IDENT}|['\"][^'\"]*['\"]))?"
        ),

        # Dynamic forms, at any depth
        "dynamic_import": regex.compile(r"(?<![\w$.])import\s*\(\s*(?P<arg>.)", regex.DOTALL),
        "require": regex.compile(r"(?<![\w$.])require\s*\(\s*(?P<arg>.)", regex.DOTALL),

        # Exports
        "export_star": regex.compile(
            rf"export\s+(?P<type>type\s+)?\*\s*(?:as\s+(?P<alias>{IDENT}|['\"][^'\"]*['\"])\s*)?from\s*(?P<q>['\"])"
        ),
        "export_list": regex.compile(
            r"export\s+(?P<type>type\s+)?\{(?P<specs>[^{}]*)\}(?:\s*from\s*(?P<q>['\"]))?"
        ),
        "export_default": regex.compile(r"export\s+default(?![\w$])\s*"),
        "export_assign": regex.compile(r"export\s*=(?!=)\s*"),
        "export_as_namespace": regex.compile(rf"export\s+as\s+namespace\s+{IDENT}"),
        "export_import_equals": regex.compile(rf"export\s+import\s+(?P<name>{IDENT})\s*="),
        "export_decl": regex.compile(
            r"export\s+(?:declare\s+)?(?:"
            rf"(?P<async>async\s+)?function(?![\w$])\s*\*?\s*(?P<func>{IDENT})"
            rf"|(?:abstract\s+)?class\s+(?P<cls>{IDENT})"
            rf"|interface\s+(?P<iface>{IDENT})"
            rf"|type\s+(?P<alias>{IDENT})"
            rf"|(?:const\s+)?enum\s+(?P<enum>{IDENT})"
            rf"|(?:namespace|module)\s+(?P<ns>{IDENT})"
            r"|(?P<decl>const|let|var|using)\s+"
            r")"
        ),

        # Default export bodies
        "default_function": regex.compile(rf"(?:async\s+)?function(?![\w$])\s*\*?\s*(?P<name>{IDENT})?"),
        "default_class": regex.compile(
            rf"(?:abstract\s+)?class(?![\w$])\s*(?P<name>(?!extends(?![\w$])|implements(?![\w$])){IDENT})?"
        ),
        "default_interface": regex.compile(rf"interface\s+(?P<name>{IDENT})"),
        "default_identifier": regex.compile(rf"(?P<name>(?!\d){IDENT})[ \t]*(?:;|\r?\n|\}}|\Z)"),

        # Module-private declarations (for the kind of `export { local }`)
        "local_decl": regex.compile(
            r"(?<![\w$.])(?:declare\s+)?(?:"
            rf"(?:async\s+)?function(?![\w$])\s*\*?\s*(?P<func>{IDENT})"
            rf"|(?:abstract\s+)?class\s+(?P<cls>{IDENT})"
            rf"|interface\s+(?P<iface>{IDENT})"
            rf"|type\s+(?P<alias>{IDENT})\s*(?:<[^=]*>)?\s*="
            rf"|(?:const\s+)?enum\s+(?P<enum>{IDENT})"
            rf"|(?:const|let|var)\s+(?P<var>{IDENT})"
            r")"
        ),

        # Class members
        "class_member": regex.compile(
            r"(?P<mods>(?:(?:public|private|protected|static|readonly|abstract|declare|override|async|accessor)\s+)*)"
            r"(?:(?:get|set)\s+(?=[#\w$]))?(?:\*\s*)?"
            rf"(?P<name>#?{IDENT})\s*[?!]?\s*(?=[(<:=;]|\n|\}}|\Z)"
        ),
        "binding": regex.compile(rf"\s*(?:(?P<name>{IDENT})|(?P<pattern>[{{\[]))"),

        # Identifier references; `obj.name` member access is not one, `...name` is
        "reference": regex.compile(r"(?<![\w$#])(?<!(?<!\.)\.)[A-Za-z_$][\w$]*"),
    }

    def supported_extensions(self) -> list[str]:
        return [".ts", ".tsx", ".mts", ".cts", ".js", ".jsx", ".mjs", ".cjs"]

    def parse_source(self, path: str, text: str) -> ModuleRecord:
        """Parse a module and return its exported symbols and imports."""
        path = normalize_path(path)
        jsx = Path(path).suffix.lower() in (".tsx", ".jsx")
        scanned = scan_source(path, text, jsx=jsx)

        state = _Extraction(path=path)
        local_kinds = self._collect_local_declarations(scanned)
        bindings: dict[str, ImportedBinding] = {}
        pending_local_exports: list[tuple[int, str, str]] = []

        # First pass: top-level import/export statements, in source order
        for match in self.PATTERNS["statement"].finditer(scanned.masked):
            pos = match.start()
            if scanned.depth_at(pos) != 0 or state.is_consumed(pos):
                continue
            if not self._at_statement_start(scanned, pos):
                continue

            if match.group(1) == "import":
                following = scanned.masked[match.end():match.end() + 40].lstrip()
                if following.startswith("(") or following.startswith("."):
                    # import('x') and import.meta are expressions
                    continue
                self._parse_import(scanned, pos, state, bindings)
            else:
                self._parse_export(scanned, pos, state, local_kinds, pending_local_exports)

        # Local export lists may name bindings imported further down
        for pos, local, exported in pending_local_exports:
            state.exports.append((pos, self._local_export_symbol(
                scanned, pos, local, exported, local_kinds, bindings
            )))

        # Second pass: dynamic import() and require() anywhere in the module
        self._collect_dynamic_imports(scanned, state)

        exports = self._check_duplicates(scanned, state)
        imports = [decl for _, decl in sorted(state.imports, key=lambda item: item[0])]

        return ModuleRecord(
            path=path,
            exports=tuple(exports),
            imports=tuple(imports),
            warnings=tuple(state.warnings),
            unused_imports=self._unused_imports(scanned, state, imports, bindings)
        )

    # ── Statement helpers ──

    def _at_statement_start(self, scanned: ScannedSource, pos: int) -> bool:
        """Only keywords that begin a statement count (ASI-aware)."""
        prev = scanned.previous_significant(pos)
        if prev in STATEMENT_STARTERS:
            return True
        between = scanned.masked[scanned.masked.rfind(prev, 0, pos) + 1:pos]
        return "\n" in between

    def _statement_end(self, scanned: ScannedSource, start: int) -> int:
        """Offset of the end of the statement beginning at ``start``."""
        masked = scanned.masked
        n = len(masked)
        base = scanned.depth_at(start)
        k = start
        while k < n:
            ch = masked[k]
            depth = scanned.depth_at(k)
            if depth < base:
                return k
            if depth == base and ch == ";":
                return k + 1
            if depth == base and ch == "\n" and self._line_ends_statement(masked, start, k):
                return k
            k += 1
        return n

    def _line_ends_statement(self, masked: str, start: int, k: int) -> bool:
        i = k - 1
        while i >= start and masked[i].isspace():
            i -= 1
        if i < start:
            return False
        prev = masked[i]
        # A bare '>' closes a type argument list; '=>' continues into an arrow body
        if prev in CONTINUATION_BEFORE and not (prev == ">" and i > 0 and masked[i - 1] != "="):
            return False

        j = k + 1
        while j < len(masked) and masked[j].isspace():
            j += 1
        if j >= len(masked):
            return True
        if masked[j] in CONTINUATION_AFTER:
            return False
        word = regex.match(r"[\w$]+", masked[j:j + 12])
        if word and word.group(0) in ("as", "satisfies", "in", "instanceof", "extends", "implements"):
            return False
        return True

    def _string_after(self, scanned: ScannedSource, match, group: str = "q") -> tuple[str, int]:
        """Value and end offset of the string literal whose quote a pattern matched."""
        literal = scanned.string_at(match.start(group))
        if literal is None:
            raise ParseError(scanned.path, "expected a string literal", scanned.line_of(match.start(group)))
        return literal.value, literal.end

    def _name_token(self, scanned: ScannedSource, token: str, offset: int) -> str:
        """Identifier, or the value of a string-literal module export name."""
        if token[:1] in ("'", '"'):
            literal = scanned.string_at(offset)
            if literal is None:
                raise ParseError(scanned.path, "malformed export name", scanned.line_of(offset))
            return literal.value
        return token

    # ── Imports ──

    def _parse_import(
        self,
        scanned: ScannedSource,
        pos: int,
        state: _Extraction,
        bindings: dict[str, ImportedBinding]
    ) -> None:
        """Parse one top-level import statement."""
        masked = scanned.masked
        line = scanned.line_of(pos)

        match = self.PATTERNS["import_side_effect"].match(masked, pos)
        if match:
            specifier, end = self._string_after(scanned, match)
            state.imports.append((pos, ImportDeclaration(
                source_specifier=specifier,
                kind=ImportKind.SIDE_EFFECT,
                line=line
            )))
            state.consumed.append((pos, end))
            return

        match = self.PATTERNS["import_equals"].match(masked, pos)
        if match:
            specifier, end = self._string_after(scanned, match)
            local = match.group("local")
            bindings[local] = ImportedBinding(specifier, "*")
            state.imports.append((pos, ImportDeclaration(
                source_specifier=specifier,
                kind=ImportKind.NAMESPACE,
                line=line,
                local_names=(local,)
            )))
            state.consumed.append((pos, end))
            state.clause_spans.append((pos, end))
            return

        if self.PATTERNS["import_alias"].match(masked, pos):
            # `import Alias = Namespace.Member` names a local entity
            return

        match = self.PATTERNS["import_from"].match(masked, pos)
        if not match:
            raise ParseError(scanned.path, "malformed import statement", line)

        specifier, end = self._string_after(scanned, match)
        state.consumed.append((pos, end))
        state.clause_spans.append((pos, end))
        type_only = bool(match.group("type"))
        clause = match.group("clause").strip()
        clause_offset = match.start("clause") + (len(match.group("clause")) - len(match.group("clause").lstrip()))

        if not clause and type_only:
            # `import type from './x'`: a default import named "type"
            clause, type_only = "type", False

        clause_match = self.PATTERNS["import_clause"].fullmatch(clause)
        if not clause or not clause_match or not any(clause_match.group("default", "named", "ns")):
            raise ParseError(scanned.path, f"malformed import clause '{clause}'", line)

        default_name = clause_match.group("default")
        if default_name:
            bindings[default_name] = ImportedBinding(specifier, "default")
            state.imports.append((pos, ImportDeclaration(
                source_specifier=specifier,
                kind=ImportKind.DEFAULT,
                imported_names=("default",),
                line=line,
                local_names=(default_name,),
                is_type_only=type_only
            )))

        if clause_match.group("ns"):
            local = clause_match.group("ns")
            bindings[local] = ImportedBinding(specifier, "*")
            state.imports.append((pos, ImportDeclaration(
                source_specifier=specifier,
                kind=ImportKind.NAMESPACE,
                line=line,
                local_names=(local,),
                is_type_only=type_only
            )))

        named = clause_match.group("named")
        if named is not None:
            specs = self._parse_specifiers(
                scanned, named[1:-1], clause_offset + clause_match.start("named") + 1, line
            )
            if specs:
                for imported, local, _ in specs:
                    bindings[local] = ImportedBinding(specifier, imported)
                state.imports.append((pos, ImportDeclaration(
                    source_specifier=specifier,
                    kind=ImportKind.NAMED,
                    imported_names=_unique(imported for imported, _, _ in specs),
                    line=line,
                    local_names=tuple(local for _, local, _ in specs),
                    is_type_only=type_only or all(is_type for _, _, is_type in specs)
                )))
            elif not default_name:
                # `import {} from './x'` only evaluates the module
                state.imports.append((pos, ImportDeclaration(
                    source_specifier=specifier,
                    kind=ImportKind.SIDE_EFFECT,
                    line=line
                )))

    def _parse_specifiers(
        self,
        scanned: ScannedSource,
        body: str,
        offset: int,
        line: int
    ) -> list[tuple[str, str, bool]]:
        """Parse `a, b as c, type d` into (name, alias, is_type) triples."""
        specs = []
        cursor = 0
        for part in body.split(","):
            part_offset = offset + cursor + (len(part) - len(part.lstrip()))
            cursor += len(part) + 1
            stripped = part.strip()
            if not stripped:
                continue
            match = self.PATTERNS["specifier"].fullmatch(stripped)
            if not match:
                raise ParseError(scanned.path, f"malformed specifier '{stripped}'", line)
            name = self._name_token(scanned, match.group("name"), part_offset + match.start("name"))
            alias_token = match.group("alias")
            alias = (
                self._name_token(scanned, alias_token, part_offset + match.start("alias"))
                if alias_token else name
            )
            specs.append((name, alias, bool(match.group("type"))))
        return specs

    def _collect_dynamic_imports(self, scanned: ScannedSource, state: _Extraction) -> None:
        """import('x') and require('x') calls become opaque namespace imports."""
        for pattern_name, label in (("dynamic_import", "import"), ("require", "require")):
            for match in self.PATTERNS[pattern_name].finditer(scanned.masked):
                pos = match.start()
                if state.is_consumed(pos):
                    continue
                line = scanned.line_of(pos)
                literal = scanned.string_at(match.start("arg"))
                closing = regex.match(r"\s*[),]", scanned.masked[literal.end:]) if literal else None
                if literal is None or closing is None:
                    state.warnings.append(
                        f"Dynamic {label}() with non-literal specifier at line {line}"
                    )
                    continue
                state.imports.append((pos, ImportDeclaration(
                    source_specifier=literal.value,
                    kind=ImportKind.NAMESPACE,
                    line=line,
                    is_dynamic=True
                )))

    def _unused_imports(
        self,
        scanned: ScannedSource,
        state: _Extraction,
        imports: list[ImportDeclaration],
        bindings: dict[str, ImportedBinding]
    ) -> tuple[UnusedImport, ...]:
        """Imported locals never referenced outside import and re-export clauses.

        Type positions and local export lists count as references.
        """
        referenced = {
            match.group()
            for match in self.PATTERNS["reference"].finditer(scanned.masked)
            if not state.in_clause(match.start())
        }

        unused = []
        for decl in imports:
            if decl.is_re_export or decl.is_dynamic:
                continue
            for local in decl.local_names:
                if local in referenced:
                    continue
                binding = bindings.get(local)
                unused.append(UnusedImport(
                    local_name=local,
                    imported_name=binding.imported_name if binding else "*",
                    source_specifier=decl.source_specifier,
                    kind=decl.kind,
                    line=decl.line,
                    is_type_only=decl.is_type_only
                ))
        return tuple(unused)

    # ── Exports ──

    def _parse_export(
        self,
        scanned: ScannedSource,
        pos: int,
        state: _Extraction,
        local_kinds: dict[str, ExportKind],
        pending_local_exports: list[tuple[int, str, str]]
    ) -> None:
        """Parse one top-level export statement."""
        masked = scanned.masked
        line = scanned.line_of(pos)

        match = self.PATTERNS["export_star"].match(masked, pos)
        if match:
            specifier, end = self._string_after(scanned, match)
            state.consumed.append((pos, end))
            state.clause_spans.append((pos, end))
            alias_token = match.group("alias")
            alias = self._name_token(scanned, alias_token, match.start("alias")) if alias_token else None
            state.imports.append((pos, ImportDeclaration(
                source_specifier=specifier,
                kind=ImportKind.NAMESPACE,
                line=line,
                local_names=(alias,) if alias else (),
                is_re_export=True,
                is_type_only=bool(match.group("type"))
            )))
            if alias:
                state.exports.append((pos, ExportedSymbol(
                    name=alias,
                    kind=ExportKind.VARIABLE,
                    is_re_export=True,
                    line=line,
                    source_specifier=specifier,
                    imported_name="*"
                )))
            return

        match = self.PATTERNS["export_list"].match(masked, pos)
        if match:
            specs = self._parse_specifiers(scanned, match.group("specs"), match.start("specs"), line)
            if match.group("q"):
                specifier, end = self._string_after(scanned, match)
                state.consumed.append((pos, end))
                state.clause_spans.append((pos, end))
                self._add_re_exports(pos, line, specifier, specs, bool(match.group("type")), state)
            else:
                state.consumed.append((pos, match.end()))
                for local, exported, _ in specs:
                    pending_local_exports.append((pos, local, exported))
            return

        match = self.PATTERNS["export_default"].match(masked, pos)
        if match:
            symbol = self._parse_default(scanned, pos, match.end(), line, local_kinds)
            state.exports.append((pos, symbol))
            return

        match = self.PATTERNS["export_assign"].match(masked, pos)
        if match:
            symbol = self._parse_default(scanned, pos, match.end(), line, local_kinds)
            state.exports.append((pos, symbol))
            return

        if self.PATTERNS["export_as_namespace"].match(masked, pos):
            # UMD global declaration, not a module export
            return

        match = self.PATTERNS["export_import_equals"].match(masked, pos)
        if match:
            state.exports.append((pos, ExportedSymbol(
                name=match.group("name"),
                kind=ExportKind.VARIABLE,
                line=line
            )))
            return

        match = self.PATTERNS["export_decl"].match(masked, pos)
        if not match:
            raise ParseError(scanned.path, "unrecognized export statement", line)

        if match.group("func"):
            state.exports.append((pos, ExportedSymbol(
                name=match.group("func"), kind=ExportKind.FUNCTION, line=line
            )))
        elif match.group("cls"):
            state.exports.append((pos, ExportedSymbol(
                name=match.group("cls"),
                kind=ExportKind.CLASS,
                line=line,
                members=self._class_members(scanned, match.end())
            )))
        elif match.group("iface"):
            state.exports.append((pos, ExportedSymbol(
                name=match.group("iface"), kind=ExportKind.INTERFACE, line=line
            )))
        elif match.group("alias"):
            state.exports.append((pos, ExportedSymbol(
                name=match.group("alias"), kind=ExportKind.TYPE, line=line
            )))
        elif match.group("enum"):
            state.exports.append((pos, ExportedSymbol(
                name=match.group("enum"), kind=ExportKind.ENUM, line=line
            )))
        elif match.group("ns"):
            state.namespace_names.add(match.group("ns"))
            state.exports.append((pos, ExportedSymbol(
                name=match.group("ns"), kind=ExportKind.VARIABLE, line=line
            )))
        else:
            end = self._statement_end(scanned, match.end())
            names = self._declarator_names(scanned, match.end(), end, line)
            if not names:
                raise ParseError(scanned.path, "export declaration without a binding", line)
            for name in names:
                state.exports.append((pos, ExportedSymbol(
                    name=name, kind=ExportKind.VARIABLE, line=line
                )))

    def _add_re_exports(
        self,
        pos: int,
        line: int,
        specifier: str,
        specs: list[tuple[str, str, bool]],
        type_only: bool,
        state: _Extraction
    ) -> None:
        """`export { a, b as c } from './y'` re-exports y's bindings."""
        if not specs:
            state.imports.append((pos, ImportDeclaration(
                source_specifier=specifier,
                kind=ImportKind.SIDE_EFFECT,
                line=line,
                is_re_export=True
            )))
            return

        state.imports.append((pos, ImportDeclaration(
            source_specifier=specifier,
            kind=ImportKind.NAMED,
            imported_names=_unique(name for name, _, _ in specs),
            line=line,
            local_names=tuple(exported for _, exported, _ in specs),
            is_re_export=True,
            is_type_only=type_only or all(is_type for _, _, is_type in specs)
        )))
        for imported, exported, _ in specs:
            state.exports.append((pos, ExportedSymbol(
                name=exported,
                kind=ExportKind.DEFAULT if exported == "default" else ExportKind.VARIABLE,
                is_re_export=True,
                line=line,
                source_specifier=specifier,
                imported_name=imported
            )))

    def _local_export_symbol(
        self,
        scanned: ScannedSource,
        pos: int,
        local: str,
        exported: str,
        local_kinds: dict[str, ExportKind],
        bindings: dict[str, ImportedBinding]
    ) -> ExportedSymbol:
        """Entry of `export { local as exported }` without a `from` clause."""
        line = scanned.line_of(pos)
        binding = bindings.get(local)
        if binding is not None:
            return ExportedSymbol(
                name=exported,
                kind=ExportKind.DEFAULT if exported == "default" else ExportKind.VARIABLE,
                is_re_export=True,
                line=line,
                local_name=local,
                source_specifier=binding.specifier,
                imported_name=binding.imported_name
            )

        declared = local_kinds.get(local, ExportKind.VARIABLE)
        if exported == "default":
            return ExportedSymbol(
                name="default",
                kind=ExportKind.DEFAULT,
                line=line,
                local_name=local,
                declared_kind=declared
            )
        return ExportedSymbol(
            name=exported,
            kind=declared,
            line=line,
            local_name=local if local != exported else None
        )

    def _parse_default(
        self,
        scanned: ScannedSource,
        pos: int,
        body_start: int,
        line: int,
        local_kinds: dict[str, ExportKind]
    ) -> ExportedSymbol:
        """`export default ...` and TypeScript's `export = ...`."""
        masked = scanned.masked

        match = self.PATTERNS["default_function"].match(masked, body_start)
        if match:
            return ExportedSymbol(
                name="default",
                kind=ExportKind.DEFAULT,
                line=line,
                local_name=match.group("name"),
                declared_kind=ExportKind.FUNCTION
            )

        match = self.PATTERNS["default_class"].match(masked, body_start)
        if match:
            return ExportedSymbol(
                name="default",
                kind=ExportKind.DEFAULT,
                line=line,
                local_name=match.group("name"),
                declared_kind=ExportKind.CLASS,
                members=self._class_members(scanned, match.end())
            )

        match = self.PATTERNS["default_interface"].match(masked, body_start)
        if match:
            return ExportedSymbol(
                name="default",
                kind=ExportKind.DEFAULT,
                line=line,
                local_name=match.group("name"),
                declared_kind=ExportKind.INTERFACE
            )

        if body_start >= len(masked) or masked[body_start] in ";}":
            raise ParseError(scanned.path, "export default without a value", line)

        match = self.PATTERNS["default_identifier"].match(masked, body_start)
        if match:
            name = match.group("name")
            return ExportedSymbol(
                name="default",
                kind=ExportKind.DEFAULT,
                line=line,
                local_name=name,
                declared_kind=local_kinds.get(name, ExportKind.VARIABLE)
            )

        return ExportedSymbol(
            name="default",
            kind=ExportKind.DEFAULT,
            line=line,
            declared_kind=ExportKind.VARIABLE
        )

    def _check_duplicates(self, scanned: ScannedSource, state: _Extraction) -> list[ExportedSymbol]:
        """Drop merged/overloaded duplicates; reject real duplicate exports."""
        seen: dict[str, ExportedSymbol] = {}
        exports = []
        for _, symbol in sorted(state.exports, key=lambda item: item[0]):
            previous = seen.get(symbol.name)
            if previous is None:
                seen[symbol.name] = symbol
                exports.append(symbol)
                continue
            if self._may_merge(previous, symbol, state):
                continue
            raise ParseError(scanned.path, f"duplicate export '{symbol.name}'", symbol.line)
        return exports

    def _may_merge(self, first: ExportedSymbol, second: ExportedSymbol, state: _Extraction) -> bool:
        if first.name in state.namespace_names:
            return True
        kinds = {first.kind, second.kind}
        if kinds == {ExportKind.FUNCTION} or kinds == {ExportKind.ENUM}:
            return True
        # Interfaces merge with interfaces and classes of the same name
        if ExportKind.INTERFACE in kinds and kinds <= {ExportKind.INTERFACE, ExportKind.CLASS}:
            return True
        # Overloaded `export default function`
        return (
            first.kind == second.kind == ExportKind.DEFAULT
            and first.declared_kind == second.declared_kind == ExportKind.FUNCTION
        )

    # ── Declarations ──

    def _collect_local_declarations(self, scanned: ScannedSource) -> dict[str, ExportKind]:
        """Top-level declarations by name, exported or not."""
        kinds: dict[str, ExportKind] = {}
        group_kinds = (
            ("func", ExportKind.FUNCTION),
            ("cls", ExportKind.CLASS),
            ("iface", ExportKind.INTERFACE),
            ("alias", ExportKind.TYPE),
            ("enum", ExportKind.ENUM),
            ("var", ExportKind.VARIABLE),
        )
        for match in self.PATTERNS["local_decl"].finditer(scanned.masked):
            if scanned.depth_at(match.start()) != 0:
                continue
            for group, kind in group_kinds:
                name = match.group(group)
                if name:
                    kinds.setdefault(name, kind)
                    break
        return kinds

    def _class_members(self, scanned: ScannedSource, after: int) -> tuple[ClassMember, ...]:
        """Members of the class body opening at the first '{' after ``after``."""
        masked = scanned.masked
        base = scanned.depth_at(after)
        open_pos = -1
        for k in range(after, len(masked)):
            if masked[k] == "{" and scanned.depth_at(k) == base:
                open_pos = k
                break
            if masked[k] == ";" and scanned.depth_at(k) == base:
                # `export declare class X;`-style forward declaration
                return ()
        if open_pos < 0:
            return ()

        close_pos = len(masked)
        for k in range(open_pos + 1, len(masked)):
            if masked[k] == "}" and scanned.depth_at(k) == base:
                close_pos = k
                break

        members = []
        seen = set()
        body_depth = base + 1
        for match in self.PATTERNS["class_member"].finditer(masked, open_pos + 1, close_pos):
            start = match.start()
            if scanned.depth_at(start) != body_depth:
                continue
            prev = scanned.previous_significant(start)
            if prev not in ("{", ";", "}", ")") and "\n" not in masked[masked.rfind(prev, 0, start) + 1:start]:
                continue
            name = match.group("name")
            mods = match.group("mods").split()
            if name == "constructor" or name in seen:
                # Overload signatures and get/set pairs
                continue
            seen.add(name)
            members.append(ClassMember(
                name=name,
                is_private="private" in mods or name.startswith("#") or name.startswith("_"),
                is_static="static" in mods,
                line=scanned.line_of(start)
            ))
        return tuple(members)

    def _declarator_names(self, scanned: ScannedSource, start: int, end: int, line: int) -> list[str]:
        """Binding names of `const a = 1, { b, c: d } = obj, [e] = arr`."""
        names = []
        for seg_start, seg_end in self._split_declarators(scanned, start, end):
            match = self.PATTERNS["binding"].match(scanned.masked, seg_start, seg_end)
            if not match:
                if scanned.masked[seg_start:seg_end].strip():
                    raise ParseError(scanned.path, "malformed variable declaration", line)
                continue
            if match.group("name"):
                names.append(match.group("name"))
                continue
            open_pos = match.start("pattern")
            close_pos = self._matching_close(scanned, open_pos)
            names.extend(_pattern_bindings(scanned.masked[open_pos:close_pos + 1]))
        return names

    def _split_declarators(self, scanned: ScannedSource, start: int, end: int) -> list[tuple[int, int]]:
        """Split a declaration list on top-level commas outside type annotations."""
        masked = scanned.masked
        base = scanned.depth_at(start)
        segments = []
        seg_start = start
        in_type = False
        in_init = False
        angle = 0
        for k in range(start, end):
            if scanned.depth_at(k) != base:
                continue
            ch = masked[k]
            prev_ch = masked[k - 1] if k > 0 else ""
            next_ch = masked[k + 1] if k + 1 < len(masked) else ""
            if ch == ":" and not in_init:
                in_type = True
            elif ch == "=" and next_ch not in "=>" and prev_ch not in "=!<>":
                in_type = False
                in_init = True
                angle = 0
            elif ch == "<" and (in_type or self._opens_type_arguments(masked, k, start)):
                angle += 1
            elif ch == ">" and prev_ch != "=" and angle:
                angle = max(0, angle - 1)
            elif ch == "," and angle == 0:
                segments.append((seg_start, k))
                seg_start = k + 1
                in_type = False
                in_init = False
        segments.append((seg_start, end))
        return segments

    def _opens_type_arguments(self, masked: str, k: int, start: int) -> bool:
        """`Map<K, V>` glued to a name, or `<T,>(x: T) => x` right after `=`.

        A spaced `a < b` stays a comparison.
        """
        if k > start and (masked[k - 1].isalnum() or masked[k - 1] in "_$"):
            return True
        i = k - 1
        while i >= start and masked[i].isspace():
            i -= 1
        return i >= start and masked[i] == "=" and (i == start or masked[i - 1] not in "=!<>")

    def _matching_close(self, scanned: ScannedSource, open_pos: int) -> int:
        base = scanned.depth_at(open_pos)
        for k in range(open_pos + 1, len(scanned.masked)):
            if scanned.masked[k] in ")]}" and scanned.depth_at(k) == base:
                return k
        return len(scanned.masked) - 1


def _unique(names) -> tuple[str, ...]:
    """Ordered, duplicate-free tuple."""
    return tuple(dict.fromkeys(names))


def _split_top_level(text: str) -> list[str]:
    """Split on commas that are not nested in brackets."""
    parts = []
    depth = 0
    current = []
    for ch in text:
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return parts


def _pattern_bindings(pattern: str) -> list[str]:
    """Names bound by a destructuring pattern (masked text, brackets included)."""
    pattern = pattern.strip()
    if not pattern:
        return []
    if pattern[0] not in "{[":
        # Plain target, possibly with a default value
        name = _split_assignment(pattern)[0].strip()
        return [name] if regex.fullmatch(IDENT, name) else []

    is_object = pattern[0] == "{"
    names = []
    for element in _split_top_level(pattern[1:-1]):
        element = element.strip()
        if not element:
            continue
        if element.startswith("..."):
            names.extend(_pattern_bindings(element[3:]))
            continue
        if is_object:
            key, target = _split_property(element)
            names.extend(_pattern_bindings(target if target is not None else key))
        else:
            names.extend(_pattern_bindings(element))
    return names


def _split_assignment(element: str) -> tuple[str, Optional[str]]:
    """`target = default` -> (target, default) at nesting level zero."""
    depth = 0
    for i, ch in enumerate(element):
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif ch == "=" and depth == 0 and element[i + 1:i + 2] not in ("=", ">"):
            return element[:i], element[i + 1:]
    return element, None


def _split_property(element: str) -> tuple[str, Optional[str]]:
    """`key: target` -> (key, target); shorthand `key = 1` -> (key, None)."""
    depth = 0
    for i, ch in enumerate(element):
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif ch == ":" and depth == 0:
            return element[:i], element[i + 1:]
    return element, None

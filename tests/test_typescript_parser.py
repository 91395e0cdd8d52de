import pytest

from modgraph.errors import ParseError
from modgraph.parsers.base_parser import ExportKind, ImportKind
from modgraph.parsers.typescript_parser import TypeScriptParser


def test_exported_declarations(parse):
    record = parse("""\
        export function alpha() {}
        export async function beta() {}
        export function* gamma() {}
        export class Delta {}
        export abstract class Epsilon {}
        export const zeta = 1, eta = 2;
        export let theta;
        export var iota = () => {
          return 1;
        };
        export interface Kappa { x: number }
        export type Lambda = string;
        export enum Mu { A, B }
        function hidden() {}
        const alsoHidden = 1;
        """)

    assert record.export_names() == [
        "alpha", "beta", "gamma", "Delta", "Epsilon", "zeta", "eta",
        "theta", "iota", "Kappa", "Lambda", "Mu"
    ]
    kinds = {e.name: e.kind for e in record.exports}
    assert kinds["alpha"] == ExportKind.FUNCTION
    assert kinds["gamma"] == ExportKind.FUNCTION
    assert kinds["Epsilon"] == ExportKind.CLASS
    assert kinds["iota"] == ExportKind.VARIABLE
    assert kinds["Kappa"] == ExportKind.INTERFACE
    assert kinds["Lambda"] == ExportKind.TYPE
    assert kinds["Mu"] == ExportKind.ENUM
    assert record.get_export("Delta").line == 4
    assert not any(e.is_re_export for e in record.exports)


def test_default_exports(parse):
    named = parse("export default function main() {}\n").exports[0]
    assert named.name == "default"
    assert named.kind == ExportKind.DEFAULT
    assert named.declared_kind == ExportKind.FUNCTION
    assert named.local_name == "main"

    anonymous = parse("export default class {}\n").exports[0]
    assert anonymous.declared_kind == ExportKind.CLASS
    assert anonymous.local_name is None

    identifier = parse("const x = 1;\nexport default x;\n").exports[0]
    assert identifier.declared_kind == ExportKind.VARIABLE
    assert identifier.local_name == "x"

    expression = parse("export default { a: 1 };\n").exports[0]
    assert expression.name == "default"
    assert expression.local_name is None


def test_class_member_visibility(parse):
    record = parse("""\
        export class Service {
          private cache = new Map();
          #secret = 1;
          static create() { return new Service(); }
          run(): void {}
          _helper() {}
        }
        """)

    members = {m.name: m for m in record.get_export("Service").members}
    assert list(members) == ["cache", "#secret", "create", "run", "_helper"]
    assert members["cache"].is_private
    assert members["#secret"].is_private
    assert members["_helper"].is_private
    assert not members["run"].is_private
    assert members["create"].is_static


def test_import_shapes(parse):
    record = parse("""\
        import D from './d';
        import { a, b as c, type T } from './named';
        import * as NS from './ns';
        import './side-effect';
        import E, { f } from './combo';
        import type { Only } from './types';
        import legacy = require('./legacy');
        const lazy = import('./lazy');
        const cjs = require('./cjs');
        """)

    shapes = [(i.source_specifier, i.kind, i.imported_names) for i in record.imports]
    assert shapes == [
        ("./d", ImportKind.DEFAULT, ("default",)),
        ("./named", ImportKind.NAMED, ("a", "b", "T")),
        ("./ns", ImportKind.NAMESPACE, ()),
        ("./side-effect", ImportKind.SIDE_EFFECT, ()),
        ("./combo", ImportKind.DEFAULT, ("default",)),
        ("./combo", ImportKind.NAMED, ("f",)),
        ("./types", ImportKind.NAMED, ("Only",)),
        ("./legacy", ImportKind.NAMESPACE, ()),
        ("./lazy", ImportKind.NAMESPACE, ()),
        ("./cjs", ImportKind.NAMESPACE, ()),
    ]
    assert record.imports[1].local_names == ("a", "c", "T")
    assert record.imports[6].is_type_only
    assert not record.imports[1].is_type_only
    assert [i.is_dynamic for i in record.imports[-3:]] == [False, True, True]
    assert record.exports == ()


def test_non_literal_dynamic_import_warns(parse):
    record = parse("const m = import(modName);\n")

    assert record.imports == ()
    assert len(record.warnings) == 1
    assert "non-literal" in record.warnings[0]


def test_re_exports(parse):
    record = parse("""\
        import { helper } from './helpers';
        export { helper };
        export { x, y as z } from './y';
        export * from './star';
        export * as ns from './nsmod';
        """)

    assert record.export_names() == ["helper", "x", "z", "ns"]
    helper = record.get_export("helper")
    assert helper.is_re_export
    assert helper.source_specifier == "./helpers"
    assert record.get_export("z").imported_name == "y"
    assert record.get_export("ns").imported_name == "*"

    re_export = record.imports[1]
    assert re_export.is_re_export
    assert re_export.imported_names == ("x", "y")
    assert [i.source_specifier for i in record.star_re_exports] == ["./star"]
    assert [i.is_star_re_export for i in record.imports] == [False, False, True, False]


def test_local_export_list(parse):
    record = parse("""\
        function helper() {}
        const value = 1;
        export { helper, value as renamed, value as default };
        """)

    assert record.export_names() == ["helper", "renamed", "default"]
    assert record.get_export("helper").kind == ExportKind.FUNCTION
    assert record.get_export("renamed").local_name == "value"
    assert record.get_export("default").kind == ExportKind.DEFAULT
    assert not record.get_export("helper").is_re_export


def test_literals_and_comments_never_export(parse):
    record = parse("""\
        // export const commented = 1
        /* export function alsoCommented() {} */
        const s = "export const inString = 1"
        export const a = 1
        export const b = 2
        """)

    assert record.export_names() == ["a", "b"]


def test_destructuring_and_typed_declarators(parse):
    record = parse("""\
        export const { a, b: renamed, ...rest } = source, [first, , second] = list;
        export const m: Map<string, number> = new Map(), n = 1;
        """)

    assert record.export_names() == ["a", "renamed", "rest", "first", "second", "m", "n"]


def test_function_overloads_are_one_export(parse):
    record = parse("""\
        export function f(a: string): void;
        export function f(a: any) {}
        """)

    assert record.export_names() == ["f"]


@pytest.mark.parametrize("source, message", [
    ('export const s = "oops;\n', "unterminated string"),
    ("export const a = 1;\nexport let a = 2;\n", "duplicate export 'a'"),
    ("export foo;\n", "unrecognized export"),
    ("export const broken = {\n", "unclosed"),
])
def test_malformed_source_raises(parse, source, message):
    with pytest.raises(ParseError, match=message):
        parse(source)


def test_parse_text_isolates_errors():
    result = TypeScriptParser().parse_text("src/bad.ts", "export const a = 1;\nexport let a = 2;\n")

    assert not result.success
    assert result.error_line == 2
    assert result.file_path == "src/bad.ts"


def test_parse_file_uses_project_relative_path(tmp_path):
    source = tmp_path / "src" / "util.ts"
    source.parent.mkdir()
    source.write_text("export const x = 1;\n", encoding="utf-8")

    result = TypeScriptParser(tmp_path).parse_file(source)

    assert result.success
    assert result.file_path == "src/util.ts"
    assert result.record.export_names() == ["x"]
    assert len(result.file_hash) == 32


def test_can_parse_extensions():
    parser = TypeScriptParser()

    assert parser.can_parse("a/b.tsx")
    assert parser.can_parse("types.d.ts")
    assert not parser.can_parse("style.css")


def test_generic_initializers_are_one_declarator(parse):
    record = parse("""\
        export const cache = new Map<string, number>();
        export const id = <T,>(x: T) => x;
        export const pair = new Foo<A, B, C>(), other = 2;
        """)

    assert record.export_names() == ["cache", "id", "pair", "other"]


def test_postfix_operator_before_division(parse):
    record = parse("""\
        let n = 4;
        export const half = n++ / 2;
        export const rest = n-- / 3;
        """)

    assert record.export_names() == ["half", "rest"]


def test_tsx_component_with_tags(parse):
    record = parse("""\
        import { Item } from './item';
        export function List({ items }: { items: string[] }) {
            return <ul>{items.map(i => <Item key={i}/>)}</ul>;
        }
        export const Link = ({ url }) => <a href={url}>go</a>;
        """, path="src/list.tsx")

    assert record.export_names() == ["List", "Link"]
    assert [i.source_specifier for i in record.imports] == ["./item"]
    assert record.unused_imports == ()


def test_unused_imports(parse):
    record = parse("""\
        import React from 'react';
        import { used, unusedName, asType, spreadMe, viaExport } from './lib';
        import * as NS from './ns';
        import { helper } from './helpers';
        export { viaExport };
        export { helper } from './helpers';
        const t: asType = used();
        const obj = { ...spreadMe };
        obj.unusedName;
        NS.member;
        """)

    unused = [(u.local_name, u.imported_name, u.kind, u.line) for u in record.unused_imports]
    assert unused == [
        ("React", "default", ImportKind.DEFAULT, 1),
        ("unusedName", "unusedName", ImportKind.NAMED, 2),
        ("helper", "helper", ImportKind.NAMED, 4),
    ]

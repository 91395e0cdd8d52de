import pytest

from modgraph.analyzers.dead_export_analyzer import DeadExportAnalyzer
from modgraph.errors import ConfigError
from modgraph.graph.resolver import ResolverContext
from modgraph.parsers.base_parser import Confidence, ExportKind


def dead(report):
    return [(e.module, e.export_name) for e in report.dead_exports.entries]


def test_used_export_is_not_dead(analyze):
    report = analyze({
        "a.ts": "export function foo() {}\n",
        "b.ts": "import { foo } from './a';\nfoo();\n",
    })

    assert dead(report) == []
    assert report.dead_exports.used_exports == 1


def test_re_export_chain_marks_origin_used(analyze):
    report = analyze({
        "y.ts": "export const foo = 1;\nexport const bar = 2;\n",
        "x.ts": "export { foo } from './y';\n",
        "main.ts": "import { foo } from './x';\nconsole.log(foo);\n",
    })

    assert dead(report) == [("y.ts", "bar")]
    entry = report.dead_exports.entries[0]
    assert entry.confidence == Confidence.HIGH
    assert entry.export_kind == ExportKind.VARIABLE
    assert entry.line == 2


def test_unused_barrel_entry_is_reported_on_the_barrel(analyze):
    report = analyze({
        "y.ts": "export const bar = 1;\n",
        "index.ts": "export { bar } from './y';\n",
    })

    assert dead(report) == [("index.ts", "bar")]
    assert report.dead_exports.entries[0].reason == "re-export is never imported from this module"


def test_namespace_import_suppresses_by_default(analyze):
    files = {
        "a.ts": "export const p = 1;\nexport const q = 2;\n",
        "main.ts": "import * as A from './a';\nconsole.log(A.p);\n",
    }

    report = analyze(files)

    assert dead(report) == []
    assert report.dead_exports.suppressed_exports == 2
    assert report.dead_exports.opaque_modules == ["a.ts"]


def test_namespace_import_reported_low_under_report_policy(analyze):
    report = analyze({
        "a.ts": "export const p = 1;\nexport const q = 2;\n",
        "main.ts": "import * as A from './a';\nconsole.log(A.p);\n",
    }, namespace_policy="report")

    assert dead(report) == [("a.ts", "p"), ("a.ts", "q")]
    assert {e.confidence for e in report.dead_exports.entries} == {Confidence.LOW}


def test_star_barrel_forwards_names_it_does_not_declare(analyze):
    report = analyze({
        "y.ts": "export const used = 1;\nexport const unused = 2;\nexport default 3;\n",
        "index.ts": "export * from './y';\n",
        "main.ts": "import { used } from './index';\nconsole.log(used);\n",
    })

    assert dead(report) == [("y.ts", "unused"), ("y.ts", "default")]
    unused, default = report.dead_exports.entries
    assert unused.confidence == Confidence.MEDIUM
    # export * never forwards the default slot
    assert default.confidence == Confidence.HIGH


def test_namespace_import_of_star_barrel_reaches_sources(analyze):
    report = analyze({
        "y.ts": "export const a = 1;\n",
        "index.ts": "export * from './y';\n",
        "main.ts": "import * as NS from './index';\nNS.a;\n",
    })

    assert dead(report) == []
    assert report.dead_exports.opaque_modules == ["index.ts", "y.ts"]


def test_dynamic_import_makes_target_opaque(analyze):
    report = analyze({
        "lazy.ts": "export const x = 1;\n",
        "main.ts": "const m = import('./lazy');\n",
    })

    assert dead(report) == []


def test_side_effect_import_makes_target_opaque(analyze):
    report = analyze({
        "polyfill.ts": "export const installed = true;\n",
        "main.ts": "import './polyfill';\n",
    })

    assert dead(report) == []


def test_default_import_only_uses_default(analyze):
    report = analyze({
        "a.ts": "export default function main() {}\nexport function helper() {}\n",
        "b.ts": "import main from './a';\nmain();\n",
    })

    assert dead(report) == [("a.ts", "helper")]
    assert report.dead_exports.entries[0].export_kind == ExportKind.FUNCTION


def test_external_imports_are_ignored(analyze):
    report = analyze({
        "a.ts": "import { useState } from 'react';\nexport const hook = useState;\n",
    })

    assert dead(report) == [("a.ts", "hook")]


def test_entries_ordered_by_module_then_declaration(analyze):
    report = analyze({
        "z.ts": "export const b = 1;\nexport const a = 2;\n",
        "a.ts": "export const c = 3;\n",
    })

    assert dead(report) == [("a.ts", "c"), ("z.ts", "b"), ("z.ts", "a")]


def test_format_groups_by_confidence(analyze):
    report = analyze({"a.ts": "export const lonely = 1;\n"})

    text = report.dead_exports.format()

    assert "HIGH CONFIDENCE (1)" in text
    assert "a.ts:1" in text


def test_unknown_policy_rejected():
    with pytest.raises(ConfigError):
        DeadExportAnalyzer(ResolverContext.from_paths([]), "ignore")


def test_namespace_re_export_makes_source_opaque(analyze):
    report = analyze({
        "y.ts": "export const a = 1;\n",
        "index.ts": "export * as ns from './y';\n",
        "main.ts": "import { ns } from './index';\nns.a;\n",
    })

    assert dead(report) == []
    assert report.dead_exports.opaque_modules == ["y.ts"]


def test_failed_module_caps_confidence(analyze):
    report = analyze({
        "a.ts": "export const lonely = 1;\n",
        "b.ts": 'export const broken = "oops;\n',
    })

    [entry] = report.dead_exports.entries
    assert (entry.module, entry.export_name) == ("a.ts", "lonely")
    assert entry.confidence == Confidence.MEDIUM
    assert "1 modules failed to parse" in entry.reason
    assert report.dead_exports.errored_modules == ["b.ts"]


def test_clean_project_keeps_high_confidence(analyze):
    report = analyze({"a.ts": "export const lonely = 1;\n"})

    [entry] = report.dead_exports.entries
    assert entry.confidence == Confidence.HIGH
    assert report.dead_exports.errored_modules == []

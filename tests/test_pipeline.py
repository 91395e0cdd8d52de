import json

import pytest

from modgraph.errors import ConfigError, EmptyInputError
from modgraph.parsers.base_parser import SourceFile
from modgraph.pipeline import AnalysisOptions, analyze_project, is_entry_point, run_analysis


FILES = {
    "src/index.ts": "export { Button } from './ui/button';\nexport * from './util';\n",
    "src/ui/button.ts": "import { cx } from '../util';\nexport class Button {}\nexport const size = 1;\n",
    "src/util.ts": "export function cx() {}\nexport function unused() {}\n",
    "src/app.ts": "import { Button } from './index';\nimport React from 'react';\nnew Button();\n",
}


def test_parse_failure_becomes_error_stub(analyze):
    report = analyze({
        "a.ts": 'export const broken = "oops;\n',
        "b.ts": "import { broken } from './a';\n",
    })

    assert [(f.path, f.line) for f in report.failures] == [("a.ts", 1)]
    assert "unterminated string literal" in report.failures[0].message
    assert report.graph.nodes == ["a.ts", "b.ts"]
    edge = report.graph.edges[0]
    assert (edge.source, edge.target, edge.is_external, edge.target_errored) == ("b.ts", "a.ts", False, True)
    assert report.metrics.errored_modules == 1


def test_empty_input_raises():
    with pytest.raises(EmptyInputError):
        run_analysis([])


def test_invalid_options_raise():
    with pytest.raises(ConfigError):
        AnalysisOptions(namespace_policy="sometimes")
    with pytest.raises(ConfigError):
        AnalysisOptions(workers=0)


def test_full_report(analyze):
    report = analyze(FILES)

    assert report.graph.nodes == ["src/app.ts", "src/index.ts", "src/ui/button.ts", "src/util.ts"]
    assert [e.target for e in report.graph.external_edges] == ["react"]
    assert report.cycles.total_cycles == 0
    assert [(e.module, e.export_name) for e in report.dead_exports.entries] == [
        ("src/ui/button.ts", "size"),
        ("src/util.ts", "unused"),
    ]
    assert report.dead_exports.entries[1].confidence.value == "medium"


def test_entry_points_hide_public_api(analyze):
    report = analyze({
        "src/index.ts": "export const api = 1;\n",
        "src/internal.ts": "export const helper = 1;\n",
    }, entry_points=("src/index.ts",))

    assert [(e.module, e.export_name) for e in report.dead_exports.entries] == [("src/internal.ts", "helper")]


@pytest.mark.parametrize("module,patterns,expected", [
    ("src/index.ts", ["src/index.ts"], True),
    ("src/index.ts", ["**/index.ts"], True),
    ("src/lib/a.ts", ["src/lib/*"], True),
    ("src/a.ts", ["lib/*"], False),
    ("src/a.ts", [], False),
])
def test_is_entry_point(module, patterns, expected):
    assert is_entry_point(module, patterns) is expected


def test_output_does_not_depend_on_input_order_or_workers():
    sources = [SourceFile(path, text) for path, text in FILES.items()]

    baseline = run_analysis(sources).to_json()

    assert run_analysis(list(reversed(sources))).to_json() == baseline
    assert run_analysis(sources, AnalysisOptions(workers=4)).to_json() == baseline


def test_report_json_shape(analyze):
    data = json.loads(analyze(FILES).to_json())

    assert set(data) == {
        "graph", "metrics", "cycles", "deadExports", "unusedImports", "failures", "ambiguities"
    }
    assert data["graph"]["edges"][0]["from"] == "src/app.ts"
    assert data["deadExports"][0]["exportName"] == "size"
    assert [u["localName"] for u in data["unusedImports"]] == ["React", "cx"]


def test_cycles_reported_through_pipeline(analyze):
    report = analyze({
        "a.ts": "import { b } from './b';\nexport const a = b;\n",
        "b.ts": "import { a } from './a';\nexport const b = a;\n",
    })

    assert report.cycles.as_paths() == [["a.ts", "b.ts"]]
    assert "CIRCULAR DEPENDENCIES DETECTED: 1" in report.format()


def test_ambiguous_specifier_is_recorded(analyze):
    report = analyze({
        "lib.ts": "export const x = 1;\n",
        "lib.js": "export const x = 1;\n",
        "main.ts": "import { x } from './lib';\n",
    })

    assert [a.chosen for a in report.ambiguities] == ["lib.js"]
    assert report.graph.edges[0].target == "lib.js"


def test_analyze_project_scans_directory(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "a.ts").write_text("export const a = 1;\n", encoding="utf-8")
    (tmp_path / "src" / "b.ts").write_text("import { a } from './a';\n", encoding="utf-8")
    vendored = tmp_path / "node_modules" / "dep"
    vendored.mkdir(parents=True)
    (vendored / "index.js").write_text("export const dep = 1;\n", encoding="utf-8")

    report = analyze_project(tmp_path)

    assert report.graph.nodes == ["src/a.ts", "src/b.ts"]
    assert report.dead_exports.entries == []


def test_analyze_project_without_sources(tmp_path):
    with pytest.raises(EmptyInputError):
        analyze_project(tmp_path)


def test_unused_imports_reported_per_module(analyze):
    report = analyze(FILES)

    entries = report.unused_imports.entries
    assert [(e.module, e.local_name, e.specifier) for e in entries] == [
        ("src/app.ts", "React", "react"),
        ("src/ui/button.ts", "cx", "../util"),
    ]
    assert all(e.confidence.value == "high" for e in entries)
    assert report.unused_imports.total_bindings == 3


def test_jsx_runtime_import_is_medium_confidence(analyze):
    report = analyze({
        "src/view.tsx": "import React from 'react';\nexport const View = () => <div/>;\n",
        "src/main.ts": "import { View } from './view';\nView();\n",
    })

    [entry] = report.unused_imports.entries
    assert (entry.module, entry.local_name) == ("src/view.tsx", "React")
    assert entry.confidence.value == "medium"
    assert "JSX" in entry.reason

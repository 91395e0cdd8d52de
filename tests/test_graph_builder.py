import json

from modgraph.graph.graph_builder import GraphBuilder
from modgraph.parsers.base_parser import ImportKind, SourceFile


def build(parse, files, failed=()):
    records = [parse(text, path) for path, text in files.items()]
    builder = GraphBuilder()
    return builder, builder.build_graph(records, failed)


def test_internal_and_external_edges(parse):
    builder, graph = build(parse, {
        "b.ts": "import { foo } from './a';\nimport pad from 'left-pad';\n",
        "a.ts": "export const foo = 1;\n",
    })

    assert graph.nodes == ["a.ts", "b.ts"]
    assert [(e.source, e.target, e.is_external) for e in graph.edges] == [
        ("b.ts", "a.ts", False),
        ("b.ts", "left-pad", True),
    ]
    assert "left-pad" not in graph.nodes
    assert graph.edges[1].import_kind == ImportKind.DEFAULT
    assert builder.statistics.external_edges == 1


def test_parallel_edges_are_kept(parse):
    _, graph = build(parse, {
        "a.ts": "export default 1;\nexport const b = 2;\n",
        "main.ts": "import a from './a';\nimport { b } from './a';\n",
    })

    assert [(e.source, e.target, e.import_kind) for e in graph.edges] == [
        ("main.ts", "a.ts", ImportKind.DEFAULT),
        ("main.ts", "a.ts", ImportKind.NAMED),
    ]


def test_error_stub_keeps_edges_internal(parse):
    _, graph = build(parse, {"b.ts": "import { x } from './broken';\n"}, failed=["broken.ts"])

    assert graph.nodes == ["b.ts", "broken.ts"]
    assert graph.errored == frozenset({"broken.ts"})
    edge = graph.edges[0]
    assert not edge.is_external
    assert edge.target == "broken.ts"
    assert edge.target_errored


def test_unresolved_relative_import_is_flagged_external(parse):
    builder, graph = build(parse, {"a.ts": "import './gone';\n"})

    assert graph.edges[0].is_external
    assert graph.edges[0].target == "./gone"
    assert builder.statistics.unresolved_edges == 1


def test_to_networkx_has_only_internal_edges(parse):
    _, graph = build(parse, {
        "a.ts": "import './b';\nimport 'react';\n",
        "b.ts": "import './a';\n",
    })

    nx_graph = graph.to_networkx()

    assert sorted(nx_graph.nodes) == ["a.ts", "b.ts"]
    assert nx_graph.number_of_edges() == 2


def test_parse_sources_orders_by_path_with_workers():
    builder = GraphBuilder()
    sources = [SourceFile(f"m{i}.ts", f"export const v{i} = {i};\n") for i in (3, 1, 2, 0)]

    results = builder.parse_sources(sources, workers=4)

    assert [r.file_path for r in results] == ["m0.ts", "m1.ts", "m2.ts", "m3.ts"]
    assert all(r.success for r in results)


def test_scan_files_honours_excludes(tmp_path):
    (tmp_path / "sub").mkdir()
    (tmp_path / "node_modules" / "pkg").mkdir(parents=True)
    for rel in ("a.ts", "sub/b.tsx", "node_modules/pkg/index.ts", "notes.md"):
        (tmp_path / rel).write_text("export const x = 1;\n", encoding="utf-8")

    builder = GraphBuilder(tmp_path)
    files = builder.scan_files()

    assert [f.relative_to(tmp_path).as_posix() for f in files] == ["a.ts", "sub/b.tsx"]

    results = builder.parse_files(files)
    assert [r.file_path for r in results] == ["a.ts", "sub/b.tsx"]


def test_export_json(parse, tmp_path):
    _, graph = build(parse, {"a.ts": "import 'react';\n"})

    out = tmp_path / "out" / "graph.json"
    graph.export_json(out)

    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["nodes"] == ["a.ts"]
    assert data["edges"][0]["from"] == "a.ts"
    assert data["edges"][0]["to"] == "react"
    assert data["edges"][0]["isExternal"] is True
    assert data["edges"][0]["importKind"] == "side-effect"

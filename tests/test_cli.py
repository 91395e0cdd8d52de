import json

import pytest
from click.testing import CliRunner

from modgraph.cli import cli


@pytest.fixture
def project(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("MODGRAPH_CONFIG", raising=False)
    src = tmp_path / "src"
    src.mkdir()
    (src / "a.ts").write_text("export const used = 1;\nexport const stale = 2;\n", encoding="utf-8")
    (src / "b.ts").write_text("import { used } from './a';\nconsole.log(used);\n", encoding="utf-8")
    return tmp_path


def test_parse_command(project):
    result = CliRunner().invoke(cli, ["parse", str(project / "src" / "a.ts")])

    assert result.exit_code == 0
    assert "stale" in result.output


def test_parse_command_reports_syntax_error(project):
    broken = project / "src" / "broken.ts"
    broken.write_text("export const s = 'open\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["parse", str(broken)])

    assert result.exit_code == 1


def test_analyze_writes_json_report(project):
    output = project / "out" / "report.json"

    result = CliRunner().invoke(cli, ["analyze", "-p", str(project), "-o", str(output)])

    assert result.exit_code == 0
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["graph"]["nodes"] == ["src/a.ts", "src/b.ts"]
    assert [d["exportName"] for d in data["deadExports"]] == ["stale"]


def test_analyze_entry_point_option(project):
    output = project / "report.json"

    result = CliRunner().invoke(cli, ["analyze", "-p", str(project), "-o", str(output), "-e", "src/a.ts"])

    assert result.exit_code == 0
    assert json.loads(output.read_text(encoding="utf-8"))["deadExports"] == []


def test_analyze_exits_nonzero_on_parse_failure(project):
    (project / "src" / "c.ts").write_text("export const s = 'open\n", encoding="utf-8")
    output = project / "report.json"

    result = CliRunner().invoke(cli, ["analyze", "-p", str(project), "-o", str(output)])

    assert result.exit_code == 1
    assert json.loads(output.read_text(encoding="utf-8"))["failures"][0]["path"] == "src/c.ts"

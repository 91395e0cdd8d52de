from textwrap import dedent

import pytest

from modgraph.parsers.base_parser import SourceFile
from modgraph.parsers.typescript_parser import TypeScriptParser
from modgraph.pipeline import AnalysisOptions, run_analysis
from modgraph.utils.config import config


@pytest.fixture
def parse():
    """Parse an inline module into a ModuleRecord."""
    parser = TypeScriptParser()

    def _parse(source, path="src/m.ts"):
        return parser.parse_source(path, dedent(source))

    return _parse


@pytest.fixture
def analyze():
    """Run the whole pipeline over {path: source} pairs."""

    def _analyze(files, **options):
        sources = [SourceFile(path, dedent(text)) for path, text in files.items()]
        return run_analysis(sources, AnalysisOptions(**options))

    return _analyze


@pytest.fixture(autouse=True)
def fresh_config():
    config.reset()
    yield
    config.reset()

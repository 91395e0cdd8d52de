"""modgraph - cross-file dependency and dead export analysis for TS/JS projects."""

from .errors import ConfigError, EmptyInputError, ModgraphError, ParseError, ResolutionAmbiguity
from .parsers.base_parser import SourceFile
from .pipeline import AnalysisOptions, AnalysisReport, analyze_project, run_analysis

__version__ = "0.1.0"

__all__ = [
    "AnalysisOptions",
    "AnalysisReport",
    "ConfigError",
    "EmptyInputError",
    "ModgraphError",
    "ParseError",
    "ResolutionAmbiguity",
    "SourceFile",
    "analyze_project",
    "run_analysis"
]

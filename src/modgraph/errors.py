"""Exception types raised by modgraph."""

from dataclasses import dataclass
from typing import Optional


class ModgraphError(Exception):
    """Base class for all modgraph errors."""


class ParseError(ModgraphError):
    """Malformed source in a single module."""

    def __init__(self, path: str, message: str, line: Optional[int] = None):
        self.path = path
        self.message = message
        self.line = line
        location = f"{path}:{line}" if line else path
        super().__init__(f"Parse error in {location}: {message}")


class EmptyInputError(ModgraphError):
    """No files were supplied to an analysis."""

    def __init__(self, message: str = "No files provided for analysis"):
        super().__init__(message)


class ConfigError(ModgraphError):
    """A configuration value is out of range or of the wrong type."""


@dataclass(frozen=True)
class ResolutionAmbiguity:
    """A specifier matched more than one analyzed file.

    Recorded and logged, never raised; ``chosen`` is the candidate picked by
    the resolution precedence.
    """
    specifier: str
    from_path: str
    candidates: tuple[str, ...]
    chosen: str

    def __str__(self) -> str:
        others = ", ".join(c for c in self.candidates if c != self.chosen)
        return (
            f"'{self.specifier}' imported from {self.from_path} is ambiguous: "
            f"using {self.chosen} over {others}"
        )

"""Module specifier resolution against the set of analyzed files."""

import posixpath
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..errors import ResolutionAmbiguity
from ..parsers.base_parser import is_relative_specifier, normalize_path
from ..utils.logger import get_logger


DEFAULT_EXTENSIONS = (".ts", ".tsx", ".mts", ".cts", ".js", ".jsx", ".mjs", ".cjs", ".d.ts")

# Extensions a TypeScript ESM import may spell even though the file is .ts
SCRIPT_EXTENSIONS = (".js", ".jsx", ".mjs", ".cjs")

logger = get_logger("resolver")


@dataclass(frozen=True)
class ResolvedTarget:
    """Where a specifier points: an analyzed module or something outside."""
    specifier: str
    internal_path: Optional[str] = None
    external_package: Optional[str] = None
    unresolved: bool = False
    candidates: tuple[str, ...] = ()

    @property
    def is_internal(self) -> bool:
        return self.internal_path is not None

    @property
    def is_external(self) -> bool:
        return self.internal_path is None

    @property
    def target(self) -> str:
        """Edge target: node path, package name, or the raw specifier."""
        return self.internal_path or self.external_package or self.specifier


@dataclass
class ResolverContext:
    """Known module paths for one analysis, plus its memo table.

    Created per analysis and passed explicitly, so independent analyses never
    share lookups.
    """
    known_paths: frozenset[str]
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    cache: dict[tuple[str, str], ResolvedTarget] = field(default_factory=dict)
    ambiguities: list[ResolutionAmbiguity] = field(default_factory=list)

    @classmethod
    def from_paths(
        cls,
        paths: Iterable[str],
        extensions: Optional[Iterable[str]] = None
    ) -> "ResolverContext":
        return cls(
            known_paths=frozenset(normalize_path(p) for p in paths),
            extensions=tuple(extensions) if extensions else DEFAULT_EXTENSIONS
        )

    def __contains__(self, path: str) -> bool:
        return path in self.known_paths


def package_name(specifier: str) -> str:
    """Bare package of a non-relative specifier ('@scope/pkg/sub' -> '@scope/pkg')."""
    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) > 1:
        return "/".join(parts[:2])
    return parts[0]


class ModuleResolver:
    """Resolves import specifiers to analyzed module paths.

    Precedence for relative specifiers, first non-empty tier wins:

    1. the literal path,
    2. the path plus a source extension,
    3. an ``index`` file inside the path.

    Ties inside a tier go to the lexicographically first path.
    """

    def __init__(self, context: ResolverContext):
        self.context = context

    def resolve(self, specifier: str, from_path: str) -> ResolvedTarget:
        """Resolve ``specifier`` as imported by the module at ``from_path``."""
        from_dir = posixpath.dirname(normalize_path(from_path))
        key = (from_dir, specifier)
        cached = self.context.cache.get(key)
        if cached is not None:
            return cached

        if is_relative_specifier(specifier):
            resolved = self._resolve_relative(specifier, from_dir, from_path)
        else:
            resolved = ResolvedTarget(specifier=specifier, external_package=package_name(specifier))

        self.context.cache[key] = resolved
        return resolved

    def _resolve_relative(self, specifier: str, from_dir: str, from_path: str) -> ResolvedTarget:
        if specifier.startswith("/"):
            base = normalize_path(specifier)
        else:
            base = normalize_path(posixpath.join(from_dir, specifier))

        tiers = self._candidate_tiers(base)
        candidates = [path for tier in tiers for path in tier]
        if not candidates:
            logger.debug(f"Unresolved import '{specifier}' in {from_path}")
            return ResolvedTarget(specifier=specifier, unresolved=True)

        chosen = next(tier for tier in tiers if tier)[0]
        if len(candidates) > 1:
            ambiguity = ResolutionAmbiguity(
                specifier=specifier,
                from_path=normalize_path(from_path),
                candidates=tuple(candidates),
                chosen=chosen
            )
            self.context.ambiguities.append(ambiguity)
            logger.warning(str(ambiguity))

        return ResolvedTarget(
            specifier=specifier,
            internal_path=chosen,
            candidates=tuple(candidates)
        )

    def _candidate_tiers(self, base: str) -> list[list[str]]:
        known = self.context.known_paths
        extensions = self.context.extensions

        literal = [base] if base in known else []

        stems = [base]
        for ext in SCRIPT_EXTENSIONS:
            if base.endswith(ext):
                # './x.js' may name './x.ts'
                stems.append(base[:-len(ext)])
                break
        with_extension = sorted({
            stem + ext for stem in stems for ext in extensions
            if stem + ext in known
        })

        index_files = sorted(
            path for path in {normalize_path(posixpath.join(base, "index" + ext)) for ext in extensions}
            if path in known
        )

        return [literal, with_extension, index_files]

"""Dataclass models for the project index.

Symbol records (imports, exports, functions, classes, variables) are
immutable.  ``FileRecord`` is mutable only in its ``dependencies`` and
``dependents`` lists, which the indexer keeps mirrored with the
``DependencyGraph``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from depindex.index.graph import DependencyGraph

SCHEMA_VERSION = "1.0.0"

# Valid values for MethodRecord.visibility / PropertyRecord.visibility
VISIBILITIES = frozenset({"public", "private", "protected"})

# Valid values for SearchMatch.kind
MATCH_KINDS = frozenset({
    "file",
    "function",
    "class",
    "variable",
    "import",
    "export",
})


def _check_visibility(visibility: str) -> None:
    if visibility not in VISIBILITIES:
        raise ValueError(f"Unknown visibility: {visibility!r}")


# ── Symbols ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ImportSpecifier:
    """One name bound by an import statement."""

    name: str
    alias: str | None = None
    is_default: bool = False


@dataclass(frozen=True)
class ImportRecord:
    """An import statement and the names it binds."""

    source: str         # literal specifier, e.g. "./utils" or "react"
    specifiers: tuple[ImportSpecifier, ...]
    line: int
    is_default: bool = False
    is_namespace: bool = False
    is_dynamic: bool = False


@dataclass(frozen=True)
class ExportRecord:
    """An exported name.  ``name == "*"`` marks a wildcard re-export."""

    name: str
    line: int
    is_default: bool = False
    is_re_export: bool = False
    source: str | None = None


@dataclass(frozen=True)
class ParameterRecord:
    name: str
    optional: bool = False
    type_text: str | None = None
    default_text: str | None = None


@dataclass(frozen=True)
class FunctionRecord:
    name: str
    line: int
    column: int
    parameters: tuple[ParameterRecord, ...] = ()
    return_type: str | None = None
    is_async: bool = False
    is_exported: bool = False
    is_arrow: bool = False


@dataclass(frozen=True)
class MethodRecord:
    name: str
    line: int
    parameters: tuple[ParameterRecord, ...] = ()
    return_type: str | None = None
    is_async: bool = False
    is_static: bool = False
    visibility: str = "public"   # see VISIBILITIES

    def __post_init__(self) -> None:
        _check_visibility(self.visibility)


@dataclass(frozen=True)
class PropertyRecord:
    name: str
    line: int
    type_text: str | None = None
    is_static: bool = False
    is_readonly: bool = False
    visibility: str = "public"
    default_text: str | None = None

    def __post_init__(self) -> None:
        _check_visibility(self.visibility)


@dataclass(frozen=True)
class ClassRecord:
    """A class declaration.

    ``methods`` and ``properties`` are only populated for languages whose
    extractor walks class bodies (Python); the JS/TS line scanner leaves
    them empty.
    """

    name: str
    line: int
    column: int
    extends: str | None = None
    implements: tuple[str, ...] = ()
    methods: tuple[MethodRecord, ...] = ()
    properties: tuple[PropertyRecord, ...] = ()
    is_exported: bool = False
    is_abstract: bool = False


@dataclass(frozen=True)
class VariableRecord:
    name: str
    line: int
    column: int
    kind: str           # const/let/var for JS/TS, constant/variable for Python
    type_text: str | None = None
    is_exported: bool = False


@dataclass(frozen=True)
class ExtractedSymbols:
    """Output of ``SymbolExtractor.extract``: five independent lists."""

    imports: list[ImportRecord] = field(default_factory=list)
    exports: list[ExportRecord] = field(default_factory=list)
    functions: list[FunctionRecord] = field(default_factory=list)
    classes: list[ClassRecord] = field(default_factory=list)
    variables: list[VariableRecord] = field(default_factory=list)


# ── Catalog ───────────────────────────────────────────────────────────────────

@dataclass
class FileRecord:
    """Structural and stat metadata for one indexed file."""

    path: str               # absolute path
    relative_path: str      # POSIX path from project root; identity key
    name: str
    extension: str
    language: str
    size: int
    line_count: int
    hash: str               # "" when hashing is disabled
    modified_at: float      # Unix timestamp
    indexed_at: float       # Unix timestamp
    imports: list[ImportRecord] = field(default_factory=list)
    exports: list[ExportRecord] = field(default_factory=list)
    functions: list[FunctionRecord] = field(default_factory=list)
    classes: list[ClassRecord] = field(default_factory=list)
    variables: list[VariableRecord] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    dependents: list[str] = field(default_factory=list)


@dataclass
class DirectoryRecord:
    """Aggregate size/count for a directory, including all subdirectories."""

    path: str
    relative_path: str      # "." for the project root
    name: str
    file_count: int = 0
    total_size: int = 0
    children: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PathCount:
    path: str
    count: int


@dataclass(frozen=True)
class ProjectStatistics:
    total_files: int
    total_directories: int
    total_size: int
    total_lines: int
    language_breakdown: dict[str, int]
    file_type_breakdown: dict[str, int]
    largest_files: list[PathCount]      # count = size in bytes
    most_imported: list[PathCount]      # count = number of dependents
    circular_dependencies: list[list[str]]


@dataclass
class ProjectIndex:
    """A complete, explicitly owned index of one project tree."""

    root_path: str
    files: dict[str, FileRecord]
    directories: dict[str, DirectoryRecord]
    graph: DependencyGraph
    indexed_at: float
    statistics: ProjectStatistics
    version: str = SCHEMA_VERSION


# ── Search ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SearchMatch:
    kind: str           # see MATCH_KINDS
    name: str
    line: int
    context: str

    def __post_init__(self) -> None:
        if self.kind not in MATCH_KINDS:
            raise ValueError(f"Unknown match kind: {self.kind!r}")


@dataclass(frozen=True)
class SearchResult:
    file: FileRecord
    matches: list[SearchMatch]
    score: int

"""ProjectIndexer — full and incremental indexing of a project directory.

Orchestrates SymbolExtractor + DependencyGraph to build and maintain an
in-memory ``ProjectIndex``.  Entry points:

  index_project()    — discover, extract, catalog, link and summarise the tree
  reindex_file(path) — replace one FileRecord and re-derive its edges
  remove_file(path)  — drop one FileRecord and every edge touching it

A full index always builds every FileRecord before the graph is linked, so
import resolution can rely on catalog membership.  An indexer instance is
not safe for concurrent mutation; callers serialise re-index calls.
"""

from __future__ import annotations

import fnmatch
import hashlib
import logging
import os
import posixpath
import re
import time
from collections import Counter
from collections.abc import Callable, Mapping
from pathlib import Path, PurePosixPath

from depindex.core.config import IndexerConfig
from depindex.core.languages import detect_language, resolve_suffixes
from depindex.index.errors import IndexNotBuiltError
from depindex.index.filesystem import FileSystem, LocalFileSystem
from depindex.index.graph import DependencyGraph
from depindex.index.schema import (
    DirectoryRecord,
    ExtractedSymbols,
    FileRecord,
    ImportRecord,
    PathCount,
    ProjectIndex,
    ProjectStatistics,
    SearchResult,
)
from depindex.index.search import SearchEngine
from depindex.index.symbol_extractor import SymbolExtractor

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]

_GLOB_CHARS = frozenset("*?[")


class ProjectIndexer:
    """Index a project directory for structural and dependency queries.

    Parameters
    ----------
    project_dir:
        Root of the project to index.
    config:
        Extension/ignore sets, size ceiling and feature switches.
    fs:
        Filesystem backend; defaults to ``LocalFileSystem``.
    extractor:
        Symbol extractor; defaults to one scanning ``config.parse_languages``.
    """

    def __init__(
        self,
        project_dir: Path,
        config: IndexerConfig | None = None,
        fs: FileSystem | None = None,
        extractor: SymbolExtractor | None = None,
    ) -> None:
        self._project_dir = Path(project_dir).resolve()
        self._config = config or IndexerConfig()
        self._fs: FileSystem = fs or LocalFileSystem()
        self._extractor = extractor or SymbolExtractor(self._config.parse_languages)
        self._extensions = frozenset(ext.lower() for ext in self._config.extensions)
        self._index: ProjectIndex | None = None

    # ── Public: indexing ──────────────────────────────────────────────────────

    def index_project(
        self,
        progress_callback: ProgressCallback | None = None,
    ) -> ProjectIndex:
        """Build a fresh index of the whole tree and make it current."""
        if not self._project_dir.is_dir():
            raise NotADirectoryError(f"Project root is not a directory: {self._project_dir}")

        started = time.monotonic()
        logger.info("Starting project indexing: %s", self._project_dir)

        paths, tree = self._discover()
        files: dict[str, FileRecord] = {}
        skipped = 0

        for i, abs_path in enumerate(paths):
            self._report_progress(progress_callback, i + 1, len(paths), abs_path.name)
            record = self._safe_build_record(abs_path)
            if record is None:
                skipped += 1
                continue
            files[record.relative_path] = record

        directories = self._build_directories(tree, files)

        graph = DependencyGraph()
        if self._config.build_dependency_graph:
            self._build_graph(files, graph)

        index = ProjectIndex(
            root_path=str(self._project_dir),
            files=files,
            directories=directories,
            graph=graph,
            indexed_at=time.time(),
            statistics=self._calculate_statistics(files, directories, graph),
        )
        self._index = index

        logger.info(
            "Project indexing complete: %d files (%d skipped) · %d edges · %d cycles in %.2fs",
            len(files), skipped, graph.edge_count,
            len(index.statistics.circular_dependencies), time.monotonic() - started,
        )
        return index

    def reindex_file(self, path: str | Path) -> FileRecord | None:
        """Re-extract one file and patch its node in the graph.

        Incoming edges are kept; outgoing edges are re-derived with the same
        resolution rules as a full build.  When a file is seen for the first
        time, existing files whose imports now resolve to it are relinked.
        Returns None (and drops any stale entry) if the file can no longer be
        indexed or is excluded by the extension and ignore filters.
        """
        index = self._require_index("reindex_file")
        abs_path = self._absolute(path)
        rel = self._relative(abs_path)

        old = index.files.get(rel)
        if not self._is_indexable(rel):
            logger.debug("Not indexable under current filters: %s", rel)
            if old is not None:
                self.remove_file(rel)
            return None

        record = self._safe_build_record(abs_path)
        if record is None:
            if old is not None:
                logger.warning("Cannot re-index %s; removing it from the index", rel)
                self.remove_file(rel)
            return None

        if old is not None:
            for dep in old.dependencies:
                dep_record = index.files.get(dep)
                if dep_record is not None and dep != rel:
                    _discard(dep_record.dependents, rel)
            self._adjust_directories(index, rel, record.size - old.size, 0)
        else:
            self._adjust_directories(index, rel, record.size, 1)

        index.files[rel] = record

        if self._config.build_dependency_graph:
            graph = index.graph
            incoming = [d for d in graph.get_dependents(rel) if d != rel]
            graph.remove_node(rel)
            graph.add_node(rel)

            for dependent in incoming:
                graph.add_edge(dependent, rel)
                _append_unique(record.dependents, dependent)

            self._link_imports(record, index.files, graph)

            if old is None:
                for importer in self._importers_of(rel, index.files):
                    self._relink(importer, index.files, graph)

        index.statistics = self._calculate_statistics(index.files, index.directories, index.graph)
        logger.info(
            "Re-indexed %s: %d dependencies, %d dependents",
            rel, len(record.dependencies), len(record.dependents),
        )
        return record

    def remove_file(self, path: str | Path) -> bool:
        """Remove a file from the catalog and the graph.

        Former importers are relinked, since their imports may now resolve
        to another candidate.  Returns False if the file was not indexed.
        """
        index = self._require_index("remove_file")
        rel = self._relative(self._absolute(path))

        record = index.files.pop(rel, None)
        if record is None:
            return False

        for dep in record.dependencies:
            dep_record = index.files.get(dep)
            if dep_record is not None:
                _discard(dep_record.dependents, rel)
        for dependent in record.dependents:
            dependent_record = index.files.get(dependent)
            if dependent_record is not None:
                _discard(dependent_record.dependencies, rel)

        index.graph.remove_node(rel)
        if self._config.build_dependency_graph:
            for dependent in record.dependents:
                dependent_record = index.files.get(dependent)
                if dependent_record is not None:
                    self._relink(dependent_record, index.files, index.graph)

        self._adjust_directories(index, rel, -record.size, -1)
        index.statistics = self._calculate_statistics(index.files, index.directories, index.graph)
        logger.info("Removed %s from the index", rel)
        return True

    # ── Public: queries ───────────────────────────────────────────────────────

    @property
    def index(self) -> ProjectIndex | None:
        """The current index, or None before the first ``index_project``."""
        return self._index

    @property
    def project_dir(self) -> Path:
        return self._project_dir

    def search_files(self, query: str) -> list[SearchResult]:
        return SearchEngine(self._require_index("search_files")).search_files(query)

    def find_usages(self, name: str) -> list[SearchResult]:
        return SearchEngine(self._require_index("find_usages")).find_usages(name)

    def get_file_info(self, relative_path: str) -> FileRecord | None:
        return self._require_index("get_file_info").files.get(relative_path)

    def get_files_by_pattern(self, pattern: str | re.Pattern[str]) -> list[FileRecord]:
        """Files whose relative path matches *pattern* (``re.search`` semantics)."""
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        files = self._require_index("get_files_by_pattern").files
        return [record for rel, record in files.items() if regex.search(rel)]

    def get_files_by_language(self, language: str) -> list[FileRecord]:
        files = self._require_index("get_files_by_language").files
        return [record for record in files.values() if record.language == language]

    # ── Discovery ─────────────────────────────────────────────────────────────

    def _discover(self) -> tuple[list[Path], dict[str, list[str]]]:
        """Walk the tree; return indexable files and ``{dir: [subdirs]}``."""
        files: list[Path] = []
        tree: dict[str, list[str]] = {}

        def walk(directory: Path) -> bool:
            try:
                entries = self._fs.list_dir(directory)
            except OSError as exc:
                logger.warning("Cannot read directory %s: %s", directory, exc)
                return False

            subdirs: list[str] = []
            tree[self._relative(directory)] = subdirs
            for entry in entries:
                if self._should_ignore(entry.name):
                    continue
                if entry.is_dir:
                    if walk(entry.path):
                        subdirs.append(self._relative(entry.path))
                elif entry.is_file and entry.path.suffix.lower() in self._extensions:
                    files.append(entry.path)
            return True

        walk(self._project_dir)
        return files, tree

    def _is_indexable(self, rel: str) -> bool:
        """Apply the discovery filters (extension set, ignored names) to one path."""
        if PurePosixPath(rel).suffix.lower() not in self._extensions:
            return False
        return not any(self._should_ignore(part) for part in rel.split("/"))

    def _should_ignore(self, name: str) -> bool:
        for pattern in self._config.ignore_patterns:
            if _GLOB_CHARS.intersection(pattern):
                if fnmatch.fnmatchcase(name, pattern):
                    return True
            elif name == pattern:
                return True
        return False

    # ── Per-file records ──────────────────────────────────────────────────────

    def _safe_build_record(self, abs_path: Path) -> FileRecord | None:
        try:
            return self._build_record(abs_path)
        except Exception as exc:
            logger.warning("Failed to index %s: %s", abs_path, exc)
            return None

    def _build_record(self, abs_path: Path) -> FileRecord | None:
        """Assemble a FileRecord, or None if the file is unreadable or too large."""
        try:
            stat = self._fs.stat(abs_path)
        except OSError as exc:
            logger.warning("Cannot stat %s: %s", abs_path, exc)
            return None

        if stat.size > self._config.max_file_size:
            logger.debug("Skipping large file: %s (%d bytes)", abs_path, stat.size)
            return None

        try:
            text = self._fs.read_text(abs_path)
        except OSError as exc:
            logger.warning("Cannot read %s: %s", abs_path, exc)
            return None

        extension = abs_path.suffix
        language = detect_language(extension)

        symbols = ExtractedSymbols()
        if self._config.parse_symbols and self._extractor.supports(language):
            symbols = self._extractor.extract(text, language)

        return FileRecord(
            path=str(abs_path),
            relative_path=self._relative(abs_path),
            name=abs_path.name,
            extension=extension,
            language=language,
            size=stat.size,
            line_count=len(text.splitlines()),
            hash=_fingerprint(text) if self._config.calculate_hashes else "",
            modified_at=stat.mtime,
            indexed_at=time.time(),
            imports=list(symbols.imports),
            exports=list(symbols.exports),
            functions=list(symbols.functions),
            classes=list(symbols.classes),
            variables=list(symbols.variables),
        )

    # ── Directory catalog ─────────────────────────────────────────────────────

    def _build_directories(
        self,
        tree: dict[str, list[str]],
        files: Mapping[str, FileRecord],
    ) -> dict[str, DirectoryRecord]:
        """Aggregate sizes and counts bottom-up (deepest directories first)."""
        files_by_dir: dict[str, list[FileRecord]] = {rel: [] for rel in tree}
        for record in files.values():
            parent = posixpath.dirname(record.relative_path) or "."
            if parent in files_by_dir:
                files_by_dir[parent].append(record)

        directories: dict[str, DirectoryRecord] = {}
        for rel in sorted(tree, key=_depth, reverse=True):
            directory = self._new_directory(rel)
            for sub in tree[rel]:
                child = directories[sub]
                directory.children.append(sub)
                directory.file_count += child.file_count
                directory.total_size += child.total_size
            for record in files_by_dir[rel]:
                directory.children.append(record.relative_path)
                directory.file_count += 1
                directory.total_size += record.size
            directories[rel] = directory

        # Root first, then walk order
        return {rel: directories[rel] for rel in tree}

    def _new_directory(self, rel: str) -> DirectoryRecord:
        abs_dir = self._project_dir if rel == "." else self._project_dir / rel
        return DirectoryRecord(path=str(abs_dir), relative_path=rel, name=abs_dir.name)

    def _adjust_directories(
        self,
        index: ProjectIndex,
        rel: str,
        size_delta: int,
        count_delta: int,
    ) -> None:
        """Propagate a single file's size/count change to every ancestor directory."""
        child = rel
        parent = posixpath.dirname(rel) or "."
        while True:
            directory = index.directories.get(parent)
            if directory is None:
                directory = self._new_directory(parent)
                index.directories[parent] = directory
            if count_delta > 0:
                _append_unique(directory.children, child)
            elif count_delta < 0 and child == rel:
                _discard(directory.children, child)
            directory.file_count += count_delta
            directory.total_size += size_delta
            if parent == ".":
                break
            child = parent
            parent = posixpath.dirname(parent) or "."

    # ── Dependency graph ──────────────────────────────────────────────────────

    def _build_graph(self, files: Mapping[str, FileRecord], graph: DependencyGraph) -> None:
        for rel in files:
            graph.add_node(rel)
        for record in files.values():
            self._link_imports(record, files, graph)

    def _link_imports(
        self,
        record: FileRecord,
        files: Mapping[str, FileRecord],
        graph: DependencyGraph,
    ) -> None:
        """Add an edge for every import of *record* that resolves inside the catalog."""
        for imp in record.imports:
            for target in self._import_targets(imp, record, files):
                graph.add_edge(record.relative_path, target)
                _append_unique(record.dependencies, target)
                _append_unique(files[target].dependents, record.relative_path)

    def _relink(
        self,
        record: FileRecord,
        files: Mapping[str, FileRecord],
        graph: DependencyGraph,
    ) -> None:
        """Drop every outgoing edge of *record* and resolve its imports again.

        Used when catalog membership changes, since a new or removed file can
        change which suffix candidate an existing import resolves to.
        """
        rel = record.relative_path
        for dep in record.dependencies:
            graph.remove_edge(rel, dep)
            dep_record = files.get(dep)
            if dep_record is not None:
                _discard(dep_record.dependents, rel)
        record.dependencies.clear()
        self._link_imports(record, files, graph)

    def _importers_of(self, rel: str, files: Mapping[str, FileRecord]) -> list[FileRecord]:
        """Files (other than *rel*) with at least one import resolving to *rel*."""
        return [
            other
            for other in files.values()
            if other.relative_path != rel
            and any(rel in self._import_targets(imp, other, files) for imp in other.imports)
        ]

    def _import_targets(
        self,
        imp: ImportRecord,
        importer: FileRecord,
        files: Mapping[str, FileRecord],
    ) -> list[str]:
        """Cataloged files an import refers to.

        ``from . import a, b`` in Python binds submodules when they exist, so
        each bound name is tried as a module before falling back to the
        package itself.
        """
        if importer.language == "python" and imp.specifiers and not imp.source.strip("."):
            targets = [
                target
                for spec in imp.specifiers
                if (target := self._resolve_import(imp.source + spec.name, importer, files))
            ]
            if targets:
                return targets

        target = self._resolve_import(imp.source, importer, files)
        return [target] if target is not None else []

    def _resolve_import(
        self,
        source: str,
        importer: FileRecord,
        files: Mapping[str, FileRecord],
    ) -> str | None:
        """Map an import specifier to a cataloged relative path, or None.

        Bare specifiers (packages) are never resolved.  Candidates are the
        literal path followed by the language's suffix list; only catalog
        members are accepted.
        """
        specifier = _python_specifier(source) if importer.language == "python" else source
        if not specifier.startswith((".", "/")):
            return None

        base_dir = posixpath.dirname(importer.relative_path)
        for suffix in resolve_suffixes(importer.language):
            candidate = self._candidate_path(base_dir, specifier + suffix)
            if candidate is not None and candidate in files:
                return candidate
        return None

    def _candidate_path(self, base_dir: str, specifier: str) -> str | None:
        if specifier.startswith("/"):
            try:
                rel = PurePosixPath(specifier).relative_to(self._project_dir.as_posix())
            except ValueError:
                return None
            joined = rel.as_posix()
        else:
            joined = posixpath.join(base_dir, specifier)

        normalized = posixpath.normpath(joined)
        if normalized == ".." or normalized.startswith("../"):
            return None
        return normalized

    # ── Statistics ────────────────────────────────────────────────────────────

    def _calculate_statistics(
        self,
        files: Mapping[str, FileRecord],
        directories: Mapping[str, DirectoryRecord],
        graph: DependencyGraph,
    ) -> ProjectStatistics:
        top_n = self._config.top_n
        records = list(files.values())

        largest = sorted(records, key=lambda r: r.size, reverse=True)[:top_n]
        imported = sorted(
            (r for r in records if r.dependents),
            key=lambda r: len(r.dependents),
            reverse=True,
        )[:top_n]

        return ProjectStatistics(
            total_files=len(records),
            total_directories=len(directories),
            total_size=sum(r.size for r in records),
            total_lines=sum(r.line_count for r in records),
            language_breakdown=dict(Counter(r.language for r in records)),
            file_type_breakdown=dict(Counter(r.extension for r in records)),
            largest_files=[PathCount(path=r.relative_path, count=r.size) for r in largest],
            most_imported=[
                PathCount(path=r.relative_path, count=len(r.dependents)) for r in imported
            ],
            circular_dependencies=graph.detect_circular_dependencies(),
        )

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _require_index(self, operation: str) -> ProjectIndex:
        if self._index is None:
            raise IndexNotBuiltError(operation)
        return self._index

    def _absolute(self, path: str | Path) -> Path:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self._project_dir / candidate
        return Path(os.path.realpath(candidate))

    def _relative(self, abs_path: Path) -> str:
        try:
            return abs_path.relative_to(self._project_dir).as_posix()
        except ValueError:
            raise ValueError(
                f"{abs_path} is outside the project root {self._project_dir}"
            ) from None

    @staticmethod
    def _report_progress(
        callback: ProgressCallback | None,
        current: int,
        total: int,
        name: str,
    ) -> None:
        if callback is None:
            return
        try:
            callback(current, total, name)
        except Exception as exc:
            logger.debug("Progress callback error: %s", exc)


def _python_specifier(source: str) -> str:
    """Translate a relative Python module (``..pkg.mod``) into a path specifier."""
    module = source.lstrip(".")
    level = len(source) - len(module)
    if level == 0:
        return source
    prefix = "./" if level == 1 else "../" * (level - 1)
    return prefix + module.replace(".", "/")


def _fingerprint(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8", errors="surrogatepass")).hexdigest()


def _depth(rel: str) -> int:
    return 0 if rel == "." else rel.count("/") + 1


def _append_unique(items: list[str], value: str) -> None:
    if value not in items:
        items.append(value)


def _discard(items: list[str], value: str) -> None:
    if value in items:
        items.remove(value)

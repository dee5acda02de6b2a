"""SearchEngine — name search and usage lookup over a ProjectIndex.

Both queries are read-only scans of the file catalog:

  search_files(query) — case-insensitive substring match on file names and
                        symbol names, ranked by a weighted score
  find_usages(name)   — exact-name definitions plus imports of that name
"""

from __future__ import annotations

import logging

from depindex.index.errors import IndexNotBuiltError
from depindex.index.schema import (
    FileRecord,
    FunctionRecord,
    ImportRecord,
    ProjectIndex,
    SearchMatch,
    SearchResult,
)

logger = logging.getLogger(__name__)

# Score added per match kind
_WEIGHTS: dict[str, int] = {
    "file": 10,
    "function": 5,
    "class": 5,
    "export": 4,
    "variable": 3,
}


class SearchEngine:
    """Query a built ``ProjectIndex``.

    Parameters
    ----------
    index:
        The index to search; ``None`` raises ``IndexNotBuiltError``.
    """

    def __init__(self, index: ProjectIndex | None) -> None:
        if index is None:
            raise IndexNotBuiltError("search")
        self._index = index

    # ── Public API ────────────────────────────────────────────────────────────

    def search_files(self, query: str) -> list[SearchResult]:
        """Rank files by how many of their names contain *query*.

        Matching is a plain case-insensitive substring test, so the empty
        query matches every file by name.  Ties keep catalog order.
        """
        needle = query.lower()

        results: list[SearchResult] = []
        for record in self._index.files.values():
            matches = self._match_file(record, needle)
            if matches:
                score = sum(_WEIGHTS[m.kind] for m in matches)
                results.append(SearchResult(file=record, matches=matches, score=score))

        results.sort(key=lambda r: r.score, reverse=True)
        logger.debug("search_files(%r): %d results", query, len(results))
        return results

    def find_usages(self, name: str) -> list[SearchResult]:
        """Files that define *name* or import it, in catalog order.

        The score of each result is its number of matches.
        """
        results: list[SearchResult] = []
        for record in self._index.files.values():
            matches = self._definitions(record, name) + self._imports_of(record, name)
            if matches:
                results.append(SearchResult(file=record, matches=matches, score=len(matches)))
        logger.debug("find_usages(%r): %d files", name, len(results))
        return results

    # ── Internal helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _match_file(record: FileRecord, needle: str) -> list[SearchMatch]:
        matches: list[SearchMatch] = []

        if needle in record.name.lower():
            matches.append(SearchMatch(kind="file", name=record.name, line=0, context=record.relative_path))

        for fn in record.functions:
            if needle in fn.name.lower():
                matches.append(SearchMatch(kind="function", name=fn.name, line=fn.line, context=f"function {fn.name}({_param_names(fn)})"))

        for cls in record.classes:
            if needle in cls.name.lower():
                matches.append(SearchMatch(kind="class", name=cls.name, line=cls.line, context=f"class {cls.name}"))

        for var in record.variables:
            if needle in var.name.lower():
                matches.append(SearchMatch(kind="variable", name=var.name, line=var.line, context=f"{var.kind} {var.name}"))

        for exp in record.exports:
            if needle in exp.name.lower():
                matches.append(SearchMatch(kind="export", name=exp.name, line=exp.line, context=f"export {exp.name}"))

        return matches

    @staticmethod
    def _definitions(record: FileRecord, name: str) -> list[SearchMatch]:
        matches: list[SearchMatch] = []

        fn = next((f for f in record.functions if f.name == name), None)
        if fn is not None:
            matches.append(SearchMatch(kind="function", name=name, line=fn.line, context=f"[definition] function {name}"))

        cls = next((c for c in record.classes if c.name == name), None)
        if cls is not None:
            matches.append(SearchMatch(kind="class", name=name, line=cls.line, context=f"[definition] class {name}"))

        var = next((v for v in record.variables if v.name == name), None)
        if var is not None:
            matches.append(SearchMatch(kind="variable", name=name, line=var.line, context=f"[definition] {var.kind} {name}"))

        return matches

    @staticmethod
    def _imports_of(record: FileRecord, name: str) -> list[SearchMatch]:
        return [
            SearchMatch(kind="import", name=name, line=imp.line, context=_import_context(imp, name))
            for imp in record.imports
            if any(spec.name == name or spec.alias == name for spec in imp.specifiers)
        ]


def _import_context(imp: ImportRecord, name: str) -> str:
    return f"import {{ {name} }} from '{imp.source}'"


def _param_names(fn: FunctionRecord) -> str:
    return ", ".join(p.name for p in fn.parameters)

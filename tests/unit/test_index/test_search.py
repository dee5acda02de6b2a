"""Tests for SearchEngine — ranked name search and usage lookup."""

from __future__ import annotations

from pathlib import Path

import pytest

from depindex.index.errors import IndexNotBuiltError
from depindex.index.project_indexer import ProjectIndexer
from depindex.index.schema import MATCH_KINDS, MethodRecord, PropertyRecord, SearchMatch
from depindex.index.search import SearchEngine


@pytest.fixture()
def search_project(tmp_path: Path) -> Path:
    (tmp_path / "adder.ts").write_text("export const total = 0;\n", encoding="utf-8")
    (tmp_path / "math.ts").write_text(
        "export function add(a, b) { return a + b; }\n", encoding="utf-8",
    )
    (tmp_path / "main.ts").write_text(
        "import { add } from './math';\n"
        "import { add as plus } from './math';\n"
        "console.log(add(1, 2));\n",
        encoding="utf-8",
    )
    return tmp_path


@pytest.fixture()
def engine(search_project: Path) -> SearchEngine:
    return SearchEngine(ProjectIndexer(search_project).index_project())


class TestSearchFiles:
    def test_file_name_match_ranks_first(self, engine: SearchEngine) -> None:
        results = engine.search_files("add")
        assert [r.file.relative_path for r in results] == ["adder.ts", "math.ts"]
        assert [r.score for r in results] == [10, 9]

    def test_scores_are_weighted_per_kind(self, engine: SearchEngine) -> None:
        result = next(r for r in engine.search_files("add") if r.file.name == "math.ts")
        assert sorted(m.kind for m in result.matches) == ["export", "function"]
        fn = next(m for m in result.matches if m.kind == "function")
        assert fn.context == "function add(a, b)"
        assert fn.line == 1

    def test_case_insensitive(self, engine: SearchEngine) -> None:
        assert [r.file.name for r in engine.search_files("TOTAL")] == ["adder.ts"]

    def test_variable_match(self, engine: SearchEngine) -> None:
        match = engine.search_files("total")[0].matches
        assert {m.kind for m in match} == {"variable", "export"}

    def test_no_match(self, engine: SearchEngine) -> None:
        assert engine.search_files("zzz") == []

    def test_whitespace_query_is_literal(self, engine: SearchEngine) -> None:
        assert engine.search_files("   ") == []

    def test_empty_query_matches_every_file(self, engine: SearchEngine) -> None:
        results = engine.search_files("")
        assert sorted(r.file.relative_path for r in results) == ["adder.ts", "main.ts", "math.ts"]
        assert all(any(m.kind == "file" for m in r.matches) for r in results)

    def test_match_kinds_are_known(self, engine: SearchEngine) -> None:
        kinds = {m.kind for r in engine.search_files("") for m in r.matches}
        kinds |= {m.kind for r in engine.find_usages("add") for m in r.matches}
        assert kinds <= MATCH_KINDS
        assert "import" in kinds

    def test_results_sorted_descending(self, engine: SearchEngine) -> None:
        scores = [r.score for r in engine.search_files("a")]
        assert scores == sorted(scores, reverse=True)


class TestFindUsages:
    def test_definition_and_imports(self, engine: SearchEngine) -> None:
        results = {r.file.relative_path: r for r in engine.find_usages("add")}
        assert set(results) == {"math.ts", "main.ts"}

        definition = results["math.ts"].matches
        assert [m.context for m in definition] == ["[definition] function add"]

        imports = results["main.ts"]
        assert imports.score == 2
        assert [m.kind for m in imports.matches] == ["import", "import"]
        assert imports.matches[0].context == "import { add } from './math'"

    def test_alias_is_matched(self, engine: SearchEngine) -> None:
        results = engine.find_usages("plus")
        assert [r.file.name for r in results] == ["main.ts"]

    def test_exact_name_only(self, engine: SearchEngine) -> None:
        assert engine.find_usages("ad") == []

    def test_variable_definition(self, engine: SearchEngine) -> None:
        result = engine.find_usages("total")[0]
        assert result.matches[0].context == "[definition] const total"


class TestIndexerDelegation:
    def test_indexer_delegates(self, search_project: Path) -> None:
        indexer = ProjectIndexer(search_project)
        indexer.index_project()
        assert indexer.search_files("add")[0].file.name == "adder.ts"
        assert len(indexer.find_usages("add")) == 2

    def test_requires_built_index(self) -> None:
        with pytest.raises(IndexNotBuiltError):
            SearchEngine(None)


# ── Record validation ─────────────────────────────────────────────────────────


class TestRecordValidation:
    def test_unknown_match_kind_rejected(self) -> None:
        with pytest.raises(ValueError, match="match kind"):
            SearchMatch(kind="method", name="x", line=1, context="x")

    @pytest.mark.parametrize("record_type", [MethodRecord, PropertyRecord])
    def test_unknown_visibility_rejected(self, record_type) -> None:
        with pytest.raises(ValueError, match="visibility"):
            record_type(name="x", line=1, visibility="internal")

    def test_private_and_protected_accepted(self) -> None:
        assert MethodRecord(name="_x", line=1, visibility="protected").visibility == "protected"
        assert PropertyRecord(name="__x", line=1, visibility="private").visibility == "private"

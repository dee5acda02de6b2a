"""Project index module — in-memory symbol catalog and dependency graph."""

from depindex.index.codemap_generator import CodemapGenerator
from depindex.index.errors import IndexNotBuiltError
from depindex.index.graph import DependencyGraph, GraphStats
from depindex.index.project_indexer import ProjectIndexer
from depindex.index.schema import (
    ExtractedSymbols,
    FileRecord,
    ImportRecord,
    ProjectIndex,
    ProjectStatistics,
    SearchResult,
)
from depindex.index.search import SearchEngine
from depindex.index.symbol_extractor import SymbolExtractor, extract_symbols

__all__ = [
    "CodemapGenerator",
    "DependencyGraph",
    "ExtractedSymbols",
    "FileRecord",
    "GraphStats",
    "ImportRecord",
    "IndexNotBuiltError",
    "ProjectIndex",
    "ProjectIndexer",
    "ProjectStatistics",
    "SearchEngine",
    "SearchResult",
    "SymbolExtractor",
    "extract_symbols",
]

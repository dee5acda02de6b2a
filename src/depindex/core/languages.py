"""Extension tables shared by the extractor, the indexer and the config."""

from __future__ import annotations

DEFAULT_EXTENSIONS: tuple[str, ...] = (
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs",
    ".vue", ".svelte",
    ".json", ".yaml", ".yml",
    ".md", ".mdx",
    ".css", ".scss", ".less", ".sass",
    ".html", ".htm",
    ".py", ".rb", ".go", ".rs", ".java", ".kt", ".swift",
)

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    "node_modules",
    ".git",
    "dist",
    "build",
    "out",
    ".next",
    ".nuxt",
    ".cache",
    "coverage",
    "__pycache__",
    ".pytest_cache",
    "vendor",
    ".idea",
    ".vscode",
)

EXTENSION_TO_LANGUAGE: dict[str, str] = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".vue": "vue",
    ".svelte": "svelte",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".md": "markdown",
    ".mdx": "mdx",
    ".css": "css",
    ".scss": "scss",
    ".less": "less",
    ".sass": "sass",
    ".html": "html",
    ".htm": "html",
    ".py": "python",
    ".rb": "ruby",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".kt": "kotlin",
    ".swift": "swift",
}

# Languages the symbol extractor knows how to scan.
EXTRACTABLE_LANGUAGES = frozenset({"typescript", "javascript", "python"})

# Suffixes appended to a relative specifier when resolving it, tried in order.
_JS_RESOLVE_SUFFIXES: tuple[str, ...] = (
    "",
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs",
    "/index.ts", "/index.tsx", "/index.js", "/index.jsx",
)

RESOLVE_SUFFIXES: dict[str, tuple[str, ...]] = {
    "typescript": _JS_RESOLVE_SUFFIXES,
    "javascript": _JS_RESOLVE_SUFFIXES,
    "vue": _JS_RESOLVE_SUFFIXES,
    "svelte": _JS_RESOLVE_SUFFIXES,
    "python": ("", ".py", "/__init__.py"),
}


def detect_language(extension: str) -> str:
    """Return the language tag for a file extension, or ``"unknown"``."""
    return EXTENSION_TO_LANGUAGE.get(extension.lower(), "unknown")


def resolve_suffixes(language: str) -> tuple[str, ...]:
    return RESOLVE_SUFFIXES.get(language, _JS_RESOLVE_SUFFIXES)

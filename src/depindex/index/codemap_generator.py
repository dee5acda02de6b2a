"""CodemapGenerator — render a CODEMAPS.md document from a ProjectIndex.

Produces a Markdown overview of the indexed tree:

  • Stats header (files, directories, lines, timestamp, languages)
  • Hotspots: most-imported files and dependency cycles
  • One section per directory with each file's classes, functions and
    top-level variables
"""

from __future__ import annotations

import datetime
import logging
import posixpath
from pathlib import Path

from depindex.index.schema import FileRecord, ProjectIndex

logger = logging.getLogger(__name__)


class CodemapGenerator:
    """Generate a CODEMAPS.md document from a ``ProjectIndex``.

    Parameters
    ----------
    index:
        A built index (see ``ProjectIndexer.index_project``).
    """

    def __init__(self, index: ProjectIndex) -> None:
        self._index = index

    # ── Public API ────────────────────────────────────────────────────────────

    def generate(self) -> str:
        """Return the full CODEMAPS.md content as a string."""
        stats = self._index.statistics
        parts: list[str] = ["# Project Codemap\n"]

        dt = datetime.datetime.fromtimestamp(self._index.indexed_at, tz=datetime.timezone.utc)
        parts.append(
            f"> Indexed: {dt.strftime('%Y-%m-%d %H:%M')} UTC · "
            f"{stats.total_files} files · "
            f"{stats.total_directories} directories · "
            f"{stats.total_lines} lines\n"
        )

        if stats.language_breakdown:
            lang_summary = ", ".join(
                f"{cnt} {lang}" for lang, cnt in sorted(stats.language_breakdown.items())
            )
            parts.append(f"> Languages: {lang_summary}\n")

        # ── Hotspots ──────────────────────────────────────────────────────────
        if stats.most_imported:
            parts.append("\n## Most Imported\n")
            parts.extend(
                f"- `{entry.path}` ({entry.count} dependents)" for entry in stats.most_imported
            )
            parts.append("")

        if stats.circular_dependencies:
            parts.append("\n## Circular Dependencies\n")
            parts.extend(
                "- " + " → ".join(f"`{p}`" for p in cycle)
                for cycle in stats.circular_dependencies
            )
            parts.append("")

        # ── Sections by directory ─────────────────────────────────────────────
        by_dir: dict[str, list[FileRecord]] = {}
        for record in self._index.files.values():
            parent = posixpath.dirname(record.relative_path) or "."
            by_dir.setdefault(parent, []).append(record)

        for directory in sorted(by_dir):
            heading = "(root)" if directory == "." else directory
            parts.append(f"\n## {heading}\n")
            for record in sorted(by_dir[directory], key=lambda r: r.relative_path):
                parts.append(self._render_file(record))

        return "\n".join(parts)

    def write(self, output_path: Path) -> None:
        """Write the codemap to *output_path*, creating parent dirs if needed."""
        output_path.parent.mkdir(parents=True, exist_ok=True)
        content = self.generate()
        output_path.write_text(content, encoding="utf-8")
        logger.info("Wrote codemap (%d chars) to %s", len(content), output_path)

    # ── Internal helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _render_file(record: FileRecord) -> str:
        """Render one file as a Markdown subsection."""
        meta = f"{record.language}, {record.line_count} lines"
        if record.dependents:
            meta += f", {len(record.dependents)} dependents"
        heading = f"### `{record.relative_path}` ({meta})"

        lines: list[str] = [heading]
        if record.dependencies:
            deps = ", ".join(f"`{d}`" for d in record.dependencies)
            lines.append(f"Depends on: {deps}")

        if not (record.classes or record.functions or record.variables):
            lines.append("*(no symbols)*")
            return "\n".join(lines) + "\n"

        for cls in sorted(record.classes, key=lambda c: c.line):
            priv = "" if cls.is_exported else " *(private)*"
            base = f" extends `{cls.extends}`" if cls.extends else ""
            lines.append(f"- `{cls.name}` class{base}{priv}")
            for method in sorted(cls.methods, key=lambda m: m.line):
                m_priv = "" if method.visibility == "public" else f" *({method.visibility})*"
                lines.append(f"  - `{method.name}` method{m_priv}")

        for fn in sorted(record.functions, key=lambda f: f.line):
            priv = "" if fn.is_exported else " *(private)*"
            lines.append(f"- `{fn.name}` function{priv}")

        for var in sorted(record.variables, key=lambda v: v.line):
            priv = "" if var.is_exported else " *(private)*"
            lines.append(f"- `{var.name}` {var.kind}{priv}")

        return "\n".join(lines) + "\n"

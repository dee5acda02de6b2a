"""depindex - project symbol index and dependency graph."""

import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

load_dotenv()

_HELP = """\
Usage: depindex index [--codemap] [--dir <path>]
       depindex search <query> [--dir <path>]
       depindex usages <name> [--dir <path>]
       depindex cycles [--dir <path>]

Commands:
  index      Index the project and print a summary
  search     Rank files whose names or symbols contain <query>
  usages     List definitions and imports of <name>
  cycles     List circular dependencies between project files

Options:
  --dir <path>   Project root (default: current directory)
  --codemap      Also write CODEMAPS.md (index only)
  --help, -h     Show this help message and exit
"""

_console = Console()


def main() -> None:
    """Entry point for the depindex CLI."""
    args = sys.argv[1:]

    if not args or "--help" in args or "-h" in args:
        print(_HELP)
        sys.exit(0)

    _configure_logging()

    command, rest = args[0], args[1:]
    if command == "index":
        _run_index(rest)
    elif command == "search":
        _run_search(rest)
    elif command == "usages":
        _run_usages(rest)
    elif command == "cycles":
        _run_cycles(rest)
    else:
        print(f"Unknown command: {command}")
        print("Run 'depindex --help' for usage.")
        sys.exit(1)


def _configure_logging() -> None:
    from depindex.core.config import EnvSettings

    level = EnvSettings().log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _parse_args(args: list[str], usage: str, positional: bool) -> tuple[str | None, Path, bool]:
    """Split sub-command argv into (positional, project_dir, --codemap)."""
    value: str | None = None
    project_dir = Path.cwd()
    write_codemap = False

    i = 0
    while i < len(args):
        if args[i] == "--dir" and i + 1 < len(args):
            project_dir = Path(args[i + 1])
            i += 2
        elif args[i] == "--codemap" and not positional:
            write_codemap = True
            i += 1
        elif positional and value is None and not args[i].startswith("--"):
            value = args[i]
            i += 1
        else:
            print(f"Unknown argument: {args[i]}")
            print(f"Usage: {usage}")
            sys.exit(1)

    if positional and value is None:
        print(f"Usage: {usage}")
        sys.exit(1)

    return value, project_dir, write_codemap


def _build_indexer(project_dir: Path, progress: bool = False):
    from depindex.core.config import load_config
    from depindex.index.project_indexer import ProjectIndexer

    config = load_config(project_dir=project_dir)
    indexer = ProjectIndexer(project_dir=project_dir, config=config.indexer)

    total_files: list[int] = [0]

    def _progress(i: int, n: int, name: str) -> None:
        total_files[0] = n
        print(f"\r  [{i}/{n}] {name:<50}", end="", flush=True)

    indexer.index_project(progress_callback=_progress if progress else None)
    if total_files[0]:
        print()  # newline after progress
    return indexer, config


def _run_index(args: list[str]) -> None:
    """Index the project and print a summary."""
    _, project_dir, write_codemap = _parse_args(
        args, "depindex index [--codemap] [--dir <path>]", positional=False,
    )

    print(f"Indexing {project_dir}...")
    indexer, config = _build_indexer(project_dir, progress=True)
    index = indexer.index
    s = index.statistics

    print(f"\nTotal: {s.total_files} files · {s.total_directories} directories · {s.total_lines} lines")
    print(f"Graph: {len(index.graph)} nodes · {index.graph.edge_count} edges")

    if s.language_breakdown:
        lang_str = ", ".join(
            f"{cnt} {lang}"
            for lang, cnt in sorted(s.language_breakdown.items(), key=lambda x: -x[1])
        )
        print(f"Languages: {lang_str}")

    if s.most_imported:
        table = Table(title="Most imported", show_header=True, header_style="bold cyan")
        table.add_column("File", style="bold")
        table.add_column("Dependents", justify="right")
        for entry in s.most_imported:
            table.add_row(entry.path, str(entry.count))
        _console.print(table)

    if s.circular_dependencies:
        _console.print(f"[yellow]{len(s.circular_dependencies)} circular dependencies[/yellow]")

    if write_codemap:
        from depindex.index.codemap_generator import CodemapGenerator

        codemap_path = project_dir / config.codemap.output
        CodemapGenerator(index).write(codemap_path)
        print(f"Codemap written to {codemap_path}")


def _run_search(args: list[str]) -> None:
    """Rank files matching a query."""
    query, project_dir, _ = _parse_args(
        args, "depindex search <query> [--dir <path>]", positional=True,
    )
    indexer, _ = _build_indexer(project_dir)
    results = indexer.search_files(query)

    if not results:
        print(f"No matches for '{query}'.")
        return

    table = Table(title=f"Search: {query}", show_header=True, header_style="bold cyan")
    table.add_column("Score", justify="right")
    table.add_column("File", style="bold")
    table.add_column("Matches")
    for result in results:
        matches = ", ".join(f"{m.kind}:{m.name}" for m in result.matches)
        table.add_row(str(result.score), result.file.relative_path, matches)
    _console.print(table)


def _run_usages(args: list[str]) -> None:
    """List definitions and imports of a name."""
    name, project_dir, _ = _parse_args(
        args, "depindex usages <name> [--dir <path>]", positional=True,
    )
    indexer, _ = _build_indexer(project_dir)
    results = indexer.find_usages(name)

    if not results:
        print(f"No usages of '{name}'.")
        return

    table = Table(title=f"Usages: {name}", show_header=True, header_style="bold cyan")
    table.add_column("File", style="bold")
    table.add_column("Line", justify="right")
    table.add_column("Context")
    for result in results:
        for match in result.matches:
            table.add_row(result.file.relative_path, str(match.line), match.context)
    _console.print(table)


def _run_cycles(args: list[str]) -> None:
    """List circular dependencies; exit status 1 when any exist."""
    _, project_dir, _ = _parse_args(args, "depindex cycles [--dir <path>]", positional=False)
    indexer, _ = _build_indexer(project_dir)
    cycles = indexer.index.statistics.circular_dependencies

    if not cycles:
        print("No circular dependencies.")
        return

    table = Table(title="Circular dependencies", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    table.add_column("Cycle")
    for i, cycle in enumerate(cycles, 1):
        table.add_row(str(i), " → ".join(cycle))
    _console.print(table)
    sys.exit(1)


if __name__ == "__main__":
    main()

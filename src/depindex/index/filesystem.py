"""Filesystem access used by the indexer.

Any object with ``read_text``, ``stat`` and ``list_dir`` can stand in for
``LocalFileSystem`` (tests use this to simulate unreadable entries).
Errors surface as ``OSError`` and are handled by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True)
class FileStat:
    size: int
    mtime: float    # Unix timestamp


@dataclass(frozen=True)
class DirEntry:
    name: str
    path: Path
    is_dir: bool
    is_file: bool


class FileSystem(Protocol):
    def read_text(self, path: Path) -> str: ...

    def stat(self, path: Path) -> FileStat: ...

    def list_dir(self, path: Path) -> list[DirEntry]: ...


class LocalFileSystem:
    """pathlib-backed filesystem.  Text is decoded as UTF-8 with replacement."""

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8", errors="replace")

    def stat(self, path: Path) -> FileStat:
        st = path.stat()
        return FileStat(size=st.st_size, mtime=st.st_mtime)

    def list_dir(self, path: Path) -> list[DirEntry]:
        """Entries of *path* sorted by name.  Symlinked directories are not descended into."""
        entries: list[DirEntry] = []
        for child in sorted(path.iterdir(), key=lambda p: p.name):
            try:
                is_dir = child.is_dir() and not child.is_symlink()
                is_file = child.is_file()
            except OSError:
                is_dir = is_file = False
            entries.append(DirEntry(name=child.name, path=child, is_dir=is_dir, is_file=is_file))
        return entries

"""Filesystem access.

Manifest discovery and editing only touch the disk through `FileSystem`, so
they can run against `MemoryFileSystem` in tests. Implementations raise
`OSError` subclasses; callers convert them into Result errors.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

__all__ = [
    "FileSystem",
    "LocalFileSystem",
    "MemoryFileSystem",
    "atomic_write_text",
]


class FileSystem(Protocol):
    """Read/write/list operations needed by the bump engine."""

    def read_text(self, path: Path) -> str:
        """Return file content with line endings untouched."""
        ...

    def write_text(self, path: Path, content: str) -> None:
        """Replace file content."""
        ...

    def is_file(self, path: Path) -> bool: ...

    def is_dir(self, path: Path) -> bool: ...

    def is_symlink(self, path: Path) -> bool: ...

    def list_dir(self, path: Path) -> list[Path]:
        """Return the direct children of a directory, in no particular order."""
        ...


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write text to path atomically using temp file + replace."""
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=str(path.parent),
    )
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        _copy_mode(path, tmp_path)
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def _copy_mode(src: Path, dst: Path) -> None:
    # mkstemp creates 0600 files; keep the manifest's original permissions.
    try:
        mode = src.stat().st_mode
    except FileNotFoundError:
        return
    os.chmod(dst, mode & 0o7777)


class LocalFileSystem:
    """The real filesystem."""

    def read_text(self, path: Path) -> str:
        with path.open("r", encoding="utf-8", newline="") as handle:
            return handle.read()

    def write_text(self, path: Path, content: str) -> None:
        if path.exists() and not os.access(path, os.W_OK):
            raise PermissionError(f"permission denied: {path}")
        atomic_write_text(path, content)

    def is_file(self, path: Path) -> bool:
        return path.is_file()

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def is_symlink(self, path: Path) -> bool:
        return path.is_symlink()

    def list_dir(self, path: Path) -> list[Path]:
        return list(path.iterdir())


def _empty_files() -> dict[Path, str]:
    return {}


def _empty_failures() -> dict[Path, OSError]:
    return {}


def _empty_writes() -> list[Path]:
    return []


def _empty_symlinks() -> set[Path]:
    return set()


@dataclass
class MemoryFileSystem:
    """In-memory filesystem for tests.

    Directories exist implicitly as parents of stored files. Paths listed in
    `write_failures` raise the mapped error on write, leaving content unchanged.
    Paths in `symlinks` report as symbolic links.
    """

    files: dict[Path, str] = field(default_factory=_empty_files)
    write_failures: dict[Path, OSError] = field(default_factory=_empty_failures)
    writes: list[Path] = field(default_factory=_empty_writes)
    symlinks: set[Path] = field(default_factory=_empty_symlinks)

    def read_text(self, path: Path) -> str:
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(f"no such file: {path}") from None

    def write_text(self, path: Path, content: str) -> None:
        error = self.write_failures.get(path)
        if error is not None:
            raise error
        if not self.is_dir(path.parent):
            raise FileNotFoundError(f"no such directory: {path.parent}")
        self.files[path] = content
        self.writes.append(path)

    def is_file(self, path: Path) -> bool:
        return path in self.files

    def is_dir(self, path: Path) -> bool:
        return any(path in p.parents for p in self.files)

    def is_symlink(self, path: Path) -> bool:
        return path in self.symlinks

    def list_dir(self, path: Path) -> list[Path]:
        children: set[Path] = set()
        for p in self.files:
            if path not in p.parents:
                continue
            rel = p.relative_to(path)
            children.add(path / rel.parts[0])
        return list(children)

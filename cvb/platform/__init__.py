"""Platform abstraction layer."""

from .files import FileSystem, LocalFileSystem, MemoryFileSystem, atomic_write_text
from .process import ProcessError, run

__all__ = [
    # files
    "FileSystem",
    "LocalFileSystem",
    "MemoryFileSystem",
    "atomic_write_text",
    # process
    "ProcessError",
    "run",
]

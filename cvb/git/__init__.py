"""Git operations.

Usage:
    from cvb.git import Repository

    repo = Repository.discover(Path("."))
"""

from cvb.git.repository import (
    GitError,
    Repository,
    StatusEntry,
    VersionControl,
)

__all__ = [
    "GitError",
    "Repository",
    "StatusEntry",
    "VersionControl",
]

"""Git repository abstraction.

`VersionControl` is the capability the bump workflow needs: stage, commit,
tag and push, plus the read-only queries used for preflight checks and
`only-show`. `Repository` implements it by running the `git` executable.
All operations return Result types.

Usage:
    match Repository.discover(Path("crates/core")):
        case Ok(repo):
            repo.stage([Path("Cargo.toml")])
            repo.commit("chore: bump version to 1.2.0", [Path("Cargo.toml")])
            repo.tag("v1.2.0", "v1.2.0")
        case Err(e):
            print(f"not a git repository: {e.message}")
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from cvb.core.result import Err, Ok, Result
from cvb.platform.process import ProcessError
from cvb.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

__all__ = [
    "GitError",
    "Repository",
    "StatusEntry",
    "VersionControl",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A modified tracked file from `git status --porcelain`.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M")
        path: File path relative to the repository root
    """

    xy: str
    path: str

    def pretty_xy(self) -> str:
        """Format XY with dots for spaces (". M" instead of " M")."""
        return self.xy.replace(" ", ".")


class VersionControl(Protocol):
    """Version-control operations used by the bump workflow."""

    def dirty_entries(self) -> Result[list[StatusEntry], GitError]:
        """Tracked files with uncommitted changes."""
        ...

    def tag_names(self, pattern: str) -> Result[list[str], GitError]:
        """Tag names matching a glob pattern."""
        ...

    def remote_exists(self, name: str) -> Result[bool, GitError]: ...

    def current_branch(self) -> str | None:
        """Current branch name, None on detached HEAD."""
        ...

    def stage(self, paths: Sequence[Path]) -> Result[None, GitError]: ...

    def commit(self, message: str, paths: Sequence[Path]) -> Result[str, GitError]:
        """Commit only `paths` and return the new commit id.

        Other changes already in the index stay staged and out of the commit.
        """
        ...

    def tag(self, name: str, message: str) -> Result[None, GitError]:
        """Create an annotated tag on HEAD."""
        ...

    def push(self, remote: str, refs: Sequence[str]) -> Result[None, GitError]: ...


class Repository:
    """A git working tree driven through the `git` executable.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    @classmethod
    def discover(cls, start: Path) -> Result[Repository, GitError]:
        """Find the repository containing `start` by walking up its parents."""
        result = run_process(
            ["git", "-C", str(start), "rev-parse", "--show-toplevel"],
            cwd=start,
            timeout=_GIT_TIMEOUT_SECONDS,
        )
        match result:
            case Err(e):
                return Err(_git_error("rev-parse --show-toplevel", e, "not a git repository"))
            case Ok(stdout):
                return Ok(cls(Path(stdout.strip())))

    def dirty_entries(self) -> Result[list[StatusEntry], GitError]:
        result = self._run(["status", "--porcelain=v1", "--untracked-files=no"])
        match result:
            case Err(e):
                return Err(_git_error("status", e, "git status failed"))
            case Ok(stdout):
                entries: list[StatusEntry] = []
                for line in stdout.splitlines():
                    if len(line) < 4:
                        continue
                    entries.append(StatusEntry(xy=line[:2], path=line[3:]))
                return Ok(entries)

    def tag_names(self, pattern: str) -> Result[list[str], GitError]:
        result = self._run(["tag", "--list", pattern])
        match result:
            case Err(e):
                return Err(_git_error("tag --list", e, "git tag --list failed"))
            case Ok(stdout):
                return Ok([ln.strip() for ln in stdout.splitlines() if ln.strip()])

    def remote_exists(self, name: str) -> Result[bool, GitError]:
        result = self._run(["remote"])
        match result:
            case Err(e):
                return Err(_git_error("remote", e, "git remote failed"))
            case Ok(stdout):
                return Ok(name in {ln.strip() for ln in stdout.splitlines()})

    def current_branch(self) -> str | None:
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        match result:
            case Ok(stdout):
                branch = stdout.strip()
                return None if branch == "HEAD" else branch
            case Err(_):
                return None

    def stage(self, paths: Sequence[Path]) -> Result[None, GitError]:
        result = self._run(["add", "--", *(str(p) for p in paths)])
        match result:
            case Err(e):
                return Err(_git_error("add", e, "git add failed"))
            case Ok(_):
                return Ok(None)

    def commit(self, message: str, paths: Sequence[Path]) -> Result[str, GitError]:
        result = self._run(["commit", "-m", message, "--only", "--", *(str(p) for p in paths)])
        if isinstance(result, Err):
            return Err(_git_error("commit", result.error, "git commit failed"))

        head = self._run(["rev-parse", "HEAD"])
        match head:
            case Err(e):
                return Err(_git_error("rev-parse HEAD", e, "cannot read new commit id"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def tag(self, name: str, message: str) -> Result[None, GitError]:
        result = self._run(["tag", "-a", name, "-m", message])
        match result:
            case Err(e):
                return Err(_git_error("tag -a", e, "git tag failed"))
            case Ok(_):
                return Ok(None)

    def push(self, remote: str, refs: Sequence[str]) -> Result[None, GitError]:
        result = self._run(["push", remote, *refs])
        match result:
            case Err(e):
                return Err(_git_error("push", e, "git push failed"))
            case Ok(_):
                return Ok(None)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS
            if command in {"fetch", "pull", "push"}
            else _GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)


def _git_error(command: str, error: ProcessError, fallback: str) -> GitError:
    return GitError(
        command=command,
        message=error.stderr.strip() or error.stdout.strip() or fallback,
        returncode=error.returncode,
    )

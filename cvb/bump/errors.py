from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

BumpErrorKind = Literal[
    "invalid_path",
    "invalid_config",
    "not_a_repository",
    "no_manifest_found",
    "ambiguous_selection",
    "version_mismatch",
    "version_unchanged",
    "malformed_version",
    "missing_version_field",
    "dirty_worktree",
    "tag_exists",
    "remote_missing",
    "detached_head",
    "io_failure",
    "write_permission_denied",
    "vcs_failure",
    "push_failed",
]


@dataclass(frozen=True, slots=True)
class BumpError:
    """Error payload shared by every stage of a bump run.

    `hint` usually names the file or ref the error is about.
    """

    kind: BumpErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message

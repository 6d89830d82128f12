"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cvb.bump.errors import BumpErrorKind
from cvb.core.errors import ErrorCode
from cvb.output.console import Style

if TYPE_CHECKING:
    from cvb.bump.model import RunOutcome
    from cvb.output.console import ConsoleProtocol

__all__ = ["bump_error_exit_code", "outcome_exit_code", "print_outcome"]


def bump_error_exit_code(kind: BumpErrorKind) -> int:
    """Get exit code for an error kind."""
    match kind:
        case (
            "invalid_path"
            | "invalid_config"
            | "no_manifest_found"
            | "ambiguous_selection"
            | "version_mismatch"
            | "version_unchanged"
            | "malformed_version"
            | "missing_version_field"
        ):
            return int(ErrorCode.USER_ERROR)
        case "not_a_repository" | "dirty_worktree" | "tag_exists" | "remote_missing" | "detached_head":
            return int(ErrorCode.ENV_ERROR)
        case "vcs_failure":
            return int(ErrorCode.VCS_ERROR)
        case "push_failed":
            return int(ErrorCode.NETWORK_ERROR)
        case "io_failure" | "write_permission_denied":
            return int(ErrorCode.IO_ERROR)


def outcome_exit_code(outcome: RunOutcome) -> int:
    if outcome.error is None:
        return int(ErrorCode.OK)
    return bump_error_exit_code(outcome.error.kind)


def print_outcome(outcome: RunOutcome, console: ConsoleProtocol) -> None:
    """Print the final summary of a run, including what is left behind on failure."""
    error = outcome.error
    if error is None:
        if outcome.dry_run:
            return
        if outcome.intent is None:
            console.success("done")
            return
        pushed = f", pushed to {outcome.intent.remote}" if outcome.pushed else ""
        console.success(f"released {outcome.intent.tag}{pushed}")
        return

    console.error(f"{error.kind} during {outcome.stage.value}: {error.message}")
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)

    for failure in outcome.rollback_failures:
        console.print(f"rollback: {failure.pretty()}", Style.DIM)
    if outcome.rolled_back:
        console.print(f"rolled back {len(outcome.rolled_back)} manifest(s)", Style.DIM)

    if outcome.status != "partial":
        return
    left: list[str] = []
    if outcome.remaining_writes:
        left.append(f"{len(outcome.remaining_writes)} modified manifest(s)")
    if outcome.commit_id:
        left.append(f"commit {outcome.commit_id[:10]}")
    if outcome.tag:
        left.append(f"tag {outcome.tag}")
    if left:
        console.warning(f"left in place: {', '.join(left)}")

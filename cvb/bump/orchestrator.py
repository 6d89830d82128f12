"""Bump workflow: discover, resolve, edit, stage, commit, tag, push.

Each stage runs only after the previous one fully succeeded. Failure
handling differs per stage:

- discovering/resolving: nothing has been written yet, the run just stops.
- editing: manifests already written in this run are restored to their
  original content (best effort, no retry) before stopping.
- staging/committing/tagging: manifest edits stay on disk.
- pushing: the local commit and tag stay in place.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from pathlib import Path

from cvb.bump.editor import ManifestEdit, apply_version, compute_target
from cvb.bump.errors import BumpError
from cvb.bump.locator import find_manifests, read_records, select
from cvb.bump.model import (
    ChangeCommand,
    IncrementVersion,
    ManifestRecord,
    ReleaseIntent,
    RunOutcome,
    Selection,
    SelectionPolicy,
    Stage,
)
from cvb.core.config import BumpConfig, render_template
from cvb.core.result import Err, Ok, Result
from cvb.git.repository import GitError, VersionControl
from cvb.output.console import ConsoleProtocol, Style
from cvb.platform.files import FileSystem

__all__ = ["ResolvedRun", "RunOptions", "resolve_intent", "run_release"]

_INDENT = "      "


@dataclass(frozen=True, slots=True)
class RunOptions:
    """Per-invocation choices, as given on the command line."""

    root: Path
    command: ChangeCommand
    policy: SelectionPolicy | None = None
    scan_subdirs: bool = False
    push: bool = False
    allow_dirty: bool = False
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class ResolvedRun:
    """Result of the resolving stage."""

    records: tuple[ManifestRecord, ...]
    selection: Selection
    intent: ReleaseIntent


def _vcs_error(action: str, error: GitError, *, push: bool = False) -> BumpError:
    return BumpError(
        kind="push_failed" if push else "vcs_failure",
        message=f"{action} failed: {error.message}",
        hint=f"git {error.command} (exit {error.returncode})",
    )


def _fail(outcome: RunOutcome, stage: Stage, error: BumpError, console: ConsoleProtocol) -> RunOutcome:
    console.debug(f"run failed during {stage.value}: {error.kind}")
    return replace(outcome, stage=stage, error=error)


def _check_versions_agree(records: Sequence[ManifestRecord]) -> Result[None, BumpError]:
    versions = {r.version for r in records}
    if len(versions) <= 1:
        return Ok(None)
    listing = ", ".join(f"{r.path}={r.version}" for r in records)
    return Err(
        BumpError(
            kind="version_mismatch",
            message="incrementing all manifests requires them to share one version",
            hint=f"use 'fixed' instead; found {listing}",
        )
    )


def _preflight(
    intent: ReleaseIntent,
    *,
    vcs: VersionControl,
    allow_dirty: bool,
) -> Result[ReleaseIntent, BumpError]:
    """Read-only checks that must pass before the first write."""
    tags = vcs.tag_names(intent.tag)
    if isinstance(tags, Err):
        return Err(_vcs_error("listing tags", tags.error))
    if intent.tag in tags.value:
        return Err(
            BumpError(
                kind="tag_exists",
                message=f"tag '{intent.tag}' already exists",
                hint="choose another version or delete the tag",
            )
        )

    if not allow_dirty:
        dirty = vcs.dirty_entries()
        if isinstance(dirty, Err):
            return Err(_vcs_error("reading status", dirty.error))
        if dirty.value:
            listing = ", ".join(f"{e.pretty_xy()} {e.path}" for e in dirty.value[:5])
            return Err(
                BumpError(
                    kind="dirty_worktree",
                    message=f"there are {len(dirty.value)} uncommitted changes, commit them first",
                    hint=listing,
                )
            )

    if not intent.push:
        return Ok(intent)

    exists = vcs.remote_exists(intent.remote)
    if isinstance(exists, Err):
        return Err(_vcs_error("listing remotes", exists.error))
    if not exists.value:
        return Err(
            BumpError(
                kind="remote_missing",
                message=f"git remote '{intent.remote}' not found",
                hint="use --remote to pick another remote",
            )
        )

    branch = vcs.current_branch()
    if branch is None:
        return Err(
            BumpError(
                kind="detached_head",
                message="HEAD is detached, there is no branch to push",
                hint="check out a branch or run without --push",
            )
        )
    return Ok(replace(intent, branch=branch))


def resolve_intent(
    paths: Sequence[Path],
    *,
    options: RunOptions,
    config: BumpConfig,
    fs: FileSystem,
) -> Result[ResolvedRun, BumpError]:
    """Read current versions and compute what the run will write. No side effects."""
    records = read_records(paths, fs=fs)
    if isinstance(records, Err):
        return records

    selection = select(records.value, options.policy, root=options.root)
    if isinstance(selection, Err):
        return selection

    if isinstance(options.command, IncrementVersion) and options.policy is SelectionPolicy.ALL:
        agree = _check_versions_agree(records.value)
        if isinstance(agree, Err):
            return agree

    previous = selection.value.authoritative.version
    target = compute_target(previous, options.command)
    if isinstance(target, Err):
        return target

    if all(r.version == target.value for r in selection.value.targets):
        return Err(
            BumpError(
                kind="version_unchanged",
                message=f"manifests are already at version {target.value}",
            )
        )

    tag = target.value.to_tag(config.tag_prefix)
    messages: list[str] = []
    for template in (config.commit_message, config.tag_message):
        rendered = render_template(template, version=str(target.value), previous=str(previous), tag=tag)
        if isinstance(rendered, Err):
            return Err(BumpError(kind="invalid_config", message=rendered.error.message))
        messages.append(rendered.value)

    intent = ReleaseIntent(
        previous=previous,
        target=target.value,
        tag=tag,
        commit_message=messages[0],
        tag_message=messages[1],
        remote=config.remote,
        push=options.push,
    )
    return Ok(ResolvedRun(records=tuple(records.value), selection=selection.value, intent=intent))


def _rollback(
    edits: Sequence[ManifestEdit], *, fs: FileSystem, console: ConsoleProtocol
) -> tuple[tuple[Path, ...], tuple[BumpError, ...]]:
    restored: list[Path] = []
    failures: list[BumpError] = []
    for edit in reversed(edits):
        try:
            fs.write_text(edit.path, edit.original)
        except OSError as e:
            failure = BumpError(
                kind="io_failure",
                message=f"could not restore {edit.path}: {e}",
                hint="restore it manually, e.g. with git checkout",
            )
            failures.append(failure)
            console.error(failure.pretty())
            continue
        restored.append(edit.path)
        console.print(f"{_INDENT}restored {edit.path}", Style.DIM)
    return (tuple(restored), tuple(failures))


def run_release(
    *,
    options: RunOptions,
    config: BumpConfig,
    fs: FileSystem,
    vcs: VersionControl,
    console: ConsoleProtocol,
) -> RunOutcome:
    """Run the whole bump workflow and report what happened.

    Never raises for expected failures; inspect `RunOutcome.error`.
    """
    total = 5 if options.push else 4
    outcome = RunOutcome(stage=Stage.DISCOVERING, dry_run=options.dry_run)

    # [1] discovering + resolving
    console.step(1, total, "Analysing cargo project")
    paths = find_manifests(
        options.root,
        scan_subdirs=options.scan_subdirs,
        fs=fs,
        manifest_name=config.manifest_name,
        exclude_dirs=config.exclude_dirs,
    )
    if isinstance(paths, Err):
        return _fail(outcome, Stage.DISCOVERING, paths.error, console)
    for path in paths.value:
        console.print(f"{_INDENT}found {path}", Style.DIM)

    outcome = replace(outcome, stage=Stage.RESOLVING)
    resolved = resolve_intent(paths.value, options=options, config=config, fs=fs)
    if isinstance(resolved, Err):
        return _fail(outcome, Stage.RESOLVING, resolved.error, console)
    records = resolved.value.records
    selection = resolved.value.selection
    outcome = replace(outcome, records=records)

    if len(records) > 1:
        console.debug(f"authoritative manifest: {selection.authoritative.path}")

    checked = _preflight(resolved.value.intent, vcs=vcs, allow_dirty=options.allow_dirty)
    if isinstance(checked, Err):
        return _fail(outcome, Stage.RESOLVING, checked.error, console)
    intent = checked.value
    outcome = replace(outcome, intent=intent)
    console.print(f"{_INDENT}{intent.previous} -> {intent.target} (tag {intent.tag})")

    if options.dry_run:
        for record in selection.targets:
            console.print(f"{_INDENT}would write {intent.target} to {record.path}", Style.DIM)
        console.info("dry run: no files or git state changed")
        return replace(outcome, stage=Stage.DONE)

    # [2] editing
    console.step(2, total, "Writing version to manifests")
    outcome = replace(outcome, stage=Stage.EDITING)
    edits: list[ManifestEdit] = []
    for record in selection.targets:
        applied = apply_version(record.path, intent.target, fs)
        if isinstance(applied, Err):
            written = tuple(e.path for e in edits)
            restored, failures = _rollback(edits, fs=fs, console=console)
            outcome = replace(
                outcome, written=written, rolled_back=restored, rollback_failures=failures
            )
            return _fail(outcome, Stage.EDITING, applied.error, console)
        if applied.value.changed:
            edits.append(applied.value)
            console.debug(f"wrote {record.path}")
        else:
            console.debug(f"{record.path} already at {intent.target}")
    written = tuple(e.path for e in edits)
    outcome = replace(outcome, written=written)

    # [3] staging + committing
    console.step(3, total, "Committing manifests")
    outcome = replace(outcome, stage=Stage.STAGING)
    staged = vcs.stage(written)
    if isinstance(staged, Err):
        return _fail(outcome, Stage.STAGING, _vcs_error("staging", staged.error), console)
    outcome = replace(outcome, staged=True, stage=Stage.COMMITTING)

    committed = vcs.commit(intent.commit_message, written)
    if isinstance(committed, Err):
        return _fail(
            outcome, Stage.COMMITTING, _vcs_error("commit", committed.error), console
        )
    outcome = replace(outcome, commit_id=committed.value)
    console.print(f"{_INDENT}committed {committed.value[:10]}: {intent.commit_message}", Style.DIM)

    # [4] tagging
    console.step(4, total, "Adding git tag")
    outcome = replace(outcome, stage=Stage.TAGGING)
    tagged = vcs.tag(intent.tag, intent.tag_message)
    if isinstance(tagged, Err):
        return _fail(outcome, Stage.TAGGING, _vcs_error("tag", tagged.error), console)
    outcome = replace(outcome, tag=intent.tag)

    # [5] pushing
    if intent.push:
        console.step(5, total, f"Pushing to '{intent.remote}'")
        outcome = replace(outcome, stage=Stage.PUSHING)
        console.debug(f"refs: {' '.join(intent.push_refs)}")
        pushed = vcs.push(intent.remote, intent.push_refs)
        if isinstance(pushed, Err):
            return _fail(
                outcome, Stage.PUSHING, _vcs_error("push", pushed.error, push=True), console
            )
        outcome = replace(outcome, pushed=True)

    return replace(outcome, stage=Stage.DONE)

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

import typer

from cvb import __version__
from cvb.bump.errors import BumpError
from cvb.bump.locator import discover
from cvb.bump.model import (
    ChangeCommand,
    FixedVersion,
    IncrementPart,
    IncrementVersion,
    SelectionPolicy,
)
from cvb.bump.orchestrator import RunOptions, run_release
from cvb.bump.query import print_version_report, show_versions
from cvb.cli.context import GlobalOptions, build_context, exit_with
from cvb.core.result import Err
from cvb.output.errors import outcome_exit_code, print_outcome


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Bump the version of Cargo.toml files, then commit, tag and optionally push it.",
)


class VersionPart(StrEnum):
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"


_PARTS: dict[VersionPart, IncrementPart] = {
    VersionPart.PATCH: "patch",
    VersionPart.MINOR: "minor",
    VersionPart.MAJOR: "major",
}


def _show_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    path: Path | None = typer.Option(
        None, "--path", "-p", help="Path of the project (defaults to the current directory)."
    ),
    cargo_file_selector: SelectionPolicy | None = typer.Option(
        None,
        "--cargo-file-selector",
        "-c",
        help="Which Cargo.toml seeds the new version when several are found.",
        case_sensitive=False,
    ),
    scan_subdirs: bool = typer.Option(
        False, "--scan-subdirs", "-s", help="Scan subdirectories for Cargo.toml files."
    ),
    tag_message: str | None = typer.Option(
        None, "--tag-message", "-t", help="Message of the annotated tag ({version}, {previous}, {tag})."
    ),
    commit_message: str | None = typer.Option(
        None, "--commit-message", help="Commit message ({version}, {previous}, {tag})."
    ),
    remote: str | None = typer.Option(
        None, "--remote", "-r", help="Git remote to push to (default: origin)."
    ),
    git_prefix_for_tag: str | None = typer.Option(
        None, "--git-prefix-for-tag", "-g", help="Prefix for the version tag (default: v)."
    ),
    push: bool = typer.Option(
        False, "--push/--no-push", help="Push the commit and the tag to the remote."
    ),
    allow_dirty: bool = typer.Option(
        False, "--allow-dirty", help="Do not require a clean working tree."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show what would change without writing anything."
    ),
    config: Path | None = typer.Option(
        None, "--config", help="Config file (default: .cvb.toml in the project path)."
    ),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Print debug information."),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        callback=_show_version,
        is_eager=True,
    ),
) -> None:
    del version
    ctx.obj = GlobalOptions(
        path=path,
        selector=cargo_file_selector,
        scan_subdirs=scan_subdirs,
        tag_message=tag_message,
        commit_message=commit_message,
        remote=remote,
        tag_prefix=git_prefix_for_tag,
        push=push,
        allow_dirty=allow_dirty,
        dry_run=dry_run,
        config_path=config,
        verbose=verbose,
    )


def _options(ctx: typer.Context) -> GlobalOptions:
    opts = ctx.obj
    if isinstance(opts, GlobalOptions):
        return opts
    return GlobalOptions()


def _release(opts: GlobalOptions, command: ChangeCommand) -> None:
    cli = build_context(opts)
    if cli.vcs is None:
        exit_with(
            BumpError(
                kind="not_a_repository",
                message=f"could not find a git repository containing {cli.root}",
            ),
            cli.console,
        )

    outcome = run_release(
        options=RunOptions(
            root=cli.root,
            command=command,
            policy=opts.selector,
            scan_subdirs=opts.scan_subdirs,
            push=opts.push,
            allow_dirty=opts.allow_dirty,
            dry_run=opts.dry_run,
        ),
        config=cli.config,
        fs=cli.fs,
        vcs=cli.vcs,
        console=cli.console,
    )
    print_outcome(outcome, cli.console)

    code = outcome_exit_code(outcome)
    if code:
        raise typer.Exit(code=code)


@app.command("fixed")
def fixed(
    ctx: typer.Context,
    full_version: str = typer.Argument(..., help="New version, e.g. 1.2.3."),
) -> None:
    """Set a fixed version."""
    _release(_options(ctx), FixedVersion(text=full_version))


@app.command("increment")
def increment(
    ctx: typer.Context,
    vtype: VersionPart = typer.Argument(..., help="Part to increment.", case_sensitive=False),
) -> None:
    """Increment part of the version.

    Incrementing major or minor resets the lower parts to zero.
    """
    _release(_options(ctx), IncrementVersion(part=_PARTS[vtype]))


@app.command("only-show")
def only_show(ctx: typer.Context) -> None:
    """Only show versions from Cargo.toml files and git tags."""
    opts = _options(ctx)
    cli = build_context(opts)

    records = discover(
        cli.root,
        scan_subdirs=opts.scan_subdirs,
        fs=cli.fs,
        manifest_name=cli.config.manifest_name,
        exclude_dirs=cli.config.exclude_dirs,
    )
    if isinstance(records, Err):
        exit_with(records.error, cli.console)

    report = show_versions(records.value, vcs=cli.vcs, tag_prefix=cli.config.tag_prefix)
    if isinstance(report, Err):
        exit_with(report.error, cli.console)
    print_version_report(report.value, cli.console)


def main() -> None:
    app()

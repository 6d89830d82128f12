from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import NoReturn

import typer

from cvb.bump.errors import BumpError
from cvb.bump.model import SelectionPolicy
from cvb.core.config import BumpConfig, load_config, load_config_or_default
from cvb.core.result import Err, Ok, Result
from cvb.git.repository import Repository, VersionControl
from cvb.output.console import ConsoleProtocol, RichConsole, Style
from cvb.output.errors import bump_error_exit_code
from cvb.platform.files import FileSystem, LocalFileSystem


@dataclass(frozen=True, slots=True)
class GlobalOptions:
    """Options shared by every subcommand."""

    path: Path | None = None
    selector: SelectionPolicy | None = None
    scan_subdirs: bool = False
    tag_message: str | None = None
    commit_message: str | None = None
    remote: str | None = None
    tag_prefix: str | None = None
    push: bool = False
    allow_dirty: bool = False
    dry_run: bool = False
    config_path: Path | None = None
    verbose: int = 0


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    config: BumpConfig
    console: ConsoleProtocol
    fs: FileSystem
    vcs: VersionControl | None


def exit_with(error: BumpError, console: ConsoleProtocol) -> NoReturn:
    console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)
    raise typer.Exit(code=bump_error_exit_code(error.kind))


def resolve_root(path: Path | None) -> Result[Path, BumpError]:
    """Directory to search for manifests; a file path means its parent."""
    p = Path.cwd() if path is None else path.expanduser()
    if p.is_file():
        p = p.parent
    if not p.exists():
        return Err(BumpError(kind="invalid_path", message=f"path does not exist ({p})"))
    if not p.is_dir():
        return Err(BumpError(kind="invalid_path", message=f"path is not a directory ({p})"))
    return Ok(p.resolve())


def resolve_config(opts: GlobalOptions, root: Path) -> Result[BumpConfig, BumpError]:
    """Config file values with command-line overrides applied."""
    loaded = load_config(opts.config_path) if opts.config_path else load_config_or_default(root)
    if isinstance(loaded, Err):
        return Err(
            BumpError(
                kind="invalid_config",
                message=loaded.error.message,
                hint=str(loaded.error.path) if loaded.error.path else None,
            )
        )

    config = loaded.value
    if opts.remote:
        config = replace(config, remote=opts.remote)
    if opts.tag_prefix is not None:
        config = replace(config, tag_prefix=opts.tag_prefix)
    if opts.tag_message:
        config = replace(config, tag_message=opts.tag_message)
    if opts.commit_message:
        config = replace(config, commit_message=opts.commit_message)

    validated = config.validate()
    if isinstance(validated, Err):
        return Err(BumpError(kind="invalid_config", message=validated.error.message))
    return Ok(validated.value)


def build_context(opts: GlobalOptions) -> CLIContext:
    console = RichConsole(verbosity=opts.verbose)

    root = resolve_root(opts.path)
    if isinstance(root, Err):
        exit_with(root.error, console)
    console.debug(f"using path: {root.value}")

    config = resolve_config(opts, root.value)
    if isinstance(config, Err):
        exit_with(config.error, console)

    vcs: VersionControl | None = None
    repo = Repository.discover(root.value)
    if isinstance(repo, Ok):
        console.debug(f"git repository: {repo.value.path}")
        vcs = repo.value
    else:
        console.debug(f"no git repository: {repo.error.message}")

    return CLIContext(
        root=root.value,
        config=config.value,
        console=console,
        fs=LocalFileSystem(),
        vcs=vcs,
    )

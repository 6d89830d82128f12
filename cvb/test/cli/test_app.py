from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

import cvb.cli.app as cli_app
from cvb import __version__
from cvb.bump.model import SelectionPolicy
from cvb.cli.context import CLIContext, GlobalOptions
from cvb.core.config import BumpConfig
from cvb.git.repository import GitError, StatusEntry
from cvb.output.console import MockConsole
from cvb.platform.files import MemoryFileSystem
from cvb.test.bump._fakes import FakeVcs

runner = CliRunner()

_ROOT = Path("/repo")


def _manifest(version: str) -> str:
    return f'[package]\nname = "demo"\nversion = "{version}"\n'


class _Harness:
    def __init__(self, files: dict[Path, str], vcs: FakeVcs | None) -> None:
        self.fs = MemoryFileSystem(files=dict(files))
        self.vcs = vcs
        self.console = MockConsole()
        self.opts: GlobalOptions | None = None

    def build_context(self, opts: GlobalOptions) -> CLIContext:
        self.opts = opts
        return CLIContext(
            root=_ROOT,
            config=BumpConfig(),
            console=self.console,
            fs=self.fs,
            vcs=self.vcs,
        )


def _install(
    monkeypatch: pytest.MonkeyPatch,
    files: dict[Path, str] | None = None,
    vcs: FakeVcs | None = None,
) -> _Harness:
    harness = _Harness(files if files is not None else {_ROOT / "Cargo.toml": _manifest("0.4.1")}, vcs)
    monkeypatch.setattr(cli_app, "build_context", harness.build_context)
    return harness


def test_version_flag() -> None:
    result = runner.invoke(cli_app.app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_fixed_commits_and_tags(monkeypatch: pytest.MonkeyPatch) -> None:
    h = _install(monkeypatch, vcs=FakeVcs())

    result = runner.invoke(cli_app.app, ["fixed", "1.0.0"])

    assert result.exit_code == 0
    assert 'version = "1.0.0"' in h.fs.files[_ROOT / "Cargo.toml"]
    assert h.vcs is not None
    assert ("tag", "v1.0.0", "v1.0.0") in h.vcs.calls
    assert h.console.find("released v1.0.0")


def test_increment_is_case_insensitive(monkeypatch: pytest.MonkeyPatch) -> None:
    h = _install(monkeypatch, vcs=FakeVcs())

    result = runner.invoke(cli_app.app, ["increment", "MINOR"])

    assert result.exit_code == 0
    assert 'version = "0.5.0"' in h.fs.files[_ROOT / "Cargo.toml"]


def test_global_options_reach_context(monkeypatch: pytest.MonkeyPatch) -> None:
    h = _install(monkeypatch, vcs=FakeVcs())

    runner.invoke(
        cli_app.app,
        ["-c", "leaf", "-s", "-g", "release-", "-r", "upstream", "-t", "Release {version}", "--dry-run", "only-show"],
    )

    assert h.opts is not None
    assert h.opts.selector is SelectionPolicy.LEAF
    assert h.opts.scan_subdirs is True
    assert h.opts.tag_prefix == "release-"
    assert h.opts.remote == "upstream"
    assert h.opts.tag_message == "Release {version}"
    assert h.opts.dry_run is True
    assert h.opts.push is False


def test_malformed_version_is_user_error(monkeypatch: pytest.MonkeyPatch) -> None:
    h = _install(monkeypatch, vcs=FakeVcs())

    result = runner.invoke(cli_app.app, ["fixed", "1.0"])

    assert result.exit_code == 1
    assert h.vcs is not None
    assert h.vcs.mutating_calls == []
    assert h.fs.writes == []


def test_dirty_worktree_is_environment_error(monkeypatch: pytest.MonkeyPatch) -> None:
    h = _install(monkeypatch, vcs=FakeVcs(dirty=[StatusEntry(" M", "src/lib.rs")]))

    result = runner.invoke(cli_app.app, ["increment", "patch"])

    assert result.exit_code == 2
    assert h.fs.writes == []


def test_allow_dirty(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, vcs=FakeVcs(dirty=[StatusEntry(" M", "src/lib.rs")]))

    result = runner.invoke(cli_app.app, ["--allow-dirty", "increment", "patch"])

    assert result.exit_code == 0


def test_push_failure_exit_code(monkeypatch: pytest.MonkeyPatch) -> None:
    vcs = FakeVcs(failures={"push": GitError(command="push", message="rejected")})
    h = _install(monkeypatch, vcs=vcs)

    result = runner.invoke(cli_app.app, ["--push", "increment", "major"])

    assert result.exit_code == 4
    assert h.console.find("left in place")


def test_release_outside_repository(monkeypatch: pytest.MonkeyPatch) -> None:
    h = _install(monkeypatch, vcs=None)

    result = runner.invoke(cli_app.app, ["fixed", "1.0.0"])

    assert result.exit_code == 2
    assert h.console.find("could not find a git repository")
    assert h.fs.writes == []


def test_dry_run_changes_nothing(monkeypatch: pytest.MonkeyPatch) -> None:
    h = _install(monkeypatch, vcs=FakeVcs())

    result = runner.invoke(cli_app.app, ["--dry-run", "fixed", "2.0.0"])

    assert result.exit_code == 0
    assert h.fs.writes == []
    assert h.vcs is not None
    assert h.vcs.mutating_calls == []


def test_several_manifests_need_selector(monkeypatch: pytest.MonkeyPatch) -> None:
    files = {
        _ROOT / "Cargo.toml": _manifest("1.0.0"),
        _ROOT / "crates" / "core" / "Cargo.toml": _manifest("1.0.0"),
    }
    h = _install(monkeypatch, files=files, vcs=FakeVcs())

    result = runner.invoke(cli_app.app, ["-s", "increment", "patch"])

    assert result.exit_code == 1
    assert h.console.find("ambiguous_selection")

    result = runner.invoke(cli_app.app, ["-s", "-c", "all", "increment", "patch"])

    assert result.exit_code == 0
    assert all('version = "1.0.1"' in text for text in h.fs.files.values())


def test_only_show_is_read_only(monkeypatch: pytest.MonkeyPatch) -> None:
    h = _install(monkeypatch, vcs=FakeVcs(tags=["v0.4.0", "v0.4.1"]))

    result = runner.invoke(cli_app.app, ["only-show"])

    assert result.exit_code == 0
    assert h.console.find("latest: v0.4.1")
    assert h.console.find("manifests match the latest tag")
    assert h.fs.writes == []
    assert h.vcs is not None
    assert h.vcs.mutating_calls == []


def test_only_show_without_repository(monkeypatch: pytest.MonkeyPatch) -> None:
    h = _install(monkeypatch, vcs=None)

    result = runner.invoke(cli_app.app, ["only-show"])

    assert result.exit_code == 0
    assert h.console.find("(no git repository)")


def test_only_show_without_manifest(monkeypatch: pytest.MonkeyPatch) -> None:
    h = _install(monkeypatch, files={}, vcs=FakeVcs())

    result = runner.invoke(cli_app.app, ["only-show"])

    assert result.exit_code == 1
    assert h.console.has_error()

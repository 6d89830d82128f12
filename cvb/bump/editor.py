"""Read and rewrite the version field of a Cargo manifest.

Only the quoted value of `version = "..."` in the `[package]` table (or
`[workspace.package]` for virtual workspaces) is touched; the rest of the
file, including comments, key order and line endings, is written back
unchanged.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from cvb.bump.errors import BumpError
from cvb.bump.model import ChangeCommand, FixedVersion, IncrementVersion
from cvb.bump.semver import Version
from cvb.core.result import Err, Ok, Result
from cvb.platform.files import FileSystem

__all__ = [
    "ManifestEdit",
    "apply_version",
    "compute_target",
    "read_version",
    "replace_version",
]

# Tables that may own the version, in order of preference.
_VERSION_TABLES = ("package", "workspace.package")

_HEADER_RE = re.compile(r"^\[\[?\s*([^\[\]]+?)\s*\]\]?\s*(?:#.*)?$")
_VERSION_LINE_RE = re.compile(r"""^\s*version\s*=\s*(?:"([^"\r\n]*)"|'([^'\r\n]*)')""")
_VERSION_KEY_RE = re.compile(r"^\s*version\s*[.=]")
_BOM = "\ufeff"


@dataclass(frozen=True, slots=True)
class ManifestEdit:
    path: Path
    original: str
    updated: str

    @property
    def changed(self) -> bool:
        return self.original != self.updated


@dataclass(frozen=True, slots=True)
class _VersionField:
    start: int
    end: int
    value: str


def _normalize_table(name: str) -> str:
    return ".".join(part.strip().strip("\"'") for part in name.split("."))


def _locate_version(text: str) -> _VersionField | BumpError:
    fields: dict[str, _VersionField] = {}
    non_literal: set[str] = set()
    table = ""
    # Offsets stay relative to `text`, so a skipped BOM still counts.
    offset = 1 if text.startswith(_BOM) else 0

    for line in text[offset:].splitlines(keepends=True):
        header = _HEADER_RE.match(line)
        if header is not None:
            table = _normalize_table(header.group(1))
        elif table in _VERSION_TABLES and table not in fields:
            m = _VERSION_LINE_RE.match(line)
            if m is not None:
                group = 1 if m.group(1) is not None else 2
                fields[table] = _VersionField(
                    start=offset + m.start(group),
                    end=offset + m.end(group),
                    value=m.group(group),
                )
            elif _VERSION_KEY_RE.match(line):
                non_literal.add(table)
        offset += len(line)

    for name in _VERSION_TABLES:
        if name in fields:
            return fields[name]
        if name in non_literal:
            return BumpError(
                kind="missing_version_field",
                message=f"[{name}] version is not a string literal",
                hint="inherited versions (version.workspace = true) cannot be bumped here",
            )
    return BumpError(
        kind="missing_version_field",
        message="missing version in [package] or [workspace.package]",
    )


def _with_hint(error: BumpError, path: Path) -> BumpError:
    return BumpError(kind=error.kind, message=f"{path}: {error.message}", hint=error.hint)


def _read(path: Path, fs: FileSystem) -> Result[str, BumpError]:
    try:
        return Ok(fs.read_text(path))
    except (OSError, UnicodeDecodeError) as e:
        return Err(BumpError(kind="io_failure", message=f"failed to read {path}: {e}", hint=str(path)))


def read_version(path: Path, fs: FileSystem) -> Result[Version, BumpError]:
    text = _read(path, fs)
    if isinstance(text, Err):
        return text

    located = _locate_version(text.value)
    if isinstance(located, BumpError):
        return Err(_with_hint(located, path))

    parsed = Version.parse(located.value)
    if isinstance(parsed, Err):
        return Err(_with_hint(parsed.error, path))
    return parsed


def compute_target(current: Version, command: ChangeCommand) -> Result[Version, BumpError]:
    match command:
        case FixedVersion(text=text):
            return Version.parse(text)
        case IncrementVersion(part=part):
            return Ok(current.increment(part))


def replace_version(text: str, target: Version) -> Result[str, BumpError]:
    """Return `text` with the version value replaced by `target`."""
    located = _locate_version(text)
    if isinstance(located, BumpError):
        return Err(located)
    return Ok(text[: located.start] + target.format() + text[located.end :])


def apply_version(path: Path, target: Version, fs: FileSystem) -> Result[ManifestEdit, BumpError]:
    """Write `target` into the manifest at `path`.

    Nothing is written when the manifest already carries `target`. The returned
    edit keeps the original text so the caller can restore it.
    """
    text = _read(path, fs)
    if isinstance(text, Err):
        return text

    updated = replace_version(text.value, target)
    if isinstance(updated, Err):
        return Err(_with_hint(updated.error, path))

    edit = ManifestEdit(path=path, original=text.value, updated=updated.value)
    if not edit.changed:
        return Ok(edit)

    try:
        fs.write_text(path, edit.updated)
    except PermissionError as e:
        return Err(
            BumpError(
                kind="write_permission_denied",
                message=f"cannot write {path}: {e}",
                hint=str(path),
            )
        )
    except OSError as e:
        return Err(BumpError(kind="io_failure", message=f"failed to write {path}: {e}", hint=str(path)))

    return Ok(edit)

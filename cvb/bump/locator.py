"""Find the manifests a run applies to and choose the authoritative one."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from cvb.bump.editor import read_version
from cvb.bump.errors import BumpError
from cvb.bump.model import ManifestRecord, Selection, SelectionPolicy
from cvb.core.config import DEFAULT_EXCLUDE_DIRS, DEFAULT_MANIFEST_NAME
from cvb.core.result import Err, Ok, Result
from cvb.platform.files import FileSystem

__all__ = ["depth", "discover", "find_manifests", "read_records", "select"]


def _sort_key(path: Path) -> tuple[str, ...]:
    return path.parts


def find_manifests(
    root: Path,
    *,
    scan_subdirs: bool,
    fs: FileSystem,
    manifest_name: str = DEFAULT_MANIFEST_NAME,
    exclude_dirs: Sequence[str] = DEFAULT_EXCLUDE_DIRS,
) -> Result[list[Path], BumpError]:
    """Return manifest paths under `root`, sorted by path.

    Without `scan_subdirs` only `root/<manifest_name>` is considered. When
    scanning, hidden directories, symlinked directories and `exclude_dirs`
    are not entered.
    """
    found: list[Path] = []
    top = root / manifest_name
    if fs.is_file(top):
        found.append(top)

    if scan_subdirs:
        skip = set(exclude_dirs)
        pending = [root]
        while pending:
            current = pending.pop()
            try:
                children = fs.list_dir(current)
            except OSError as e:
                return Err(
                    BumpError(
                        kind="io_failure",
                        message=f"failed to list {current}: {e}",
                        hint=str(current),
                    )
                )
            for child in children:
                if not fs.is_dir(child):
                    continue
                if child.name.startswith(".") or child.name in skip:
                    continue
                if fs.is_symlink(child):
                    continue
                candidate = child / manifest_name
                if fs.is_file(candidate):
                    found.append(candidate)
                pending.append(child)

    if not found:
        where = f"{root} or its subdirectories" if scan_subdirs else str(root)
        return Err(
            BumpError(
                kind="no_manifest_found",
                message=f"no {manifest_name} found in {where}",
                hint=None if scan_subdirs else "use --scan-subdirs to search subdirectories",
            )
        )
    return Ok(sorted(found, key=_sort_key))


def read_records(paths: Sequence[Path], *, fs: FileSystem) -> Result[list[ManifestRecord], BumpError]:
    records: list[ManifestRecord] = []
    for path in paths:
        version = read_version(path, fs)
        if isinstance(version, Err):
            return version
        records.append(ManifestRecord(path=path, version=version.value))
    return Ok(records)


def discover(
    root: Path,
    *,
    scan_subdirs: bool,
    fs: FileSystem,
    manifest_name: str = DEFAULT_MANIFEST_NAME,
    exclude_dirs: Sequence[str] = DEFAULT_EXCLUDE_DIRS,
) -> Result[list[ManifestRecord], BumpError]:
    """Find manifests and read their current versions."""
    paths = find_manifests(
        root,
        scan_subdirs=scan_subdirs,
        fs=fs,
        manifest_name=manifest_name,
        exclude_dirs=exclude_dirs,
    )
    if isinstance(paths, Err):
        return paths
    return read_records(paths.value, fs=fs)


def depth(record: ManifestRecord, root: Path) -> int:
    """Number of directories between `root` and the manifest."""
    return len(record.path.parent.relative_to(root).parts)


def select(
    records: Sequence[ManifestRecord],
    policy: SelectionPolicy | None,
    *,
    root: Path,
) -> Result[Selection, BumpError]:
    """Pick the authoritative record.

    Every discovered record is a target whatever the policy; `base` and `leaf`
    only decide whose current version seeds the new one.
    """
    if not records:
        return Err(BumpError(kind="no_manifest_found", message="no manifest to select from"))

    targets = tuple(records)
    if len(records) == 1:
        return Ok(Selection(authoritative=records[0], targets=targets))

    if policy is None:
        return Err(
            BumpError(
                kind="ambiguous_selection",
                message=f"{len(records)} manifests found but no selection policy given",
                hint="use --cargo-file-selector leaf|base|all",
            )
        )

    if policy is SelectionPolicy.ALL:
        return Ok(Selection(authoritative=records[0], targets=targets))

    depths = [depth(r, root) for r in records]
    wanted = min(depths) if policy is SelectionPolicy.BASE else max(depths)
    candidates = [r for r, d in zip(records, depths) if d == wanted]
    if len(candidates) > 1:
        names = ", ".join(str(r.path) for r in candidates)
        return Err(
            BumpError(
                kind="ambiguous_selection",
                message=f"{len(candidates)} manifests tie for {policy.value} at depth {wanted}",
                hint=names,
            )
        )
    return Ok(Selection(authoritative=candidates[0], targets=targets))

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from cvb.bump.errors import BumpError
from cvb.bump.model import ManifestRecord
from cvb.bump.semver import Version, parse_tag
from cvb.core.result import Err, Ok, Result
from cvb.git.repository import VersionControl
from cvb.output.console import ConsoleProtocol, Style


@dataclass(frozen=True, slots=True)
class VersionReport:
    """Manifest versions next to the latest release tag.

    `latest_tag` is None when no tag matches, or when there is no repository
    (`has_repository` False).
    """

    records: tuple[ManifestRecord, ...]
    tag_prefix: str
    latest_tag: Version | None
    has_repository: bool = True

    @property
    def manifest_versions(self) -> tuple[Version, ...]:
        return tuple(sorted({r.version for r in self.records}))

    @property
    def in_sync(self) -> bool:
        """True when every manifest carries the latest tagged version."""
        return self.latest_tag is not None and self.manifest_versions == (self.latest_tag,)


def latest_tag(vcs: VersionControl, prefix: str) -> Result[Version | None, BumpError]:
    """Highest version among tags named `prefix` + MAJOR.MINOR.PATCH."""
    names = vcs.tag_names(f"{prefix}*")
    if isinstance(names, Err):
        return Err(
            BumpError(
                kind="vcs_failure",
                message=f"cannot list tags: {names.error.message}",
                hint=f"git {names.error.command}",
            )
        )

    versions = [v for v in (parse_tag(name, prefix) for name in names.value) if v is not None]
    if not versions:
        return Ok(None)
    return Ok(max(versions))


def show_versions(
    records: Sequence[ManifestRecord],
    *,
    vcs: VersionControl | None,
    tag_prefix: str,
) -> Result[VersionReport, BumpError]:
    """Build the `only-show` report. Read-only."""
    if vcs is None:
        return Ok(
            VersionReport(
                records=tuple(records),
                tag_prefix=tag_prefix,
                latest_tag=None,
                has_repository=False,
            )
        )

    latest = latest_tag(vcs, tag_prefix)
    if isinstance(latest, Err):
        return latest
    return Ok(VersionReport(records=tuple(records), tag_prefix=tag_prefix, latest_tag=latest.value))


def print_version_report(report: VersionReport, console: ConsoleProtocol) -> None:
    console.header("Manifest versions")
    for record in report.records:
        console.print(f"  {record.version}  {record.path}")

    console.header("Git tags")
    if not report.has_repository:
        console.print("  (no git repository)", Style.DIM)
    elif report.latest_tag is None:
        console.print(f"  no tag matching '{report.tag_prefix}MAJOR.MINOR.PATCH'", Style.DIM)
    else:
        console.print(f"  latest: {report.latest_tag.to_tag(report.tag_prefix)}")

    console.newline()
    if report.in_sync:
        console.success("manifests match the latest tag")
    elif report.has_repository:
        versions = ", ".join(str(v) for v in report.manifest_versions)
        tagged = "none" if report.latest_tag is None else str(report.latest_tag)
        console.warning(f"manifests ({versions}) differ from latest tag ({tagged})")

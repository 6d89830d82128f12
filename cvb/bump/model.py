from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from cvb.bump.errors import BumpError
    from cvb.bump.semver import Version


IncrementPart = Literal["major", "minor", "patch"]
RunStatus = Literal["done", "partial", "failed"]


class SelectionPolicy(StrEnum):
    """Which discovered manifest seeds the new version."""

    LEAF = "leaf"
    BASE = "base"
    ALL = "all"


class Stage(StrEnum):
    DISCOVERING = "discovering"
    RESOLVING = "resolving"
    EDITING = "editing"
    STAGING = "staging"
    COMMITTING = "committing"
    TAGGING = "tagging"
    PUSHING = "pushing"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class ManifestRecord:
    path: Path
    version: Version


@dataclass(frozen=True, slots=True)
class Selection:
    """Outcome of applying a selection policy.

    `authoritative` seeds the target version; every record in `targets`
    receives it.
    """

    authoritative: ManifestRecord
    targets: tuple[ManifestRecord, ...]


@dataclass(frozen=True, slots=True)
class FixedVersion:
    text: str


@dataclass(frozen=True, slots=True)
class IncrementVersion:
    part: IncrementPart


ChangeCommand = FixedVersion | IncrementVersion


@dataclass(frozen=True, slots=True)
class ReleaseIntent:
    """Everything a run will write, resolved before the first side effect."""

    previous: Version
    target: Version
    tag: str
    commit_message: str
    tag_message: str
    remote: str
    push: bool
    branch: str | None = None

    @property
    def push_refs(self) -> tuple[str, ...]:
        refs: list[str] = []
        if self.branch is not None:
            refs.append(f"refs/heads/{self.branch}")
        refs.append(f"refs/tags/{self.tag}")
        return tuple(refs)


@dataclass(frozen=True, slots=True)
class RunOutcome:
    """What a run did, for reporting.

    `stage` is the stage the run ended in: the failing stage on error,
    `Stage.DONE` on success.
    """

    stage: Stage
    error: BumpError | None = None
    intent: ReleaseIntent | None = None
    records: tuple[ManifestRecord, ...] = ()
    written: tuple[Path, ...] = ()
    rolled_back: tuple[Path, ...] = ()
    rollback_failures: tuple[BumpError, ...] = ()
    staged: bool = False
    commit_id: str | None = None
    tag: str | None = None
    pushed: bool = False
    dry_run: bool = False

    @property
    def remaining_writes(self) -> tuple[Path, ...]:
        """Files still carrying this run's edit."""
        reverted = set(self.rolled_back)
        return tuple(p for p in self.written if p not in reverted)

    @property
    def has_side_effects(self) -> bool:
        return bool(self.remaining_writes or self.staged or self.commit_id or self.tag)

    @property
    def status(self) -> RunStatus:
        if self.error is None:
            return "done"
        if self.has_side_effects:
            return "partial"
        return "failed"

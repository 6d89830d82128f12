from __future__ import annotations

import re
from dataclasses import dataclass

from cvb.bump.errors import BumpError
from cvb.bump.model import IncrementPart
from cvb.core.result import Err, Ok, Result


_VERSION_RE = re.compile(r"([0-9]+)\.([0-9]+)\.([0-9]+)")


@dataclass(frozen=True, slots=True, order=True)
class Version:
    """A `major.minor.patch` version; ordering compares the parts in that order."""

    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, text: str) -> Result[Version, BumpError]:
        # ASCII digits only; whitespace, signs and extra parts are rejected.
        m = _VERSION_RE.fullmatch(text)
        if m is None:
            return Err(
                BumpError(
                    kind="malformed_version",
                    message=f"invalid version: {text!r}",
                    hint="Expected MAJOR.MINOR.PATCH, e.g. 1.4.2",
                )
            )
        return Ok(cls(int(m.group(1)), int(m.group(2)), int(m.group(3))))

    def increment(self, part: IncrementPart) -> Version:
        match part:
            case "major":
                return Version(self.major + 1, 0, 0)
            case "minor":
                return Version(self.major, self.minor + 1, 0)
            case "patch":
                return Version(self.major, self.minor, self.patch + 1)
            case _:
                raise AssertionError(f"unexpected increment part: {part}")

    def format(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def to_tag(self, prefix: str) -> str:
        return f"{prefix}{self.format()}"

    def __str__(self) -> str:
        return self.format()


def parse_tag(tag: str, prefix: str) -> Version | None:
    """Version named by `tag`, or None if it is not `prefix` + MAJOR.MINOR.PATCH."""
    if not tag.startswith(prefix):
        return None
    parsed = Version.parse(tag[len(prefix) :])
    if isinstance(parsed, Err):
        return None
    return parsed.value

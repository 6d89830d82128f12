"""Version bump engine: semver, manifest discovery/editing, tag query, workflow."""

from __future__ import annotations

"""Bump the version of Cargo manifests, then commit, tag and push it."""

__version__ = "0.3.0"

"""Typed run configuration.

All defaults a bump run depends on (remote, tag prefix, message templates,
manifest file name) live in one frozen dataclass that is passed explicitly to
the orchestrator. Values can come from an optional `.cvb.toml` file at the
project root; command-line flags override them.

Example `.cvb.toml`:

    remote = "upstream"
    tag_prefix = "release-"
    commit_message = "release: {previous} -> {version}"
    tag_message = "Release {tag}"
    exclude_dirs = ["target", "vendor"]
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from string import Formatter

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_raw_str, get_str, get_str_list

__all__ = [
    "BumpConfig",
    "ConfigError",
    "CONFIG_FILE_NAME",
    "DEFAULT_COMMIT_MESSAGE",
    "DEFAULT_REMOTE",
    "DEFAULT_TAG_MESSAGE",
    "DEFAULT_TAG_PREFIX",
    "load_config",
    "load_config_or_default",
    "render_template",
]

CONFIG_FILE_NAME = ".cvb.toml"

DEFAULT_REMOTE = "origin"
DEFAULT_TAG_PREFIX = "v"
DEFAULT_COMMIT_MESSAGE = "chore: bump version to {version}"
DEFAULT_TAG_MESSAGE = "{tag}"
DEFAULT_MANIFEST_NAME = "Cargo.toml"
DEFAULT_EXCLUDE_DIRS: tuple[str, ...] = ("target",)

# Placeholders available to commit and tag message templates.
_TEMPLATE_FIELDS = ("version", "previous", "tag")


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or is invalid."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class BumpConfig:
    """Settings for one bump run.

    Attributes:
        remote: Remote that commit and tag are pushed to.
        tag_prefix: Text prepended to the version in the tag name (may be empty).
        commit_message: Template for the commit message.
        tag_message: Template for the annotated tag message.
        manifest_name: File name of the manifests to update.
        exclude_dirs: Directory names skipped when scanning subdirectories.
    """

    remote: str = DEFAULT_REMOTE
    tag_prefix: str = DEFAULT_TAG_PREFIX
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    tag_message: str = DEFAULT_TAG_MESSAGE
    manifest_name: str = DEFAULT_MANIFEST_NAME
    exclude_dirs: tuple[str, ...] = DEFAULT_EXCLUDE_DIRS

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> BumpConfig:
        """Create a config from a parsed TOML mapping; missing keys keep defaults."""
        tag_prefix = get_raw_str(data, "tag_prefix")
        return cls(
            remote=get_str(data, "remote") or DEFAULT_REMOTE,
            tag_prefix=DEFAULT_TAG_PREFIX if tag_prefix is None else tag_prefix,
            commit_message=get_str(data, "commit_message") or DEFAULT_COMMIT_MESSAGE,
            tag_message=get_str(data, "tag_message") or DEFAULT_TAG_MESSAGE,
            manifest_name=get_str(data, "manifest_name") or DEFAULT_MANIFEST_NAME,
            exclude_dirs=get_str_list(data, "exclude_dirs") or DEFAULT_EXCLUDE_DIRS,
        )

    def validate(self) -> Result[BumpConfig, ConfigError]:
        """Check that message templates only use known placeholders."""
        for name, template in (
            ("commit_message", self.commit_message),
            ("tag_message", self.tag_message),
        ):
            rendered = render_template(template, version="0.0.0", previous="0.0.0", tag="v0.0.0")
            if isinstance(rendered, Err):
                return Err(ConfigError(f"invalid {name}: {rendered.error.message}"))
        if "/" in self.manifest_name or not self.manifest_name:
            return Err(ConfigError(f"invalid manifest_name: {self.manifest_name!r}"))
        return Ok(self)


def render_template(
    template: str, *, version: str, previous: str, tag: str
) -> Result[str, ConfigError]:
    """Fill `{version}`, `{previous}` and `{tag}` into a message template.

    Only bare placeholder names are accepted; attribute and index lookups
    such as `{version.major}` are rejected.
    """
    try:
        fields = [name for _, name, _, _ in Formatter().parse(template) if name is not None]
    except ValueError as e:
        return Err(ConfigError(f"malformed template {template!r}: {e}"))

    for name in fields:
        if name not in _TEMPLATE_FIELDS:
            known = ", ".join("{" + f + "}" for f in _TEMPLATE_FIELDS)
            return Err(ConfigError(f"unknown placeholder {{{name}}} in {template!r} (known: {known})"))

    try:
        return Ok(template.format(version=version, previous=previous, tag=tag))
    except (KeyError, IndexError, ValueError) as e:
        return Err(ConfigError(f"malformed template {template!r}: {e}"))


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[BumpConfig, ConfigError]:
    """Load and validate configuration from a TOML file.

    Args:
        path: Path to the config file

    Returns:
        Ok(BumpConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    validated = BumpConfig.from_dict(result.value).validate()
    if isinstance(validated, Err):
        return Err(ConfigError(validated.error.message, path=path))
    return validated


def load_config_or_default(root: Path) -> Result[BumpConfig, ConfigError]:
    """Load `<root>/.cvb.toml` if present, otherwise return the defaults.

    A config file that exists but is broken is still an error.
    """
    path = root / CONFIG_FILE_NAME
    if not path.is_file():
        return Ok(BumpConfig())
    return load_config(path)

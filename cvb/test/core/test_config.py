"""Tests for cvb.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from cvb.core.config import (
    BumpConfig,
    load_config,
    load_config_or_default,
    render_template,
)
from cvb.core.result import Err, Ok


class TestBumpConfig:
    def test_defaults(self) -> None:
        config = BumpConfig()
        assert config.remote == "origin"
        assert config.tag_prefix == "v"
        assert config.commit_message == "chore: bump version to {version}"
        assert config.manifest_name == "Cargo.toml"
        assert config.exclude_dirs == ("target",)

    def test_frozen(self) -> None:
        config = BumpConfig()
        with pytest.raises(AttributeError):
            config.remote = "upstream"  # type: ignore[misc]

    def test_from_dict_partial(self) -> None:
        config = BumpConfig.from_dict({"remote": "upstream", "exclude_dirs": ["target", "vendor"]})
        assert config.remote == "upstream"
        assert config.tag_prefix == "v"
        assert config.exclude_dirs == ("target", "vendor")

    def test_from_dict_keeps_empty_tag_prefix(self) -> None:
        assert BumpConfig.from_dict({"tag_prefix": ""}).tag_prefix == ""

    def test_from_dict_ignores_wrong_types(self) -> None:
        config = BumpConfig.from_dict({"remote": 3, "exclude_dirs": ["ok", 1]})
        assert config.remote == "origin"
        assert config.exclude_dirs == ("target",)

    def test_validate_rejects_unknown_placeholder(self) -> None:
        result = BumpConfig(tag_message="{name}").validate()
        assert isinstance(result, Err)
        assert "tag_message" in result.error.message

    def test_validate_rejects_manifest_path(self) -> None:
        assert isinstance(BumpConfig(manifest_name="a/Cargo.toml").validate(), Err)


class TestRenderTemplate:
    def test_all_placeholders(self) -> None:
        result = render_template("{previous} -> {version} ({tag})", version="2.0.0", previous="1.9.3", tag="v2.0.0")
        assert result == Ok("1.9.3 -> 2.0.0 (v2.0.0)")

    def test_malformed(self) -> None:
        result = render_template("bump {version", version="1", previous="0", tag="v1")
        assert isinstance(result, Err)


class TestLoadConfig:
    def test_load_valid(self, tmp_path: Path) -> None:
        path = tmp_path / ".cvb.toml"
        path.write_text('remote = "upstream"\ntag_prefix = "release-"\n', encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Ok)
        assert result.value.remote == "upstream"
        assert result.value.tag_prefix == "release-"

    def test_load_missing(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "nope.toml")
        assert isinstance(result, Err)
        assert "not found" in result.error.message

    def test_load_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / ".cvb.toml"
        path.write_text("remote = \n", encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message
        assert result.error.path == path

    def test_load_invalid_template(self, tmp_path: Path) -> None:
        path = tmp_path / ".cvb.toml"
        path.write_text('commit_message = "bump {v}"\n', encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert result.error.path == path

    def test_or_default_without_file(self, tmp_path: Path) -> None:
        assert load_config_or_default(tmp_path) == Ok(BumpConfig())

    def test_or_default_reads_file(self, tmp_path: Path) -> None:
        (tmp_path / ".cvb.toml").write_text('remote = "fork"\n', encoding="utf-8")
        result = load_config_or_default(tmp_path)
        assert isinstance(result, Ok)
        assert result.value.remote == "fork"


class TestRenderTemplateLookups:
    @pytest.mark.parametrize("template", ["{version.major}", "{version[x]}", "{0}", "{}"])
    def test_rejects_non_bare_placeholders(self, template: str) -> None:
        result = render_template(template, version="1.0.0", previous="0.9.0", tag="v1.0.0")
        assert isinstance(result, Err)
        assert "unknown placeholder" in result.error.message

    def test_nested_format_spec_with_unknown_name(self) -> None:
        result = render_template("{version:{width}}", version="1.0.0", previous="0.9.0", tag="v1.0.0")
        assert isinstance(result, Err)

    def test_bad_format_spec(self) -> None:
        result = render_template("{version:d}", version="1.0.0", previous="0.9.0", tag="v1.0.0")
        assert isinstance(result, Err)
        assert "malformed template" in result.error.message

    def test_load_config_with_attribute_lookup(self, tmp_path: Path) -> None:
        path = tmp_path / ".cvb.toml"
        path.write_text('commit_message = "bump {version.major}"\n', encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Err)
        assert "commit_message" in result.error.message

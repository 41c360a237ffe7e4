"""Tests for webengine_sync.config_loader -- hierarchical config loading."""

import textwrap

import pytest
import yaml

from webengine_sync.config_loader import (
    _interpolate_recursive,
    discover_config_files,
    ensure_config,
    interpolate_env_vars,
    load_hierarchical_config,
    resolve_config_path,
)


# -------------------------------------------------------------------------
# Env var interpolation
# -------------------------------------------------------------------------


class TestInterpolateEnvVars:
    """Tests for ${VAR} and ${VAR:-default} substitution."""

    def test_replaces_set_var(self, monkeypatch):
        monkeypatch.setenv("MY_TOKEN", "abc")
        assert interpolate_env_vars("${MY_TOKEN}") == "abc"

    def test_unset_var_replaced_with_empty(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ}") == ""

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ:-8-dev}") == "8-dev"

    def test_empty_env_var_uses_default(self, monkeypatch):
        monkeypatch.setenv("EMPTY_VAR", "")
        assert interpolate_env_vars("${EMPTY_VAR:-fallback}") == "fallback"

    def test_literal_dollar_brace_no_closing(self):
        assert interpolate_env_vars("${NO_CLOSE") == "${NO_CLOSE"

    def test_nested_structures(self, monkeypatch):
        monkeypatch.setenv("INSTANCE", "8-abc")
        data = {"instance": {"instance_id": "${INSTANCE}", "timeout": 5}, "l": ["${INSTANCE}"]}
        assert _interpolate_recursive(data) == {
            "instance": {"instance_id": "8-abc", "timeout": 5},
            "l": ["8-abc"],
        }


# -------------------------------------------------------------------------
# Discovery
# -------------------------------------------------------------------------


def _write_config(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return path


class TestDiscoverConfigFiles:
    """Tests for discover_config_files()."""

    def test_none_found(self, tmp_path):
        assert discover_config_files(tmp_path) == []

    def test_env_var_takes_highest_precedence(self, tmp_path, monkeypatch):
        explicit = _write_config(tmp_path / "explicit.yml", "editor: {}\n")
        project = _write_config(tmp_path / ".webengine_sync" / "config.yml", "{}\n")
        monkeypatch.setenv("WEBENGINE_SYNC_CONFIG", str(explicit))

        found = discover_config_files(tmp_path)

        assert found[0] == explicit.resolve()
        assert project in found

    def test_project_yml_before_yaml_and_global(self, tmp_path):
        yml = _write_config(tmp_path / ".webengine_sync" / "config.yml", "{}\n")
        yaml_ext = _write_config(tmp_path / ".webengine_sync" / "config.yaml", "{}\n")
        global_cfg = _write_config(
            tmp_path / "home" / ".config" / "webengine_sync" / "config.yml", "{}\n"
        )
        assert discover_config_files(tmp_path) == [yml, yaml_ext, global_cfg]

    def test_xdg_config_home(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        global_cfg = _write_config(
            tmp_path / "xdg" / "webengine_sync" / "config.yml", "{}\n"
        )
        assert discover_config_files(tmp_path) == [global_cfg]

    def test_resolve_default_path(self, tmp_path):
        assert resolve_config_path(tmp_path) == (
            tmp_path / ".webengine_sync" / "config.yml"
        )


class TestEnsureConfig:
    def test_creates_starter(self, tmp_path):
        path = ensure_config(cwd=tmp_path)
        assert path == tmp_path / ".webengine_sync" / "config.yml"
        assert "WEBENGINE_TOKEN" in path.read_text(encoding="utf-8")
        # The starter is all comments: it loads as an empty document.
        assert yaml.safe_load(path.read_text(encoding="utf-8")) is None

    def test_existing_file_untouched(self, tmp_path):
        existing = _write_config(
            tmp_path / ".webengine_sync" / "config.yml", "editor:\n  debug: true\n"
        )
        assert ensure_config(cwd=tmp_path) == existing
        assert existing.read_text(encoding="utf-8") == "editor:\n  debug: true\n"


# -------------------------------------------------------------------------
# Hierarchical merge
# -------------------------------------------------------------------------


class TestLoadHierarchicalConfig:
    """Tests for load_hierarchical_config()."""

    def test_zero_config(self, tmp_path):
        assert load_hierarchical_config(tmp_path) == {}

    def test_project_wins_per_top_level_key(self, tmp_path):
        _write_config(
            tmp_path / "home" / ".config" / "webengine_sync" / "config.yml",
            """
            instance:
              instance_id: 8-global
              timeout: 10
            logging:
              level: DEBUG
            """,
        )
        _write_config(
            tmp_path / ".webengine_sync" / "config.yml",
            """
            instance:
              instance_id: 8-project
            """,
        )

        merged = load_hierarchical_config(tmp_path)

        assert merged["instance"] == {"instance_id": "8-project"}
        assert merged["logging"] == {"level": "DEBUG"}

    def test_interpolates_after_merge(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MY_WEBENGINE_TOKEN", "from-env")
        _write_config(
            tmp_path / ".webengine_sync" / "config.yml",
            """
            instance:
              token: ${MY_WEBENGINE_TOKEN}
            """,
        )
        assert load_hierarchical_config(tmp_path)["instance"]["token"] == "from-env"

    def test_non_dict_root_skipped(self, tmp_path):
        _write_config(tmp_path / ".webengine_sync" / "config.yml", "- a\n- b\n")
        assert load_hierarchical_config(tmp_path) == {}

    def test_invalid_yaml_raises(self, tmp_path):
        _write_config(tmp_path / ".webengine_sync" / "config.yml", "a: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_hierarchical_config(tmp_path)

"""Tests for webengine_sync.config -- env-var config loading and validation.

NOT to be confused with test_config_loader.py (hierarchical YAML config)
or test_config_schema.py (Pydantic models).
"""

from pathlib import Path

import pytest

from webengine_sync.config import Config, load_config, validate_config

# -------------------------------------------------------------------------
# validate_config()
# -------------------------------------------------------------------------


class TestValidateConfig:
    """Tests for validate_config() -- workspace, URL and timeout checks."""

    def test_valid_config(self, tmp_path):
        validate_config(Config(token="t", workspace_root=tmp_path))

    def test_workspace_must_exist(self, tmp_path):
        with pytest.raises(ValueError, match="is not a directory"):
            validate_config(Config(workspace_root=tmp_path / "missing"))

    def test_api_template_needs_instance_placeholder(self, tmp_path):
        config = Config(
            workspace_root=tmp_path, api_url_template="https://api.example.com"
        )
        with pytest.raises(ValueError, match="must contain"):
            validate_config(config)

    def test_ftp_scheme_rejected(self, tmp_path):
        config = Config(
            workspace_root=tmp_path, accounts_url="ftp://accounts.example.com"
        )
        with pytest.raises(ValueError, match="http:// or https://"):
            validate_config(config)

    def test_empty_host_rejected(self, tmp_path):
        config = Config(workspace_root=tmp_path, accounts_url="https://")
        with pytest.raises(ValueError, match="hostname"):
            validate_config(config)

    def test_empty_artifact_root_rejected(self, tmp_path):
        config = Config(workspace_root=tmp_path, artifact_root=" / ")
        with pytest.raises(ValueError, match="Artifact root"):
            validate_config(config)

    def test_non_positive_timeout_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="timeout"):
            validate_config(Config(workspace_root=tmp_path, timeout=0))

    def test_values_stripped(self, tmp_path):
        config = Config(
            token="  tok  ", instance_id=" 8-abc ", workspace_root=tmp_path
        )
        validate_config(config)
        assert config.token == "tok"
        assert config.instance_id == "8-abc"

    def test_token_not_in_repr(self, tmp_path):
        assert "secret" not in repr(Config(token="secret", workspace_root=tmp_path))

    def test_state_path(self, tmp_path):
        config = Config(workspace_root=tmp_path)
        assert config.state_path == tmp_path / "webengine.config.json"


# -------------------------------------------------------------------------
# load_config()
# -------------------------------------------------------------------------


class TestLoadConfig:
    """Tests for load_config() precedence."""

    def test_load_from_env_vars(self, monkeypatch, tmp_path):
        monkeypatch.setenv("WEBENGINE_TOKEN", "env-token")
        monkeypatch.setenv("WEBENGINE_INSTANCE", "8-env")
        monkeypatch.setenv("WEBENGINE_WORKSPACE", str(tmp_path))
        config = load_config()
        assert config.token == "env-token"
        assert config.instance_id == "8-env"
        assert config.workspace_root == tmp_path.resolve()

    def test_cli_args_override_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("WEBENGINE_TOKEN", "env-token")
        config = load_config(token="cli-token", workspace=str(tmp_path))
        assert config.token == "cli-token"

    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        config = load_config()
        assert config.token is None
        assert config.workspace_root == Path(tmp_path).resolve()
        assert config.sync_on_save is True
        assert config.sync_on_delete is True
        assert config.timeout == 30.0
        assert config.debug is False

    @pytest.mark.parametrize("value", ["true", "1", "yes", "on", "TRUE"])
    def test_bool_truthy_values(self, monkeypatch, tmp_path, value):
        monkeypatch.setenv("WEBENGINE_DEBUG", value)
        assert load_config(workspace=str(tmp_path)).debug is True

    @pytest.mark.parametrize("value", ["false", "0", "no", "off"])
    def test_sync_switches_falsy(self, monkeypatch, tmp_path, value):
        monkeypatch.setenv("WEBENGINE_SYNC_ON_SAVE", value)
        monkeypatch.setenv("WEBENGINE_SYNC_ON_DELETE", value)
        config = load_config(workspace=str(tmp_path))
        assert config.sync_on_save is False
        assert config.sync_on_delete is False

    def test_timeout_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("WEBENGINE_TIMEOUT", "12.5")
        assert load_config(workspace=str(tmp_path)).timeout == 12.5

    def test_timeout_non_numeric(self, monkeypatch, tmp_path):
        monkeypatch.setenv("WEBENGINE_TIMEOUT", "soon")
        with pytest.raises(ValueError, match="WEBENGINE_TIMEOUT"):
            load_config(workspace=str(tmp_path))

    def test_cli_debug_overrides_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("WEBENGINE_DEBUG", "false")
        assert load_config(workspace=str(tmp_path), debug=True).debug is True


class TestLoadConfigWithYamlFallbacks:
    """Tests for yaml_fallbacks precedence."""

    def test_yaml_fallback_used_when_no_env_or_cli(self, tmp_path):
        config = load_config(
            yaml_fallbacks={
                "token": "yaml-token",
                "instance_id": "8-yaml",
                "workspace": str(tmp_path),
                "artifact_root": "cms",
                "sync_on_delete": False,
                "timeout": 5,
            }
        )
        assert config.token == "yaml-token"
        assert config.instance_id == "8-yaml"
        assert config.artifact_root == "cms"
        assert config.sync_on_delete is False
        assert config.timeout == 5.0

    def test_env_var_overrides_yaml_fallback(self, monkeypatch, tmp_path):
        monkeypatch.setenv("WEBENGINE_INSTANCE", "8-env")
        monkeypatch.setenv("WEBENGINE_SYNC_ON_DELETE", "true")
        config = load_config(
            workspace=str(tmp_path),
            yaml_fallbacks={"instance_id": "8-yaml", "sync_on_delete": False},
        )
        assert config.instance_id == "8-env"
        assert config.sync_on_delete is True

    def test_cli_overrides_env_and_yaml(self, monkeypatch, tmp_path):
        monkeypatch.setenv("WEBENGINE_INSTANCE", "8-env")
        config = load_config(
            instance="8-cli",
            workspace=str(tmp_path),
            yaml_fallbacks={"instance_id": "8-yaml"},
        )
        assert config.instance_id == "8-cli"

"""Tests for notes_mcp_server.config: env-var config loading and validation.

NOT to be confused with test_config_loader.py (hierarchical YAML config)
or test_config_schema.py (Pydantic models). This tests the standalone
server bootstrap path: validate_config() and load_config().
"""

import logging
from pathlib import Path

import pytest

from notes_mcp_server.config import (
    DEFAULT_DRIVE_FOLDER,
    Config,
    load_config,
    validate_config,
)

ENV_VARS = (
    "NOTES_DATA_DIR",
    "NOTES_DRIVE_TOKEN",
    "NOTES_DRIVE_FOLDER",
    "NOTES_REQUEST_TIMEOUT",
    "NOTES_MAX_PARALLEL_REQUESTS",
    "NOTES_SYNC_ON_SIGN_IN",
    "NOTES_DEBUG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# -------------------------------------------------------------------------
# validate_config()
# -------------------------------------------------------------------------


class TestValidateConfig:
    """Tests for validate_config(): paths, names and numeric ranges."""

    def test_valid_config(self, tmp_path):
        config = Config(data_dir=tmp_path, drive_token="tok")
        validate_config(config)  # should not raise

    def test_missing_data_dir_is_fine(self, tmp_path):
        validate_config(Config(data_dir=tmp_path / "later"))

    def test_data_dir_expanded(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        config = Config(data_dir=Path("~/notes"))
        validate_config(config)
        assert config.data_dir == tmp_path / "notes"

    def test_data_dir_is_a_file(self, tmp_path):
        target = tmp_path / "file"
        target.write_text("x")
        with pytest.raises(ValueError, match="not a directory"):
            validate_config(Config(data_dir=target))

    def test_empty_drive_folder(self, tmp_path):
        config = Config(data_dir=tmp_path, drive_folder="   ")
        with pytest.raises(ValueError, match="folder name cannot be empty"):
            validate_config(config)

    def test_whitespace_token_becomes_none(self, tmp_path):
        config = Config(data_dir=tmp_path, drive_token="  ")
        validate_config(config)
        assert config.drive_token is None

    def test_token_stripped(self, tmp_path):
        config = Config(data_dir=tmp_path, drive_token=" tok\n")
        validate_config(config)
        assert config.drive_token == "tok"

    @pytest.mark.parametrize("timeout", [0, 0.5, 601])
    def test_timeout_out_of_range(self, tmp_path, timeout):
        config = Config(data_dir=tmp_path, request_timeout=timeout)
        with pytest.raises(ValueError, match="request timeout"):
            validate_config(config)

    @pytest.mark.parametrize("value", [0, 33])
    def test_max_parallel_out_of_range(self, tmp_path, value):
        config = Config(data_dir=tmp_path, max_parallel_requests=value)
        with pytest.raises(ValueError, match="max parallel requests"):
            validate_config(config)

    def test_no_token_logs_info(self, tmp_path, caplog):
        with caplog.at_level(logging.INFO, logger="notes_mcp_server.config"):
            validate_config(Config(data_dir=tmp_path))
        assert "sync is disabled" in caplog.text

    def test_token_no_info(self, tmp_path, caplog):
        with caplog.at_level(logging.INFO, logger="notes_mcp_server.config"):
            validate_config(Config(data_dir=tmp_path, drive_token="tok"))
        assert "sync is disabled" not in caplog.text


# -------------------------------------------------------------------------
# load_config()
# -------------------------------------------------------------------------


class TestLoadConfig:
    """Tests for load_config(): env vars, CLI overrides, defaults."""

    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        config = load_config()
        assert config.data_dir == tmp_path / ".notes_mcp" / "data"
        assert config.drive_token is None
        assert config.drive_folder == DEFAULT_DRIVE_FOLDER
        assert config.request_timeout == 30.0
        assert config.max_parallel_requests == 4
        assert config.sync_on_sign_in is True
        assert config.debug is False

    def test_load_from_env_vars(self, monkeypatch, tmp_path):
        monkeypatch.setenv("NOTES_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("NOTES_DRIVE_TOKEN", "env-token")
        monkeypatch.setenv("NOTES_DRIVE_FOLDER", "My Notes")
        monkeypatch.setenv("NOTES_REQUEST_TIMEOUT", "12.5")
        monkeypatch.setenv("NOTES_MAX_PARALLEL_REQUESTS", "8")

        config = load_config()

        assert config.data_dir == tmp_path
        assert config.drive_token == "env-token"
        assert config.drive_folder == "My Notes"
        assert config.request_timeout == 12.5
        assert config.max_parallel_requests == 8

    def test_cli_args_override_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("NOTES_DATA_DIR", str(tmp_path / "env"))
        monkeypatch.setenv("NOTES_DRIVE_TOKEN", "env-token")

        config = load_config(
            data_dir=str(tmp_path / "cli"), drive_token="cli-token"
        )

        assert config.data_dir == tmp_path / "cli"
        assert config.drive_token == "cli-token"

    @pytest.mark.parametrize("value", ["true", "1", "yes", "on", "TRUE"])
    def test_debug_truthy_values(self, monkeypatch, tmp_path, value):
        monkeypatch.setenv("NOTES_DEBUG", value)
        assert load_config(data_dir=str(tmp_path)).debug is True

    @pytest.mark.parametrize("value", ["false", "0", "no", "off", ""])
    def test_sync_on_sign_in_falsy_values(self, monkeypatch, tmp_path, value):
        monkeypatch.setenv("NOTES_SYNC_ON_SIGN_IN", value)
        assert load_config(data_dir=str(tmp_path)).sync_on_sign_in is False

    def test_cli_debug_overrides_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("NOTES_DEBUG", "false")
        assert load_config(data_dir=str(tmp_path), debug=True).debug is True

    def test_max_parallel_non_numeric(self, monkeypatch, tmp_path):
        monkeypatch.setenv("NOTES_MAX_PARALLEL_REQUESTS", "many")
        with pytest.raises(
            ValueError, match="Invalid NOTES_MAX_PARALLEL_REQUESTS 'many'"
        ):
            load_config(data_dir=str(tmp_path))

    @pytest.mark.parametrize("value", ["0", "-1", "33"])
    def test_max_parallel_out_of_range(self, monkeypatch, tmp_path, value):
        monkeypatch.setenv("NOTES_MAX_PARALLEL_REQUESTS", value)
        with pytest.raises(ValueError, match="between 1 and 32"):
            load_config(data_dir=str(tmp_path))

    def test_max_parallel_bounds_valid(self, monkeypatch, tmp_path):
        monkeypatch.setenv("NOTES_MAX_PARALLEL_REQUESTS", "32")
        assert load_config(data_dir=str(tmp_path)).max_parallel_requests == 32

    def test_timeout_non_numeric(self, monkeypatch, tmp_path):
        monkeypatch.setenv("NOTES_REQUEST_TIMEOUT", "soon")
        with pytest.raises(ValueError, match="NOTES_REQUEST_TIMEOUT"):
            load_config(data_dir=str(tmp_path))

    def test_empty_folder_via_env_uses_default(self, monkeypatch, tmp_path):
        monkeypatch.setenv("NOTES_DRIVE_FOLDER", "")
        config = load_config(data_dir=str(tmp_path))
        assert config.drive_folder == DEFAULT_DRIVE_FOLDER


# -------------------------------------------------------------------------
# load_config() with yaml_fallbacks
# -------------------------------------------------------------------------


class TestLoadConfigWithYamlFallbacks:
    """YAML values sit between env vars and built-in defaults."""

    def test_yaml_fallback_used_when_no_env_or_cli(self, tmp_path):
        config = load_config(
            yaml_fallbacks={
                "data_dir": str(tmp_path),
                "drive_token": "yaml-token",
                "drive_folder": "Yaml Notes",
                "request_timeout": 45,
                "max_parallel_requests": 2,
                "sync_on_sign_in": False,
                "debug": True,
            }
        )

        assert config.data_dir == tmp_path
        assert config.drive_token == "yaml-token"
        assert config.drive_folder == "Yaml Notes"
        assert config.request_timeout == 45.0
        assert config.max_parallel_requests == 2
        assert config.sync_on_sign_in is False
        assert config.debug is True

    def test_env_var_overrides_yaml_fallback(self, monkeypatch, tmp_path):
        monkeypatch.setenv("NOTES_DRIVE_TOKEN", "env-token")
        monkeypatch.setenv("NOTES_MAX_PARALLEL_REQUESTS", "6")
        monkeypatch.setenv("NOTES_SYNC_ON_SIGN_IN", "true")

        config = load_config(
            yaml_fallbacks={
                "data_dir": str(tmp_path),
                "drive_token": "yaml-token",
                "max_parallel_requests": 2,
                "sync_on_sign_in": False,
            }
        )

        assert config.drive_token == "env-token"
        assert config.max_parallel_requests == 6
        assert config.sync_on_sign_in is True

    def test_cli_overrides_env_and_yaml(self, monkeypatch, tmp_path):
        monkeypatch.setenv("NOTES_DATA_DIR", str(tmp_path / "env"))
        config = load_config(
            data_dir=str(tmp_path / "cli"),
            yaml_fallbacks={"data_dir": str(tmp_path / "yaml")},
        )
        assert config.data_dir == tmp_path / "cli"

    def test_yaml_values_are_validated(self, tmp_path):
        with pytest.raises(ValueError, match="request timeout"):
            load_config(
                yaml_fallbacks={
                    "data_dir": str(tmp_path),
                    "request_timeout": 9999,
                }
            )

    def test_empty_yaml_fallbacks_same_as_none(self, tmp_path):
        a = load_config(data_dir=str(tmp_path), yaml_fallbacks={})
        b = load_config(data_dir=str(tmp_path), yaml_fallbacks=None)
        assert a == b

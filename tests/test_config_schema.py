"""Tests for the unified config schema and its adapter functions.

Covers the section models in config_schema.py (DriveConfig, StorageConfig,
SyncConfig, LoggingConfig, UnifiedConfig), the build_config() factory, and
yaml_fallbacks(), which feeds YAML values to load_config().
"""

import pytest
from pydantic import ValidationError

from notes_mcp_server.config import load_config
from notes_mcp_server.config_schema import (
    DriveConfig,
    LoggingConfig,
    StorageConfig,
    SyncConfig,
    UnifiedConfig,
    build_config,
    yaml_fallbacks,
)

# ---------------------------------------------------------------------------
# UnifiedConfig tests
# ---------------------------------------------------------------------------


class TestUnifiedConfig:
    """Tests for the top-level UnifiedConfig model."""

    def test_zero_config_defaults(self):
        config = UnifiedConfig()
        assert config.drive.token is None
        assert config.drive.folder == "Notes App"
        assert config.drive.request_timeout == 30.0
        assert config.storage.data_dir is None
        assert config.sync.max_parallel_requests == 4
        assert config.sync.on_sign_in is True
        assert config.logging.level == "INFO"

    def test_unknown_sections_ignored(self):
        config = UnifiedConfig(**{"providers": {"x": 1}})
        assert not hasattr(config, "providers")

    def test_frozen_model_prevents_mutation(self):
        config = UnifiedConfig()
        with pytest.raises(ValidationError):
            config.drive = DriveConfig(folder="Other")


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class TestSectionModels:
    def test_empty_drive_folder_rejected(self):
        with pytest.raises(ValidationError):
            DriveConfig(folder="")

    @pytest.mark.parametrize("timeout", [0, 601])
    def test_request_timeout_bounds(self, timeout):
        with pytest.raises(ValidationError):
            DriveConfig(request_timeout=timeout)

    @pytest.mark.parametrize("value", [0, 33])
    def test_max_parallel_bounds(self, value):
        with pytest.raises(ValidationError):
            SyncConfig(max_parallel_requests=value)

    def test_logging_custom_values(self):
        config = LoggingConfig(level="DEBUG", file="/tmp/notes.log", debug=True)
        assert (config.level, config.file, config.debug) == (
            "DEBUG",
            "/tmp/notes.log",
            True,
        )

    def test_storage_frozen(self):
        storage = StorageConfig(data_dir="/data")
        with pytest.raises(ValidationError):
            storage.data_dir = "/other"


# ---------------------------------------------------------------------------
# build_config()
# ---------------------------------------------------------------------------


class TestBuildConfig:
    """Tests for build_config() factory function."""

    def test_empty_dict_returns_defaults(self):
        assert build_config({}) == UnifiedConfig()

    def test_partial_sections_fill_defaults(self):
        config = build_config({"drive": {"folder": "Work Notes"}})
        assert config.drive.folder == "Work Notes"
        assert config.drive.request_timeout == 30.0
        assert config.sync == SyncConfig()

    def test_full_raw_dict(self):
        config = build_config(
            {
                "drive": {
                    "token": "ya29",
                    "folder": "Shared",
                    "request_timeout": 15,
                },
                "storage": {"data_dir": "/srv/notes"},
                "sync": {"max_parallel_requests": 8, "on_sign_in": False},
                "logging": {"level": "WARNING", "debug": True},
            }
        )
        assert config.drive.token == "ya29"
        assert config.storage.data_dir == "/srv/notes"
        assert config.sync.on_sign_in is False
        assert config.logging.debug is True

    def test_invalid_value_raises(self):
        with pytest.raises(ValidationError):
            build_config({"sync": {"max_parallel_requests": "lots"}})


# ---------------------------------------------------------------------------
# yaml_fallbacks()
# ---------------------------------------------------------------------------


class TestYamlFallbacks:
    def test_flattens_sections(self):
        unified = build_config(
            {
                "drive": {"token": "ya29", "folder": "Shared"},
                "storage": {"data_dir": "/srv/notes"},
                "sync": {"on_sign_in": False},
            }
        )

        assert yaml_fallbacks(unified) == {
            "data_dir": "/srv/notes",
            "drive_token": "ya29",
            "drive_folder": "Shared",
            "request_timeout": 30.0,
            "max_parallel_requests": 4,
            "sync_on_sign_in": False,
            "debug": False,
        }

    def test_none_values_dropped(self):
        flat = yaml_fallbacks(UnifiedConfig())
        assert "data_dir" not in flat
        assert "drive_token" not in flat

    def test_feeds_load_config(self, tmp_path, monkeypatch):
        monkeypatch.delenv("NOTES_DRIVE_FOLDER", raising=False)
        monkeypatch.delenv("NOTES_MAX_PARALLEL_REQUESTS", raising=False)
        unified = build_config(
            {
                "storage": {"data_dir": str(tmp_path)},
                "drive": {"folder": "From Yaml"},
                "sync": {"max_parallel_requests": 3},
            }
        )

        config = load_config(yaml_fallbacks=yaml_fallbacks(unified))

        assert config.data_dir == tmp_path
        assert config.drive_folder == "From Yaml"
        assert config.max_parallel_requests == 3

"""Unified configuration schema for notes_mcp_server.

Defines Pydantic models for the unified config structure with dedicated
sections for Google Drive, local storage, sync and logging, plus the
adapter that feeds them to ``load_config()`` as fallbacks.

Usage:
    from notes_mcp_server.config_schema import build_config, yaml_fallbacks

    raw = load_hierarchical_config()
    config = load_config(yaml_fallbacks=yaml_fallbacks(build_config(raw)))
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class DriveConfig(BaseModel):
    """Google Drive remote store settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    token: str | None = Field(
        default=None, description="OAuth access token"
    )
    folder: str = Field(
        default="Notes App",
        min_length=1,
        description="Drive folder holding the note files",
    )
    request_timeout: float = Field(
        default=30.0,
        ge=1,
        le=600,
        description="Seconds per remote request (1-600)",
    )

    model_config = {"frozen": True}


class StorageConfig(BaseModel):
    """Local storage settings."""

    data_dir: str | None = Field(
        default=None,
        description="Directory holding notes-storage.json",
    )

    model_config = {"frozen": True}


class SyncConfig(BaseModel):
    """Sync cycle settings.

    Attributes:
        max_parallel_requests: Concurrent uploads/downloads per cycle.
        on_sign_in: Run a sync cycle right after a successful sign-in.
    """

    max_parallel_requests: int = Field(
        default=4,
        ge=1,
        le=32,
        description="Maximum concurrent remote requests (1-32)",
    )
    on_sign_in: bool = Field(
        default=True, description="Sync automatically after sign-in"
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        debug: Force DEBUG level.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Aggregates all config sections. Every section has sensible defaults,
    so ``UnifiedConfig()`` (zero-config) is always valid.
    """

    drive: DriveConfig = Field(default_factory=DriveConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully: anything absent gets defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


def yaml_fallbacks(unified: UnifiedConfig) -> dict[str, Any]:
    """Flatten the sections into ``load_config(yaml_fallbacks=...)`` keys.

    ``None`` values are dropped so they never shadow built-in defaults.
    """
    flat = {
        "data_dir": unified.storage.data_dir,
        "drive_token": unified.drive.token,
        "drive_folder": unified.drive.folder,
        "request_timeout": unified.drive.request_timeout,
        "max_parallel_requests": unified.sync.max_parallel_requests,
        "sync_on_sign_in": unified.sync.on_sign_in,
        "debug": unified.logging.debug,
    }
    return {k: v for k, v in flat.items() if v is not None}



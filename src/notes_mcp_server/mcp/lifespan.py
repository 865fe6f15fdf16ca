"""Lifespan management for MCP server startup and shutdown."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv

from ..app import AppContext, build_app
from ..config import load_config
from ..config_loader import (
    discover_config_files,
    load_hierarchical_config,
)
from ..config_schema import build_config, yaml_fallbacks
from ..core.async_utils import run_sync_timeout
from ..errors import RemoteError
from ..sync.remote import RemoteStore

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback (safe in MCP mode)."""
    print(msg, file=sys.stderr, flush=True)


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
    remote: RemoteStore | None = None,
) -> AsyncIterator[AppContext]:
    """
    Manage server startup and shutdown lifecycle.

    On startup:
    - Load .env file (so values are available for env var lookups and YAML interpolation)
    - Load YAML config file if present (as fallback values)
    - Merge all sources via load_config(): CLI > env vars > .env > YAML > defaults
    - Load local notes (an unreadable store degrades to in-memory only)
    - Sign in to the remote store if a token is configured; failure is only
      logged, notes stay usable offline

    On shutdown:
    - Cancel a running sync and log shutdown

    Args:
        config_overrides: Optional dict with config values from CLI
            (data_dir, drive_token, debug)
        remote: Remote store to use instead of the Drive client (tests)

    Yields:
        The initialized ``AppContext``

    Raises:
        RuntimeError: If configuration is invalid.
    """
    logger.info("MCP server starting...")
    _stderr_print("Notes MCP Server starting...")

    try:
        # 1. Load .env early (before YAML, so ${VAR} interpolation can use .env values)
        load_dotenv()

        # 2. Load YAML config if present, flatten sections as fallbacks
        fallbacks: dict[str, Any] | None = None
        config_files = discover_config_files()
        sources = []

        if config_files:
            raw = load_hierarchical_config()
            fallbacks = yaml_fallbacks(build_config(raw))
            sources.append(f"config file: {config_files[0]}")

        # 3. Single call to load_config with all sources merged
        overrides = config_overrides or {}
        config = load_config(
            data_dir=overrides.get("data_dir"),
            drive_token=overrides.get("drive_token"),
            debug=overrides.get("debug", False),
            yaml_fallbacks=fallbacks,
        )

        if overrides:
            sources.append("CLI arguments")
        sources.append("environment variables")
        source_desc = ", ".join(sources)
        logger.info("Configuration loaded from: %s", source_desc)
        _stderr_print(f"  Configuration loaded from: {source_desc}")
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        raise RuntimeError(f"Configuration error: {e}") from e

    if config.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    app = build_app(config, remote=remote)
    _stderr_print(f"  Data directory: {config.data_dir}")
    if app.workspace.degraded:
        _stderr_print(
            "  WARNING: local storage unreadable, running in memory only."
        )

    if config.drive_token or remote is not None:
        _stderr_print("  Signing in to remote store...")
        try:
            user = await run_sync_timeout(
                config.request_timeout, app.remote.authenticate
            )
        except (RemoteError, TimeoutError) as e:
            logger.warning("Sign-in at startup failed: %s", e)
            _stderr_print(
                "  Sign-in failed; notes are available offline. "
                "Use the sign_in tool to retry."
            )
        else:
            app.workspace.set_user(user)
            _stderr_print(f"  Signed in as {user.email}")
    else:
        _stderr_print(
            "  No NOTES_DRIVE_TOKEN configured; sync is disabled."
        )

    _stderr_print("Server ready. Waiting for MCP client connection...")

    try:
        yield app
    finally:
        app.orchestrator.cancel()
        logger.info("MCP server shutting down")
        _stderr_print("Notes MCP Server shutting down.")

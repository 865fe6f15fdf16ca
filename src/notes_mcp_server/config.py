"""Configuration for the notes MCP server.

Reads storage, Google Drive and sync settings from CLI args, environment
variables, .env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    NOTES_DATA_DIR: Directory holding notes-storage.json (default: ~/.notes_mcp/data)
    NOTES_DRIVE_TOKEN: Google Drive OAuth access token (optional; no sync without it)
    NOTES_DRIVE_FOLDER: Drive folder holding the records (default: "Notes App")
    NOTES_REQUEST_TIMEOUT: Seconds per remote request (optional, default: 30)
    NOTES_MAX_PARALLEL_REQUESTS: Max concurrent remote requests (optional, default: 4)
    NOTES_SYNC_ON_SIGN_IN: Run a sync right after sign-in (optional, default: true)
    NOTES_DEBUG: Enable debug logging (optional, default: false)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = "~/.notes_mcp/data"
DEFAULT_DRIVE_FOLDER = "Notes App"


@dataclass
class Config:
    data_dir: Path
    drive_token: str | None = None
    drive_folder: str = DEFAULT_DRIVE_FOLDER
    request_timeout: float = 30.0
    max_parallel_requests: int = 4
    sync_on_sign_in: bool = True
    debug: bool = False


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If a path, name or numeric value is out of range.
    """
    config.data_dir = Path(config.data_dir).expanduser()
    if config.data_dir.exists() and not config.data_dir.is_dir():
        raise ValueError(
            f"Invalid data directory '{config.data_dir}': not a directory"
        )

    config.drive_folder = config.drive_folder.strip()
    if not config.drive_folder:
        raise ValueError(
            "Drive folder name cannot be empty. Set NOTES_DRIVE_FOLDER "
            "or remove it to use the default."
        )

    if config.drive_token is not None:
        config.drive_token = config.drive_token.strip() or None

    if not (1 <= config.request_timeout <= 600):
        raise ValueError(
            f"Invalid request timeout {config.request_timeout}: "
            "must be between 1 and 600 seconds"
        )

    if not (1 <= config.max_parallel_requests <= 32):
        raise ValueError(
            f"Invalid max parallel requests {config.max_parallel_requests}: "
            "must be between 1 and 32"
        )

    if config.drive_token is None:
        logger.info(
            "No Google Drive token configured; sync is disabled until "
            "NOTES_DRIVE_TOKEN is set"
        )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def _get_number_env(
    key: str, cast: type, low: float, high: float
) -> float | int | None:
    """Return a numeric env var within [low, high], or None if unset."""
    raw = os.getenv(key)
    if raw is None:
        return None
    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(
            f"Invalid {key} '{raw}': must be a number between {low} and {high}"
        ) from None
    if not (low <= value <= high):
        raise ValueError(
            f"Invalid {key} '{raw}': must be a number between {low} and {high}"
        )
    return value


def load_config(
    data_dir: str | None = None,
    drive_token: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        data_dir: Override the storage directory.
        drive_token: Override the Google Drive access token.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flat dict of values from the YAML config file, keyed
            by ``Config`` field name (see ``config_schema.yaml_fallbacks``).

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If any value is invalid.
    """
    fb = yaml_fallbacks or {}

    # --- String fields: CLI > env > YAML > default ---

    final_data_dir = (
        data_dir
        or os.getenv("NOTES_DATA_DIR")
        or fb.get("data_dir")
        or DEFAULT_DATA_DIR
    )
    final_token = (
        drive_token or os.getenv("NOTES_DRIVE_TOKEN") or fb.get("drive_token")
    )
    final_folder = (
        os.getenv("NOTES_DRIVE_FOLDER")
        or fb.get("drive_folder")
        or DEFAULT_DRIVE_FOLDER
    )

    # --- Boolean fields: CLI > env > YAML > default ---

    if debug:
        final_debug = True
    else:
        env_debug = _get_bool_env("NOTES_DEBUG")
        if env_debug is not None:
            final_debug = env_debug
        else:
            final_debug = bool(fb.get("debug", False))

    env_sync_on_sign_in = _get_bool_env("NOTES_SYNC_ON_SIGN_IN")
    if env_sync_on_sign_in is not None:
        final_sync_on_sign_in = env_sync_on_sign_in
    else:
        final_sync_on_sign_in = bool(fb.get("sync_on_sign_in", True))

    # --- Numeric fields: env > YAML > default ---

    timeout = _get_number_env("NOTES_REQUEST_TIMEOUT", float, 1, 600)
    if timeout is None:
        timeout = float(fb.get("request_timeout", 30.0))

    max_parallel = _get_number_env("NOTES_MAX_PARALLEL_REQUESTS", int, 1, 32)
    if max_parallel is None:
        max_parallel = int(fb.get("max_parallel_requests", 4))

    config = Config(
        data_dir=Path(final_data_dir),
        drive_token=final_token,
        drive_folder=final_folder,
        request_timeout=timeout,
        max_parallel_requests=int(max_parallel),
        sync_on_sign_in=final_sync_on_sign_in,
        debug=final_debug,
    )

    validate_config(config)

    return config

"""
YAML config files for notes_mcp_server.

A config file is a mapping of sections (``drive``, ``storage``, ``sync``,
``logging``; see ``config_schema``).  Up to three files are read, the
first one found in each location of ``config_search_path()``.  A section
in a higher-precedence file replaces the same section from a lower one as
a whole.  ``${VAR}`` and ``${VAR:-default}`` references in string values
are expanded from the environment after the merge.

Usage:
    from notes_mcp_server.config_loader import load_hierarchical_config

    sections = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "NOTES_MCP_CONFIG"
PROJECT_CONFIG_DIR = ".notes_mcp"
CONFIG_NAMES = ("config.yml", "config.yaml")

_ENV_REF = re.compile(r"\$\{(?P<name>[^}:]+?)(?::-(?P<default>.*?))?\}")


def config_search_path() -> list[Path]:
    """Candidate config files, highest precedence first.

    1. The file named by ``NOTES_MCP_CONFIG``.
    2. ``.notes_mcp/config.yml`` (or ``config.yaml``) in the working
       directory.
    3. ``~/.config/notes_mcp/config.yml`` for the user.
    """
    paths: list[Path] = []
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        paths.append(Path(explicit).expanduser().resolve())
    project_dir = Path.cwd() / PROJECT_CONFIG_DIR
    paths.extend(project_dir / name for name in CONFIG_NAMES)
    paths.append(Path.home() / ".config" / "notes_mcp" / CONFIG_NAMES[0])
    return paths


def discover_config_files() -> list[Path]:
    """The entries of ``config_search_path()`` that exist on disk."""
    return [path for path in config_search_path() if path.is_file()]


def expand_env(value: Any) -> Any:
    """Expand ``${VAR}`` references in every string inside *value*.

    An unset or empty variable expands to its ``:-`` default, or to ``""``
    when there is none.  Text like ``${`` without a closing brace is kept.
    """
    if isinstance(value, str):
        return _ENV_REF.sub(
            lambda m: os.environ.get(m["name"]) or (m["default"] or ""),
            value,
        )
    if isinstance(value, dict):
        return {key: expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    return value


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse one config file into its sections.

    An empty (or fully commented-out) file yields ``{}``.

    Raises:
        ValueError: If the file is not valid YAML or its root is not a
            mapping.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"{path} must contain a mapping of sections, "
            f"not {type(data).__name__}"
        )
    return data


def load_hierarchical_config() -> dict[str, Any]:
    """Read and merge every discovered config file.

    Returns ``{}`` when there are none.

    Raises:
        ValueError: If a config file cannot be parsed.
    """
    merged: dict[str, Any] = {}
    for path in reversed(discover_config_files()):
        sections = read_config_file(path)
        logger.debug("Config %s: sections %s", path, sorted(sections))
        merged.update(sections)
    return expand_env(merged)


_STARTER_CONFIG = """\
# notes-mcp-server configuration
#
# Settings can also be set via environment variables:
#   NOTES_DATA_DIR, NOTES_DRIVE_TOKEN, NOTES_DRIVE_FOLDER,
#   NOTES_REQUEST_TIMEOUT, NOTES_MAX_PARALLEL_REQUESTS,
#   NOTES_SYNC_ON_SIGN_IN, NOTES_DEBUG
#
# drive:
#   token: ${NOTES_DRIVE_TOKEN}
#   folder: Notes App
#   request_timeout: 30
#
# storage:
#   data_dir: ~/.notes_mcp/data
#
# sync:
#   max_parallel_requests: 4
#   on_sign_in: true
#
# logging:
#   level: INFO
#   file: null
#   debug: false
"""


def ensure_config(target: Path | None = None) -> Path:
    """Return the config file in use, writing a starter file if none exists.

    The starter file has every setting commented out, so creating it does
    not change the effective configuration.  It goes to *target*, or to
    ``.notes_mcp/config.yml`` in the working directory.
    """
    existing = discover_config_files()
    if existing:
        return existing[0]

    path = target or Path.cwd() / PROJECT_CONFIG_DIR / CONFIG_NAMES[0]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", path)
    return path

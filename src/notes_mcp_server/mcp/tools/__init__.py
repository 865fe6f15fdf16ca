"""MCP tool handlers for note-taking operations.

This package contains MCP tool implementations that wrap the workspace and
the sync orchestrator with async handlers and structured error responses.
"""

from .errors import build_error_response, translate_notes_error
from .folders import FOLDER_SPECS, FOLDER_TOOLS
from .notes import NOTE_SPECS, NOTE_TOOLS
from .registry import ToolRegistry, ToolSpec
from .sync import SYNC_SPECS, SYNC_TOOLS
from .system import SYSTEM_SPECS, SYSTEM_TOOLS

ALL_SPECS: list[ToolSpec] = (
    NOTE_SPECS + FOLDER_SPECS + SYNC_SPECS + SYSTEM_SPECS
)

__all__ = [
    "build_error_response",
    "translate_notes_error",
    # Registry
    "ToolSpec",
    "ToolRegistry",
    # Spec lists
    "ALL_SPECS",
    "NOTE_SPECS",
    "FOLDER_SPECS",
    "SYNC_SPECS",
    "SYSTEM_SPECS",
    # Tool lists
    "NOTE_TOOLS",
    "FOLDER_TOOLS",
    "SYNC_TOOLS",
    "SYSTEM_TOOLS",
]

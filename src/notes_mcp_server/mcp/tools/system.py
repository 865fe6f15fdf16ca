"""System tool handlers for MCP server.

This module implements the ``preferences`` tool: read or change the UI
preferences stored next to the note collections (currently dark mode).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import mcp.types as types

from .errors import build_error_response, text_result
from .registry import ToolSpec

if TYPE_CHECKING:
    from ...app import AppContext

logger = logging.getLogger(__name__)


SYSTEM_TOOLS = [
    types.Tool(
        name="preferences",
        description="Get the UI preferences, or change them by passing new values. Preferences are stored locally and never synced.",
        inputSchema={
            "type": "object",
            "properties": {
                "dark_mode": {
                    "type": "boolean",
                    "description": "Enable or disable dark mode",
                },
            },
            "required": [],
        },
    )
]


async def _handle_preferences(
    app: AppContext, args: dict
) -> types.CallToolResult:
    workspace = app.workspace
    if "dark_mode" in args:
        value = args["dark_mode"]
        if not isinstance(value, bool):
            return build_error_response(
                "validation_error",
                f"dark_mode must be true or false, got {value!r}",
                "Pass a boolean value for dark_mode.",
            )
        workspace.set_dark_mode(value)
        logger.info("Dark mode set to %s", value)

    text = f"Dark mode: {'on' if workspace.dark_mode else 'off'}"
    if workspace.degraded:
        text += " (not saved: local storage unavailable)"
    return text_result(text, {"dark_mode": workspace.dark_mode})


SYSTEM_SPECS: list[ToolSpec] = [
    ToolSpec(tool=SYSTEM_TOOLS[0], handler=_handle_preferences, writes=True),
]

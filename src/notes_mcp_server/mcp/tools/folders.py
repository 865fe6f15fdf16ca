"""Folder tool handlers for MCP server: list, create, rename and delete."""

from __future__ import annotations

from typing import TYPE_CHECKING

import mcp.types as types

from .errors import text_result
from .notes import require_id
from .registry import ToolSpec

if TYPE_CHECKING:
    from ...app import AppContext
    from ...records import Folder


FOLDER_TOOLS = [
    types.Tool(
        name="folder_list",
        description="List all folders with the number of notes in each.",
        annotations=types.ToolAnnotations(readOnlyHint=True),
        inputSchema={"type": "object", "properties": {}, "required": []},
    ),
    types.Tool(
        name="folder_create",
        description="Create a folder. The name must not be empty.",
        inputSchema={
            "type": "object",
            "properties": {
                "name": {
                    "type": "string",
                    "description": "Folder name (required)",
                },
            },
            "required": ["name"],
        },
    ),
    types.Tool(
        name="folder_rename",
        description="Rename a folder.",
        inputSchema={
            "type": "object",
            "properties": {
                "folder_id": {
                    "type": "string",
                    "description": "Folder id (required)",
                },
                "name": {
                    "type": "string",
                    "description": "New name (required)",
                },
            },
            "required": ["folder_id", "name"],
        },
    ),
    types.Tool(
        name="folder_delete",
        description="Delete a folder. Notes inside it are kept and moved to 'no folder'. The remote copy of the folder is not deleted.",
        annotations=types.ToolAnnotations(destructiveHint=True),
        inputSchema={
            "type": "object",
            "properties": {
                "folder_id": {
                    "type": "string",
                    "description": "Folder id (required)",
                },
            },
            "required": ["folder_id"],
        },
    ),
]


def _folder_to_json(folder: Folder, note_count: int) -> dict:
    return {
        "id": folder.id,
        "name": folder.name,
        "created_at": folder.created_at,
        "synced": folder.synced,
        "note_count": note_count,
    }


async def _handle_list(
    app: AppContext, args: dict
) -> types.CallToolResult:
    workspace = app.workspace
    folders = sorted(workspace.folders(), key=lambda f: f.name.lower())
    if not folders:
        return text_result("No folders.", {"folders": []})

    counts = {
        f.id: len(workspace.search_notes(folder_id=f.id)) for f in folders
    }
    lines = [f"{len(folders)} folder(s):"]
    for folder in folders:
        marker = "" if folder.synced else " *"
        lines.append(
            f"- {folder.name} ({folder.id}){marker}: {counts[folder.id]} note(s)"
        )
    return text_result(
        "\n".join(lines),
        {"folders": [_folder_to_json(f, counts[f.id]) for f in folders]},
    )


async def _handle_create(
    app: AppContext, args: dict
) -> types.CallToolResult:
    folder = app.workspace.create_folder(args.get("name") or "")
    return text_result(
        f"Created folder '{folder.name}' ({folder.id}).",
        _folder_to_json(folder, 0),
    )


async def _handle_rename(
    app: AppContext, args: dict
) -> types.CallToolResult:
    folder_id = require_id(args, "folder_id")
    folder = app.workspace.rename_folder(folder_id, args.get("name") or "")
    count = len(app.workspace.search_notes(folder_id=folder_id))
    return text_result(
        f"Renamed folder {folder.id} to '{folder.name}'.",
        _folder_to_json(folder, count),
    )


async def _handle_delete(
    app: AppContext, args: dict
) -> types.CallToolResult:
    folder_id = require_id(args, "folder_id")
    folder = app.workspace.get_folder(folder_id)
    detached = app.workspace.delete_folder(folder_id)
    return text_result(
        f"Deleted folder '{folder.name}'. "
        f"{len(detached)} note(s) moved to no folder.",
        {
            "folder_id": folder_id,
            "detached_note_ids": [n.id for n in detached],
        },
    )


FOLDER_SPECS: list[ToolSpec] = [
    ToolSpec(tool=FOLDER_TOOLS[0], handler=_handle_list),
    ToolSpec(tool=FOLDER_TOOLS[1], handler=_handle_create, writes=True),
    ToolSpec(tool=FOLDER_TOOLS[2], handler=_handle_rename, writes=True),
    ToolSpec(tool=FOLDER_TOOLS[3], handler=_handle_delete, writes=True),
]

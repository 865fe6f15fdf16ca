"""Note tool handlers for MCP server.

This module implements all note-related MCP tools: list, get, create, update,
and delete.  Handlers work on the in-memory workspace, which persists every
change locally and marks it for the next sync.  Nothing here talks to the
remote store.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import mcp.types as types

from ...errors import ValidationError
from ...validators import validate_record_id
from .errors import format_note_line, note_to_json, text_result
from .registry import ToolSpec

if TYPE_CHECKING:
    from ...app import AppContext


# Tool definitions for list_tools()
NOTE_TOOLS = [
    types.Tool(
        name="note_list",
        description="List notes, newest first. Optionally filter by a case-insensitive text query (matches title or content) and/or a folder id. Notes marked with * have local changes not yet synced.",
        annotations=types.ToolAnnotations(readOnlyHint=True),
        inputSchema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Text to search for in title or content",
                },
                "folder_id": {
                    "type": "string",
                    "description": "Only list notes in this folder",
                },
            },
            "required": [],
        },
    ),
    types.Tool(
        name="note_get",
        description="Get a note by id, including its full content and folder.",
        annotations=types.ToolAnnotations(readOnlyHint=True),
        inputSchema={
            "type": "object",
            "properties": {
                "note_id": {
                    "type": "string",
                    "description": "Note id (required)",
                },
            },
            "required": ["note_id"],
        },
    ),
    types.Tool(
        name="note_create",
        description="Create a new note. Title defaults to 'Untitled Note'. The note is saved locally and uploaded on the next sync.",
        inputSchema={
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "Note title"},
                "content": {
                    "type": "string",
                    "description": "Note body (Markdown)",
                },
                "folder_id": {
                    "type": "string",
                    "description": "Folder to place the note in",
                },
            },
            "required": [],
        },
    ),
    types.Tool(
        name="note_update",
        description="Update a note's title, content and/or folder. Pass folder_id=null to move the note out of its folder.",
        inputSchema={
            "type": "object",
            "properties": {
                "note_id": {
                    "type": "string",
                    "description": "Note id (required)",
                },
                "title": {"type": "string", "description": "New title"},
                "content": {
                    "type": "string",
                    "description": "New body (replaces the old one)",
                },
                "folder_id": {
                    "type": ["string", "null"],
                    "description": "New folder id, or null for no folder",
                },
            },
            "required": ["note_id"],
        },
    ),
    types.Tool(
        name="note_delete",
        description="Delete a note locally. Warning: the remote copy is not deleted, so the note comes back on the next sync if it was ever synced.",
        annotations=types.ToolAnnotations(destructiveHint=True),
        inputSchema={
            "type": "object",
            "properties": {
                "note_id": {
                    "type": "string",
                    "description": "Note id (required)",
                },
            },
            "required": ["note_id"],
        },
    ),
]


def require_id(args: dict, key: str) -> str:
    """Return a validated id argument.

    Raises:
        ValidationError: If the argument is missing or malformed.
    """
    value = args.get(key)
    is_valid, error = validate_record_id(value)
    if not is_valid:
        raise ValidationError(f"{key}: {error}")
    return value  # type: ignore[return-value]


def _optional_id(args: dict, key: str) -> str | None:
    if args.get(key) is None:
        return None
    return require_id(args, key)


async def _handle_list(
    app: AppContext, args: dict
) -> types.CallToolResult:
    workspace = app.workspace
    folder_id = _optional_id(args, "folder_id")
    if folder_id is not None:
        workspace.get_folder(folder_id)

    notes = sorted(
        workspace.search_notes(args.get("query") or "", folder_id),
        key=lambda n: n.updated_at,
        reverse=True,
    )
    if not notes:
        return text_result("No notes found.", {"notes": []})

    lines = [f"{len(notes)} note(s):"]
    lines.extend(
        format_note_line(note, workspace.folder_of(note)) for note in notes
    )
    return text_result(
        "\n".join(lines),
        {
            "notes": [
                note_to_json(note, workspace.folder_of(note))
                for note in notes
            ]
        },
    )


async def _handle_get(app: AppContext, args: dict) -> types.CallToolResult:
    note = app.workspace.get_note(require_id(args, "note_id"))
    folder = app.workspace.folder_of(note)

    header = f"# {note.title}"
    meta = [
        f"Folder: {folder.name if folder else '(none)'}",
        f"Updated: {note.updated_at}",
        f"Synced: {'yes' if note.synced else 'no'}",
    ]
    text = "\n".join([header, *meta, "", note.content])
    return text_result(text, note_to_json(note, folder))


async def _handle_create(
    app: AppContext, args: dict
) -> types.CallToolResult:
    note = app.workspace.create_note(
        folder_id=_optional_id(args, "folder_id"),
        title=args.get("title"),
        content=args.get("content") or "",
    )
    folder = app.workspace.folder_of(note)
    return text_result(
        f"Created note '{note.title}' ({note.id}).",
        note_to_json(note, folder),
    )


async def _handle_update(
    app: AppContext, args: dict
) -> types.CallToolResult:
    note_id = require_id(args, "note_id")
    changes: dict = {
        "title": args.get("title"),
        "content": args.get("content"),
    }
    if "folder_id" in args:
        changes["folder_id"] = _optional_id(args, "folder_id")

    note = app.workspace.update_note(note_id, **changes)
    folder = app.workspace.folder_of(note)
    return text_result(
        f"Updated note '{note.title}' ({note.id}).",
        note_to_json(note, folder),
    )


async def _handle_delete(
    app: AppContext, args: dict
) -> types.CallToolResult:
    note_id = require_id(args, "note_id")
    note = app.workspace.get_note(note_id)
    app.workspace.delete_note(note_id)
    text = f"Deleted note '{note.title}' ({note_id})."
    if note.synced:
        text += " A copy remains on the remote store and will return on the next sync."
    return text_result(text)


# ToolSpec list for registry-based dispatch
NOTE_SPECS: list[ToolSpec] = [
    ToolSpec(tool=NOTE_TOOLS[0], handler=_handle_list),
    ToolSpec(tool=NOTE_TOOLS[1], handler=_handle_get),
    ToolSpec(tool=NOTE_TOOLS[2], handler=_handle_create, writes=True),
    ToolSpec(tool=NOTE_TOOLS[3], handler=_handle_update, writes=True),
    ToolSpec(tool=NOTE_TOOLS[4], handler=_handle_delete, writes=True),
]

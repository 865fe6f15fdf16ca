"""Error response builders and shared utilities for MCP tool handlers.

This module provides structured error responses with corrective actions
to help AI agents recover from errors without human intervention, plus
shared formatting utilities used across tool modules.
"""

from typing import Any

import mcp.types as types

from ...errors import (
    NotAuthenticatedError,
    NotesError,
    RecordNotFoundError,
    RemoteAuthExpired,
    RemoteError,
    StorageError,
    SyncInProgressError,
    ValidationError,
)
from ...records import Folder, Note, preview_text


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (not_found, validation_error, auth_expired,
            not_authenticated, busy, remote_error, storage_error, server_error)
        message: Human-readable error description
        corrective_action: Specific action the agent can take to resolve the error

    Returns:
        CallToolResult with isError=True

    Examples:
        >>> build_error_response("not_found", "Note 'x' not found", "Use note_list to find note ids.")
        CallToolResult(content=[TextContent(...)], isError=True)
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )


def translate_notes_error(error: NotesError) -> types.CallToolResult:
    """Translate a ``NotesError`` into a structured error response.

    Remote and storage failures only expose their ``user_message``; the
    detailed exception text stays in the log.
    """
    match error:
        case ValidationError():
            return build_error_response(
                "validation_error",
                str(error),
                "Check parameter values and retry.",
            )
        case RecordNotFoundError():
            return build_error_response(
                "not_found",
                str(error),
                "Use note_list or folder_list to find valid ids.",
            )
        case RemoteAuthExpired():
            return build_error_response(
                "auth_expired",
                error.user_message,
                "Call sign_in with a fresh access_token.",
            )
        case NotAuthenticatedError():
            return build_error_response(
                "not_authenticated",
                error.user_message,
                "Call sign_in first.",
            )
        case SyncInProgressError():
            return build_error_response(
                "busy",
                error.user_message,
                "Wait for the running sync to finish (see sync_status).",
            )
        case RemoteError():
            return build_error_response(
                "remote_error",
                error.user_message,
                "Check network connectivity and retry; unsynced notes are kept locally.",
            )
        case StorageError():
            return build_error_response(
                "storage_error",
                error.user_message,
                "Check that the data directory is writable.",
            )
        case _:
            return build_error_response(
                "server_error",
                error.user_message,
                "Retry later; see the server log for details.",
            )


# ---------------------------------------------------------------------------
# Shared formatting utilities
# ---------------------------------------------------------------------------


def text_result(
    text: str, structured: dict[str, Any] | None = None
) -> types.CallToolResult:
    """Plain success result with optional structured content."""
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent=structured,
    )


def format_timestamp(timestamp: str) -> str:
    """Format an ISO 8601 record timestamp for display (YYYY-MM-DD HH:MM)."""
    match timestamp:
        case str() as ts if len(ts) >= 16 and ts[10] == "T":
            return f"{ts[:10]} {ts[11:16]}"
        case _:
            return str(timestamp)


def note_to_json(note: Note, folder: Folder | None = None) -> dict[str, Any]:
    """Structured representation of a note for tool output."""
    return {
        "id": note.id,
        "title": note.title,
        "content": note.content,
        "folder_id": note.folder_id if folder is not None else None,
        "folder_name": folder.name if folder is not None else None,
        "created_at": note.created_at,
        "updated_at": note.updated_at,
        "synced": note.synced,
    }


def format_note_line(note: Note, folder: Folder | None = None) -> str:
    """One-line summary of a note for list output."""
    marker = "" if note.synced else " *"
    where = f" [{folder.name}]" if folder is not None else ""
    preview = preview_text(note.content, limit=60)
    line = (
        f"- {note.title}{where} ({note.id}){marker}, "
        f"updated {format_timestamp(note.updated_at)}"
    )
    if preview:
        line += f"\n    {preview}"
    return line

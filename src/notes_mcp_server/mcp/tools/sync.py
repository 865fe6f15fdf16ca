"""MCP tool handlers for the remote session and the sync cycle.

Defines five tools:

- ``sign_in`` -- authenticate with the remote store (and sync, if enabled).
- ``sign_out`` -- end the remote session.
- ``sync_run`` -- run one sync cycle and report the result.
- ``sync_cancel`` -- cancel the running sync cycle.
- ``sync_status`` -- show the orchestrator state and the last report.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import mcp.types as types

from ...core.async_utils import run_sync, run_sync_timeout
from ...errors import (
    NotAuthenticatedError,
    RemoteIOError,
    SyncInProgressError,
    ValidationError,
)
from ...sync.reporter import (
    format_sync_report,
    format_sync_status,
    report_to_json,
)
from .errors import text_result
from .registry import ToolSpec

if TYPE_CHECKING:
    from ...app import AppContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------


_NO_ARGS: dict[str, Any] = {"type": "object", "properties": {}, "required": []}

SYNC_TOOLS: list[types.Tool] = [
    types.Tool(
        name="sign_in",
        description=(
            "Sign in to Google Drive. Uses access_token when given, "
            "otherwise the configured token. Runs a sync right away unless "
            "sync-on-sign-in is disabled."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "access_token": {
                    "type": "string",
                    "description": (
                        "OAuth access token with the drive.file scope. "
                        "Required after sign_out or an expired session."
                    ),
                },
            },
            "required": [],
        },
    ),
    types.Tool(
        name="sign_out",
        description=(
            "Sign out of Google Drive. Local notes are kept; unsynced "
            "changes are uploaded after the next sign-in."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
        inputSchema=_NO_ARGS,
    ),
    types.Tool(
        name="sync_run",
        description=(
            "Synchronize notes and folders with Google Drive: upload local "
            "changes, download notes and folders that only exist remotely. "
            "Local versions always win; deletions are not synced."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
        inputSchema=_NO_ARGS,
    ),
    types.Tool(
        name="sync_cancel",
        description=(
            "Cancel the running sync. Uploads already confirmed stay synced; "
            "nothing downloaded is kept."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=False,
        ),
        inputSchema=_NO_ARGS,
    ),
    types.Tool(
        name="sync_status",
        description=(
            "Show sync state: signed-in user, current stage, number of "
            "unsynced records and the outcome of the last sync."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=True,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=False,
        ),
        inputSchema=_NO_ARGS,
    ),
]


# ---------------------------------------------------------------------------
# Individual handlers
# ---------------------------------------------------------------------------


async def _run_cycle(app: AppContext) -> types.CallToolResult:
    report = await app.orchestrator.run()
    return text_result(format_sync_report(report), report_to_json(report))


async def _handle_sign_in(
    app: AppContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``sign_in`` tool."""
    token = args.get("access_token")
    if token is not None:
        if not isinstance(token, str) or not token.strip():
            raise ValidationError("access_token must be a non-empty string")
        app.remote.set_access_token(token.strip())
    try:
        user = await run_sync_timeout(
            app.config.request_timeout, app.remote.authenticate
        )
    except TimeoutError as exc:
        raise RemoteIOError(str(exc)) from exc
    app.workspace.set_user(user)
    logger.info("Signed in as %s", user.email)

    text = f"Signed in as {user.name or user.email or 'unknown user'}."
    structured: dict[str, Any] = {"user": user.model_dump(by_alias=True)}

    if app.config.sync_on_sign_in:
        try:
            report = await app.orchestrator.run()
        except SyncInProgressError:
            text += " A sync is already running."
        else:
            text += "\n\n" + format_sync_report(report)
            structured["sync"] = report_to_json(report)

    return text_result(text, structured)


async def _handle_sign_out(
    app: AppContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``sign_out`` tool."""
    app.orchestrator.cancel()
    await run_sync(app.remote.deauthenticate)
    app.workspace.end_session()
    pending = len(app.workspace.dirty_records())
    text = "Signed out."
    if pending:
        text += f" {pending} unsynced record(s) are kept locally."
    return text_result(text, {"pending": pending})


async def _handle_sync_run(
    app: AppContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``sync_run`` tool."""
    if not app.workspace.user.is_authenticated:
        raise NotAuthenticatedError("sync_run called without a session")
    return await _run_cycle(app)


async def _handle_sync_cancel(
    app: AppContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``sync_cancel`` tool."""
    if app.orchestrator.cancel():
        return text_result("Cancellation requested.", {"cancelled": True})
    return text_result("No sync is running.", {"cancelled": False})


async def _handle_sync_status(
    app: AppContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``sync_status`` tool."""
    orchestrator = app.orchestrator
    workspace = app.workspace
    user = workspace.user
    pending = len(workspace.dirty_records())

    lines = [
        "Signed in as "
        + (user.email or user.name or "unknown user")
        if user.is_authenticated
        else "Not signed in",
        format_sync_status(
            orchestrator.stage.value,
            orchestrator.running,
            orchestrator.last_report,
        ),
        f"Unsynced records: {pending}",
    ]
    if workspace.degraded:
        lines.append(
            "Warning: local storage unavailable, changes are kept in memory only."
        )

    last = orchestrator.last_report
    structured = {
        "signed_in": user.is_authenticated,
        "user": user.email,
        "stage": orchestrator.stage.value,
        "running": orchestrator.running,
        "pending": pending,
        "degraded": workspace.degraded,
        "last_report": report_to_json(last) if last is not None else None,
    }
    return text_result("\n".join(lines), structured)


SYNC_SPECS: list[ToolSpec] = [
    ToolSpec(tool=SYNC_TOOLS[0], handler=_handle_sign_in, writes=True),
    ToolSpec(tool=SYNC_TOOLS[1], handler=_handle_sign_out, writes=True),
    ToolSpec(tool=SYNC_TOOLS[2], handler=_handle_sync_run, writes=True),
    ToolSpec(tool=SYNC_TOOLS[3], handler=_handle_sync_cancel, writes=True),
    ToolSpec(tool=SYNC_TOOLS[4], handler=_handle_sync_status),
]

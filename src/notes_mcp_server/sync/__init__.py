"""Local/remote note and folder synchronisation.

Architecture
------------
Sync is **existence-based**: a cycle pushes every dirty record
(``synced=False``), pulls a full remote snapshot, and merges it into the
local collections.  Records that exist locally always win; records that
exist only remotely are added.  Nothing is ever deleted by a merge, so
local deletions are not propagated.

Modules:

- ``orchestrator`` -- ``SyncOrchestrator``: runs one Push -> Pull -> Merge
  -> Persist cycle.
- ``reconcile``    -- ``reconcile``: pure merge of one record kind.
- ``remote``       -- ``RemoteStore`` protocol and blob naming.
- ``models``       -- ``SyncStage``, ``SyncAction``, ``SyncOutcome``,
  ``SyncResult``, ``SyncReport``, ``MergedResult``: core data contracts.
- ``reporter``     -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from pathlib import Path
    from notes_mcp_server.core.drive import DriveClient
    from notes_mcp_server.store import LocalStore, Workspace
    from notes_mcp_server.sync import SyncOrchestrator, format_sync_report

    workspace = Workspace.load(LocalStore(Path("~/.notes_mcp/data")))
    remote = DriveClient(access_token)
    workspace.set_user(remote.authenticate())

    orchestrator = SyncOrchestrator(workspace, remote, max_parallel=4)
    report = await orchestrator.run()
    print(format_sync_report(report))
"""

from .models import (
    MergedResult,
    SyncAction,
    SyncOutcome,
    SyncReport,
    SyncResult,
    SyncStage,
)
from .orchestrator import SyncOrchestrator
from .reconcile import reconcile
from .remote import RemoteStore, blob_name, parse_blob_name
from .reporter import format_sync_report, format_sync_status, report_to_json

__all__ = [
    "MergedResult",
    "RemoteStore",
    "SyncAction",
    "SyncOrchestrator",
    "SyncOutcome",
    "SyncReport",
    "SyncResult",
    "SyncStage",
    "blob_name",
    "format_sync_report",
    "format_sync_status",
    "parse_blob_name",
    "reconcile",
    "report_to_json",
]

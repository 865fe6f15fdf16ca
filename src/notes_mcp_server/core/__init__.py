"""Remote store client and async helpers shared by the MCP server and sync."""

from .async_utils import run_sync, run_sync_timeout
from .drive import DriveClient

__all__ = ["DriveClient", "run_sync", "run_sync_timeout"]

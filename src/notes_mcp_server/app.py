"""Application wiring: one workspace, one remote store, one orchestrator.

``build_app`` creates every long-lived object from a ``Config`` and hands
them out together as an ``AppContext``.  Tool handlers receive the context
explicitly; nothing here is a module-level global.
"""

import logging
from dataclasses import dataclass

from .config import Config
from .core.drive import DriveClient
from .store import LocalStore, Workspace
from .sync import RemoteStore, SyncOrchestrator

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    config: Config
    workspace: Workspace
    remote: RemoteStore
    orchestrator: SyncOrchestrator


def build_app(config: Config, remote: RemoteStore | None = None) -> AppContext:
    """Create the application objects for *config*.

    Args:
        config: Validated configuration.
        remote: Remote store to use instead of a ``DriveClient`` built from
            the configured token (tests pass a fake here).

    Returns:
        A fully wired ``AppContext``.
    """
    workspace = Workspace.load(LocalStore(config.data_dir))
    if remote is None:
        remote = DriveClient(
            config.drive_token,
            folder_name=config.drive_folder,
            timeout=config.request_timeout,
        )
    orchestrator = SyncOrchestrator(
        workspace,
        remote,
        request_timeout=config.request_timeout,
        max_parallel=config.max_parallel_requests,
    )
    logger.info(
        "App ready: data_dir=%s, parallel=%d, timeout=%ss",
        config.data_dir,
        config.max_parallel_requests,
        config.request_timeout,
    )
    return AppContext(
        config=config,
        workspace=workspace,
        remote=remote,
        orchestrator=orchestrator,
    )

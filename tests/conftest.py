"""Shared pytest fixtures for notes-mcp-server tests."""

from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path

import mcp.types as types
import pytest

from notes_mcp_server.app import AppContext
from notes_mcp_server.config import Config
from notes_mcp_server.errors import RemoteAuthExpired, RemoteNotFound
from notes_mcp_server.mcp.tools import ALL_SPECS, ToolRegistry
from notes_mcp_server.records import Folder, Note, Record, RecordKind, User
from notes_mcp_server.store import LocalStore, Workspace
from notes_mcp_server.sync import SyncOrchestrator

TEST_USER = User(
    email="ada@example.com",
    name="Ada",
    picture_url=None,
    is_authenticated=True,
)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live Google Drive account"
    )


def make_note(
    id: str,
    title: str = "Title",
    *,
    content: str = "",
    synced: bool = False,
    folder_id: str | None = None,
    created_at: str = "2026-01-01T10:00:00.000Z",
    updated_at: str | None = None,
) -> Note:
    """Build a note with fixed timestamps."""
    return Note(
        id=id,
        title=title,
        content=content,
        folder_id=folder_id,
        created_at=created_at,
        updated_at=updated_at or created_at,
        synced=synced,
    )


def make_folder(
    id: str,
    name: str = "Folder",
    *,
    synced: bool = False,
    created_at: str = "2026-01-01T09:00:00.000Z",
) -> Folder:
    """Build a folder with a fixed timestamp."""
    return Folder(id=id, name=name, created_at=created_at, synced=synced)


class FakeRemoteStore:
    """In-memory remote store.

    Blobs are kept per kind in ``self.blobs``.  Failures can be injected per
    record id (``fail_writes`` / ``fail_reads``) or per kind
    (``fail_list``); ``on_write`` and ``on_read`` run inside the worker
    thread before a write is stored or a read is answered.
    """

    def __init__(self) -> None:
        self.blobs: dict[RecordKind, dict[str, Record]] = {
            RecordKind.NOTE: {},
            RecordKind.FOLDER: {},
        }
        self.fail_writes: dict[str, Exception] = {}
        self.fail_reads: dict[str, Exception] = {}
        self.fail_list: dict[RecordKind, Exception] = {}
        self.on_write: Callable[[RecordKind, Record], None] | None = None
        self.on_read: Callable[[RecordKind, str], None] | None = None
        self.auth_error: Exception | None = None
        self.writes: list[tuple[RecordKind, str]] = []
        self.reads: list[tuple[RecordKind, str]] = []
        self.deauthenticated = False
        self.access_token: str | None = "test-token"
        self._lock = threading.Lock()

    def seed(self, *records: Record) -> None:
        for record in records:
            kind = (
                RecordKind.NOTE if isinstance(record, Note) else RecordKind.FOLDER
            )
            self.blobs[kind][record.id] = record

    def list_record_ids(self, kind: RecordKind) -> list[str]:
        if kind in self.fail_list:
            raise self.fail_list[kind]
        return list(self.blobs[kind])

    def read_record(self, kind: RecordKind, record_id: str) -> Record:
        with self._lock:
            self.reads.append((kind, record_id))
        if self.on_read is not None:
            self.on_read(kind, record_id)
        if record_id in self.fail_reads:
            raise self.fail_reads[record_id]
        try:
            return self.blobs[kind][record_id]
        except KeyError:
            raise RemoteNotFound(f"{kind.value} {record_id}") from None

    def write_record(self, kind: RecordKind, record: Record) -> None:
        if self.on_write is not None:
            self.on_write(kind, record)
        if record.id in self.fail_writes:
            raise self.fail_writes[record.id]
        with self._lock:
            self.writes.append((kind, record.id))
            self.blobs[kind][record.id] = record

    def authenticate(self) -> User:
        if self.access_token is None:
            raise RemoteAuthExpired("no access token")
        if self.auth_error is not None:
            raise self.auth_error
        return TEST_USER

    def deauthenticate(self) -> None:
        self.deauthenticated = True
        self.access_token = None

    def set_access_token(self, access_token: str) -> None:
        self.access_token = access_token
        self.auth_error = None


@pytest.fixture
def fake_remote() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture
def local_store(tmp_path: Path) -> LocalStore:
    return LocalStore(tmp_path / "data")


@pytest.fixture
def workspace(local_store: LocalStore) -> Workspace:
    """Empty, persisted workspace with a signed-in user."""
    ws = Workspace.load(local_store)
    ws.set_user(TEST_USER)
    return ws


@pytest.fixture
def orchestrator(
    workspace: Workspace, fake_remote: FakeRemoteStore
) -> SyncOrchestrator:
    return SyncOrchestrator(
        workspace, fake_remote, request_timeout=5.0, max_parallel=4
    )


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    return Config(data_dir=tmp_path / "data", drive_token="token")


@pytest.fixture
def app(
    test_config: Config,
    workspace: Workspace,
    fake_remote: FakeRemoteStore,
    orchestrator: SyncOrchestrator,
) -> AppContext:
    return AppContext(
        config=test_config,
        workspace=workspace,
        remote=fake_remote,
        orchestrator=orchestrator,
    )


@pytest.fixture
def expired() -> RemoteAuthExpired:
    return RemoteAuthExpired("401 from remote")


@pytest.fixture
def call(app: AppContext):
    """Invoke a tool through the full registry, as the server does."""
    registry = ToolRegistry(ALL_SPECS)

    async def _call(name: str, arguments: dict | None = None):
        return await registry.call_tool(name, arguments, app)

    return _call


def result_text(result: types.CallToolResult) -> str:
    """Text of the first content item."""
    content = result.content[0]
    assert isinstance(content, types.TextContent)
    return content.text

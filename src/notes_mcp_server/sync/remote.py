"""Remote store capability interface and blob naming.

The sync orchestrator only needs list/read/write by record kind and id plus
the session lifecycle.  Implementations are blocking (they are driven from
worker threads by the orchestrator) and raise the ``Remote*`` errors from
``notes_mcp_server.errors``.

Every record lives in its own blob named ``<kind>_<id>.json`` inside one
application namespace, e.g. ``note_V1StGXR8_Z5jdHi6B-myT.json``.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..records import Record, RecordKind, User

BLOB_SUFFIX = ".json"


def blob_name(kind: RecordKind, record_id: str) -> str:
    """Return the blob name for a record."""
    return f"{kind.value}_{record_id}{BLOB_SUFFIX}"


def parse_blob_name(kind: RecordKind, name: str) -> str | None:
    """Return the record id encoded in *name*, or ``None`` if *name* is
    not a blob of *kind*."""
    prefix = f"{kind.value}_"
    if not name.startswith(prefix) or not name.endswith(BLOB_SUFFIX):
        return None
    record_id = name[len(prefix) : -len(BLOB_SUFFIX)]
    return record_id or None


@runtime_checkable
class RemoteStore(Protocol):
    """Narrow capability interface over a remote blob store."""

    def list_record_ids(self, kind: RecordKind) -> list[str]:
        """Return the ids of every remote record of *kind*.

        Raises:
            RemoteIOError, RemoteAuthExpired
        """
        ...

    def read_record(self, kind: RecordKind, record_id: str) -> Record:
        """Fetch and parse one remote record.

        Raises:
            RemoteNotFound, RemoteIOError, RemoteAuthExpired
        """
        ...

    def write_record(self, kind: RecordKind, record: Record) -> None:
        """Create or overwrite the remote blob for *record*.

        Raises:
            RemoteIOError, RemoteAuthExpired
        """
        ...

    def authenticate(self) -> User:
        """Validate the session and return the signed-in identity.

        Raises:
            RemoteAuthExpired, RemoteIOError
        """
        ...

    def deauthenticate(self) -> None:
        """End the session."""
        ...

    def set_access_token(self, access_token: str) -> None:
        """Use *access_token* for the next ``authenticate`` call."""
        ...

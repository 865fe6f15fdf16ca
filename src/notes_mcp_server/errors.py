"""Exception hierarchy for notes-mcp-server.

Every error raised by the record model, the local and remote stores and the
sync orchestrator derives from ``NotesError``.  Each class carries a short
``user_message`` that is safe to show to the user; the exception message
itself may contain transport details and is meant for the log.

Hierarchy::

    NotesError
    ├── ValidationError
    ├── RecordNotFoundError
    ├── StorageError
    │   ├── StorageUnavailable
    │   └── StorageWriteError
    ├── RemoteError
    │   ├── RemoteIOError
    │   ├── RemoteNotFound
    │   ├── RemoteAuthExpired
    │   └── NotAuthenticatedError
    └── SyncInProgressError
"""

from __future__ import annotations


class NotesError(Exception):
    """Base class for all notes-mcp-server errors."""

    user_message = "Unexpected error"


class ValidationError(NotesError):
    """Bad user input, e.g. an empty folder name."""

    user_message = "Invalid input"


class RecordNotFoundError(NotesError):
    """A note or folder id does not exist in the local collection."""

    user_message = "Record not found"


class StorageError(NotesError):
    """Local persistence failure."""

    user_message = "Local storage error"


class StorageUnavailable(StorageError):
    """The local store could not be read."""

    user_message = "Local storage unavailable"


class StorageWriteError(StorageError):
    """The local store could not be written."""

    user_message = "Could not save to local storage"


class RemoteError(NotesError):
    """Remote store failure."""

    user_message = "Remote store error"


class RemoteIOError(RemoteError):
    """Transport or server failure talking to the remote store."""

    user_message = "Remote store unreachable or failed"


class RemoteNotFound(RemoteError):
    """The requested remote record does not exist."""

    user_message = "Remote record not found"


class RemoteAuthExpired(RemoteError):
    """The remote session is no longer valid; sign in again."""

    user_message = "Remote session expired, sign in again"


class NotAuthenticatedError(RemoteError):
    """An operation needing a remote session ran without one."""

    user_message = "Not signed in"


class SyncInProgressError(NotesError):
    """A sync cycle was requested while another one is running."""

    user_message = "A sync is already running"


def describe_error(exc: BaseException) -> str:
    """Return the user-facing description for *exc*.

    Non-``NotesError`` exceptions collapse to a generic message so that raw
    transport or programming errors never reach the user.
    """
    if isinstance(exc, NotesError):
        return exc.user_message
    return NotesError.user_message

"""Tests for the exception hierarchy and user-facing descriptions."""

import pytest

from notes_mcp_server.errors import (
    NotAuthenticatedError,
    NotesError,
    RecordNotFoundError,
    RemoteAuthExpired,
    RemoteError,
    RemoteIOError,
    RemoteNotFound,
    StorageError,
    StorageUnavailable,
    StorageWriteError,
    SyncInProgressError,
    ValidationError,
    describe_error,
)


@pytest.mark.parametrize(
    "cls, parent",
    [
        (ValidationError, NotesError),
        (RecordNotFoundError, NotesError),
        (StorageUnavailable, StorageError),
        (StorageWriteError, StorageError),
        (RemoteIOError, RemoteError),
        (RemoteNotFound, RemoteError),
        (RemoteAuthExpired, RemoteError),
        (NotAuthenticatedError, RemoteError),
        (SyncInProgressError, NotesError),
    ],
)
def test_hierarchy(cls, parent):
    assert issubclass(cls, parent)
    assert issubclass(cls, NotesError)


def test_describe_notes_error_uses_user_message():
    exc = RemoteIOError("ConnectionResetError(104) talking to googleapis")
    assert describe_error(exc) == "Remote store unreachable or failed"


def test_describe_foreign_error_is_generic():
    assert describe_error(KeyError("secret")) == "Unexpected error"


def test_user_messages_are_distinct():
    classes = [
        ValidationError,
        RecordNotFoundError,
        StorageUnavailable,
        StorageWriteError,
        RemoteIOError,
        RemoteNotFound,
        RemoteAuthExpired,
        NotAuthenticatedError,
        SyncInProgressError,
    ]
    messages = [cls.user_message for cls in classes]
    assert len(set(messages)) == len(messages)

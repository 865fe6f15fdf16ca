"""Record model: notes, folders and the session user.

Records are frozen pydantic models.  Every change produces a new instance
through the helpers in this module, which also enforce the dirty-flag rules:

* new records start with ``synced=False``;
* any field change on a note or folder sets ``synced=False`` (and, for
  notes, refreshes ``updated_at``);
* only ``mark_synced`` sets ``synced=True``, after a confirmed remote write.

Field names are snake_case in Python and camelCase on the wire
(``createdAt``, ``folderId`` ...) so blobs written by earlier clients stay
readable.
"""

from __future__ import annotations

import re
import secrets
from datetime import datetime, timezone
from enum import Enum
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .errors import ValidationError
from .validators import validate_content, validate_folder_name

DEFAULT_NOTE_TITLE = "Untitled Note"

_EDITABLE_NOTE_FIELDS = frozenset({"title", "content", "folder_id"})


def utc_now() -> str:
    """Current UTC time as ISO 8601 with millisecond precision and ``Z``."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def new_id() -> str:
    """Fresh URL-safe random id (22 characters)."""
    return secrets.token_urlsafe(16)


class Record(BaseModel):
    """Fields shared by every synchronised record."""

    id: str
    created_at: str
    synced: bool = False

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Note(Record):
    """A note.

    Attributes:
        title: Display title.
        content: Free text, treated as opaque by the sync engine.
        updated_at: Refreshed on every content-affecting change.
        folder_id: Weak reference to a folder; may dangle.
    """

    title: str
    content: str = ""
    updated_at: str
    folder_id: str | None = None


class Folder(Record):
    """A folder grouping notes."""

    name: str


class User(BaseModel):
    """Transient session identity; never persisted."""

    email: str | None = None
    name: str | None = None
    picture_url: str | None = Field(default=None, alias="picture")
    is_authenticated: bool = False

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


RecordT = TypeVar("RecordT", bound=Record)


class RecordKind(str, Enum):
    """The two synchronised entity kinds."""

    NOTE = "note"
    FOLDER = "folder"

    @property
    def model(self) -> type[Record]:
        """Pydantic model class for this kind."""
        return Note if self is RecordKind.NOTE else Folder

    @property
    def collection(self) -> str:
        """Name of the local collection holding this kind."""
        return "notes" if self is RecordKind.NOTE else "folders"


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------


def create_note(
    folder_id: str | None = None,
    title: str = DEFAULT_NOTE_TITLE,
    content: str = "",
) -> Note:
    """Build a new, unsynced note."""
    is_valid, error = validate_content(content)
    if not is_valid:
        raise ValidationError(error)
    now = utc_now()
    return Note(
        id=new_id(),
        title=title,
        content=content,
        created_at=now,
        updated_at=now,
        folder_id=folder_id,
        synced=False,
    )


def create_folder(name: str) -> Folder:
    """Build a new, unsynced folder.

    Raises:
        ValidationError: If *name* is empty after trimming.
    """
    is_valid, error = validate_folder_name(name)
    if not is_valid:
        raise ValidationError(error)
    return Folder(
        id=new_id(),
        name=name.strip(),
        created_at=utc_now(),
        synced=False,
    )


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


def edit_note(note: Note, **changes: str | None) -> Note:
    """Return *note* with *changes* applied, marked dirty.

    Only ``title``, ``content`` and ``folder_id`` may change.

    Raises:
        ValidationError: On an unknown or read-only field, or oversized
            content.
    """
    unknown = set(changes) - _EDITABLE_NOTE_FIELDS
    if unknown:
        raise ValidationError(
            f"Cannot edit note field(s): {', '.join(sorted(unknown))}"
        )
    content = changes.get("content")
    if content is not None:
        is_valid, error = validate_content(content)
        if not is_valid:
            raise ValidationError(error)
    return note.model_copy(
        update={**changes, "updated_at": utc_now(), "synced": False}
    )


def rename_folder(folder: Folder, name: str) -> Folder:
    """Return *folder* with a new name, marked dirty."""
    is_valid, error = validate_folder_name(name)
    if not is_valid:
        raise ValidationError(error)
    return folder.model_copy(
        update={"name": name.strip(), "synced": False}
    )


def mark_synced(record: RecordT) -> RecordT:
    """Return *record* flagged as confirmed on the remote store."""
    return record.model_copy(update={"synced": True})


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------

_MARKDOWN_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"```[\s\S]+?```"), ""),
    (re.compile(r"#{1,6}\s+"), ""),
    (re.compile(r"\*\*(.+?)\*\*"), r"\1"),
    (re.compile(r"\*(.+?)\*"), r"\1"),
    (re.compile(r"\[(.+?)\]\(.+?\)"), r"\1"),
    (re.compile(r"^\s*[-*+]\s+", re.MULTILINE), ""),
    (re.compile(r"^\s*\d+\.\s+", re.MULTILINE), ""),
    (re.compile(r"`(.+?)`"), r"\1"),
]


def preview_text(content: str, limit: int = 160) -> str:
    """Plain-text preview of Markdown *content*, at most *limit* chars."""
    text = content
    for pattern, replacement in _MARKDOWN_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()[:limit]

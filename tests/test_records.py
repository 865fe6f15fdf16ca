"""Tests for the record model: constructors, dirty-flag rules, wire format."""

import json
import re

import pytest

from notes_mcp_server.errors import ValidationError
from notes_mcp_server.records import (
    DEFAULT_NOTE_TITLE,
    Folder,
    Note,
    RecordKind,
    User,
    create_folder,
    create_note,
    edit_note,
    mark_synced,
    new_id,
    preview_text,
    rename_folder,
    utc_now,
)

from conftest import make_folder, make_note

ISO_MS_Z = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


class TestHelpers:
    def test_utc_now_format(self):
        assert ISO_MS_Z.match(utc_now())

    def test_new_id_is_unique_and_url_safe(self):
        ids = {new_id() for _ in range(100)}
        assert len(ids) == 100
        assert all(re.match(r"^[A-Za-z0-9_-]+$", i) for i in ids)


class TestCreateNote:
    def test_defaults(self):
        note = create_note()
        assert note.title == DEFAULT_NOTE_TITLE
        assert note.content == ""
        assert note.folder_id is None
        assert note.synced is False
        assert note.created_at == note.updated_at
        assert ISO_MS_Z.match(note.created_at)

    def test_with_folder_and_content(self):
        note = create_note(folder_id="f1", title="Hi", content="body")
        assert (note.folder_id, note.title, note.content) == (
            "f1",
            "Hi",
            "body",
        )

    def test_oversized_content_rejected(self):
        with pytest.raises(ValidationError):
            create_note(content="x" * 1_000_001)

    def test_records_are_frozen(self):
        note = create_note()
        with pytest.raises(Exception):
            note.title = "changed"  # type: ignore[misc]


class TestCreateFolder:
    def test_name_is_stripped(self):
        folder = create_folder("  Work  ")
        assert folder.name == "Work"
        assert folder.synced is False

    @pytest.mark.parametrize("name", ["", "   ", "\t\n"])
    def test_empty_name_rejected(self, name):
        with pytest.raises(ValidationError, match="cannot be empty"):
            create_folder(name)


class TestEditNote:
    def test_marks_dirty_and_refreshes_updated_at(self):
        note = make_note("a", synced=True)
        edited = edit_note(note, title="New")
        assert edited.title == "New"
        assert edited.synced is False
        assert edited.updated_at > note.updated_at
        assert edited.created_at == note.created_at
        assert note.title == "Title"

    def test_move_out_of_folder(self):
        note = make_note("a", folder_id="f1")
        assert edit_note(note, folder_id=None).folder_id is None

    @pytest.mark.parametrize("field", ["id", "created_at", "synced"])
    def test_read_only_fields_rejected(self, field):
        with pytest.raises(ValidationError, match=field):
            edit_note(make_note("a"), **{field: "x"})


class TestRenameAndMarkSynced:
    def test_rename_marks_dirty(self):
        folder = rename_folder(make_folder("f", synced=True), " Home ")
        assert folder.name == "Home"
        assert folder.synced is False

    def test_rename_to_blank_rejected(self):
        with pytest.raises(ValidationError):
            rename_folder(make_folder("f"), "  ")

    def test_mark_synced_changes_only_flag(self):
        note = make_note("a")
        synced = mark_synced(note)
        assert synced.synced is True
        assert synced.model_copy(update={"synced": False}) == note


class TestRecordKind:
    def test_model_and_collection(self):
        assert RecordKind.NOTE.model is Note
        assert RecordKind.FOLDER.model is Folder
        assert RecordKind.NOTE.collection == "notes"
        assert RecordKind.FOLDER.collection == "folders"


class TestWireFormat:
    def test_note_serialises_camel_case(self):
        note = make_note("a", folder_id="f1")
        data = json.loads(note.model_dump_json(by_alias=True))
        assert set(data) == {
            "id",
            "title",
            "content",
            "createdAt",
            "updatedAt",
            "folderId",
            "synced",
        }

    def test_parses_camel_case_blob(self):
        blob = {
            "id": "V1StGXR8_Z5jdHi6B-myT",
            "title": "Shopping",
            "content": "- milk",
            "createdAt": "2025-05-01T08:00:00.000Z",
            "updatedAt": "2025-05-02T08:00:00.000Z",
            "folderId": None,
            "synced": True,
        }
        note = Note.model_validate(blob)
        assert note.updated_at == "2025-05-02T08:00:00.000Z"
        assert note.synced is True

    def test_user_picture_alias(self):
        user = User.model_validate(
            {"email": "a@b.c", "name": "A", "picture": "http://x/p.png"}
        )
        assert user.picture_url == "http://x/p.png"
        assert user.is_authenticated is False


class TestPreviewText:
    def test_strips_markdown(self):
        content = "# Heading\n**bold** and *it* [link](http://x) `code`\n- item"
        assert preview_text(content) == "Heading\nbold and it link code\nitem"

    def test_removes_fenced_code(self):
        assert preview_text("before\n```\nx = 1\n```\nafter") == "before\n\nafter"

    def test_truncates(self):
        assert preview_text("a" * 500, limit=10) == "a" * 10

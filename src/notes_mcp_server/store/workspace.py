"""In-memory owner of the note and folder collections.

A ``Workspace`` holds the authoritative local state for one process: the
note and folder collections, the session user and the dark-mode preference.
It is created once (see ``notes_mcp_server.app``) and handed to the tool
handlers and to the ``SyncOrchestrator``; there is no module-level instance.

Every user-facing mutation goes through the record-model helpers (so the
record is marked dirty) and then persists the collections best-effort.  A
failed write is logged and flips ``degraded``; the in-memory state is kept
and written again on the next mutation.

The workspace is not thread-safe.  All calls must happen on the event loop
thread; the sync orchestrator only touches it between awaits.
"""

from __future__ import annotations

import logging

from ..errors import (
    RecordNotFoundError,
    StorageUnavailable,
    StorageWriteError,
    ValidationError,
)
from ..records import (
    DEFAULT_NOTE_TITLE,
    Folder,
    Note,
    Record,
    RecordKind,
    User,
    create_folder,
    create_note,
    edit_note,
    mark_synced,
    rename_folder,
)
from .local import LocalStore

logger = logging.getLogger(__name__)

_UNSET = object()


class Workspace:
    """Local notes, folders, session and preferences.

    Args:
        local_store: Persistence backend, or ``None`` for a purely
            in-memory workspace.
        notes: Initial notes.
        folders: Initial folders.
        dark_mode: Initial dark-mode preference.
    """

    def __init__(
        self,
        local_store: LocalStore | None = None,
        notes: list[Note] | None = None,
        folders: list[Folder] | None = None,
        dark_mode: bool = False,
    ) -> None:
        self.local_store = local_store
        self._notes: dict[str, Note] = {n.id: n for n in notes or []}
        self._folders: dict[str, Folder] = {
            f.id: f for f in folders or []
        }
        self._dark_mode = dark_mode
        self.user = User()
        self.degraded = local_store is None

    @classmethod
    def load(cls, local_store: LocalStore) -> Workspace:
        """Build a workspace from persisted state.

        An unreadable store never blocks startup: the workspace starts
        empty, in memory only, and is marked ``degraded``.  The unreadable
        document is left untouched on disk.
        """
        try:
            notes = local_store.load_collection(RecordKind.NOTE)
            folders = local_store.load_collection(RecordKind.FOLDER)
            prefs = local_store.load_preferences()
        except StorageUnavailable as exc:
            logger.warning(
                "Local storage unavailable, running in memory only: %s",
                exc,
            )
            return cls(None)

        logger.info(
            "Loaded %d notes and %d folders from %s",
            len(notes),
            len(folders),
            local_store.path,
        )
        return cls(
            local_store,
            notes=list(notes.values()),  # type: ignore[arg-type]
            folders=list(folders.values()),  # type: ignore[arg-type]
            dark_mode=bool(prefs.get("darkMode", False)),
        )

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def notes(self) -> list[Note]:
        return list(self._notes.values())

    def get_note(self, note_id: str) -> Note:
        """Return the note with *note_id*.

        Raises:
            RecordNotFoundError: If no such note exists.
        """
        note = self._notes.get(note_id)
        if note is None:
            raise RecordNotFoundError(f"Note '{note_id}' not found")
        return note

    def create_note(
        self,
        folder_id: str | None = None,
        title: str | None = None,
        content: str = "",
    ) -> Note:
        """Create and persist a new note.

        Raises:
            ValidationError: If *folder_id* names an unknown folder.
        """
        if folder_id is not None and folder_id not in self._folders:
            raise ValidationError(f"Folder '{folder_id}' does not exist")
        note = create_note(
            folder_id=folder_id,
            title=title if title is not None else DEFAULT_NOTE_TITLE,
            content=content,
        )
        self._notes[note.id] = note
        self._persist()
        return note

    def update_note(
        self,
        note_id: str,
        title: str | None = None,
        content: str | None = None,
        folder_id: object = _UNSET,
    ) -> Note:
        """Apply changes to a note; ``folder_id=None`` moves it out of
        its folder.

        Raises:
            RecordNotFoundError: If the note does not exist.
            ValidationError: If *folder_id* names an unknown folder.
        """
        note = self.get_note(note_id)
        changes: dict[str, str | None] = {}
        if title is not None:
            changes["title"] = title
        if content is not None:
            changes["content"] = content
        if folder_id is not _UNSET:
            if folder_id is not None and folder_id not in self._folders:
                raise ValidationError(
                    f"Folder '{folder_id}' does not exist"
                )
            changes["folder_id"] = folder_id  # type: ignore[assignment]
        if not changes:
            return note
        updated = edit_note(note, **changes)
        self._notes[note_id] = updated
        self._persist()
        return updated

    def delete_note(self, note_id: str) -> None:
        """Remove a note locally.  The remote copy is left alone.

        Raises:
            RecordNotFoundError: If the note does not exist.
        """
        self.get_note(note_id)
        del self._notes[note_id]
        self._persist()

    def folder_of(self, note: Note) -> Folder | None:
        """Folder the note belongs to; dangling references give ``None``."""
        if note.folder_id is None:
            return None
        return self._folders.get(note.folder_id)

    def search_notes(
        self, query: str = "", folder_id: str | None = None
    ) -> list[Note]:
        """Notes whose title or content contains *query*
        (case-insensitive), optionally restricted to one folder."""
        needle = query.lower()
        return [
            note
            for note in self._notes.values()
            if (
                not needle
                or needle in note.title.lower()
                or needle in note.content.lower()
            )
            and (folder_id is None or note.folder_id == folder_id)
        ]

    # ------------------------------------------------------------------
    # Folders
    # ------------------------------------------------------------------

    def folders(self) -> list[Folder]:
        return list(self._folders.values())

    def get_folder(self, folder_id: str) -> Folder:
        """Return the folder with *folder_id*.

        Raises:
            RecordNotFoundError: If no such folder exists.
        """
        folder = self._folders.get(folder_id)
        if folder is None:
            raise RecordNotFoundError(f"Folder '{folder_id}' not found")
        return folder

    def create_folder(self, name: str) -> Folder:
        """Create and persist a new folder.

        Raises:
            ValidationError: If *name* is empty after trimming; nothing is
                created.
        """
        folder = create_folder(name)
        self._folders[folder.id] = folder
        self._persist()
        return folder

    def rename_folder(self, folder_id: str, name: str) -> Folder:
        folder = rename_folder(self.get_folder(folder_id), name)
        self._folders[folder_id] = folder
        self._persist()
        return folder

    def delete_folder(self, folder_id: str) -> list[Note]:
        """Delete a folder and detach its notes.

        Notes in the folder are kept, moved to "no folder" and marked
        dirty.

        Returns:
            The detached notes.
        """
        self.get_folder(folder_id)
        del self._folders[folder_id]
        detached = []
        for note in list(self._notes.values()):
            if note.folder_id == folder_id:
                updated = edit_note(note, folder_id=None)
                self._notes[note.id] = updated
                detached.append(updated)
        self._persist()
        return detached

    # ------------------------------------------------------------------
    # Sync hooks
    # ------------------------------------------------------------------

    def records(self, kind: RecordKind) -> list[Record]:
        if kind is RecordKind.NOTE:
            return list(self._notes.values())
        return list(self._folders.values())

    def dirty_records(self) -> list[tuple[RecordKind, Record]]:
        """Unsynced records, folders first."""
        dirty: list[tuple[RecordKind, Record]] = [
            (RecordKind.FOLDER, f)
            for f in self._folders.values()
            if not f.synced
        ]
        dirty.extend(
            (RecordKind.NOTE, n) for n in self._notes.values() if not n.synced
        )
        return dirty

    def mark_synced(self, kind: RecordKind, uploaded: Record) -> bool:
        """Flag *uploaded* as confirmed remotely.

        Only applies if the local record is still exactly the version that
        was uploaded; a record edited or deleted meanwhile is left alone.

        Returns:
            ``True`` if the flag was set.
        """
        collection: dict = (
            self._notes if kind is RecordKind.NOTE else self._folders
        )
        if collection.get(uploaded.id) != uploaded:
            return False
        collection[uploaded.id] = mark_synced(uploaded)
        return True

    def commit(self, notes: list[Note], folders: list[Folder]) -> None:
        """Persist *notes* and *folders* atomically, then install them.

        Nothing is installed if the write fails.

        Raises:
            StorageWriteError: If the local store cannot be written.
        """
        if self.local_store is not None:
            self.local_store.commit(notes, folders)
        self._notes = {n.id: n for n in notes}
        self._folders = {f.id: f for f in folders}

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def set_user(self, user: User) -> None:
        self.user = user

    def end_session(self) -> None:
        """Forget the signed-in user."""
        self.user = User()

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    @property
    def dark_mode(self) -> bool:
        return self._dark_mode

    def set_dark_mode(self, value: bool) -> None:
        self._dark_mode = value
        if self.local_store is None:
            return
        try:
            self.local_store.save_preferences({"darkMode": value})
        except StorageWriteError as exc:
            logger.warning("Could not save preferences: %s", exc)
            self.degraded = True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _persist(self) -> None:
        if self.local_store is None:
            return
        try:
            self.local_store.commit(self.notes(), self.folders())
        except StorageWriteError as exc:
            logger.warning(
                "Could not save notes, keeping them in memory: %s", exc
            )
            self.degraded = True
        else:
            self.degraded = False

"""Local persistence layer.

Stores the note and folder collections plus the UI preferences in one JSON
document (``<data_dir>/notes-storage.json``)::

    {
      "version": 1,
      "savedAt": "2026-01-01T10:00:00.000Z",
      "notes":   {"<id>": {...note...}, ...},
      "folders": {"<id>": {...folder...}, ...},
      "preferences": {"darkMode": false}
    }

Key design choices:

* **Atomic writes** -- every write goes to a temp file in the same directory
  and is moved into place with ``os.replace()``, so readers never see
  partial data and a crash mid-write leaves the previous document intact.
* **Single commit point** -- ``commit()`` replaces both collections in one
  write; the sync orchestrator uses it to end a cycle.
* **Read-modify-write** -- every write rewrites the whole document with
  only its own sections replaced.  A document that cannot be parsed is
  never overwritten; the write fails with ``StorageWriteError`` instead.
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pydantic

from ..errors import StorageUnavailable, StorageWriteError
from ..records import Folder, Note, Record, RecordKind, utc_now

STORAGE_FILENAME = "notes-storage.json"
DOCUMENT_VERSION = 1


class LocalStore:
    """Load and save the local note/folder collections.

    Args:
        data_dir: Directory holding the storage document.  Created on the
            first write.
    """

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = Path(data_dir)

    @property
    def path(self) -> Path:
        """Path to the storage document."""
        return self._data_dir / STORAGE_FILENAME

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def load_collection(self, kind: RecordKind) -> dict[str, Record]:
        """Load one collection as an id -> record mapping.

        Returns an empty mapping if nothing has been saved yet.

        Raises:
            StorageUnavailable: If the document cannot be read or parsed.
        """
        raw = self._read_document().get(kind.collection, {})
        if not isinstance(raw, dict):
            raise StorageUnavailable(
                f"Collection '{kind.collection}' in {self.path} is not a mapping"
            )
        records: dict[str, Record] = {}
        for record_id, data in raw.items():
            try:
                record = kind.model.model_validate(data)
            except pydantic.ValidationError as exc:
                raise StorageUnavailable(
                    f"Corrupt {kind.value} '{record_id}' in {self.path}: {exc}"
                ) from exc
            records[record.id] = record
        return records

    def save_collection(
        self, kind: RecordKind, records: Iterable[Record]
    ) -> None:
        """Replace one collection.

        Raises:
            StorageWriteError: If the document cannot be written.
        """
        document = self._read_document_for_update()
        document[kind.collection] = _serialise(records)
        self._write_document(document)

    def commit(
        self, notes: Iterable[Note], folders: Iterable[Folder]
    ) -> None:
        """Replace both collections in a single atomic write.

        Raises:
            StorageWriteError: If the document cannot be written.  The
                previous document is left untouched.
        """
        document = self._read_document_for_update()
        document[RecordKind.NOTE.collection] = _serialise(notes)
        document[RecordKind.FOLDER.collection] = _serialise(folders)
        self._write_document(document)

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def load_preferences(self) -> dict[str, Any]:
        """Return the stored preferences (``{}`` if none).

        Raises:
            StorageUnavailable: If the document cannot be read or parsed.
        """
        prefs = self._read_document().get("preferences", {})
        return prefs if isinstance(prefs, dict) else {}

    def save_preferences(self, preferences: dict[str, Any]) -> None:
        """Replace the stored preferences.

        Raises:
            StorageWriteError: If the document cannot be written.
        """
        document = self._read_document_for_update()
        document["preferences"] = dict(preferences)
        self._write_document(document)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_document(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as fh:
                document = json.load(fh)
        except (OSError, ValueError) as exc:
            raise StorageUnavailable(
                f"Cannot read {self.path}: {exc}"
            ) from exc
        if not isinstance(document, dict):
            raise StorageUnavailable(
                f"{self.path} does not contain a JSON object"
            )
        return document

    def _read_document_for_update(self) -> dict[str, Any]:
        """Current document; an unreadable one is never overwritten."""
        try:
            return self._read_document()
        except StorageUnavailable as exc:
            raise StorageWriteError(
                f"Refusing to overwrite unreadable {self.path}"
            ) from exc

    def _write_document(self, document: dict[str, Any]) -> None:
        document["version"] = DOCUMENT_VERSION
        document["savedAt"] = utc_now()

        tmp_path: str | None = None
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self._data_dir), suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
            raise StorageWriteError(
                f"Cannot write {self.path}: {exc}"
            ) from exc


def _serialise(records: Iterable[Record]) -> dict[str, Any]:
    return {
        record.id: record.model_dump(mode="json", by_alias=True)
        for record in records
    }

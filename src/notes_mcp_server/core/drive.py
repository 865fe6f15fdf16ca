"""Google Drive implementation of the remote store.

Records are stored as JSON files inside one Drive folder (``Notes App`` by
default), one file per record, named ``note_<id>.json`` /
``folder_<id>.json``.  The client talks to the Drive v3 REST API with a
bearer access token; obtaining and refreshing that token (OAuth consent) is
the caller's job.

Status mapping:

* 401 -> ``RemoteAuthExpired``
* 404 -> ``RemoteNotFound``
* any other status >= 400, connection errors, timeouts and unparseable
  bodies -> ``RemoteIOError``
"""

import logging
import threading
from typing import Any

import pydantic
import requests

from ..errors import RemoteAuthExpired, RemoteIOError, RemoteNotFound
from ..records import Record, RecordKind, User
from ..sync.remote import blob_name, parse_blob_name

logger = logging.getLogger(__name__)

DRIVE_API_URL = "https://www.googleapis.com/drive/v3"
DRIVE_UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3"
TOKEN_REVOKE_URL = "https://oauth2.googleapis.com/revoke"
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
DEFAULT_FOLDER_NAME = "Notes App"


def _quote(value: str) -> str:
    """Escape a literal for a Drive ``q`` query string."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class DriveClient:
    """Remote store backed by a Google Drive folder.

    Safe to call from several worker threads at once: each thread gets its
    own ``requests.Session``.

    Args:
        access_token: OAuth 2.0 access token with the ``drive.file`` scope.
        folder_name: Name of the Drive folder holding the records.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        access_token: str | None,
        folder_name: str = DEFAULT_FOLDER_NAME,
        timeout: float = 30.0,
    ):
        self.folder_name = folder_name
        self.timeout = timeout
        self._access_token = access_token
        self._thread_local = threading.local()
        self._folder_lock = threading.Lock()
        self._folder_id: str | None = None
        self._file_ids: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Session handling
    # ------------------------------------------------------------------

    @property
    def session(self) -> requests.Session:
        """The current thread's session."""
        return self._get_session()

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        if not self._access_token:
            raise RemoteAuthExpired("No Google Drive access token configured")
        session = requests.Session()
        session.headers["Authorization"] = f"Bearer {self._access_token}"
        return session

    def _request(
        self, method: str, url: str, **kwargs: Any
    ) -> requests.Response:
        """Send one request and map failures onto the remote error types."""
        session = self._get_session()
        try:
            response = session.request(
                method, url, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as exc:
            raise RemoteIOError(
                f"Drive request failed: {method} {url}: {exc}"
            ) from exc

        if response.status_code == 401:
            raise RemoteAuthExpired(
                f"Drive rejected the access token ({method} {url})"
            )
        if response.status_code == 404:
            raise RemoteNotFound(f"Drive resource not found: {url}")
        if response.status_code >= 400:
            raise RemoteIOError(
                f"Drive API error {response.status_code} for {method} {url}: "
                f"{response.text[:200]}"
            )
        return response

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def authenticate(self) -> User:
        """Validate the token and return the Drive account's identity."""
        response = self._request(
            "GET",
            f"{DRIVE_API_URL}/about",
            params={"fields": "user(displayName,emailAddress,photoLink)"},
        )
        profile = response.json().get("user", {})
        logger.info(
            "Authenticated with Google Drive as %s",
            profile.get("emailAddress"),
        )
        return User(
            email=profile.get("emailAddress"),
            name=profile.get("displayName"),
            picture_url=profile.get("photoLink"),
            is_authenticated=True,
        )

    def deauthenticate(self) -> None:
        """Revoke the token (best effort) and forget all session state."""
        if self._access_token:
            try:
                self._request(
                    "POST",
                    TOKEN_REVOKE_URL,
                    params={"token": self._access_token},
                )
            except (RemoteIOError, RemoteNotFound, RemoteAuthExpired) as exc:
                logger.warning("Token revocation failed: %s", exc)
        self._access_token = None
        self._thread_local = threading.local()
        self._folder_id = None
        self._file_ids.clear()

    def set_access_token(self, access_token: str) -> None:
        """Replace the access token, e.g. after an OAuth refresh."""
        self._access_token = access_token
        self._thread_local = threading.local()

    # ------------------------------------------------------------------
    # Record operations
    # ------------------------------------------------------------------

    def list_record_ids(self, kind: RecordKind) -> list[str]:
        """Ids of every ``<kind>_<id>.json`` file in the app folder."""
        folder_id = self._ensure_folder()
        query = (
            f"name contains '{kind.value}_' and '{folder_id}' in parents "
            "and trashed=false"
        )
        ids: list[str] = []
        for entry in self._list_files(query):
            record_id = parse_blob_name(kind, entry["name"])
            if record_id is None or record_id in ids:
                continue
            self._file_ids[entry["name"]] = entry["id"]
            ids.append(record_id)
        logger.debug("Listed %d remote %s records", len(ids), kind.value)
        return ids

    def read_record(self, kind: RecordKind, record_id: str) -> Record:
        """Download and parse one record."""
        name = blob_name(kind, record_id)
        file_id = self._find_file_id(name)
        if file_id is None:
            raise RemoteNotFound(f"No remote file named {name}")
        try:
            response = self._request(
                "GET",
                f"{DRIVE_API_URL}/files/{file_id}",
                params={"alt": "media"},
            )
        except RemoteNotFound:
            self._file_ids.pop(name, None)
            raise
        try:
            return kind.model.model_validate_json(response.content)
        except pydantic.ValidationError as exc:
            raise RemoteIOError(f"Malformed remote file {name}: {exc}") from exc

    def write_record(self, kind: RecordKind, record: Record) -> None:
        """Upsert one record: create the file if needed, then upload."""
        name = blob_name(kind, record.id)
        body = record.model_dump_json(by_alias=True).encode("utf-8")

        file_id = self._find_file_id(name)
        if file_id is None:
            file_id = self._create_file(name)

        self._request(
            "PATCH",
            f"{DRIVE_UPLOAD_URL}/files/{file_id}",
            params={"uploadType": "media"},
            data=body,
            headers={"Content-Type": "application/json"},
        )
        logger.debug("Uploaded %s (%s)", name, file_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _list_files(self, query: str) -> list[dict[str, Any]]:
        """Run a ``files.list`` query, following pagination."""
        files: list[dict[str, Any]] = []
        params: dict[str, Any] = {
            "q": query,
            "spaces": "drive",
            "fields": "nextPageToken, files(id, name)",
            "pageSize": 1000,
        }
        while True:
            data = self._request(
                "GET", f"{DRIVE_API_URL}/files", params=params
            ).json()
            files.extend(data.get("files", []))
            page_token = data.get("nextPageToken")
            if not page_token:
                return files
            params["pageToken"] = page_token

    def _ensure_folder(self) -> str:
        """Return the app folder id, creating the folder on first use."""
        with self._folder_lock:
            if self._folder_id is not None:
                return self._folder_id

            query = (
                f"name='{_quote(self.folder_name)}' "
                f"and mimeType='{FOLDER_MIME_TYPE}' and trashed=false"
            )
            existing = self._list_files(query)
            if existing:
                self._folder_id = existing[0]["id"]
            else:
                response = self._request(
                    "POST",
                    f"{DRIVE_API_URL}/files",
                    params={"fields": "id"},
                    json={
                        "name": self.folder_name,
                        "mimeType": FOLDER_MIME_TYPE,
                    },
                )
                self._folder_id = response.json()["id"]
                logger.info(
                    "Created Drive folder '%s' (%s)",
                    self.folder_name,
                    self._folder_id,
                )
            return self._folder_id

    def _find_file_id(self, name: str) -> str | None:
        cached = self._file_ids.get(name)
        if cached is not None:
            return cached
        folder_id = self._ensure_folder()
        matches = self._list_files(
            f"name='{_quote(name)}' and '{folder_id}' in parents "
            "and trashed=false"
        )
        if not matches:
            return None
        self._file_ids[name] = matches[0]["id"]
        return matches[0]["id"]

    def _create_file(self, name: str) -> str:
        response = self._request(
            "POST",
            f"{DRIVE_API_URL}/files",
            params={"fields": "id"},
            json={
                "name": name,
                "parents": [self._ensure_folder()],
                "mimeType": "application/json",
            },
        )
        file_id = response.json()["id"]
        self._file_ids[name] = file_id
        return file_id

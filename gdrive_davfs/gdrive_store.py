"""
Google Drive implementation of the RemoteStore protocol.

Metadata queries, creates and deletes go through the Drive API v3 client.
Downloads go through an authorized ``requests`` session so that the read
timeout of the underlying socket acts as the stall timeout.
"""

import io
import logging
from pathlib import Path

import httplib2
import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload
from urllib3.exceptions import ProtocolError, ReadTimeoutError

from .config import ConnectionConfig, GoogleDriveConfig, StoreConfig
from .errors import NotFoundError, StallTimeoutError, TransientStoreError
from .remote_store import DEFAULT_CONTENT_TYPE, FOLDER_MIME, RemoteObject

logger = logging.getLogger(__name__)

# Full drive access (read/write/delete)
SCOPES = ["https://www.googleapis.com/auth/drive"]

DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"

# Fields to request from the Drive API for file metadata
FILE_FIELDS = "id, name, mimeType, trashed, parents, size, createdTime, modifiedTime"
LIST_FIELDS = f"nextPageToken, files({FILE_FIELDS})"

# Uploads above this size use a resumable session
RESUMABLE_THRESHOLD = 5 * 1024 * 1024


def load_credentials(token_file: str) -> Credentials:
    """
    Load previously authorized OAuth credentials from disk.

    Access tokens are refreshed by google-auth on demand, using the refresh
    token stored in the file.

    Raises:
        ValueError: If the token file is missing or unreadable.
    """
    token_path = Path(token_file).expanduser()
    if not token_path.exists():
        raise ValueError(
            f"No saved Google Drive credentials at {token_path}\n"
            "Authorize access with any OAuth tool for the Drive scope and save "
            "the authorized-user JSON there."
        )

    try:
        creds = Credentials.from_authorized_user_file(str(token_path), SCOPES)
    except (ValueError, KeyError) as e:
        raise ValueError(f"Invalid credentials file {token_path}: {e}") from e

    logger.debug("Loaded credentials from %s", token_path)
    return creds


def escape_query_value(value: str) -> str:
    """Escape a string for use inside single quotes in a Drive query."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class DriveDownloadStream:
    """Binary stream over a Drive media download response."""

    def __init__(self, response: requests.Response):
        self._response = response

    def read(self, size: int = -1) -> bytes:
        amt = size if size >= 0 else None
        try:
            return self._response.raw.read(amt, decode_content=True)
        except ReadTimeoutError as e:
            raise TimeoutError(str(e)) from e
        except TimeoutError:
            raise
        except (ProtocolError, OSError) as e:
            raise TransientStoreError(f"Download interrupted: {e}") from e

    def close(self) -> None:
        self._response.close()


class GoogleDriveStore:
    """
    RemoteStore backed by the Google Drive API v3.

    No call is retried; failures surface as NotFoundError (HTTP 404) or
    TransientStoreError (anything else).
    """

    def __init__(
        self,
        service,
        session: requests.Session,
        connect_timeout: float = 30,
        trash_on_delete: bool = False,
    ):
        """
        Args:
            service: Google Drive API service object (from googleapiclient).
            session: Authorized session used for media downloads.
            connect_timeout: Seconds allowed to establish a download connection.
            trash_on_delete: Move objects to trash instead of deleting them.
        """
        self._service = service
        self._session = session
        self._connect_timeout = connect_timeout
        self._trash_on_delete = trash_on_delete

    def _execute(self, operation: str, request):
        """Execute an API request, translating failures into DriveFSErrors."""
        try:
            return request.execute()
        except HttpError as e:
            if e.resp.status == 404:
                raise NotFoundError(f"Not found: {operation}") from e
            logger.error("%s failed: HTTP %d %s", operation, e.resp.status, e)
            raise TransientStoreError(f"{operation} failed: {e}", status=e.resp.status) from e
        except (OSError, httplib2.HttpLib2Error, GoogleAuthError) as e:
            logger.error("%s failed: %s", operation, e)
            raise TransientStoreError(f"{operation} failed: {e}") from e

    def get_by_id(self, object_id: str) -> RemoteObject:
        request = self._service.files().get(fileId=object_id, fields=FILE_FIELDS)
        meta = self._execute(f"get({object_id})", request)
        return RemoteObject.from_drive_file(meta)

    def list_children(
        self,
        parent_id: str,
        name: str | None = None,
        containers_only: bool = False,
    ) -> list[RemoteObject]:
        query = f"'{escape_query_value(parent_id)}' in parents"
        if name is not None:
            query += f" and name='{escape_query_value(name)}'"
        if containers_only:
            query += f" and mimeType='{FOLDER_MIME}'"
        logger.debug("Query: %s", query)

        results = []
        page_token = None
        while True:
            kwargs = {"q": query, "fields": LIST_FIELDS, "pageSize": 1000}
            if page_token:
                kwargs["pageToken"] = page_token

            response = self._execute(
                f"list_children({parent_id})", self._service.files().list(**kwargs)
            )
            results.extend(RemoteObject.from_drive_file(meta) for meta in response.get("files", []))

            page_token = response.get("nextPageToken")
            if not page_token:
                break

        return results

    def create_object(
        self,
        parent_id: str,
        name: str,
        is_container: bool,
        content: bytes | None = None,
    ) -> RemoteObject:
        body = {"name": name, "parents": [parent_id]}
        kwargs = {"body": body, "fields": FILE_FIELDS}

        if is_container:
            body["mimeType"] = FOLDER_MIME
        elif content is not None:
            kwargs["media_body"] = MediaIoBaseUpload(
                io.BytesIO(content),
                mimetype=DEFAULT_CONTENT_TYPE,
                resumable=len(content) > RESUMABLE_THRESHOLD,
            )

        meta = self._execute(f"create({name})", self._service.files().create(**kwargs))
        logger.info("Created '%s' in %s -> %s", name, parent_id, meta.get("id"))
        return RemoteObject.from_drive_file(meta)

    def delete(self, object_id: str) -> None:
        if self._trash_on_delete:
            request = self._service.files().update(fileId=object_id, body={"trashed": True})
        else:
            request = self._service.files().delete(fileId=object_id)
        self._execute(f"delete({object_id})", request)
        logger.info("Deleted %s (trash: %s)", object_id, self._trash_on_delete)

    def open_download_stream(self, object_id: str, stall_timeout: float) -> DriveDownloadStream:
        try:
            response = self._session.get(
                f"{DRIVE_FILES_URL}/{object_id}",
                params={"alt": "media"},
                stream=True,
                timeout=(self._connect_timeout, stall_timeout),
            )
        except requests.exceptions.ReadTimeout as e:
            logger.error(
                "Failed to download %s: no data was transferred for %ss", object_id, stall_timeout
            )
            raise StallTimeoutError(f"No response for {stall_timeout}s downloading {object_id}") from e
        except (requests.exceptions.RequestException, GoogleAuthError) as e:
            logger.error("Failed to download %s: %s", object_id, e)
            raise TransientStoreError(f"Download of {object_id} failed: {e}") from e

        if response.status_code == 404:
            response.close()
            raise NotFoundError(f"Not found: download({object_id})")
        if response.status_code >= 400:
            response.close()
            logger.error("Failed to download %s: HTTP %d", object_id, response.status_code)
            raise TransientStoreError(
                f"Download of {object_id} failed: HTTP {response.status_code}",
                status=response.status_code,
            )

        return DriveDownloadStream(response)


def build_drive_store(
    gdrive_config: GoogleDriveConfig,
    conn_config: ConnectionConfig,
    store_config: StoreConfig,
) -> GoogleDriveStore:
    """Authenticate and build a GoogleDriveStore from configuration."""
    creds = load_credentials(gdrive_config.token_file)
    service = build("drive", "v3", credentials=creds, cache_discovery=False)
    session = AuthorizedSession(creds)
    logger.info("Connected to Google Drive")
    return GoogleDriveStore(
        service,
        session,
        connect_timeout=conn_config.connect_timeout_seconds,
        trash_on_delete=store_config.trash_on_delete,
    )

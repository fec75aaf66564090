"""
Remote store protocol definition.

Defines the flat, ID-addressed object store that the filesystem layer is
built on, along with the object model it returns. GoogleDriveStore is the
production implementation; tests use an in-memory fake.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import BinaryIO, Protocol, runtime_checkable

# Google Drive folder MIME type
FOLDER_MIME = "application/vnd.google-apps.folder"

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class RemoteObject:
    """One object in the remote store.

    Only ``parent_ids[0]`` is treated as the parent; objects with several
    parents are not modeled.
    """

    id: str
    name: str
    is_container: bool
    parent_ids: tuple[str, ...] = ()
    size: int = 0
    modified_at: datetime | None = None
    trashed: bool = False

    @property
    def parent_id(self) -> str | None:
        return self.parent_ids[0] if self.parent_ids else None

    @classmethod
    def from_drive_file(cls, meta: dict) -> RemoteObject:
        """Build a RemoteObject from a Drive API v3 file resource."""
        is_container = meta.get("mimeType", "") == FOLDER_MIME

        # Drive reports size as a string and omits it for folders
        size = int(meta.get("size", 0)) if not is_container else 0

        return cls(
            id=meta["id"],
            name=meta.get("name", ""),
            is_container=is_container,
            parent_ids=tuple(meta.get("parents", ())),
            size=size,
            modified_at=parse_drive_time(meta.get("modifiedTime") or meta.get("createdTime")),
            trashed=bool(meta.get("trashed", False)),
        )


def parse_drive_time(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp such as ``2024-06-15T10:30:00.000Z``."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass(frozen=True)
class Metadata:
    """What a protocol layer sees for a path: the stat() result."""

    name: str
    is_container: bool
    size: int
    modified_at: datetime | None
    content_type: str = field(default=DEFAULT_CONTENT_TYPE)

    @classmethod
    def from_object(cls, obj: RemoteObject) -> Metadata:
        return cls(
            name=obj.name,
            is_container=obj.is_container,
            size=obj.size,
            modified_at=obj.modified_at,
        )


@runtime_checkable
class RemoteStore(Protocol):
    """Protocol defining the remote object store interface.

    Implementations raise ``NotFoundError`` for unknown IDs and
    ``TransientStoreError`` for any other store or network failure. They never
    retry on their own.
    """

    def get_by_id(self, object_id: str) -> RemoteObject:
        """Fetch a single object by ID."""
        ...

    def list_children(
        self,
        parent_id: str,
        name: str | None = None,
        containers_only: bool = False,
    ) -> list[RemoteObject]:
        """List objects whose parents include ``parent_id``.

        Args:
            parent_id: ID of the container to look in.
            name: If set, only objects with exactly this name.
            containers_only: If True, only container objects.

        Returns:
            Matching objects in store order. Trashed objects may be included;
            filtering them is the caller's job.
        """
        ...

    def create_object(
        self,
        parent_id: str,
        name: str,
        is_container: bool,
        content: bytes | None = None,
    ) -> RemoteObject:
        """Create one object under ``parent_id`` with ``content`` as its full body."""
        ...

    def delete(self, object_id: str) -> None:
        """Delete an object (and, for containers, everything beneath it)."""
        ...

    def open_download_stream(self, object_id: str, stall_timeout: float) -> BinaryIO:
        """Open a streaming download of an object's content.

        ``read()`` on the returned stream must raise ``TimeoutError`` when no
        bytes arrive within ``stall_timeout`` seconds.
        """
        ...

"""
Shared pytest fixtures for gdrive_davfs tests.
"""

import io
import socket
from collections.abc import Generator
from datetime import datetime, timezone

import pytest

from gdrive_davfs.cache import LookupCache
from gdrive_davfs.errors import NotFoundError
from gdrive_davfs.filesystem import DriveFileSystem
from gdrive_davfs.remote_store import RemoteObject

ROOT_ID = "root"
STALL_TIMEOUT = 0.05


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeStore:
    """
    In-memory RemoteStore that records every call.

    Objects are returned in insertion order, which stands in for whatever
    order the real store happens to use.
    """

    def __init__(self):
        self.objects: dict[str, RemoteObject] = {}
        self.content: dict[str, bytes] = {}
        self.calls: list[tuple] = []
        self.stalled_ids: set[str] = set()
        self.fail_with: Exception | None = None
        self.opened_streams: list = []
        self._peers: list[socket.socket] = []
        self._next_id = 0

    def add(
        self,
        object_id: str,
        name: str,
        parent_id: str = ROOT_ID,
        is_container: bool = False,
        content: bytes = b"",
        trashed: bool = False,
    ) -> RemoteObject:
        obj = RemoteObject(
            id=object_id,
            name=name,
            is_container=is_container,
            parent_ids=(parent_id,),
            size=0 if is_container else len(content),
            modified_at=datetime(2024, 6, 15, 10, 30, tzinfo=timezone.utc),
            trashed=trashed,
        )
        self.objects[object_id] = obj
        self.content[object_id] = content
        return obj

    def count(self, operation: str) -> int:
        return sum(1 for call in self.calls if call[0] == operation)

    @property
    def mutations(self) -> list[tuple]:
        return [call for call in self.calls if call[0] in ("create_object", "delete")]

    def get_by_id(self, object_id: str) -> RemoteObject:
        self.calls.append(("get_by_id", object_id))
        if object_id not in self.objects:
            raise NotFoundError(f"Not found: get({object_id})")
        return self.objects[object_id]

    def list_children(self, parent_id, name=None, containers_only=False):
        self.calls.append(("list_children", parent_id, name, containers_only))
        if self.fail_with is not None:
            raise self.fail_with
        return [
            obj
            for obj in self.objects.values()
            if parent_id in obj.parent_ids
            and (name is None or obj.name == name)
            and (not containers_only or obj.is_container)
        ]

    def create_object(self, parent_id, name, is_container, content=None):
        self.calls.append(("create_object", parent_id, name, is_container, content))
        if self.fail_with is not None:
            raise self.fail_with
        self._next_id += 1
        return self.add(
            f"new{self._next_id}", name, parent_id, is_container=is_container, content=content or b""
        )

    def delete(self, object_id: str) -> None:
        self.calls.append(("delete", object_id))
        if object_id not in self.objects:
            raise NotFoundError(f"Not found: delete({object_id})")
        doomed = [object_id]
        while doomed:
            current = doomed.pop()
            self.objects.pop(current, None)
            doomed.extend(oid for oid, obj in self.objects.items() if current in obj.parent_ids)

    def open_download_stream(self, object_id: str, stall_timeout: float):
        self.calls.append(("open_download_stream", object_id, stall_timeout))
        if object_id in self.stalled_ids:
            # A connected socket whose peer never sends anything
            ours, theirs = socket.socketpair()
            ours.settimeout(stall_timeout)
            stream = ours.makefile("rb")
            ours.close()
            self._peers.append(theirs)
        else:
            stream = io.BytesIO(self.content[object_id])
        self.opened_streams.append(stream)
        return stream

    def close(self) -> None:
        for peer in self._peers:
            peer.close()
        for stream in self.opened_streams:
            stream.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> LookupCache:
    """A LookupCache driven by the fake clock."""
    return LookupCache(timer=clock)


@pytest.fixture
def store() -> Generator[FakeStore, None, None]:
    """
    Store holding root -> docs (D) -> a.txt (F, 10 bytes).
    """
    fake = FakeStore()
    fake.add("D", "docs", ROOT_ID, is_container=True)
    fake.add("F", "a.txt", "D", content=b"0123456789")
    yield fake
    fake.close()


@pytest.fixture
def fs(store: FakeStore, cache: LookupCache) -> DriveFileSystem:
    """DriveFileSystem over the fake store, with a short stall timeout."""
    return DriveFileSystem(
        store,
        cache=cache,
        root_id=ROOT_ID,
        lookup_ttl=60,
        listing_ttl=5,
        stall_timeout=STALL_TIMEOUT,
    )

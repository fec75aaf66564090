"""
Open-file handles returned by DriveFileSystem.

ReadHandle streams an existing object's content and lists a container's
children. WriteHandle stages a new object's content in memory and creates
the object on close. Neither handle is shared between workers.
"""

import io
import logging
import os
from enum import Enum
from typing import BinaryIO

from .cache import LookupCache
from .errors import (
    AlreadyExistsError,
    InvalidParentError,
    NotFoundError,
    StallTimeoutError,
    UnsupportedOperationError,
)
from .listing import DirectoryLister
from .remote_store import Metadata, RemoteObject, RemoteStore
from .resolver import PathResolver, normalize_path, split_path

logger = logging.getLogger(__name__)

DEFAULT_STALL_TIMEOUT = 15.0


class ReadState(Enum):
    CREATED = "created"
    STREAMING = "streaming"
    CLOSED = "closed"


class WriteState(Enum):
    OPEN = "open"
    CLOSED = "closed"


class ReadHandle:
    """
    Streaming read session over a resolved object.

    The download stream is opened lazily on the first read. A read that
    receives no bytes within ``stall_timeout`` seconds raises
    StallTimeoutError.
    """

    def __init__(
        self,
        store: RemoteStore,
        lister: DirectoryLister,
        obj: RemoteObject,
        path: str,
        stall_timeout: float = DEFAULT_STALL_TIMEOUT,
    ):
        self._store = store
        self._lister = lister
        self.obj = obj
        self.path = path
        self._stall_timeout = stall_timeout
        self._stream: BinaryIO | None = None
        self._pos = 0
        self._at_end = False
        self._state = ReadState.CREATED

    @property
    def state(self) -> ReadState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is ReadState.CLOSED

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def stat(self) -> Metadata:
        return Metadata.from_object(self.obj)

    def tell(self) -> int:
        return self._pos

    def read(self, size: int = -1) -> bytes:
        """
        Read up to ``size`` bytes (all remaining if negative).

        Returns:
            The bytes read; ``b""`` at end of stream.

        Raises:
            StallTimeoutError: If no bytes arrived within the stall timeout.
            UnsupportedOperationError: If the handle refers to a container.
        """
        self._check_open()
        if self.obj.is_container:
            raise UnsupportedOperationError(f"Cannot read a container: {self.path}")
        if self._at_end:
            return b""

        stream = self._open_stream()
        try:
            data = stream.read(size) if size >= 0 else stream.read()
        except StallTimeoutError:
            raise
        except TimeoutError as e:
            logger.error(
                "Read of %s stalled: no data was transferred for %ss",
                self.path,
                self._stall_timeout,
            )
            raise StallTimeoutError(
                f"No data received for {self._stall_timeout}s reading {self.path}"
            ) from e

        self._pos += len(data)
        return data

    def readinto(self, buffer) -> int:
        """Read into a writable buffer; returns the number of bytes read (0 at EOF)."""
        view = memoryview(buffer).cast("B")
        data = self.read(len(view))
        n = len(data)
        view[:n] = data
        return n

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        """
        Reposition the handle.

        Only two forms are supported: ``seek(0, SEEK_SET)`` rewinds and makes
        the next read open a fresh stream, ``seek(0, SEEK_END)`` reports the
        object's size without reading anything.

        Raises:
            UnsupportedOperationError: For any other offset or whence.
        """
        self._check_open()
        logger.debug("Seek %s offset=%d whence=%d", self.path, offset, whence)

        if whence == os.SEEK_SET and offset == 0:
            self._release_stream()
            self._pos = 0
            self._at_end = False
            return self._pos

        if whence == os.SEEK_END and offset == 0:
            self._pos = self.obj.size
            self._at_end = True
            return self._pos

        raise UnsupportedOperationError(
            f"Unsupported seek on {self.path}: offset={offset} whence={whence}"
        )

    def read_directory(self, count: int = 0) -> list[Metadata]:
        """
        List the container's visible children.

        Args:
            count: Maximum number of entries to return; all of them if <= 0.
        """
        self._check_open()
        if not self.obj.is_container:
            raise UnsupportedOperationError(f"Not a container: {self.path}")

        children = self._lister.list_children(self.obj, self.path)
        if count > 0:
            children = children[:count]
        return [Metadata.from_object(child) for child in children]

    def write(self, data: bytes) -> int:
        raise UnsupportedOperationError(f"Handle for {self.path} is read-only")

    def close(self) -> None:
        """Release the download stream. Safe to call more than once."""
        if self._state is ReadState.CLOSED:
            return
        logger.debug("Close %s", self.path)
        self._release_stream()
        self._state = ReadState.CLOSED

    def _open_stream(self) -> BinaryIO:
        if self._stream is None:
            logger.debug("Opening download stream for %s (%s)", self.path, self.obj.id)
            self._stream = self._store.open_download_stream(self.obj.id, self._stall_timeout)
            self._state = ReadState.STREAMING
        return self._stream

    def _release_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.close()

    def _check_open(self) -> None:
        if self._state is ReadState.CLOSED:
            raise ValueError("I/O operation on closed handle")


class WriteHandle:
    """
    All-or-nothing create session.

    Writes accumulate in memory. Nothing reaches the store until close(),
    which creates the object only if nothing exists at the path yet. The
    upload on close has no timeout.
    """

    def __init__(
        self,
        store: RemoteStore,
        resolver: PathResolver,
        cache: LookupCache,
        path: str,
    ):
        self._store = store
        self._resolver = resolver
        self._cache = cache
        self.path = path
        self._buffer = io.BytesIO()
        self._size = 0
        self._state = WriteState.OPEN

    @property
    def state(self) -> WriteState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is WriteState.CLOSED

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Never create a half-written object
        if exc_type is not None:
            self.abort()
        else:
            self.close()

    def stat(self) -> Metadata:
        _, name = split_path(self.path)
        return Metadata(name=name, is_container=False, size=self._size, modified_at=None)

    def write(self, data: bytes) -> int:
        if self._state is WriteState.CLOSED:
            raise ValueError("I/O operation on closed handle")
        n = self._buffer.write(data)
        self._size += n
        return n

    def read(self, size: int = -1) -> bytes:
        raise UnsupportedOperationError(f"Handle for {self.path} is write-only")

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        raise UnsupportedOperationError(f"Cannot seek a handle opened for create: {self.path}")

    def read_directory(self, count: int = 0) -> list[Metadata]:
        raise UnsupportedOperationError(f"Not a container: {self.path}")

    def abort(self) -> None:
        """Discard the buffered bytes and close without creating anything."""
        if self._state is WriteState.CLOSED:
            return
        logger.debug("Abort %s (%d bytes discarded)", self.path, self._size)
        self._state = WriteState.CLOSED
        self._buffer = io.BytesIO()

    def close(self) -> None:
        """
        Create the object from the buffered bytes.

        The handle is closed afterwards whether or not the create succeeded.

        Raises:
            AlreadyExistsError: If the path already resolves; nothing is written.
            InvalidParentError: If the parent is missing or not a container.
            TransientStoreError: If the store call fails.
        """
        if self._state is WriteState.CLOSED:
            return
        self._state = WriteState.CLOSED
        logger.debug("Close %s (%d bytes buffered)", self.path, self._size)

        try:
            self._commit()
        finally:
            self._buffer = io.BytesIO()

    def _commit(self) -> None:
        created = create_at_path(
            self._store,
            self._resolver,
            self._cache,
            self.path,
            is_container=False,
            content=self._buffer.getvalue(),
        )
        logger.debug("Created %s -> %s", self.path, created.id)


def create_at_path(
    store: RemoteStore,
    resolver: PathResolver,
    cache: LookupCache,
    path: str,
    is_container: bool,
    content: bytes | None = None,
) -> RemoteObject:
    """
    Create one object at ``path`` unless something already exists there.

    On success the lookup entries for the path and its parent, and the
    parent's listing, are invalidated.

    Raises:
        AlreadyExistsError: If the path already resolves; nothing is written.
        InvalidParentError: If the parent is missing or not a container.
    """
    path = normalize_path(path)
    try:
        existing = resolver.resolve(path)
    except NotFoundError:
        existing = None

    if existing is not None:
        logger.error("Refusing to overwrite %s (existing id %s)", path, existing.id)
        raise AlreadyExistsError(f"File exists: {path}")

    parent_path, name = split_path(path)
    try:
        parent = resolver.resolve(parent_path, require_container=True)
    except NotFoundError as e:
        logger.error("Parent of %s is missing or not a container", path)
        raise InvalidParentError(f"Invalid parent directory: {parent_path}") from e

    created = store.create_object(parent.id, name, is_container=is_container, content=content)

    cache.invalidate(path)
    cache.invalidate(parent_path)
    cache.invalidate_listing(parent.id)
    return created

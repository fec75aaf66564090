"""
Path-addressed filesystem facade over a RemoteStore.

DriveFileSystem is what a filesystem-protocol server (WebDAV, FTP, ...)
talks to: stat, open for read, open for create, make directory, remove and
list, all by absolute path. Locking and the wire protocol live in the
server, not here.
"""

import logging
import os

from .cache import LookupCache
from .config import AppConfig
from .errors import NotFoundError, UnsupportedOperationError
from .handles import DEFAULT_STALL_TIMEOUT, ReadHandle, WriteHandle, create_at_path
from .listing import DEFAULT_LISTING_TTL, DirectoryLister
from .remote_store import Metadata, RemoteStore
from .resolver import (
    DEFAULT_LOOKUP_TTL,
    DEFAULT_ROOT_ID,
    ROOT_PATH,
    PathResolver,
    normalize_path,
    split_path,
)

logger = logging.getLogger(__name__)

_ACCESS_MASK = os.O_RDONLY | os.O_WRONLY | os.O_RDWR
_CREATE_FLAGS = os.O_CREAT | os.O_TRUNC


class DriveFileSystem:
    """
    Filesystem operations by path, backed by a RemoteStore.

    Each instance owns its LookupCache, so two instances never share cached
    state. Mutations are not serialized against each other: two concurrent
    creates of the same name can both reach the store.
    """

    def __init__(
        self,
        store: RemoteStore,
        cache: LookupCache | None = None,
        root_id: str = DEFAULT_ROOT_ID,
        lookup_ttl: float = DEFAULT_LOOKUP_TTL,
        listing_ttl: float = DEFAULT_LISTING_TTL,
        stall_timeout: float = DEFAULT_STALL_TIMEOUT,
    ):
        self._store = store
        self._cache = cache if cache is not None else LookupCache()
        self._stall_timeout = stall_timeout
        self.resolver = PathResolver(store, self._cache, root_id=root_id, lookup_ttl=lookup_ttl)
        self.lister = DirectoryLister(
            store, self._cache, listing_ttl=listing_ttl, lookup_ttl=lookup_ttl
        )

    @classmethod
    def from_config(cls, store: RemoteStore, config: AppConfig) -> "DriveFileSystem":
        return cls(
            store,
            cache=LookupCache(max_entries=config.cache.max_entries),
            root_id=config.gdrive.root_folder_id,
            lookup_ttl=config.cache.lookup_ttl_seconds,
            listing_ttl=config.cache.listing_ttl_seconds,
            stall_timeout=config.connection.read_stall_timeout_seconds,
        )

    @property
    def cache(self) -> LookupCache:
        return self._cache

    def stat(self, path: str) -> Metadata:
        """Metadata for the object at ``path``. Raises NotFoundError."""
        logger.debug("Stat %s", path)
        return Metadata.from_object(self.resolver.resolve(path))

    def open_for_read(self, path: str) -> ReadHandle:
        """Open an existing object (file or container) for reading."""
        path = normalize_path(path)
        logger.debug("Open for read %s", path)
        obj = self.resolver.resolve(path)
        return ReadHandle(self._store, self.lister, obj, path, stall_timeout=self._stall_timeout)

    def open_for_create(self, path: str) -> WriteHandle:
        """
        Open a new object for writing.

        Whether ``path`` already exists is checked when the handle is closed,
        not here.
        """
        path = normalize_path(path)
        logger.debug("Open for create %s", path)
        return WriteHandle(self._store, self.resolver, self._cache, path)

    def open_file(self, path: str, flags: int) -> ReadHandle | WriteHandle:
        """
        Open by ``os.open``-style flags.

        ``O_RDONLY`` opens for read; ``O_WRONLY`` or ``O_RDWR`` combined with
        exactly ``O_CREAT | O_TRUNC`` opens for create. Every other
        combination (append, partial overwrite, ...) is refused.
        """
        access = flags & _ACCESS_MASK
        if flags == os.O_RDONLY:
            return self.open_for_read(path)
        if access in (os.O_WRONLY, os.O_RDWR) and flags == access | _CREATE_FLAGS:
            return self.open_for_create(path)

        logger.error("Unsupported open mode for %s: %#o", path, flags)
        raise UnsupportedOperationError(f"Unsupported open mode: {flags:#o}")

    def make_container(self, path: str) -> None:
        """
        Create a directory at ``path``.

        Raises:
            AlreadyExistsError: If something already exists at ``path``.
            InvalidParentError: If the parent is missing or not a container.
        """
        path = normalize_path(path)
        logger.debug("Mkdir %s", path)
        create_at_path(self._store, self.resolver, self._cache, path, is_container=True)

    def remove_recursive(self, path: str) -> None:
        """
        Delete the object at ``path`` and, for a container, everything beneath it.

        Raises:
            NotFoundError: If nothing exists at ``path``.
            UnsupportedOperationError: If ``path`` is the root.
        """
        path = normalize_path(path)
        logger.debug("RemoveAll %s", path)
        if path == ROOT_PATH:
            raise UnsupportedOperationError("Cannot remove the root directory")

        obj = self.resolver.resolve(path)
        parent_path, _ = split_path(path)
        try:
            parent = self.resolver.resolve(parent_path, require_container=True)
        except NotFoundError:
            parent = None

        self._store.delete(obj.id)

        self._cache.invalidate_tree(path)
        self._cache.invalidate(parent_path)
        if parent is not None:
            self._cache.invalidate_listing(parent.id)
        if obj.parent_id is not None:
            self._cache.invalidate_listing(obj.parent_id)
        if obj.is_container:
            self._cache.invalidate_listing(obj.id)

    def list_children(self, path: str) -> list[Metadata]:
        """Metadata for every visible child of the container at ``path``."""
        path = normalize_path(path)
        logger.debug("List %s", path)
        container = self.resolver.resolve(path, require_container=True)
        return [Metadata.from_object(child) for child in self.lister.list_children(container, path)]

    def rename(self, old_path: str, new_path: str) -> None:
        logger.error("Rename %s -> %s is not supported", old_path, new_path)
        raise UnsupportedOperationError("Rename is not supported")

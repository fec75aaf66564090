"""
Path-to-object resolver.

The remote store is ID-based, not path-based. This module turns a path such
as "/Documents/notes.txt" into the RemoteObject it denotes by resolving the
parent path first (through the cache) and then querying the parent's
children for the final segment.
"""

import logging

from .cache import LookupCache, path_key
from .errors import NotFoundError
from .remote_store import RemoteObject, RemoteStore

logger = logging.getLogger(__name__)

ROOT_PATH = "/"
DEFAULT_ROOT_ID = "root"
DEFAULT_LOOKUP_TTL = 60.0


def normalize_path(path: str) -> str:
    """Ensure a leading slash and forward slashes, and strip trailing slashes.

    Both "" and "/" normalize to the root path "/".
    """
    path = path.replace("\\", "/")
    if not path.startswith("/"):
        path = "/" + path
    path = path.rstrip("/")
    return path or ROOT_PATH


def split_path(path: str) -> tuple[str, str]:
    """Split a normalized non-root path into (parent path, base name)."""
    parent, _, base = path.rpartition("/")
    return parent or ROOT_PATH, base


def join_path(parent: str, name: str) -> str:
    if parent == ROOT_PATH:
        return ROOT_PATH + name
    return parent + "/" + name


def make_root(root_id: str) -> RemoteObject:
    """The root container, known without asking the store."""
    return RemoteObject(id=root_id, name="", is_container=True)


class PathResolver:
    """
    Resolves paths one segment at a time, caching each segment's object.

    If the store holds several non-trashed siblings with the same name, the
    first one in the order the store returned them is used. That order is not
    specified by the store, so which duplicate wins is arbitrary.
    """

    def __init__(
        self,
        store: RemoteStore,
        cache: LookupCache,
        root_id: str = DEFAULT_ROOT_ID,
        lookup_ttl: float = DEFAULT_LOOKUP_TTL,
    ):
        self._store = store
        self._cache = cache
        self._root = make_root(root_id)
        self._lookup_ttl = lookup_ttl

    @property
    def root(self) -> RemoteObject:
        return self._root

    def resolve(self, path: str, require_container: bool = False) -> RemoteObject:
        """
        Resolve a path to the object it names.

        Args:
            path: Absolute slash-separated path.
            require_container: Only accept a container at the final segment.

        Returns:
            The resolved RemoteObject.

        Raises:
            NotFoundError: If any segment has no matching child.
            TransientStoreError: If the store query fails.
        """
        path = normalize_path(path)
        if path == ROOT_PATH:
            return self._root

        obj = self._cache.get_or_resolve(
            path_key(path),
            self._lookup_ttl,
            lambda: self._resolve_uncached(path, require_container),
        )

        # The cache key is shared by both lookup modes, so a cached file can
        # come back for a lookup that needs a container.
        if require_container and not obj.is_container:
            raise NotFoundError(f"Not a container: {path}")
        return obj

    def _resolve_uncached(self, path: str, require_container: bool) -> RemoteObject:
        parent_path, base = split_path(path)
        parent = self.resolve(parent_path, require_container=True)

        logger.debug("Querying '%s' in %s (containers only: %s)", base, parent.id, require_container)
        candidates = self._store.list_children(
            parent.id, name=base, containers_only=require_container
        )
        for obj in candidates:
            if obj.trashed:
                continue
            logger.debug("Resolved %s -> %s", path, obj.id)
            return obj

        logger.debug("Path segment not found: %s in parent %s", base, parent.id)
        raise NotFoundError(f"No such file or directory: {path}")

"""
Directory listing with cache warm-up.

A listing snapshot is cached per container ID for a short TTL. While a
listing is walked, each child is also written into the path-lookup cache at
the longer lookup TTL, so that a stat() of a just-listed child is a cache
hit.
"""

import logging

from .cache import LookupCache, listing_key, path_key
from .remote_store import RemoteObject, RemoteStore
from .resolver import DEFAULT_LOOKUP_TTL, join_path, normalize_path

logger = logging.getLogger(__name__)

DEFAULT_LISTING_TTL = 5.0


class DirectoryLister:
    """Lists the non-trashed children of a container."""

    def __init__(
        self,
        store: RemoteStore,
        cache: LookupCache,
        listing_ttl: float = DEFAULT_LISTING_TTL,
        lookup_ttl: float = DEFAULT_LOOKUP_TTL,
    ):
        self._store = store
        self._cache = cache
        self._listing_ttl = listing_ttl
        self._lookup_ttl = lookup_ttl

    def list_children(self, container: RemoteObject, container_path: str) -> list[RemoteObject]:
        """
        List a container's visible children.

        Args:
            container: The resolved container object.
            container_path: The path ``container`` was resolved from, used to
                build the path-lookup keys of its children.

        Returns:
            A fresh list of children in store order; empty if there are none.
        """
        children = self._cache.get_or_resolve(
            listing_key(container.id),
            self._listing_ttl,
            lambda: self._fetch(container, normalize_path(container_path)),
        )
        return list(children)

    def _fetch(self, container: RemoteObject, container_path: str) -> tuple[RemoteObject, ...]:
        logger.debug("Listing children of %s", container.id)
        objects = self._store.list_children(container.id)
        children = tuple(obj for obj in objects if not obj.trashed)
        logger.debug("Listed %d entries in %s", len(children), container.id)
        self._warm(container_path, children)
        return children

    def _warm(self, container_path: str, children: tuple[RemoteObject, ...]) -> None:
        # First match wins on duplicate names, same as PathResolver.
        seen: set[str] = set()
        for child in children:
            if child.name in seen:
                continue
            seen.add(child.name)
            self._cache.put(path_key(join_path(container_path, child.name)), child, self._lookup_ttl)

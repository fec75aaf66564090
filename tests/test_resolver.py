"""
Unit tests for gdrive_davfs.resolver module.

Tests cover:
- Path normalization, splitting and joining
- Root resolution without any store query
- Single- and multi-segment resolution, with caching of each segment
- NotFound propagation and the absence of negative caching
- Trashed-object filtering and first-match-wins on duplicate names
- Container-only lookups
- Store failures propagating unchanged
"""

import pytest

from gdrive_davfs.cache import LookupCache, path_key
from gdrive_davfs.errors import NotFoundError, TransientStoreError
from gdrive_davfs.resolver import (
    PathResolver,
    join_path,
    normalize_path,
    split_path,
)

ROOT_ID = "root"


@pytest.fixture
def resolver(store, cache):
    return PathResolver(store, cache, root_id=ROOT_ID, lookup_ttl=60)


class TestPathHelpers:
    """Tests for normalize_path, split_path and join_path."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("", "/"),
            ("/", "/"),
            ("//", "/"),
            ("/docs/", "/docs"),
            ("docs/a.txt", "/docs/a.txt"),
            ("\\docs\\a.txt", "/docs/a.txt"),
        ],
    )
    def test_normalize_path(self, raw, expected):
        assert normalize_path(raw) == expected

    def test_split_path_top_level(self):
        assert split_path("/docs") == ("/", "docs")

    def test_split_path_nested(self):
        assert split_path("/docs/sub/a.txt") == ("/docs/sub", "a.txt")

    def test_join_path(self):
        assert join_path("/", "docs") == "/docs"
        assert join_path("/docs", "a.txt") == "/docs/a.txt"


class TestRootResolution:
    """Tests for root path resolution."""

    @pytest.mark.parametrize("root", ["", "/"])
    def test_root_needs_no_query(self, resolver, store, root):
        obj = resolver.resolve(root)

        assert obj.id == ROOT_ID
        assert obj.is_container is True
        assert store.calls == []

    def test_root_with_configured_folder(self, store, cache):
        resolver = PathResolver(store, cache, root_id="folder123")

        assert resolver.resolve("/", require_container=True).id == "folder123"
        assert store.calls == []


class TestPathResolution:
    """Tests for single and multi-segment resolution."""

    def test_scenario_resolves_file(self, resolver):
        obj = resolver.resolve("/docs/a.txt")

        assert obj.id == "F"
        assert obj.size == 10

    def test_walks_one_segment_per_query(self, resolver, store):
        resolver.resolve("/docs/a.txt")

        assert store.calls == [
            ("list_children", ROOT_ID, "docs", True),
            ("list_children", "D", "a.txt", False),
        ]

    def test_parent_segments_are_cached(self, resolver, store):
        resolver.resolve("/docs/a.txt")
        store.calls.clear()

        assert resolver.resolve("/docs").id == "D"
        assert store.calls == []

    def test_second_resolve_within_ttl_is_cache_hit(self, resolver, store):
        resolver.resolve("/docs/a.txt")
        resolver.resolve("/docs/a.txt")

        assert store.count("list_children") == 2

    def test_resolve_after_ttl_queries_again(self, resolver, store, clock):
        resolver.resolve("/docs")
        clock.advance(61)
        resolver.resolve("/docs")

        assert store.count("list_children") == 2

    def test_invalidate_forces_fresh_query(self, resolver, store, cache):
        resolver.resolve("/docs/a.txt")
        store.calls.clear()

        cache.invalidate("/docs/a.txt")
        resolver.resolve("/docs/a.txt")

        # Only the invalidated segment is queried again
        assert store.calls == [("list_children", "D", "a.txt", False)]

    def test_trailing_slash_shares_cache_entry(self, resolver, store):
        resolver.resolve("/docs")
        resolver.resolve("/docs/")

        assert store.count("list_children") == 1


class TestNotFound:
    """Tests for missing segments."""

    def test_missing_segment_raises(self, resolver):
        with pytest.raises(NotFoundError):
            resolver.resolve("/nonexistent")

    def test_missing_intermediate_segment_raises(self, resolver, store):
        with pytest.raises(NotFoundError):
            resolver.resolve("/nope/file.txt")

        # Stops at the first missing segment
        assert store.calls == [("list_children", ROOT_ID, "nope", True)]

    def test_not_found_is_requeried_every_time(self, resolver, store):
        for _ in range(3):
            with pytest.raises(NotFoundError):
                resolver.resolve("/missing")

        assert store.count("list_children") == 3

    def test_file_as_intermediate_segment_is_not_found(self, resolver):
        with pytest.raises(NotFoundError):
            resolver.resolve("/docs/a.txt/child")


class TestFiltering:
    """Tests for trashed objects, duplicates and container-only lookups."""

    def test_trashed_object_is_invisible(self, resolver, store):
        store.add("T", "old.txt", "D", content=b"x", trashed=True)

        with pytest.raises(NotFoundError):
            resolver.resolve("/docs/old.txt")

    def test_trashed_duplicate_is_skipped(self, resolver, store):
        store.add("T", "b.txt", "D", trashed=True)
        store.add("B", "b.txt", "D", content=b"live")

        assert resolver.resolve("/docs/b.txt").id == "B"

    def test_duplicate_names_first_in_store_order_wins(self, resolver, store):
        store.add("DUP1", "dup.txt", "D", content=b"one")
        store.add("DUP2", "dup.txt", "D", content=b"two")

        assert resolver.resolve("/docs/dup.txt").id == "DUP1"

    def test_require_container_filters_files(self, resolver, store):
        with pytest.raises(NotFoundError):
            resolver.resolve("/docs/a.txt", require_container=True)

        assert store.calls[-1] == ("list_children", "D", "a.txt", True)

    def test_cached_file_does_not_satisfy_container_lookup(self, resolver, store):
        resolver.resolve("/docs/a.txt")
        store.calls.clear()

        with pytest.raises(NotFoundError):
            resolver.resolve("/docs/a.txt", require_container=True)


class TestStoreFailure:
    """Store errors propagate unchanged and leave nothing cached."""

    def test_transient_error_propagates(self, resolver, store, cache):
        store.fail_with = TransientStoreError("backend down", status=500)

        with pytest.raises(TransientStoreError) as exc_info:
            resolver.resolve("/docs")

        assert exc_info.value.status == 500
        assert cache.get(path_key("/docs")) is None

    def test_recovers_after_failure(self, resolver, store):
        store.fail_with = TransientStoreError("backend down")
        with pytest.raises(TransientStoreError):
            resolver.resolve("/docs")

        store.fail_with = None
        assert resolver.resolve("/docs").id == "D"

    def test_separate_caches_do_not_interfere(self, store):
        first = PathResolver(store, LookupCache())
        second = PathResolver(store, LookupCache())

        first.resolve("/docs")
        second.resolve("/docs")

        assert store.count("list_children") == 2

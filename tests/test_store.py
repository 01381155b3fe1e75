"""
Tests for the PersistentCache operations

These tests verify the in-memory behaviour of the cache:
- get() / set(): scalar slots
- list() / push() / pull(): list slots
- delete() / clear(): whole-slot operations
- Shape disjointness between scalar and list slots
- keys(), len(), "in" and stats()

Run with: python -m pytest tests/test_store.py -v
"""

import pytest
from kvfile.cache.store import PersistentCache


class TestGetSet:
    """Test get() and set() methods."""

    def test_set_then_get(self, cache: PersistentCache):
        """Test a stored value can be read back."""
        cache.set("key", "value")
        assert cache.get("key") == "value"

    def test_get_missing_key(self, cache: PersistentCache):
        """Test get on a missing key returns None."""
        assert cache.get("missing") is None

    def test_set_overwrites(self, cache: PersistentCache):
        """Test set replaces the previous value."""
        cache.set("key", "original")
        cache.set("key", "updated")

        assert cache.get("key") == "updated"
        assert len(cache) == 1

    @pytest.mark.parametrize("value", [0, 1.5, "", "text", True, None, [1, 2], {"a": {"b": 1}}])
    def test_set_json_values(self, cache: PersistentCache, value):
        """Test any JSON value is stored as-is."""
        cache.set("key", value)
        assert cache.get("key") == value

    def test_set_replaces_list_slot(self, cache: PersistentCache):
        """Test set on a list key turns it into a scalar."""
        cache.push("key", 1)
        cache.set("key", "scalar")

        assert cache.get("key") == "scalar"
        assert cache.list("key") == []

    def test_set_marks_pending(self, cache: PersistentCache):
        """Test set schedules a write-back."""
        assert cache.pending is False
        cache.set("key", "value")
        assert cache.pending is True


class TestListPushPull:
    """Test list(), push() and pull() methods."""

    def test_push_then_list(self, cache: PersistentCache):
        """Test values are listed in push order."""
        cache.push("nums", 1)
        cache.push("nums", 2)
        cache.push("nums", 3)

        assert cache.list("nums") == [1, 2, 3]

    def test_list_missing_key(self, cache: PersistentCache):
        """Test list on a missing key is empty."""
        assert cache.list("missing") == []

    def test_push_replaces_scalar_slot(self, cache: PersistentCache):
        """Test push on a scalar key starts a new list."""
        cache.set("key", "scalar")
        cache.push("key", "first")

        assert cache.list("key") == ["first"]
        assert cache.get("key") is None

    def test_list_returns_copy(self, cache: PersistentCache):
        """Test changing the returned list does not change the cache."""
        cache.push("nums", 1)

        result = cache.list("nums")
        result.append(2)

        assert cache.list("nums") == [1]

    def test_pull_by_value(self, cache: PersistentCache):
        """Test pull removes elements equal to the value."""
        cache.push("nums", 1)
        cache.push("nums", 2)

        cache.pull("nums", 1)

        assert cache.list("nums") == [2]

    def test_pull_removes_all_matches(self, cache: PersistentCache):
        """Test pull removes every equal element and keeps order."""
        for value in ["a", "b", "a", "c", "a"]:
            cache.push("letters", value)

        cache.pull("letters", "a")

        assert cache.list("letters") == ["b", "c"]

    def test_pull_by_predicate(self, cache: PersistentCache):
        """Test pull removes elements the predicate accepts."""
        for value in range(6):
            cache.push("nums", value)

        cache.pull("nums", lambda value: value % 2 == 0)

        assert cache.list("nums") == [1, 3, 5]

    def test_pull_structured_values(self, cache: PersistentCache):
        """Test pull compares dicts by equality."""
        cache.push("users", {"id": 1})
        cache.push("users", {"id": 2})

        cache.pull("users", {"id": 1})

        assert cache.list("users") == [{"id": 2}]

    def test_pull_literal_respects_type(self, cache: PersistentCache):
        """Test a literal only removes values of the same JSON type."""
        for value in [1, True, 1.0, "1"]:
            cache.push("mixed", value)

        cache.pull("mixed", 1)

        remaining = cache.list("mixed")
        assert [type(value) for value in remaining] == [bool, float, str]

        cache.pull("mixed", True)
        assert [type(value) for value in cache.list("mixed")] == [float, str]

    def test_pull_no_match(self, cache: PersistentCache):
        """Test pull without matches leaves the list unchanged."""
        cache.push("nums", 1)
        cache.pull("nums", 99)
        assert cache.list("nums") == [1]

    def test_pull_on_scalar_is_noop(self, cache: PersistentCache):
        """Test pull does nothing on a scalar slot."""
        cache.set("key", 1)
        cache.save()

        cache.pull("key", 1)

        assert cache.get("key") == 1
        assert cache.pending is False

    def test_pull_on_missing_key_is_noop(self, cache: PersistentCache):
        """Test pull does nothing on a missing key."""
        cache.pull("missing", 1)

        assert "missing" not in cache
        assert cache.pending is False


class TestShapeDisjointness:
    """Test scalar and list slots do not read through each other."""

    def test_get_on_list_slot(self, cache: PersistentCache):
        """Test get on a list key returns None."""
        cache.push("key", "value")
        assert cache.get("key") is None

    def test_list_on_scalar_slot(self, cache: PersistentCache):
        """Test list on a scalar key returns an empty list."""
        cache.set("key", ["looks", "like", "a", "list"])
        assert cache.list("key") == []


class TestDeleteClear:
    """Test delete() and clear() methods."""

    def test_delete_scalar(self, cache: PersistentCache):
        """Test delete removes a scalar slot."""
        cache.set("key", "value")
        cache.delete("key")

        assert cache.get("key") is None
        assert len(cache) == 0

    def test_delete_list(self, cache: PersistentCache):
        """Test delete removes a list slot."""
        cache.push("key", "value")
        cache.delete("key")

        assert cache.list("key") == []
        assert len(cache) == 0

    def test_delete_missing_key(self, cache: PersistentCache):
        """Test deleting a missing key is harmless."""
        cache.delete("missing")
        assert len(cache) == 0

    def test_delete_one_of_many(self, cache: PersistentCache):
        """Test deleting one key doesn't affect others."""
        cache.set("key1", "value1")
        cache.set("key2", "value2")
        cache.push("key3", "value3")

        cache.delete("key2")

        assert cache.get("key1") == "value1"
        assert cache.get("key2") is None
        assert cache.list("key3") == ["value3"]

    def test_clear(self, cache: PersistentCache):
        """Test clear removes every key."""
        cache.set("a", 1)
        cache.push("b", 2)

        cache.clear()

        assert cache.get("a") is None
        assert cache.list("b") == []
        assert len(cache) == 0
        assert cache.pending is True


class TestIntrospection:
    """Test keys(), len(), "in" and stats()."""

    def test_contains(self, cache: PersistentCache):
        """Test "in" sees scalars and non-empty lists."""
        cache.set("scalar", 0)
        cache.push("items", None)

        assert "scalar" in cache
        assert "items" in cache
        assert "missing" not in cache

    def test_contains_emptied_list(self, cache: PersistentCache):
        """Test a list emptied by pull is not reported."""
        cache.push("items", 1)
        cache.pull("items", 1)

        assert "items" not in cache
        assert len(cache) == 1  # slot stays until the next save

    def test_keys(self, cache: PersistentCache):
        """Test keys lists slots with live content in insertion order."""
        cache.set("a", 1)
        cache.push("b", 2)
        cache.set("c", 3)

        assert cache.keys() == ["a", "b", "c"]

    def test_stats(self, cache: PersistentCache, clock):
        """Test stats counts live and stale entries."""
        cache.set("a", 1, ttl=1)
        cache.set("b", 2)
        cache.push("c", 3, ttl=1)
        cache.push("c", 4)

        clock.advance(2)
        stats = cache.stats()

        assert stats["total_keys"] == 3
        assert stats["list_keys"] == 1
        assert stats["total_entries"] == 4
        assert stats["stale_entries"] == 2
        assert stats["live_entries"] == 2
        assert stats["pending"] is True
        assert stats["path"] == cache.path

    def test_stats_empty(self, cache: PersistentCache):
        """Test stats on an empty cache."""
        stats = cache.stats()

        assert stats["total_keys"] == 0
        assert stats["total_entries"] == 0
        assert stats["pending"] is False

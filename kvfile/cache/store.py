"""
Persistent Cache Store Module

This module implements the file-backed key-value cache.

Features:
- Scalar slots (get/set) and list slots (list/push/pull) under one key space
- Per-entry TTL with lazy expiration: reads filter stale entries,
  only save() removes them
- Debounced write-back: a burst of mutations produces one snapshot write
- Atomic snapshot rewrite on every save
- Flush on shutdown through the context manager, flush_on_shutdown()
  or the process exit hook
"""

import atexit
import logging
import math
import os
import time
import weakref
from typing import Any, Callable, Dict, List, Optional

from .entry import CacheEntry, expires_at, now_ms
from .scheduler import WriteScheduler
from .snapshot import Slot, dump_snapshot, load_snapshot, write_snapshot
from ..config.settings import settings

logger = logging.getLogger(__name__)

# Stores flushed by the exit hook
_open_caches: "weakref.WeakSet[PersistentCache]" = weakref.WeakSet()


class PersistentCache:
    """
    File-persisted key-value cache with TTL and debounced writes.

    Each key holds either a single entry (scalar slot) or an ordered list of
    entries (list slot). The two shapes are disjoint at read time: get() on a
    list slot returns None and list() on a scalar slot returns [].

    Usage:
        with PersistentCache("cache.json", ttl=3600) as cache:
            cache.set("token", "abc", ttl=60)
            cache.push("recent", "/home")
            cache.get("token")      # "abc"
            cache.list("recent")    # ["/home"]

    Internal Storage:
        Format: key -> CacheEntry | [CacheEntry, ...]
        CacheEntry.expires is epoch milliseconds, None means no expiration

    Attributes:
        path: Snapshot file path
        ttl: Default TTL in seconds for initial data
    """

    def __init__(
            self,
            path: str,
            data: Optional[Dict[str, Any]] = None,
            ttl: float = None,
            flush_delay: float = None,
            flush_at_exit: bool = None,
            clock: Callable[[], float] = None,
    ):
        """
        Load the cache from ``path`` or create it.

        Args:
            path: Snapshot file path
            data: Initial values, used only when the file does not exist
            ttl: Default TTL in seconds for initial values
                (default from settings.DEFAULT_TTL)
            flush_delay: Seconds between the first mutation and the write-back
                (default from settings.FLUSH_DELAY)
            flush_at_exit: Flush pending writes at interpreter exit
                (default from settings.FLUSH_AT_EXIT)
            clock: Callable returning epoch seconds (default time.time)

        Raises:
            CorruptSnapshot: If the existing file is not a valid snapshot
            OSError: If the file cannot be read or the initial write fails
        """
        self.path = os.fspath(path)
        self.ttl = ttl if ttl is not None else settings.DEFAULT_TTL
        self._clock = clock if clock is not None else time.time

        delay = flush_delay if flush_delay is not None else settings.FLUSH_DELAY
        self._scheduler = WriteScheduler(self._scheduled_save, delay=delay)

        if os.path.exists(self.path):
            self._data: Dict[str, Slot] = load_snapshot(self.path)
            logger.debug(f"Loaded {len(self._data)} keys from {self.path}")
        else:
            self._data = {}
            now = self._now()
            for key, value in (data or {}).items():
                self._data[key] = CacheEntry(value, expires_at(self.ttl, now))
            logger.debug(f"Created {self.path} with {len(self._data)} initial keys")
            self.save()

        if flush_at_exit if flush_at_exit is not None else settings.FLUSH_AT_EXIT:
            _open_caches.add(self)

    # ------------------------------------------------------------------
    # Scalar slots
    # ------------------------------------------------------------------

    def get(self, key: str) -> Any:
        """
        Retrieve the value stored under ``key``.

        Returns:
            The value if the slot is a live scalar entry, None otherwise
        """
        entry = self._data.get(key)

        if not isinstance(entry, CacheEntry):
            return None

        return entry.value if entry.is_live(self._now()) else None

    def set(self, key: str, value: Any, ttl: float = math.inf) -> None:
        """
        Store ``value`` under ``key``, replacing whatever the slot held.

        Args:
            key: The key to store
            value: JSON-serializable value
            ttl: Time-to-live in seconds (math.inf = no expiration)
        """
        self._data[key] = CacheEntry(value, expires_at(ttl, self._now()))
        self._scheduler.schedule()

    # ------------------------------------------------------------------
    # List slots
    # ------------------------------------------------------------------

    def list(self, key: str) -> List[Any]:
        """
        Return the live values of the list stored under ``key``.

        The result is a new list; changing it does not affect the cache.
        An absent key or a scalar slot gives an empty list.
        """
        items = self._data.get(key)

        if not isinstance(items, list):
            return []

        now = self._now()
        return [item.value for item in items if item.is_live(now)]

    def push(self, key: str, value: Any, ttl: float = math.inf) -> None:
        """
        Append ``value`` to the list stored under ``key``.

        An absent key or a scalar slot is replaced by a new list.

        Args:
            key: The list key
            value: JSON-serializable value
            ttl: Time-to-live in seconds for this element only
        """
        items = self._data.get(key)

        self._data[key] = [
            *(items if isinstance(items, list) else []),
            CacheEntry(value, expires_at(ttl, self._now())),
        ]
        self._scheduler.schedule()

    def pull(self, key: str, matcher: Any) -> None:
        """
        Remove every element of the list under ``key`` that matches.

        Args:
            key: The list key
            matcher: Predicate called with each value, or a literal value.
                Literals match values of the same type that compare equal,
                so 1 does not match True or 1.0.

        Does nothing when the slot is absent or scalar.
        """
        items = self._data.get(key)

        if not isinstance(items, list):
            return

        if callable(matcher):
            matches = matcher
        else:
            def matches(value: Any) -> bool:
                return type(value) is type(matcher) and value == matcher

        self._data[key] = [item for item in items if not matches(item.value)]
        self._scheduler.schedule()

    # ------------------------------------------------------------------
    # Whole-slot operations
    # ------------------------------------------------------------------

    def delete(self, key: str) -> None:
        """Remove the slot under ``key``, scalar or list."""
        self._data.pop(key, None)
        self._scheduler.schedule()

    def clear(self) -> None:
        """Remove all keys."""
        self._data = {}
        self._scheduler.schedule()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @property
    def pending(self) -> bool:
        """True while mutations have not been written to disk."""
        return self._scheduler.pending

    def save(self) -> None:
        """
        Sweep stale entries and write the snapshot now.

        Cancels any scheduled write-back. Stale scalar entries are removed,
        list slots keep only live elements and are removed once empty.

        Raises:
            SerializationFailure: If a value is not JSON serializable
            OSError: If the file cannot be written
        """
        self._scheduler.cancel()

        dropped = self._sweep()

        try:
            text = dump_snapshot(self._data, path=self.path)
            write_snapshot(self.path, text)
        except Exception:
            # Memory stays authoritative; retry on the next save
            self._scheduler.mark_dirty()
            raise

        logger.debug(f"Saved {len(self._data)} keys to {self.path} ({dropped} stale entries dropped)")

    def flush_on_shutdown(self) -> None:
        """Save if a write-back is still pending."""
        if self._scheduler.pending:
            logger.debug(f"Flushing pending write-back for {self.path}")
            self.save()

    def __enter__(self) -> "PersistentCache":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.save()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def __contains__(self, key: str) -> bool:
        """Check whether ``key`` has a live scalar or at least one live element."""
        slot = self._data.get(key)
        if slot is None:
            return False

        now = self._now()
        if isinstance(slot, list):
            return any(item.is_live(now) for item in slot)
        return slot.is_live(now)

    def keys(self) -> List[str]:
        """Return the keys holding a live scalar or at least one live element."""
        return [key for key in self._data if key in self]

    def __len__(self) -> int:
        """
        Number of stored slots.

        Note: This may include stale slots that haven't been swept yet.
        """
        return len(self._data)

    def stats(self) -> Dict[str, Any]:
        """
        Get statistics about the cache.

        Returns:
            Dictionary containing:
            - path: Snapshot file path
            - total_keys: Stored slots, stale ones included
            - list_keys: Slots holding a list
            - total_entries: Stored entries across all slots
            - stale_entries: Entries expired but not yet swept
            - live_entries: total_entries - stale_entries
            - pending: Whether a write-back is owed
        """
        now = self._now()
        total = 0
        stale = 0
        list_keys = 0

        for slot in self._data.values():
            entries = slot if isinstance(slot, list) else [slot]
            list_keys += isinstance(slot, list)
            total += len(entries)
            stale += sum(1 for entry in entries if not entry.is_live(now))

        return {
            "path": self.path,
            "total_keys": len(self._data),
            "list_keys": list_keys,
            "total_entries": total,
            "stale_entries": stale,
            "live_entries": total - stale,
            "pending": self.pending,
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _now(self) -> int:
        return now_ms(self._clock)

    def _sweep(self) -> int:
        """Drop stale entries from memory. Returns the number dropped."""
        now = self._now()
        dropped = 0

        for key in list(self._data):
            slot = self._data[key]

            if isinstance(slot, list):
                live = [item for item in slot if item.is_live(now)]
                dropped += len(slot) - len(live)
                if live:
                    self._data[key] = live
                else:
                    del self._data[key]
            elif not slot.is_live(now):
                dropped += 1
                del self._data[key]

        return dropped

    def _scheduled_save(self) -> None:
        """Write-back callback run by the event loop."""
        try:
            self.save()
        except Exception:
            logger.exception(f"Scheduled write-back to {self.path} failed")


def _flush_open_caches() -> None:
    """Exit hook: flush every tracked cache with a pending write-back."""
    for cache in list(_open_caches):
        try:
            cache.flush_on_shutdown()
        except Exception:
            logger.exception(f"Failed to flush {cache.path} at exit")


atexit.register(_flush_open_caches)

"""
kvfile: File-Persisted Key-Value Cache

An embeddable key-value cache with per-entry TTL expiration whose
contents survive process restarts through a JSON snapshot file.
Writes are debounced on the asyncio event loop so a burst of
mutations results in a single file write.
"""

from .cache import (
    CacheEntry,
    CacheError,
    CorruptSnapshot,
    PersistentCache,
    SerializationFailure,
)

__version__ = "1.0.0"

__all__ = [
    "CacheEntry",
    "CacheError",
    "CorruptSnapshot",
    "PersistentCache",
    "SerializationFailure",
]

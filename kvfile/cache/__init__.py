"""Cache module for kvfile."""

from .entry import CacheEntry
from .errors import CacheError, CorruptSnapshot, SerializationFailure
from .store import PersistentCache

__all__ = [
    "CacheEntry",
    "CacheError",
    "CorruptSnapshot",
    "PersistentCache",
    "SerializationFailure",
]

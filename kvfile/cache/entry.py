"""
Cache Entry Module

Defines the unit of storage held by a PersistentCache slot.

A slot holds either a single CacheEntry (scalar slot) or a list of
CacheEntry objects (list slot). Each entry carries its own absolute
expiration time, so entries of the same list can expire independently.

Expiration timestamps are integer epoch milliseconds, which is also the
format written to the snapshot file. TTLs are given in seconds.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


def now_ms(clock: Callable[[], float]) -> int:
    """Return the clock's current time as integer epoch milliseconds."""
    return int(clock() * 1000)


def expires_at(ttl: float, now: int) -> Optional[int]:
    """
    Compute the absolute expiration for an entry written at ``now``.

    Args:
        ttl: Time-to-live in seconds (math.inf = never expires)
        now: Write time in epoch milliseconds

    Returns:
        Expiration in epoch milliseconds, or None for no expiration
    """
    if ttl is None or ttl == math.inf:
        return None
    if ttl <= 0:
        return now
    return now + int(ttl * 1000)


@dataclass
class CacheEntry:
    """
    A stored value with an optional expiration.

    Attributes:
        value: Opaque JSON-serializable payload
        expires: Expiration in epoch milliseconds (None = never expires)
    """
    value: Any
    expires: Optional[int] = None

    def is_live(self, now: int) -> bool:
        """Check whether the entry is still visible at ``now`` (epoch ms)."""
        return self.expires is None or self.expires > now

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the snapshot representation."""
        data = {"value": self.value}
        if self.expires is not None:
            data["expires"] = self.expires
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "CacheEntry":
        """
        Build an entry from its snapshot representation.

        Raises:
            ValueError: If ``data`` is not an entry object
        """
        if not isinstance(data, dict):
            raise ValueError(f"entry must be an object, got {type(data).__name__}")

        expires = data.get("expires")
        if expires is not None:
            # bool is an int subclass but never a valid timestamp
            if isinstance(expires, bool) or not isinstance(expires, (int, float)):
                raise ValueError(f"invalid expires value: {expires!r}")
            if isinstance(expires, float) and not math.isfinite(expires):
                raise ValueError(f"expires must be finite, got {expires!r}")
            expires = int(expires)

        return cls(value=data.get("value"), expires=expires)

"""Exceptions raised by kvfile caches."""


class CacheError(Exception):
    """Base class for kvfile errors."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class CorruptSnapshot(CacheError, ValueError):
    """The snapshot file exists but is not a valid cache document."""


class SerializationFailure(CacheError, TypeError):
    """A stored value could not be serialized to JSON."""

"""
Snapshot File Module

Reads and writes the JSON document backing a PersistentCache.

Document shape:
    {
        "<key>": {"value": <any>, "expires": <epoch ms>},
        "<key>": [{"value": <any>}, {"value": <any>, "expires": <epoch ms>}]
    }

"expires" is omitted for entries that never expire.

Writes are atomic: the document is serialized in memory first, written to a
temporary file in the target directory and then moved over the snapshot
with os.replace(), so a failed save never leaves a truncated file behind.
"""

import json
import logging
import os
import tempfile
from typing import Any, Dict, List, Union

from .entry import CacheEntry
from .errors import CorruptSnapshot, SerializationFailure
from ..config.settings import settings

logger = logging.getLogger(__name__)

Slot = Union[CacheEntry, List[CacheEntry]]


def load_snapshot(path: str, encoding: str = None) -> Dict[str, Slot]:
    """
    Load a snapshot file into slots.

    Stale entries are loaded as-is; they are only swept on the next save.

    Args:
        path: Snapshot file path (must exist)
        encoding: Text encoding (default from settings)

    Returns:
        Mapping of key -> CacheEntry or list of CacheEntry

    Raises:
        CorruptSnapshot: If the file is not valid JSON or has the wrong shape
        OSError: If the file cannot be read
    """
    encoding = encoding or settings.ENCODING

    try:
        with open(path, "r", encoding=encoding) as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise CorruptSnapshot(f"{path}: not valid {encoding} text: {e}", path=path) from e

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise CorruptSnapshot(f"{path}: invalid JSON: {e}", path=path) from e

    try:
        return parse_snapshot(raw)
    except ValueError as e:
        raise CorruptSnapshot(f"{path}: {e}", path=path) from e


def parse_snapshot(raw: Any) -> Dict[str, Slot]:
    """
    Convert a decoded JSON document into slots.

    Raises:
        ValueError: If the document does not match the expected shape
    """
    if not isinstance(raw, dict):
        raise ValueError(f"top level must be an object, got {type(raw).__name__}")

    slots: Dict[str, Slot] = {}
    for key, item in raw.items():
        try:
            if isinstance(item, list):
                slots[key] = [CacheEntry.from_dict(element) for element in item]
            else:
                slots[key] = CacheEntry.from_dict(item)
        except ValueError as e:
            raise ValueError(f"key {key!r}: {e}") from e

    return slots


def dump_snapshot(slots: Dict[str, Slot], path: str = "") -> str:
    """
    Serialize slots to the snapshot document text.

    Raises:
        SerializationFailure: If a value is not JSON serializable
    """
    document = {}
    for key, slot in slots.items():
        if isinstance(slot, list):
            document[key] = [entry.to_dict() for entry in slot]
        else:
            document[key] = slot.to_dict()

    try:
        return json.dumps(document, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationFailure(
            f"{path}: cannot serialize cache contents: {e}", path=path
        ) from e


def write_snapshot(path: str, text: str, encoding: str = None) -> None:
    """
    Atomically replace the snapshot file with ``text``.

    Parent directories are created when missing.

    Raises:
        OSError: If the file cannot be written
    """
    encoding = encoding or settings.ENCODING
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(
        dir=directory,
        prefix=f".{os.path.basename(path)}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        # Leave the previous snapshot in place
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise

    logger.debug(f"Wrote snapshot {path} ({len(text)} bytes)")

"""
Key-value storage backends for the persisted state blobs.

Storage is best-effort: read failures look like a missing key and write
failures are reported through the return value, never raised.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    """Protocol describing the opaque get/set/clear storage capability."""

    def get(self, key: str) -> Optional[str]:
        """Return the blob stored under ``key`` or None."""

    def set(self, key: str, blob: str) -> bool:
        """Store ``blob`` under ``key``; return False if the write failed."""

    def clear(self, key: str) -> None:
        """Remove ``key`` if present."""


class JsonFileStorage:
    """
    Stores every key as ``<directory>/<key>.json``.

    Writes go to a temporary file that replaces the target, so a failed
    write never leaves a half-written blob behind.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as file_handle:
                return file_handle.read()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read %s: %s", path, exc)
            return None

    def set(self, key: str, blob: str) -> bool:
        path = self._path_for(key)
        tmp_path = path.parent / f"{path.name}.tmp"
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as file_handle:
                file_handle.write(blob)
            tmp_path.replace(path)
            return True
        except OSError as exc:
            logger.warning("Could not save %s: %s", path, exc)
            return False

    def clear(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove %s: %s", path, exc)


class InMemoryStorage:
    """
    Dict-backed storage for tests and throwaway sessions.

    Set ``fail_writes`` to simulate an unavailable or full storage.
    """

    def __init__(self, data: Optional[Dict[str, str]] = None, fail_writes: bool = False):
        self.data: Dict[str, str] = dict(data or {})
        self.fail_writes = fail_writes

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, blob: str) -> bool:
        if self.fail_writes:
            logger.warning("In-memory storage rejected write to %s", key)
            return False
        self.data[key] = blob
        return True

    def clear(self, key: str) -> None:
        self.data.pop(key, None)

"""
Size-constrained key/value storage media for the history store.

A medium holds text values under string keys and refuses writes that
would take it over its quota by raising QuotaExceededError. Other write
failures raise PersistenceError.

Classes:
    StorageMedium: Abstract medium contract
    InMemoryMedium: Process-local medium that counts characters like browser local storage
    JsonFileMedium: One file per key inside a directory, with an optional byte quota

Functions:
    get_default_medium: Get the process-wide medium (created on first use)
    reset_default_medium: Drop the process-wide medium
"""

import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from TD_Libs.constants import (
    DEFAULT_STORAGE_QUOTA_CHARS,
    FILENAME_REPLACEMENT_CHAR,
    SAFE_FILENAME_CHARS,
    STORAGE_FILE_EXTENSION,
)
from TD_Libs.exceptions import PersistenceError, QuotaExceededError

logger = logging.getLogger(__name__)


class StorageMedium(ABC):
    """Text key/value store with a capacity limit."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value or None."""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Store a value.

        Raises:
            QuotaExceededError: If the value does not fit
            PersistenceError: For any other write failure
        """

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a key. Missing keys are ignored."""


class InMemoryMedium(StorageMedium):
    """
    Medium kept in process memory.

    Usage is the total length of all keys and values, the way browsers
    account for local storage.

    Args:
        quota_chars: Capacity in characters (None = unlimited)
    """

    def __init__(self, quota_chars: Optional[int] = DEFAULT_STORAGE_QUOTA_CHARS) -> None:
        self.quota_chars = quota_chars
        self._items: Dict[str, str] = {}

    def usage(self, exclude_key: Optional[str] = None) -> int:
        return sum(
            len(key) + len(value)
            for key, value in self._items.items()
            if key != exclude_key
        )

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        required = self.usage(exclude_key=key) + len(key) + len(value)
        if self.quota_chars is not None and required > self.quota_chars:
            raise QuotaExceededError(key, required, self.quota_chars)
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileMedium(StorageMedium):
    """
    Medium storing each key as a UTF-8 file in a directory.

    Args:
        directory: Directory holding the files (created if missing)
        quota_bytes: Capacity across all files of this medium (None = unlimited)
    """

    def __init__(self, directory: Path, quota_bytes: Optional[int] = None) -> None:
        self.directory = Path(directory)
        self.quota_bytes = quota_bytes
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        safe_key = "".join(
            c if c.isalnum() or c in SAFE_FILENAME_CHARS else FILENAME_REPLACEMENT_CHAR
            for c in key
        ).strip(FILENAME_REPLACEMENT_CHAR)
        if not safe_key:
            raise ValueError(f"Key has no usable characters: {key!r}")
        return self.directory / f"{safe_key}{STORAGE_FILE_EXTENSION}"

    def usage(self, exclude: Optional[Path] = None) -> int:
        return sum(
            path.stat().st_size
            for path in self.directory.glob(f"*{STORAGE_FILE_EXTENSION}")
            if path != exclude
        )

    def get_item(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set_item(self, key: str, value: str) -> None:
        path = self.path_for(key)
        encoded = value.encode("utf-8")
        if self.quota_bytes is not None:
            required = self.usage(exclude=path) + len(encoded)
            if required > self.quota_bytes:
                raise QuotaExceededError(key, required, self.quota_bytes)

        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            temp_path.write_bytes(encoded)
            os.replace(temp_path, path)
        except OSError as exc:
            temp_path.unlink(missing_ok=True)
            raise PersistenceError(f"Could not write {path}: {exc}") from exc

    def remove_item(self, key: str) -> None:
        try:
            self.path_for(key).unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Could not remove '{key}': {exc}") from exc


_default_medium: Optional[StorageMedium] = None
_default_medium_lock = threading.Lock()


def get_default_medium() -> StorageMedium:
    """
    Get the process-wide storage medium.

    Created on first use as an InMemoryMedium with the browser-sized quota.

    Returns:
        The shared StorageMedium instance
    """
    global _default_medium
    with _default_medium_lock:
        if _default_medium is None:
            _default_medium = InMemoryMedium(DEFAULT_STORAGE_QUOTA_CHARS)
            logger.debug("Created default storage medium")
        return _default_medium


def reset_default_medium() -> None:
    """Drop the process-wide medium; the next get_default_medium() creates a new one."""
    global _default_medium
    with _default_medium_lock:
        _default_medium = None

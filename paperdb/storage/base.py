"""Storage backend interface definitions.

Defines the StorageBackend abstract class a Book delegates to. One backend
instance owns the entries of exactly one book; implementations translate
Python objects to whatever format the backend persists.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Optional, Set

# Sentinel for "no default supplied" on load.
MISSING: Any = object()


class StorageBackend(ABC):
    """Abstract storage backend.

    Implementations must be thread-safe if used concurrently.
    """

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        """Save `value` under `key`, replacing any previous value.

        Implementations should create directories as needed and ensure
        atomic writes.
        """

    @abstractmethod
    def load(self, key: str, default: Any = MISSING, shape: Optional[type] = None) -> Any:
        """Load and return the object stored under `key`.

        Should raise `KeyNotFoundError` (a `KeyError`) if the key does not
        exist and no `default` was given.
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete the stored object. Missing keys are ignored."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Return True if `key` exists."""

    @abstractmethod
    def list_keys(self) -> Set[str]:
        """Return the set of stored keys."""

    @abstractmethod
    def last_modified(self, key: str) -> int:
        """Return the last write time in ms since the epoch, or -1."""

    @abstractmethod
    def destroy(self) -> None:
        """Remove every stored object. The backend stays usable."""

"""Book: the public handle for one namespace of entries."""
from __future__ import annotations
import warnings
from typing import Any, Optional, Set

from paperdb.storage.base import MISSING
from paperdb.storage.file_backend import FileStorageBackend
from paperdb.storage.interfaces import StorageProtocol
from paperdb.storage.serializer import Serializer


class Book:
    """Key/value access to the entries stored in one book directory.

    Obtain instances from `Paper.book()` / `Paper.book_on()` rather than
    constructing them directly, so each directory has a single handle.

    Every value is written to its own file named after its key. A Book stays
    usable after `destroy()`; the next write recreates the directory.
    """

    def __init__(
        self,
        book_dir: str,
        serializer: Serializer,
        *,
        name: Optional[str] = None,
        key_locking: bool = True,
        fsync: bool = True,
    ) -> None:
        self.name = name
        self._storage: StorageProtocol = FileStorageBackend(book_dir, serializer, key_locking=key_locking, fsync=fsync)

    def __repr__(self) -> str:
        return f"Book(name={self.name!r}, path={self.path!r})"

    @property
    def path(self) -> str:
        """Folder holding the entry files of this book.

        The folder does not exist until the first write.
        """
        return self._storage.book_dir

    def get_path(self, key: Optional[str] = None) -> str:
        """Return the book folder, or the entry file path for `key`.

        The entry path is returned whether or not the entry exists.
        """
        if key is None:
            return self.path
        return self._storage.path_for(key)

    def write(self, key: str, value: Any) -> "Book":
        """Save `value` under `key`, replacing any previous value.

        Args:
            key: entry name, used as the file name; must not contain a path
                separator.
            value: any value the serializer supports; `None` is rejected.

        Returns this Book so writes can be chained.
        """
        self._storage.save(key, value)
        return self

    def read(self, key: str, default: Any = MISSING, shape: Optional[type] = None) -> Any:
        """Return the value stored under `key`.

        Without `default`, a missing key raises `KeyNotFoundError`; with it,
        `default` is returned instead. An unreadable file raises
        `DeserializationError` and is left on disk.
        """
        return self._storage.load(key, default, shape)

    def delete(self, key: str) -> None:
        self._storage.delete(key)

    def contains(self, key: str) -> bool:
        return self._storage.exists(key)

    def __contains__(self, key: str) -> bool:
        return self.contains(key)

    def exist(self, key: str) -> bool:
        warnings.warn("Book.exist() is deprecated, use Book.contains()", DeprecationWarning, stacklevel=2)
        return self.contains(key)

    def destroy(self) -> None:
        """Delete the book folder with all entries in it."""
        self._storage.destroy()

    def get_all_keys(self) -> Set[str]:
        return self._storage.list_keys()

    def last_modified(self, key: str) -> int:
        """Timestamp of the last write of `key` in ms, or -1 if absent.

        Only second granularity is guaranteed; some filesystems keep no finer
        modification times.
        """
        return self._storage.last_modified(key)

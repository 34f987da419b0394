"""File-backed storage for the entries of one book.

Each entry is stored under `<book_dir>/<key>.pt`. Writes are atomic: the
payload goes to a temporary file in the same directory which is then
renamed over the entry file, so readers see either the old or the new
content, never a partial one.
"""
from __future__ import annotations
import contextlib
import logging
import os
import shutil
import stat
import tempfile
from typing import Any, ContextManager, Optional, Set

from paperdb.errors import (
    DeserializationError,
    IOFailureError,
    KeyNotFoundError,
    NullValueError,
    SerializationError,
)
from .base import MISSING, StorageBackend
from .key_locker import KeyLocker
from .paths import FILE_EXTENSION, TMP_SUFFIX, resolve_entry_path, validate_key
from .serializer import Serializer

logger = logging.getLogger(__name__)

# mkstemp creates owner-only files; entries get the usual umask-derived mode.
_UMASK = os.umask(0)
os.umask(_UMASK)
ENTRY_FILE_MODE = 0o666 & ~_UMASK


class FileStorageBackend(StorageBackend):
    def __init__(
        self,
        book_dir: str,
        serializer: Serializer,
        *,
        key_locking: bool = True,
        fsync: bool = True,
    ) -> None:
        self.book_dir = book_dir
        self.serializer = serializer
        self.fsync = fsync
        self._locker: Optional[KeyLocker] = KeyLocker() if key_locking else None

    def _locked(self, key: str) -> ContextManager[None]:
        if self._locker is None:
            return contextlib.nullcontext()
        return self._locker.locked(key)

    def path_for(self, key: str) -> str:
        validate_key(key)
        return resolve_entry_path(self.book_dir, key)

    def _ensure_dir(self) -> None:
        try:
            os.makedirs(self.book_dir, exist_ok=True)
        except OSError as exc:
            raise IOFailureError(f"Couldn't create book dir {self.book_dir}") from exc

    def _write_atomic(self, path: str, data: bytes) -> None:
        try:
            fd, tmp = tempfile.mkstemp(prefix=".", suffix=TMP_SUFFIX, dir=self.book_dir)
        except OSError as exc:
            raise IOFailureError(f"Couldn't create temporary file in {self.book_dir}") from exc
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                if self.fsync:
                    os.fsync(f.fileno())
            os.chmod(tmp, ENTRY_FILE_MODE)
            os.replace(tmp, path)
        except OSError as exc:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass
            except OSError:
                logger.warning("Couldn't clean up partially written file %s", tmp)
            raise IOFailureError(f"Couldn't save {path}") from exc

    def save(self, key: str, value: Any) -> None:
        validate_key(key)
        if value is None:
            raise NullValueError("Writing None as a root value is not supported")
        try:
            data = self.serializer.dump(value)
        except Exception as exc:
            raise SerializationError(f"Couldn't serialize value for key {key!r}") from exc

        path = self.path_for(key)
        with self._locked(key):
            self._ensure_dir()
            self._write_atomic(path, data)
        logger.debug("Saved %s (%d bytes)", path, len(data))

    def load(self, key: str, default: Any = MISSING, shape: Optional[type] = None) -> Any:
        validate_key(key)
        path = self.path_for(key)
        with self._locked(key):
            try:
                with open(path, "rb") as f:
                    data = f.read()
            except FileNotFoundError:
                if default is MISSING:
                    raise KeyNotFoundError(key) from None
                return default
            except OSError as exc:
                raise IOFailureError(f"Couldn't read {path}") from exc

        try:
            return self.serializer.load(data, shape)
        except Exception as exc:
            # The file is left in place for inspection.
            logger.warning("Couldn't deserialize %s for key %r: %s", path, key, exc)
            raise DeserializationError(f"Couldn't read/deserialize file {path} for key {key!r}") from exc

    def delete(self, key: str) -> None:
        validate_key(key)
        path = self.path_for(key)
        with self._locked(key):
            try:
                os.unlink(path)
            except FileNotFoundError:
                return
            except OSError as exc:
                raise IOFailureError(f"Couldn't delete {path}") from exc
        logger.debug("Deleted %s", path)

    def exists(self, key: str) -> bool:
        validate_key(key)
        with self._locked(key):
            return os.path.isfile(self.path_for(key))

    def list_keys(self) -> Set[str]:
        keys: Set[str] = set()
        try:
            with os.scandir(self.book_dir) as it:
                for entry in it:
                    if entry.name.endswith(FILE_EXTENSION) and entry.is_file():
                        keys.add(entry.name[: -len(FILE_EXTENSION)])
        except FileNotFoundError:
            return set()
        except OSError as exc:
            raise IOFailureError(f"Couldn't list {self.book_dir}") from exc
        return keys

    def last_modified(self, key: str) -> int:
        validate_key(key)
        path = self.path_for(key)
        with self._locked(key):
            try:
                st = os.stat(path)
            except FileNotFoundError:
                return -1
            except OSError as exc:
                raise IOFailureError(f"Couldn't stat {path}") from exc
        if not stat.S_ISREG(st.st_mode):
            return -1
        return st.st_mtime_ns // 1_000_000

    def destroy(self) -> None:
        try:
            shutil.rmtree(self.book_dir)
        except FileNotFoundError:
            # Already gone, or emptied concurrently.
            pass
        except OSError as exc:
            raise IOFailureError(f"Couldn't delete book dir {self.book_dir}") from exc
        logger.info("Destroyed book dir %s", self.book_dir)

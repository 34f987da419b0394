"""Process-wide registry of books.

`Paper` owns the default storage root, the serializer shared by all books
and the mapping from book directory to `Book` handle. Asking for the same
directory twice, through any accessor, returns the identical handle.
"""
from __future__ import annotations
import logging
import os
from threading import Lock
from typing import Dict, Optional, Union

from paperdb.book import Book
from paperdb.config import PaperSettings
from paperdb.errors import NotInitializedError
from paperdb.logging_config import configure_logging
from paperdb.storage.paths import (
    DEFAULT_DB_NAME,
    check_book_name,
    check_location,
    resolve_book_dir,
    validate_book_name,
)
from paperdb.storage.serializer import PickleSerializer, Serializer, TypeHandler, create_serializer

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


class Paper:
    """Registry handing out one `Book` per book directory.

    Usage:
        paper = Paper()
        paper.init("/var/lib/myapp")
        paper.book().write("city", "Lund")
        paper.book_on("/mnt/sdcard", "encyclopedia").read("city", None)
    """

    def __init__(
        self,
        serializer: Optional[Serializer] = None,
        *,
        key_locking: bool = True,
        fsync: bool = True,
    ) -> None:
        self.serializer: Serializer = serializer or PickleSerializer()
        self._key_locking = key_locking
        self._fsync = fsync
        self._lock = Lock()
        self._books: Dict[str, Book] = {}
        self._default_path: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: PaperSettings) -> "Paper":
        configure_logging(settings.log_level)
        serializer = create_serializer(settings.serializer, password=settings.password, key=settings.key)
        paper = cls(serializer, key_locking=settings.key_locking, fsync=settings.fsync)
        if settings.root_dir:
            paper.init(settings.root_dir)
        return paper

    @property
    def default_path(self) -> Optional[str]:
        return self._default_path

    def init(self, root_dir: PathLike) -> None:
        """Set the folder where default-location books are placed.

        Can be called again at any time; handles obtained earlier keep
        pointing at their directories.
        """
        self._default_path = check_location(os.fspath(root_dir))
        logger.info("Default book root set to %s", self._default_path)

    def book(self, name: Optional[str] = None) -> Book:
        """Return the default book, or the book called `name`.

        The default book name is reserved; pass no name to get it.
        """
        if name is None:
            return self._get_book(None, DEFAULT_DB_NAME)
        validate_book_name(name)
        return self._get_book(None, name)

    def book_on(self, location: PathLike, name: str = DEFAULT_DB_NAME) -> Book:
        """Return a book placed under a custom `location`, e.g. removable storage."""
        return self._get_book(check_location(os.fspath(location)), name)

    def _get_book(self, location: Optional[str], name: str) -> Book:
        check_book_name(name)
        if location is None:
            if self._default_path is None:
                raise NotInitializedError("Paper.init is not called")
            location = self._default_path
        book_dir = resolve_book_dir(location, name)
        with self._lock:
            book = self._books.get(book_dir)
            if book is None:
                book = Book(
                    book_dir,
                    self.serializer,
                    name=name,
                    key_locking=self._key_locking,
                    fsync=self._fsync,
                )
                self._books[book_dir] = book
                logger.debug("Created book handle for %s", book_dir)
            return book

    def register(self, shape: type, handler: TypeHandler, priority: int = 0, tag: Optional[str] = None) -> None:
        """Add a custom handler for values of `shape`.

        Applies to every book of this registry, including handles obtained
        before the call. Higher `priority` wins when several handlers match.
        """
        self.serializer.register_handler(shape, handler, priority, tag)

    def set_log_level(self, level: Union[str, int]) -> None:
        configure_logging(level)


_default = Paper()


def default_paper() -> Paper:
    return _default


def init(root_dir: PathLike) -> None:
    _default.init(root_dir)


def book(name: Optional[str] = None) -> Book:
    return _default.book(name)


def book_on(location: PathLike, name: str = DEFAULT_DB_NAME) -> Book:
    return _default.book_on(location, name)


def register(shape: type, handler: TypeHandler, priority: int = 0, tag: Optional[str] = None) -> None:
    _default.register(shape, handler, priority, tag)


def set_log_level(level: Union[str, int]) -> None:
    _default.set_log_level(level)

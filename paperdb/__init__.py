"""paperdb: file-backed storage of Python objects, one file per key.

Quick start:

    import paperdb

    paperdb.init("/var/lib/myapp")
    paperdb.book().write("city", "Lund")
    paperdb.book().read("city")  # -> "Lund"
"""

from .book import Book
from .config import PaperSettings, load_settings
from .errors import (
    DeserializationError,
    InvalidKeyError,
    InvalidNameError,
    IOFailureError,
    KeyNotFoundError,
    NotInitializedError,
    NullValueError,
    PaperDbError,
    ReservedNameError,
    SerializationError,
)
from .paper import Paper, book, book_on, default_paper, init, register, set_log_level
from .storage.paths import DEFAULT_DB_NAME, FILE_EXTENSION

__all__ = [
    "Book",
    "Paper",
    "PaperSettings",
    "load_settings",
    "init",
    "book",
    "book_on",
    "register",
    "set_log_level",
    "default_paper",
    "DEFAULT_DB_NAME",
    "FILE_EXTENSION",
    "PaperDbError",
    "InvalidKeyError",
    "InvalidNameError",
    "ReservedNameError",
    "NullValueError",
    "KeyNotFoundError",
    "SerializationError",
    "DeserializationError",
    "IOFailureError",
    "NotInitializedError",
]

"""Path computation for books and entries.

All functions here are pure: they never touch the filesystem, so the same
inputs always produce the same path string.
"""
from __future__ import annotations
import os

from paperdb.errors import InvalidKeyError, InvalidNameError, ReservedNameError

DEFAULT_DB_NAME = "io.paperdb"
FILE_EXTENSION = ".pt"
TMP_SUFFIX = ".tmp"

_SEPARATORS = tuple(s for s in (os.sep, os.altsep) if s)


def _has_forbidden_char(text: str) -> bool:
    return "\0" in text or any(sep in text for sep in _SEPARATORS)


def strip_trailing_separators(location: str) -> str:
    stripped = location.rstrip("".join(_SEPARATORS))
    if not stripped and location:
        # location was the filesystem root
        return os.sep
    return stripped


def resolve_book_dir(location: str, name: str) -> str:
    """Return the directory holding all entry files of a book.

    The default book lives in a folder named after `DEFAULT_DB_NAME`; any
    other book lives in a folder named after the book itself.
    """
    dir_name = DEFAULT_DB_NAME if name == DEFAULT_DB_NAME else name
    return os.path.join(strip_trailing_separators(os.fspath(location)), dir_name)


def resolve_entry_path(book_dir: str, key: str) -> str:
    return os.path.join(book_dir, key + FILE_EXTENSION)


def validate_key(key: str) -> None:
    if not isinstance(key, str):
        raise InvalidKeyError(f"Key must be a string, got {type(key).__name__}")
    if not key:
        raise InvalidKeyError("Key must not be empty")
    if _has_forbidden_char(key):
        raise InvalidKeyError(f"Key {key!r} contains a path separator or NUL byte")


def check_book_name(name: str) -> None:
    if not isinstance(name, str):
        raise InvalidNameError(f"Book name must be a string, got {type(name).__name__}")
    if not name:
        raise InvalidNameError("Book name must not be empty")
    if _has_forbidden_char(name):
        raise InvalidNameError(f"Book name {name!r} contains a path separator or NUL byte")


def validate_book_name(name: str) -> None:
    """Reject the reserved default name for the named-book accessor."""
    if name == DEFAULT_DB_NAME:
        raise ReservedNameError(f"{DEFAULT_DB_NAME} name is reserved for the default book")
    check_book_name(name)


def check_location(location: str) -> str:
    """Return `location` without trailing separators; reject an empty one."""
    if not location:
        raise InvalidNameError("Book location must not be empty")
    return strip_trailing_separators(location)

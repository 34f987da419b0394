"""Exception types raised by paperdb.

Every error derives from `PaperDbError`. Where a builtin exception carries
the same meaning it is mixed in as well, so callers written against the
storage backends (`except KeyError`, `except ValueError`) keep working.
"""
from __future__ import annotations


class PaperDbError(Exception):
    """Base class for all paperdb errors."""


class InvalidKeyError(PaperDbError, ValueError):
    """Key is empty, not a string, or contains a path separator."""


class InvalidNameError(PaperDbError, ValueError):
    """Book name is empty, not a string, or contains a path separator."""


class ReservedNameError(PaperDbError, ValueError):
    """The reserved default book name was requested as a named book."""


class NullValueError(PaperDbError, ValueError):
    """Attempt to write `None` as a root value."""


class KeyNotFoundError(PaperDbError, KeyError):
    """No entry exists for the requested key."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"No entry for key {self.key!r}"


class SerializationError(PaperDbError):
    """The serializer could not encode a value."""


class DeserializationError(PaperDbError):
    """The serializer could not decode an existing entry file."""


class IOFailureError(PaperDbError):
    """A filesystem operation failed for a reason other than "not found"."""


class NotInitializedError(PaperDbError):
    """A default-root book was requested before `Paper.init` was called."""

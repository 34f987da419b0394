"""Storage abstraction package for paperdb."""

from .base import StorageBackend
from .file_backend import FileStorageBackend
from .serializer import (
    EncryptedSerializer,
    JSONSerializer,
    PickleSerializer,
    Serializer,
    TypeHandler,
    create_serializer,
)

__all__ = [
    "StorageBackend",
    "FileStorageBackend",
    "Serializer",
    "TypeHandler",
    "PickleSerializer",
    "JSONSerializer",
    "EncryptedSerializer",
    "create_serializer",
]

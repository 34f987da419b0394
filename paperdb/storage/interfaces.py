from typing import Protocol, Any, Optional, Set, runtime_checkable


@runtime_checkable
class StorageProtocol(Protocol):
    """Storage backend protocol mirroring `paperdb.storage.StorageBackend`.

    Implementations should follow the semantics documented on the abstract
    base class in `paperdb.storage.base` (KeyNotFoundError for missing keys,
    no-op deletes, thread-safety, etc.) and expose the folder they own as
    `book_dir`.
    """

    book_dir: str

    def path_for(self, key: str) -> str: ...

    def save(self, key: str, value: Any) -> None: ...

    def load(self, key: str, default: Any = ..., shape: Optional[type] = None) -> Any: ...

    def delete(self, key: str) -> None: ...

    def exists(self, key: str) -> bool: ...

    def list_keys(self) -> Set[str]: ...

    def last_modified(self, key: str) -> int: ...

    def destroy(self) -> None: ...

"""Storage protocol shared by all backends."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


class StorageError(RuntimeError):
    """The storage backend is unreachable or its contents are unreadable."""


@runtime_checkable
class KeyValueStore(Protocol):
    """String-valued key-value storage with browser local-storage semantics.

    ``get`` returns None for a missing key. ``delete`` on a missing key is a
    no-op. Backend faults raise StorageError.
    """

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...

"""
Key-value storage backends.

Every persistent collection in Nova (accounts, modules, credential, audit
trail) is a string value under a fixed key. The backend is chosen by
NOVA_STORAGE:

    file      JSON document under the workspace (default)
    memory    process-local dict, for tests and one-shot scripts
    redis     one Redis string per key, prefixed
    postgres  one row per key in a nova_storage table
"""

from __future__ import annotations

from nova.config import Config, get_config
from nova.storage.base import KeyValueStore, StorageError
from nova.storage.file import FileStore
from nova.storage.memory import MemoryStore


def get_store(config: Config | None = None) -> KeyValueStore:
    """Build the storage backend named by the configuration."""
    cfg = config or get_config()
    backend = cfg.storage_backend

    if backend == "memory":
        return MemoryStore()
    if backend == "file":
        return FileStore(cfg.storage_file)
    if backend == "redis":
        from nova.storage.redis_store import RedisStore

        return RedisStore.from_config(cfg.redis)
    if backend == "postgres":
        from nova.storage.postgres_store import PostgresStore

        return PostgresStore.from_config(cfg.db)
    raise ValueError(f"Unknown storage backend: {backend}")


__all__ = ["KeyValueStore", "StorageError", "FileStore", "MemoryStore", "get_store"]

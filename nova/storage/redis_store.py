"""Redis storage backend: one Redis string per key, under a prefix."""

from __future__ import annotations

import logging
from typing import Any

import redis

from nova.config import RedisConfig
from nova.storage.base import StorageError

logger = logging.getLogger(__name__)


class RedisStore:
    def __init__(self, client: Any, prefix: str = "nova:") -> None:
        self._client = client
        self.prefix = prefix

    @classmethod
    def from_config(cls, cfg: RedisConfig) -> RedisStore:
        client = redis.Redis.from_url(cfg.url, decode_responses=True)
        return cls(client, prefix=cfg.prefix)

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> str | None:
        try:
            value = self._client.get(self._key(key))
        except redis.RedisError as e:
            raise StorageError(f"Redis get failed for {key}: {e}") from e
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def set(self, key: str, value: str) -> None:
        try:
            self._client.set(self._key(key), value)
        except redis.RedisError as e:
            raise StorageError(f"Redis set failed for {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._client.delete(self._key(key))
        except redis.RedisError as e:
            raise StorageError(f"Redis delete failed for {key}: {e}") from e

    def keys(self) -> list[str]:
        try:
            raw = list(self._client.scan_iter(match=f"{self.prefix}*"))
        except redis.RedisError as e:
            raise StorageError(f"Redis scan failed: {e}") from e
        names = [k.decode("utf-8") if isinstance(k, bytes) else k for k in raw]
        return [n[len(self.prefix) :] for n in names]

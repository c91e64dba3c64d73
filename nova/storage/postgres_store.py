"""
PostgreSQL storage backend.

Uses psycopg2 directly, one short-lived connection per operation. Rows live
in a single table:

    CREATE TABLE nova_storage (
        key        TEXT PRIMARY KEY,
        value      TEXT NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL
    )
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import psycopg2

from nova.config import DatabaseConfig
from nova.storage.base import StorageError

logger = logging.getLogger(__name__)

_TABLE_NAME = re.compile(r"^[a-z_][a-z0-9_]*$")


class PostgresStore:
    def __init__(self, connect: Callable[[], Any], table: str = "nova_storage") -> None:
        if not _TABLE_NAME.match(table):
            raise ValueError(f"Invalid storage table name: {table!r}")
        self._connect = connect
        self.table = table

    @classmethod
    def from_config(cls, cfg: DatabaseConfig) -> PostgresStore:
        def connect():
            return psycopg2.connect(**cfg.dict, connect_timeout=5)

        store = cls(connect, table=cfg.table)
        store.ensure_table()
        return store

    def _run(self, sql: str, params: tuple = (), *, fetch: str | None = None) -> Any:
        try:
            conn = self._connect()
        except psycopg2.Error as e:
            raise StorageError(f"Cannot connect to PostgreSQL: {e}") from e
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                if fetch == "one":
                    result = cur.fetchone()
                elif fetch == "all":
                    result = cur.fetchall()
                else:
                    result = None
            conn.commit()
            return result
        except psycopg2.Error as e:
            conn.rollback()
            raise StorageError(f"PostgreSQL storage query failed: {e}") from e
        finally:
            conn.close()

    def ensure_table(self) -> None:
        """Create the storage table if it does not exist."""
        self._run(
            f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                key        TEXT PRIMARY KEY,
                value      TEXT NOT NULL,
                updated_at TIMESTAMPTZ NOT NULL
            )
            """
        )

    def get(self, key: str) -> str | None:
        row = self._run(f"SELECT value FROM {self.table} WHERE key = %s", (key,), fetch="one")
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        self._run(
            f"""
            INSERT INTO {self.table} (key, value, updated_at)
            VALUES (%s, %s, %s)
            ON CONFLICT (key)
            DO UPDATE SET value = EXCLUDED.value,
                          updated_at = EXCLUDED.updated_at
            """,
            (key, value, datetime.now(UTC)),
        )

    def delete(self, key: str) -> None:
        self._run(f"DELETE FROM {self.table} WHERE key = %s", (key,))

    def keys(self) -> list[str]:
        rows = self._run(f"SELECT key FROM {self.table} ORDER BY key", fetch="all")
        return [row[0] for row in rows]

"""
Centralized configuration for Nova Studio.

All configuration is loaded from environment variables with sensible defaults.

Usage:
    from nova.config import get_config
    cfg = get_config()
    print(cfg.storage_backend)   # "file"
    print(cfg.workspace)         # "/home/user/nova" or $NOVA_WORKSPACE
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

STORAGE_BACKENDS = ("file", "memory", "redis", "postgres")


@dataclass(frozen=True)
class DatabaseConfig:
    """PostgreSQL connection parameters for the postgres storage backend."""

    host: str = ""  # empty = Unix socket
    port: int = 5432
    name: str = "nova"
    user: str = "nova"
    password: str = ""
    table: str = "nova_storage"

    @property
    def dict(self) -> dict[str, str | int]:
        """Return a psycopg2.connect() kwargs dict."""
        d: dict[str, str | int] = {
            "dbname": self.name,
            "port": self.port,
        }
        if self.host:
            d["host"] = self.host
        if self.user:
            d["user"] = self.user
        if self.password:
            d["password"] = self.password
        return d


@dataclass(frozen=True)
class RedisConfig:
    """Redis connection parameters for the redis storage backend."""

    host: str = "127.0.0.1"
    port: int = 6379
    db: int = 0
    password: str = ""
    prefix: str = "nova:"

    @property
    def url(self) -> str:
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


@dataclass(frozen=True)
class Config:
    """Top-level Nova configuration."""

    workspace: Path = field(default_factory=lambda: Path.home() / "nova")
    storage_backend: str = "file"
    storage_file: Path = field(default_factory=lambda: Path.home() / "nova" / "storage.json")

    # Public address of the studio; delivery links are built on top of it
    base_url: str = "http://localhost:5173/"

    # Environment-supplied credential used when the vault holds nothing
    fallback_api_key: str = ""

    audit_max_events: int = 500

    db: DatabaseConfig = field(default_factory=DatabaseConfig)
    redis: RedisConfig = field(default_factory=RedisConfig)


# Singleton
_config: Config | None = None


def get_config() -> Config:
    """Get or create the singleton config from environment variables."""
    global _config
    if _config is not None:
        return _config
    _config = _load_from_env()
    return _config


def _load_from_env() -> Config:
    """Load configuration from environment variables."""
    workspace = Path(os.environ.get("NOVA_WORKSPACE", Path.home() / "nova"))
    storage_file = Path(os.environ.get("NOVA_STORAGE_FILE", workspace / "storage.json"))

    backend = os.environ.get("NOVA_STORAGE", "file").strip().lower()
    if backend not in STORAGE_BACKENDS:
        raise ValueError(
            f"NOVA_STORAGE must be one of {', '.join(STORAGE_BACKENDS)}, got {backend!r}"
        )

    db = DatabaseConfig(
        host=os.environ.get("NOVA_DB_HOST", ""),
        port=int(os.environ.get("NOVA_DB_PORT", "5432")),
        name=os.environ.get("NOVA_DB_NAME", "nova"),
        user=os.environ.get("NOVA_DB_USER", os.environ.get("USER", "nova")),
        password=os.environ.get("NOVA_DB_PASSWORD", ""),
    )

    redis_cfg = RedisConfig(
        host=os.environ.get("NOVA_REDIS_HOST", "127.0.0.1"),
        port=int(os.environ.get("NOVA_REDIS_PORT", "6379")),
        db=int(os.environ.get("NOVA_REDIS_DB", "0")),
        password=os.environ.get("NOVA_REDIS_PASSWORD", ""),
        prefix=os.environ.get("NOVA_REDIS_PREFIX", "nova:"),
    )

    return Config(
        workspace=workspace,
        storage_backend=backend,
        storage_file=storage_file,
        base_url=os.environ.get("NOVA_BASE_URL", "http://localhost:5173/"),
        fallback_api_key=os.environ.get("NOVA_API_KEY") or os.environ.get("API_KEY", ""),
        audit_max_events=int(os.environ.get("NOVA_AUDIT_MAX_EVENTS", "500")),
        db=db,
        redis=redis_cfg,
    )


def reset_config() -> None:
    """Reset the singleton config (for testing)."""
    global _config
    _config = None

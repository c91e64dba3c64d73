"""
Root-level shared test fixtures.

Every suite gets a fresh in-memory store, so nothing touches the real
workspace or any Redis/PostgreSQL server.
"""

from __future__ import annotations

import pytest

from nova.auth.accounts import AccountStore
from nova.storage.memory import MemoryStore
from nova.vault.credential import CredentialVault


@pytest.fixture
def store():
    """Empty in-memory key-value store."""
    return MemoryStore()


@pytest.fixture
def vault(store):
    return CredentialVault(store)


@pytest.fixture
def accounts(store):
    return AccountStore(store)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove env vars that leak between tests."""
    for key in [
        "NOVA_WORKSPACE",
        "NOVA_STORAGE",
        "NOVA_STORAGE_FILE",
        "NOVA_BASE_URL",
        "NOVA_API_KEY",
        "API_KEY",
        "NOVA_AUDIT_MAX_EVENTS",
        "NOVA_DB_HOST",
        "NOVA_DB_PORT",
        "NOVA_DB_NAME",
        "NOVA_DB_USER",
        "NOVA_DB_PASSWORD",
        "NOVA_REDIS_HOST",
        "NOVA_REDIS_PORT",
        "NOVA_USER",
        "NOVA_PASSWORD",
    ]:
        monkeypatch.delenv(key, raising=False)

"""
Lifecycle of the single shared API credential.

Storage layout:
    nova_secure_vault_key   at-rest (encrypted) credential, written by save()
    nova_global_api_key     legacy plaintext credential; only ever read and
                            deleted, never written

A save always removes the legacy key, so once an admin re-saves a legacy
credential the plaintext copy is gone for good.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from nova.storage.base import KeyValueStore
from nova.vault.crypto import decrypt, encrypt

logger = logging.getLogger(__name__)

STORAGE_KEY = "nova_secure_vault_key"
LEGACY_STORAGE_KEY = "nova_global_api_key"


class CredentialSource(StrEnum):
    SECURED = "secured"
    LEGACY = "legacy"


@dataclass(frozen=True)
class LoadedCredential:
    """A decrypted credential plus where it came from."""

    value: str
    source: CredentialSource

    @property
    def needs_resave(self) -> bool:
        """Legacy credentials should be saved again to encrypt them."""
        return self.source is CredentialSource.LEGACY

    def __repr__(self) -> str:
        return f"LoadedCredential(value=<{len(self.value)} chars>, source={self.source.value!r})"


class CredentialVault:
    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def save(self, plaintext: str) -> bool:
        """Encrypt and persist a credential. Returns False (no-op) for empty input."""
        if not plaintext:
            return False
        self.store_at_rest(encrypt(plaintext))
        logger.info("Shared credential saved in encrypted form")
        return True

    def store_at_rest(self, at_rest: str) -> bool:
        """Persist an already-encoded credential as the current value."""
        if not at_rest:
            return False
        self.store.set(STORAGE_KEY, at_rest)
        if self.store.get(LEGACY_STORAGE_KEY) is not None:
            self.store.delete(LEGACY_STORAGE_KEY)
            logger.info("Removed legacy plaintext credential")
        return True

    def load(self) -> LoadedCredential | None:
        """Return the stored credential, preferring the encrypted slot."""
        at_rest = self.store.get(STORAGE_KEY)
        if at_rest:
            plaintext = decrypt(at_rest)
            if plaintext:
                return LoadedCredential(plaintext, CredentialSource.SECURED)

        legacy = self.store.get(LEGACY_STORAGE_KEY)
        if legacy:
            logger.warning("Using legacy plaintext credential; save it again to encrypt it")
            return LoadedCredential(legacy, CredentialSource.LEGACY)
        return None

    def clear(self) -> None:
        """Remove both the encrypted and the legacy credential."""
        self.store.delete(STORAGE_KEY)
        self.store.delete(LEGACY_STORAGE_KEY)
        logger.info("Shared credential cleared")

    def read_at_rest(self) -> str | None:
        """Raw encrypted value, for delivery links. Never decrypted here."""
        return self.store.get(STORAGE_KEY) or None

    def has_secured_key(self) -> bool:
        return bool(self.store.get(STORAGE_KEY))

    def has_legacy_key(self) -> bool:
        return bool(self.store.get(LEGACY_STORAGE_KEY))

    def is_configured(self) -> bool:
        """True when either slot holds a value. Does not decrypt."""
        return self.has_secured_key() or self.has_legacy_key()

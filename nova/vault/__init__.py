"""
Nova Vault: custody of the shared generative-API credential.

Public API:
    CredentialVault(store)          save / load / clear / is_configured
    encrypt(plaintext), decrypt(s)  at-rest encoding
    link.generate(vault, base_url)  delivery link for the saved credential
    link.consume(vault, url)        provision from a delivery link
    get_active_credential(vault)    credential for the generative API client
"""

from __future__ import annotations

from nova.vault import link
from nova.vault.credential import (
    LEGACY_STORAGE_KEY,
    STORAGE_KEY,
    CredentialSource,
    CredentialVault,
    LoadedCredential,
)
from nova.vault.crypto import decrypt, encrypt
from nova.vault.link import LinkUnavailableError
from nova.vault.resolve import CredentialStatus, credential_status, get_active_credential

__all__ = [
    "STORAGE_KEY",
    "LEGACY_STORAGE_KEY",
    "CredentialSource",
    "CredentialStatus",
    "CredentialVault",
    "LinkUnavailableError",
    "LoadedCredential",
    "credential_status",
    "decrypt",
    "encrypt",
    "get_active_credential",
    "link",
]

"""
Credential resolution for callers of the generative API.

Precedence:
    1. encrypted vault slot, decrypted
    2. legacy plaintext slot, only while the encrypted slot is empty
    3. environment fallback (NOVA_API_KEY, then API_KEY)
    4. "" (not configured)

An encrypted slot that is present but does not decrypt skips step 2, so a
stale legacy value never shadows a corrupted current one. When the
environment has nothing either, credential_status() reports CORRUPT rather
than MISSING so the workspace can tell the admin to save the key again.
"""

from __future__ import annotations

from enum import StrEnum

from nova.vault.credential import LEGACY_STORAGE_KEY, CredentialVault
from nova.vault.crypto import decrypt


class CredentialStatus(StrEnum):
    SECURED = "secured"
    LEGACY = "legacy"
    ENVIRONMENT = "environment"
    CORRUPT = "corrupt"
    MISSING = "missing"


def _resolve(vault: CredentialVault, env_fallback: str) -> tuple[str, CredentialStatus]:
    at_rest = vault.read_at_rest()
    if at_rest:
        plaintext = decrypt(at_rest)
        if plaintext:
            return plaintext, CredentialStatus.SECURED
    else:
        legacy = vault.store.get(LEGACY_STORAGE_KEY)
        if legacy:
            return legacy, CredentialStatus.LEGACY

    if env_fallback:
        return env_fallback, CredentialStatus.ENVIRONMENT
    if at_rest:
        return "", CredentialStatus.CORRUPT
    return "", CredentialStatus.MISSING


def get_active_credential(vault: CredentialVault, env_fallback: str = "") -> str:
    """The credential to send upstream, or "" when none is usable."""
    return _resolve(vault, env_fallback)[0]


def credential_status(vault: CredentialVault, env_fallback: str = "") -> CredentialStatus:
    """Which step of the precedence list produced the active credential."""
    return _resolve(vault, env_fallback)[1]

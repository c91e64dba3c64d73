"""
At-rest encoding for the shared API credential.

Format: base64( version_byte || AES-SIV(plaintext) ). AES-SIV is deterministic,
so the same credential always maps to the same at-rest string, and its
synthetic IV doubles as an authentication tag, so edited or foreign values
fail to decrypt instead of producing garbage.

The key is derived from a salt embedded in this module. Anyone with the
source can therefore decode stored values: this keeps the credential out of
plain sight in storage files and delivery links, nothing more.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging

logger = logging.getLogger(__name__)

_SALT = "NOVA_AI_ENTERPRISE_2025_SECURE_SALT"

FORMAT_VERSION = 1

_TAG_LEN = 16

# AES-256-SIV takes a 64-byte key (two AES-256 keys)
_KEY = hashlib.sha512(_SALT.encode("utf-8")).digest()


def encrypt(plaintext: str) -> str:
    """Encode a plaintext credential to its at-rest form. Empty in, empty out."""
    if not plaintext:
        return ""
    from cryptography.hazmat.primitives.ciphers.aead import AESSIV

    ciphertext = AESSIV(_KEY).encrypt(plaintext.encode("utf-8"), None)
    return base64.b64encode(bytes([FORMAT_VERSION]) + ciphertext).decode("ascii")


def decrypt(at_rest: str) -> str:
    """Decode an at-rest value. Returns "" for empty, malformed or tampered input."""
    if not at_rest:
        return ""
    from cryptography.exceptions import InvalidTag
    from cryptography.hazmat.primitives.ciphers.aead import AESSIV

    try:
        raw = base64.b64decode(at_rest, validate=True)
    except (binascii.Error, ValueError, TypeError):
        logger.warning("Stored credential is not valid base64; ignoring it")
        return ""

    if len(raw) <= 1 + _TAG_LEN:
        logger.warning("Stored credential is too short; ignoring it")
        return ""
    if raw[0] != FORMAT_VERSION:
        logger.warning("Stored credential has unknown format version %d; ignoring it", raw[0])
        return ""

    try:
        plaintext = AESSIV(_KEY).decrypt(raw[1:], None)
        return plaintext.decode("utf-8")
    except (InvalidTag, UnicodeDecodeError):
        logger.warning("Stored credential failed to decrypt (corrupted or foreign key material)")
        return ""

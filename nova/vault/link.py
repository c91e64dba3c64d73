"""
Delivery links: a studio URL carrying the encrypted credential.

    <base-url>?sk=<percent-encoded at-rest credential>

Opening such a link stores the at-rest value as the current credential, so
the recipient never sees or types the plaintext key. Only the encrypted slot
can be shared; a legacy plaintext credential must be saved again first.
"""

from __future__ import annotations

import logging
from urllib.parse import quote, unquote, urlsplit, urlunsplit

from nova.vault.credential import CredentialVault
from nova.vault.crypto import decrypt

logger = logging.getLogger(__name__)

LINK_PARAM = "sk"


class LinkUnavailableError(RuntimeError):
    """No encrypted credential is saved, so no delivery link can be built."""


def _base(url: str) -> str:
    """Origin plus path, without query or fragment."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def _split_query(query: str) -> list[tuple[str, str]]:
    # '+' is kept literally: base64 uses it and links are built with %2B anyway
    pairs = []
    for part in query.split("&"):
        if not part:
            continue
        name, _, value = part.partition("=")
        pairs.append((unquote(name), value))
    return pairs


def generate(vault: CredentialVault, base_url: str) -> str:
    """Build a delivery link for the saved credential.

    Raises LinkUnavailableError when the encrypted slot is empty, including
    when only a legacy plaintext credential exists, and when the saved value
    no longer decrypts.
    """
    at_rest = vault.read_at_rest()
    if not at_rest:
        if vault.has_legacy_key():
            raise LinkUnavailableError(
                "The saved API key is still in legacy plaintext form. "
                "Save it again to encrypt it before generating a delivery link."
            )
        raise LinkUnavailableError("Save an API key before generating a delivery link.")
    if not decrypt(at_rest):
        raise LinkUnavailableError(
            "The saved API key cannot be read. Save it again before generating a delivery link."
        )
    return f"{_base(base_url)}?{LINK_PARAM}={quote(at_rest, safe='')}"


def extract(url: str) -> str | None:
    """Return the decoded at-rest value carried by a URL, if any."""
    for name, value in _split_query(urlsplit(url).query):
        if name == LINK_PARAM:
            return unquote(value) or None
    return None


def consume(vault: CredentialVault, url: str) -> str | None:
    """Store the credential carried by a delivery link.

    Returns the stored at-rest value, or None when the URL carries no
    credential or carries one that does not decrypt. Nothing is written in
    either of those cases, so a broken link never replaces a working key.
    """
    at_rest = extract(url)
    if at_rest is None:
        return None
    if not decrypt(at_rest):
        logger.warning("Delivery link carries an unreadable credential; ignoring it")
        return None
    vault.store_at_rest(at_rest)
    logger.info("Shared credential provisioned from delivery link")
    return at_rest


def strip(url: str) -> str:
    """Remove the credential parameter from a URL, keeping everything else."""
    parts = urlsplit(url)
    kept = [
        part
        for part in parts.query.split("&")
        if part and unquote(part.partition("=")[0]) != LINK_PARAM
    ]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "&".join(kept), parts.fragment))

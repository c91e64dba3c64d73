"""Username/password login."""

from __future__ import annotations

import logging

from nova.auth.accounts import AccountStore, SessionProfile

logger = logging.getLogger(__name__)

# Same message for unknown users and wrong passwords
LOGIN_FAILED_MESSAGE = "Incorrect username or password"


def login(accounts: AccountStore, username: str, password: str) -> SessionProfile | None:
    """Check credentials and return the session profile, or None.

    There is no lockout or attempt counting: every check runs against local
    storage the user already controls.
    """
    if not username or not password:
        return None
    account = accounts.find_by_credentials(username, password)
    if account is None:
        logger.info("Login failed for %r", username)
        return None
    logger.info("Login succeeded for %s (%s)", account.username, account.role.value)
    return account.profile()

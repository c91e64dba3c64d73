"""
Account storage.

Accounts are kept as one JSON array under the ``nova_users`` key, in creation
order. Field names follow the stored layout (``createdAt``), so collections
written by earlier studio builds load unchanged.

The ``admin`` account can never be deleted; that is the only guard against
locking every administrator out.
"""

from __future__ import annotations

import json
import logging
import secrets
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from nova.storage.base import KeyValueStore

logger = logging.getLogger(__name__)

ACCOUNTS_KEY = "nova_users"

PROTECTED_USERNAME = "admin"


class Role(StrEnum):
    ADMIN = "admin"
    USER = "user"


def _now() -> datetime:
    return datetime.now(UTC)


class SessionProfile(BaseModel):
    """What the UI keeps about a logged-in user. Never carries the password."""

    model_config = ConfigDict(frozen=True)

    username: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


class Account(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(min_length=1)
    password: str = Field(min_length=1, repr=False)
    role: Role = Role.USER
    created_at: datetime = Field(default_factory=_now, alias="createdAt")

    def profile(self) -> SessionProfile:
        return SessionProfile(username=self.username, role=self.role)


# First-run accounts. Change the passwords here before deploying; once the
# collection exists in storage these values are never consulted again.
DEFAULT_ACCOUNTS: tuple[tuple[str, str, Role], ...] = (
    ("admin", "nova_admin_2025", Role.ADMIN),
    ("demo", "user123", Role.USER),
)


def default_accounts() -> list[Account]:
    return [Account(username=u, password=p, role=r) for u, p, r in DEFAULT_ACCOUNTS]


class AccountStore:
    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def _parse(self) -> list[Account] | None:
        raw = self.store.get(ACCOUNTS_KEY)
        if not raw:
            return None
        records = json.loads(raw)
        if not isinstance(records, list):
            raise ValueError("account collection is not a list")
        return [Account.model_validate(r) for r in records]

    def _load(self) -> list[Account] | None:
        try:
            return self._parse()
        except (ValueError, ValidationError) as e:
            logger.warning(
                "Account collection under %r is unreadable, using defaults: %s", ACCOUNTS_KEY, e
            )
            return None

    def _save(self, accounts: list[Account]) -> None:
        payload = [a.model_dump(mode="json", by_alias=True) for a in accounts]
        self.store.set(ACCOUNTS_KEY, json.dumps(payload, ensure_ascii=False))

    def is_readable(self) -> bool:
        """False when a stored collection exists but cannot be parsed."""
        try:
            self._parse()
        except (ValueError, ValidationError):
            return False
        return True

    def ensure_seeded(self) -> bool:
        """Write the default accounts if the collection is missing or empty.

        An unreadable collection is left in place for an admin to replace;
        until then the default accounts answer logins. Returns True when
        seeding happened.
        """
        if not self.is_readable():
            logger.warning("Not seeding over the unreadable account collection")
            return False
        if self._load():
            return False
        self._save(default_accounts())
        logger.info("Seeded %d default accounts", len(DEFAULT_ACCOUNTS))
        return True

    def list(self) -> list[Account]:
        """All accounts in storage order. Defaults when nothing readable is stored."""
        accounts = self._load()
        return accounts if accounts else default_accounts()

    def get(self, username: str) -> Account | None:
        for account in self.list():
            if account.username == username:
                return account
        return None

    def create(self, username: str, password: str, role: Role | str = Role.USER) -> bool:
        """Add an account. Returns False, changing nothing, if the name is taken."""
        if not username or not password:
            raise ValueError("Username and password are required")
        account = Account(username=username, password=password, role=Role(role))

        accounts = self.list()
        if any(a.username == username for a in accounts):
            logger.info("Account %s already exists; not created", username)
            return False
        accounts.append(account)
        self._save(accounts)
        logger.info("Created %s account %s", account.role.value, username)
        return True

    def delete(self, username: str) -> bool:
        """Remove an account. The admin account and unknown names are left alone."""
        if username == PROTECTED_USERNAME:
            logger.info("Refusing to delete the protected %s account", PROTECTED_USERNAME)
            return False
        accounts = self.list()
        remaining = [a for a in accounts if a.username != username]
        if len(remaining) == len(accounts):
            return False
        self._save(remaining)
        logger.info("Deleted account %s", username)
        return True

    def find_by_credentials(self, username: str, password: str) -> Account | None:
        match = None
        for account in self.list():
            # Compare every password so timing does not reveal which names exist
            password_ok = secrets.compare_digest(
                account.password.encode("utf-8"), password.encode("utf-8")
            )
            if account.username == username and password_ok:
                match = account
        return match

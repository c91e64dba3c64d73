"""
Studio application state: startup ordering plus role-gated operations.

Startup runs in a fixed order before anyone can log in:
    1. a delivery link in the opening URL provisions the shared credential
    2. the account collection is seeded on first run

Every admin operation checks the session through nova.auth.roles and
records an audit event; a denied call raises PermissionDenied.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from nova.audit.logger import log_event, query_log
from nova.auth.accounts import Account, AccountStore, Role, SessionProfile
from nova.auth.gate import login
from nova.auth.roles import Permission, PermissionDenied, SessionState, Surface, require
from nova.config import Config, get_config
from nova.modules import ModuleConfig, ModuleRegistry
from nova.storage import get_store
from nova.storage.base import KeyValueStore
from nova.vault import link
from nova.vault.credential import CredentialVault, LoadedCredential
from nova.vault.resolve import CredentialStatus, credential_status, get_active_credential

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StartupResult:
    provisioned: bool  # a delivery link stored a credential
    seeded: bool  # default accounts were written
    clean_url: str | None  # opening URL with the credential parameter removed
    accounts_readable: bool = True  # False while default accounts stand in for a bad collection


class NovaApp:
    def __init__(self, store: KeyValueStore, config: Config | None = None) -> None:
        self.config = config or get_config()
        self.store = store
        self.vault = CredentialVault(store)
        self.accounts = AccountStore(store)
        self.modules = ModuleRegistry(store)
        self.session = SessionState()
        self.active_module_id = self.modules.list()[0].id

    @classmethod
    def from_config(cls, config: Config | None = None) -> NovaApp:
        cfg = config or get_config()
        return cls(get_store(cfg), cfg)

    def _audit(self, event_type: str, action: str, **kwargs) -> None:
        # Audit events live next to the data they describe
        log_event(event_type, action, store=self.store, **kwargs)

    # ── Startup ────────────────────────────────────────────────────────

    def start(self, url: str | None = None) -> StartupResult:
        provisioned = False
        clean_url = None
        if url:
            clean_url = link.strip(url)
            if link.consume(self.vault, url) is not None:
                provisioned = True
                self._audit("vault.consume", "Credential provisioned from delivery link")
        seeded = self.accounts.ensure_seeded()
        readable = self.accounts.is_readable()
        return StartupResult(
            provisioned=provisioned,
            seeded=seeded,
            clean_url=clean_url,
            accounts_readable=readable,
        )

    # ── Session ────────────────────────────────────────────────────────

    @property
    def profile(self) -> SessionProfile | None:
        return self.session.profile

    def login(self, username: str, password: str) -> SessionProfile | None:
        profile = login(self.accounts, username, password)
        if profile is None:
            actor = username or "anonymous"
            self._audit("auth.denied", "Login failed", actor=actor, status="denied")
            return None
        self.session.start(profile)
        self._audit("auth.login", "Logged in", actor=profile.username)
        return profile

    def logout(self) -> None:
        self.session.end()

    def open_admin(self) -> bool:
        return self.session.enter_admin()

    def select_module(self, module_id: str) -> ModuleConfig:
        """Switch the workspace to a module; leaves the admin surface."""
        self._require(Permission.USE_WORKSPACE)
        module = self.modules.get(module_id)
        self.active_module_id = module.id
        self.session.leave_admin()
        return module

    @property
    def surface(self) -> Surface:
        return self.session.surface

    def _require(self, permission: Permission) -> SessionProfile:
        try:
            return require(self.session.profile, permission)
        except PermissionDenied:
            actor = self.profile.username if self.profile else "anonymous"
            self._audit(
                "access.denied",
                f"Denied {permission.value}",
                actor=actor,
                target=permission.value,
                status="denied",
            )
            raise

    # ── Workspace ──────────────────────────────────────────────────────

    def is_managed_mode(self) -> bool:
        """True when an admin has provisioned a shared credential."""
        self._require(Permission.VIEW_MANAGED_STATUS)
        return self.vault.is_configured()

    def active_credential(self) -> str:
        """Credential for the generative API client; "" when not configured."""
        self._require(Permission.USE_WORKSPACE)
        return get_active_credential(self.vault, self.config.fallback_api_key)

    def credential_status(self) -> CredentialStatus:
        self._require(Permission.VIEW_MANAGED_STATUS)
        return credential_status(self.vault, self.config.fallback_api_key)

    # ── Admin: credential ──────────────────────────────────────────────

    def load_credential(self) -> LoadedCredential | None:
        self._require(Permission.MANAGE_CREDENTIAL)
        return self.vault.load()

    def save_credential(self, plaintext: str) -> bool:
        profile = self._require(Permission.MANAGE_CREDENTIAL)
        saved = self.vault.save(plaintext)
        if saved:
            self._audit("vault.save", "Saved shared credential", actor=profile.username)
        return saved

    def clear_credential(self) -> None:
        profile = self._require(Permission.MANAGE_CREDENTIAL)
        self.vault.clear()
        self._audit("vault.clear", "Cleared shared credential", actor=profile.username)

    def generate_link(self, base_url: str | None = None) -> str:
        """Delivery link for the saved credential. Raises LinkUnavailableError."""
        profile = self._require(Permission.MANAGE_CREDENTIAL)
        url = link.generate(self.vault, base_url or self.config.base_url)
        self._audit("vault.link", "Generated delivery link", actor=profile.username)
        return url

    # ── Admin: accounts ────────────────────────────────────────────────

    def list_accounts(self) -> list[Account]:
        self._require(Permission.MANAGE_ACCOUNTS)
        return self.accounts.list()

    def create_account(self, username: str, password: str, role: Role | str = Role.USER) -> bool:
        profile = self._require(Permission.MANAGE_ACCOUNTS)
        created = self.accounts.create(username, password, role)
        self._audit(
            "account.create",
            f"Create account {username}",
            actor=profile.username,
            target=f"account:{username}",
            details={"role": Role(role).value},
            status="ok" if created else "exists",
        )
        return created

    def delete_account(self, username: str) -> bool:
        profile = self._require(Permission.MANAGE_ACCOUNTS)
        deleted = self.accounts.delete(username)
        if deleted:
            self._audit(
                "account.delete",
                f"Delete account {username}",
                actor=profile.username,
                target=f"account:{username}",
            )
        return deleted

    # ── Admin: modules ─────────────────────────────────────────────────

    def update_module(self, module_id: str, **changes) -> ModuleConfig:
        profile = self._require(Permission.EDIT_MODULES)
        module = self.modules.update(module_id, **changes)
        self._audit(
            "module.update",
            f"Updated module {module_id}",
            actor=profile.username,
            target=f"module:{module_id}",
            details={"fields": sorted(changes)},
        )
        return module

    # ── Admin: audit ───────────────────────────────────────────────────

    def audit_events(self, limit: int = 50, event_type: str | None = None) -> list[dict]:
        self._require(Permission.VIEW_AUDIT)
        return query_log(limit=limit, event_type=event_type, store=self.store)

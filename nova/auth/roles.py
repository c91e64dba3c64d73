"""
Role gating between the workspace and the admin surface.

Admins reach everything. Users stay on the workspace and may only ask
whether a shared credential is provisioned; they never see stored
credentials or other accounts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from nova.auth.accounts import Role, SessionProfile

logger = logging.getLogger(__name__)


class Surface(StrEnum):
    WORKSPACE = "workspace"
    ADMIN = "admin"


class Permission(StrEnum):
    USE_WORKSPACE = "workspace.use"
    VIEW_MANAGED_STATUS = "vault.status"
    MANAGE_CREDENTIAL = "vault.manage"
    MANAGE_ACCOUNTS = "accounts.manage"
    EDIT_MODULES = "modules.edit"
    VIEW_AUDIT = "audit.view"


ROLE_SURFACES: dict[Role, frozenset[Surface]] = {
    Role.ADMIN: frozenset(Surface),
    Role.USER: frozenset({Surface.WORKSPACE}),
}

ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.ADMIN: frozenset(Permission),
    Role.USER: frozenset({Permission.USE_WORKSPACE, Permission.VIEW_MANAGED_STATUS}),
}


class PermissionDenied(PermissionError):
    def __init__(self, role: Role | None, permission: Permission) -> None:
        who = role.value if role else "anonymous"
        super().__init__(f"{who} may not perform {permission.value}")
        self.role = role
        self.permission = permission


def can_access(role: Role | str, surface: Surface | str) -> bool:
    """True if the role may open the surface. Unknown roles get nothing."""
    try:
        return Surface(surface) in ROLE_SURFACES.get(Role(role), frozenset())
    except ValueError:
        return False


def has_permission(role: Role | str, permission: Permission) -> bool:
    try:
        return permission in ROLE_PERMISSIONS.get(Role(role), frozenset())
    except ValueError:
        return False


def require(profile: SessionProfile | None, permission: Permission) -> SessionProfile:
    """Return the profile if it holds the permission, else raise PermissionDenied."""
    if profile is None or not has_permission(profile.role, permission):
        role = profile.role if profile else None
        actor = profile.username if profile else "anonymous"
        logger.warning("Denied %s to %s", permission.value, actor)
        raise PermissionDenied(role, permission)
    return profile


@dataclass
class SessionState:
    """Who is logged in and which surface they are looking at.

    Surface changes are pure state transitions; nothing here touches storage.
    """

    profile: SessionProfile | None = None
    surface: Surface = Surface.WORKSPACE

    @property
    def logged_in(self) -> bool:
        return self.profile is not None

    def start(self, profile: SessionProfile) -> None:
        self.profile = profile
        # Admins land on the admin surface
        admin = can_access(profile.role, Surface.ADMIN)
        self.surface = Surface.ADMIN if admin else Surface.WORKSPACE

    def enter_admin(self) -> bool:
        if self.profile is None or not can_access(self.profile.role, Surface.ADMIN):
            return False
        self.surface = Surface.ADMIN
        return True

    def leave_admin(self) -> None:
        self.surface = Surface.WORKSPACE

    def end(self) -> None:
        self.profile = None
        self.surface = Surface.WORKSPACE

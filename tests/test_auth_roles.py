"""Tests for nova.auth.roles: surface and permission gating."""

import pytest

from nova.auth.accounts import Role, SessionProfile
from nova.auth.roles import (
    Permission,
    PermissionDenied,
    SessionState,
    Surface,
    can_access,
    has_permission,
    require,
)

ADMIN = SessionProfile(username="admin", role=Role.ADMIN)
USER = SessionProfile(username="demo", role=Role.USER)


class TestCanAccess:
    def test_admin_reaches_both(self):
        assert can_access(Role.ADMIN, Surface.ADMIN)
        assert can_access(Role.ADMIN, Surface.WORKSPACE)

    def test_user_confined_to_workspace(self):
        assert can_access(Role.USER, Surface.WORKSPACE)
        assert not can_access(Role.USER, Surface.ADMIN)

    def test_string_arguments(self):
        assert can_access("admin", "admin")
        assert not can_access("user", "admin")

    def test_unknown_role_or_surface(self):
        assert not can_access("root", "admin")
        assert not can_access("admin", "billing")


class TestPermissions:
    @pytest.mark.parametrize("permission", list(Permission))
    def test_admin_has_everything(self, permission):
        assert has_permission(Role.ADMIN, permission)

    @pytest.mark.parametrize(
        "permission",
        [
            Permission.MANAGE_CREDENTIAL,
            Permission.MANAGE_ACCOUNTS,
            Permission.EDIT_MODULES,
            Permission.VIEW_AUDIT,
        ],
    )
    def test_user_lacks_admin_permissions(self, permission):
        assert not has_permission(Role.USER, permission)

    def test_user_may_check_managed_status(self):
        assert has_permission(Role.USER, Permission.VIEW_MANAGED_STATUS)
        assert has_permission(Role.USER, Permission.USE_WORKSPACE)

    def test_require_returns_profile(self):
        assert require(ADMIN, Permission.MANAGE_CREDENTIAL) is ADMIN

    def test_require_denies_user(self):
        with pytest.raises(PermissionDenied) as exc:
            require(USER, Permission.MANAGE_CREDENTIAL)
        assert exc.value.role is Role.USER
        assert exc.value.permission is Permission.MANAGE_CREDENTIAL

    def test_require_denies_anonymous(self):
        with pytest.raises(PermissionDenied, match="anonymous"):
            require(None, Permission.USE_WORKSPACE)


class TestSessionState:
    def test_admin_starts_on_admin_surface(self):
        state = SessionState()
        state.start(ADMIN)
        assert state.surface is Surface.ADMIN

    def test_user_starts_on_workspace(self):
        state = SessionState()
        state.start(USER)
        assert state.surface is Surface.WORKSPACE

    def test_user_cannot_enter_admin(self):
        state = SessionState()
        state.start(USER)
        assert state.enter_admin() is False
        assert state.surface is Surface.WORKSPACE

    def test_admin_switches_back_and_forth(self):
        state = SessionState()
        state.start(ADMIN)
        state.leave_admin()
        assert state.surface is Surface.WORKSPACE
        assert state.enter_admin() is True
        assert state.surface is Surface.ADMIN

    def test_anonymous_cannot_enter_admin(self):
        assert SessionState().enter_admin() is False

    def test_end_clears(self):
        state = SessionState()
        state.start(ADMIN)
        state.end()
        assert state.logged_in is False
        assert state.surface is Surface.WORKSPACE

"""Accounts, login and role gating for the studio."""

from __future__ import annotations

from nova.auth.accounts import ACCOUNTS_KEY, Account, AccountStore, Role, SessionProfile
from nova.auth.gate import LOGIN_FAILED_MESSAGE, login
from nova.auth.roles import Permission, PermissionDenied, SessionState, Surface, can_access

__all__ = [
    "ACCOUNTS_KEY",
    "LOGIN_FAILED_MESSAGE",
    "Account",
    "AccountStore",
    "Permission",
    "PermissionDenied",
    "Role",
    "SessionProfile",
    "SessionState",
    "Surface",
    "can_access",
    "login",
]

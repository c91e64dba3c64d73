"""Tests for nova.auth.accounts: account storage."""

import json
from datetime import datetime

import pytest

from nova.auth.accounts import ACCOUNTS_KEY, DEFAULT_ACCOUNTS, Account, AccountStore, Role
from nova.storage.memory import MemoryStore


def _names(store: AccountStore) -> list[str]:
    return [a.username for a in store.list()]


class TestSeeding:
    def test_seeds_empty_storage(self, accounts, store):
        assert accounts.ensure_seeded() is True
        assert _names(accounts) == ["admin", "demo"]
        assert store.get(ACCOUNTS_KEY) is not None

    def test_seed_contains_admin_and_user(self, accounts):
        accounts.ensure_seeded()
        roles = {a.username: a.role for a in accounts.list()}
        assert roles == {"admin": Role.ADMIN, "demo": Role.USER}

    def test_idempotent(self, accounts):
        accounts.ensure_seeded()
        accounts.create("alice", "pw")
        assert accounts.ensure_seeded() is False
        assert _names(accounts) == ["admin", "demo", "alice"]

    def test_never_overwrites_existing(self, store):
        store.set(
            ACCOUNTS_KEY,
            json.dumps([{"username": "boss", "password": "x", "role": "admin", "createdAt": 0}]),
        )
        accounts = AccountStore(store)
        assert accounts.ensure_seeded() is False
        assert _names(accounts) == ["boss"]

    def test_empty_list_is_reseeded(self, store):
        store.set(ACCOUNTS_KEY, "[]")
        accounts = AccountStore(store)
        assert accounts.ensure_seeded() is True
        assert "admin" in _names(accounts)

    def test_list_before_seeding_shows_defaults(self, accounts, store):
        assert _names(accounts) == [u for u, _, _ in DEFAULT_ACCOUNTS]
        assert store.keys() == []


class TestCreate:
    def test_create_appends(self, accounts):
        accounts.ensure_seeded()
        assert accounts.create("alice", "pw", Role.USER) is True
        alice = accounts.list()[-1]
        assert alice.username == "alice"
        assert alice.role is Role.USER
        assert isinstance(alice.created_at, datetime)

    def test_duplicate_fails_without_mutation(self, accounts, store):
        accounts.ensure_seeded()
        assert accounts.create("x", "one") is True
        before = store.get(ACCOUNTS_KEY)
        assert accounts.create("x", "two", Role.ADMIN) is False
        assert store.get(ACCOUNTS_KEY) == before
        matches = [a for a in accounts.list() if a.username == "x"]
        assert len(matches) == 1
        assert matches[0].password == "one"

    def test_usernames_case_sensitive(self, accounts):
        accounts.ensure_seeded()
        assert accounts.create("Admin", "pw") is True
        assert _names(accounts).count("Admin") == 1

    def test_role_from_string(self, accounts):
        accounts.create("ops", "pw", "admin")
        assert accounts.get("ops").role is Role.ADMIN

    def test_invalid_role(self, accounts):
        with pytest.raises(ValueError):
            accounts.create("ops", "pw", "root")

    @pytest.mark.parametrize("username,password", [("", "pw"), ("bob", "")])
    def test_missing_fields(self, accounts, store, username, password):
        with pytest.raises(ValueError, match="required"):
            accounts.create(username, password)
        assert store.keys() == []

    def test_create_before_seeding_keeps_defaults(self, accounts):
        accounts.create("alice", "pw")
        assert _names(accounts) == ["admin", "demo", "alice"]


class TestDelete:
    def test_delete_user(self, accounts):
        accounts.ensure_seeded()
        assert accounts.delete("demo") is True
        assert "demo" not in _names(accounts)

    def test_admin_protected(self, accounts):
        accounts.ensure_seeded()
        assert accounts.delete("admin") is False
        assert "admin" in _names(accounts)

    def test_admin_protected_even_when_alone(self, accounts):
        accounts.ensure_seeded()
        accounts.delete("demo")
        accounts.delete("admin")
        assert _names(accounts) == ["admin"]

    def test_unknown_is_noop(self, accounts, store):
        accounts.ensure_seeded()
        before = store.get(ACCOUNTS_KEY)
        assert accounts.delete("ghost") is False
        assert store.get(ACCOUNTS_KEY) == before


class TestFindByCredentials:
    def test_exact_match(self, accounts):
        accounts.ensure_seeded()
        account = accounts.find_by_credentials("admin", "nova_admin_2025")
        assert account is not None
        assert account.role is Role.ADMIN

    @pytest.mark.parametrize(
        "username,password",
        [("admin", "wrong"), ("Admin", "nova_admin_2025"), ("nosuchuser", "x"), ("admin", "")],
    )
    def test_no_match(self, accounts, username, password):
        accounts.ensure_seeded()
        assert accounts.find_by_credentials(username, password) is None


class TestSerialization:
    def test_stored_layout(self, accounts, store):
        accounts.ensure_seeded()
        records = json.loads(store.get(ACCOUNTS_KEY))
        assert set(records[0]) == {"username", "password", "role", "createdAt"}

    def test_reads_epoch_millis(self):
        store = MemoryStore(
            {
                ACCOUNTS_KEY: json.dumps(
                    [
                        {
                            "username": "admin",
                            "password": "p",
                            "role": "admin",
                            "createdAt": 1735689600000,
                        }
                    ]
                )
            }
        )
        admin = AccountStore(store).list()[0]
        assert admin.created_at.year == 2025

    def test_unreadable_collection_falls_back_to_defaults(self, store):
        store.set(ACCOUNTS_KEY, "{not json")
        accounts = AccountStore(store)
        assert accounts.is_readable() is False
        assert [a.username for a in accounts.list()] == ["admin", "demo"]
        assert accounts.find_by_credentials("admin", "nova_admin_2025") is not None

    def test_unreadable_collection_not_reseeded(self, store):
        store.set(ACCOUNTS_KEY, '{"username": "admin"}')
        assert AccountStore(store).ensure_seeded() is False
        assert store.get(ACCOUNTS_KEY) == '{"username": "admin"}'

    def test_create_replaces_unreadable_collection(self, store):
        store.set(ACCOUNTS_KEY, "{not json")
        accounts = AccountStore(store)
        assert accounts.create("alice", "pw") is True
        assert accounts.is_readable() is True
        assert [a.username for a in accounts.list()] == ["admin", "demo", "alice"]

    def test_password_not_in_repr(self):
        account = Account(username="a", password="hunter2", role=Role.USER)
        assert "hunter2" not in repr(account)

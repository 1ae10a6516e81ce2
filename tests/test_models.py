"""Tests for vault data model helpers: VaultEntry, VaultResult, VaultSession."""

import pytest

from firepass.vault import SessionKey, VaultEntry, VaultResult, VaultSession
from firepass.vault.exceptions import InvalidCredentials, VaultLockedError


class TestVaultEntry:
    def test_to_dict_shape(self):
        entry = VaultEntry(key="DB_URL", value="postgres://", category="database",
                           username="admin", id="e1", last_updated="2024-01-01T00:00:00")
        assert entry.to_dict() == {
            "id": "e1",
            "key": "DB_URL",
            "value": "postgres://",
            "category": "database",
            "metadata": {"username": "admin"},
            "lastUpdated": "2024-01-01T00:00:00",
        }

    def test_from_dict_reads_ui_shape(self):
        data = {
            "id": "e2",
            "key": "SSH",
            "value": "-----BEGIN",
            "category": "ssh",
            "metadata": {"description": "prod box"},
            "group": "servers",
            "lastUpdated": "2024-02-02T00:00:00",
        }
        entry = VaultEntry.from_dict(data)
        assert entry.description == "prod box"
        assert entry.group == "servers"
        assert entry.to_dict() == data

    def test_defaults(self):
        entry = VaultEntry(key="k", value="v")
        assert entry.category == "other"
        assert entry.id
        assert entry.to_dict()["metadata"] == {}

    def test_unknown_category(self):
        with pytest.raises(ValueError):
            VaultEntry(key="k", value="v", category="banking")


class TestVaultResult:
    def test_ok(self):
        result = VaultResult.ok("done", data=[1])
        assert result.success and result.error is None and result.data == [1]

    def test_fail_carries_error_and_message(self):
        result = VaultResult.fail(InvalidCredentials())
        assert not result.success
        assert result.message == "Incorrect master password"
        assert result.error.code == "InvalidCredentials"

    def test_error_default_messages(self):
        assert str(VaultLockedError()) == "Vault is locked. Unlock vault first"
        assert str(VaultLockedError("custom")) == "custom"


class TestVaultSession:
    def test_wipe_clears_key_and_entries(self):
        session = VaultSession(key=SessionKey(b"\x07" * 32), entries=[{"a": 1}])
        session.wipe()
        assert session.key.is_wiped
        assert session.entries == []

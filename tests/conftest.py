"""
Shared pytest fixtures for the FirePass test suite.

Autouse fixtures below isolate tests from live application data:
  - Audit logger  -> temp directory  (no test events in ./audit_logs)
  - Config        -> temp data dir   (no test vaults in ./data/vault.db)
  - API manager   -> reset singleton (no vault state leaking between tests)
"""

import pytest

from firepass.vault import AccountRecord, MemoryVaultStore, PasswordHasher, VaultManager


@pytest.fixture(autouse=True)
def _isolate_audit_logs(tmp_path):
    """Point the global AuditLogger at a temp directory for every test."""
    import firepass.core.audit_log as audit_mod

    old_logger = audit_mod._audit_logger
    audit_mod._audit_logger = audit_mod.AuditLogger(log_dir=tmp_path / "audit_logs")

    yield audit_mod._audit_logger

    audit_mod._audit_logger.close()
    audit_mod._audit_logger = old_logger


@pytest.fixture(autouse=True)
def _isolate_config(tmp_path, monkeypatch):
    """Redirect FIREPASS_* paths into tmp_path and clear flag overrides."""
    monkeypatch.setenv("FIREPASS_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("FIREPASS_AUDIT_DIR", str(tmp_path / "audit_logs"))
    monkeypatch.delenv("FIREPASS_CONSTANT_TIME_COMPARE", raising=False)


@pytest.fixture(autouse=True)
def _isolate_vault_manager():
    """Reset the API's VaultManager singleton for every test."""
    import firepass.api.vault_routes as routes_mod

    old_manager = routes_mod._vault_manager
    routes_mod._vault_manager = None

    yield

    routes_mod.close_vault_manager()
    routes_mod._vault_manager = old_manager


# ── Shared vault fixtures ────────────────────────────────────────────


@pytest.fixture(scope="session")
def hasher():
    return PasswordHasher()


@pytest.fixture(scope="session")
def pw_hash(hasher):
    """Account hash for the master password "pw" (200k rounds, computed once)."""
    return hasher.hash("pw")


@pytest.fixture
def account(pw_hash):
    return AccountRecord(user_id="user-1", hashed_master_password=pw_hash)


@pytest.fixture
def store():
    return MemoryVaultStore()


@pytest.fixture
def manager(store, account, hasher):
    vm = VaultManager(store=store, account=account, hasher=hasher)
    yield vm
    vm.close()


@pytest.fixture
def unlocked(manager):
    """A freshly set-up (and therefore unlocked) vault."""
    result = manager.setup("pw")
    assert result.success, result.message
    return manager

# FirePass - Vault Module
#
# Encrypted credential vault: one AES-256-GCM blob per user,
# master password with PBKDF2 key derivation.

from .encryption import EncryptionService, SessionKey
from .exceptions import (
    AccountRequiredError,
    AuthMismatch,
    DecryptionError,
    ImportFormatError,
    InvalidCredentials,
    PersistenceError,
    SetupRequiredError,
    VaultError,
    VaultExistsError,
    VaultLockedError,
)
from .models import AccountRecord, VaultEntry, VaultLifecycleState, VaultResult, VaultSession
from .password_generator import PasswordGeneratorSettings, generate_password
from .password_hasher import PasswordHasher, constant_time_equals, plain_equals
from .store import MemoryVaultStore, SQLiteVaultStore, VaultStore
from .vault_manager import EXPORT_FILENAME, VaultManager

__all__ = [
    "VaultManager",
    "EncryptionService",
    "SessionKey",
    "PasswordHasher",
    "plain_equals",
    "constant_time_equals",
    "VaultStore",
    "MemoryVaultStore",
    "SQLiteVaultStore",
    "AccountRecord",
    "VaultEntry",
    "VaultLifecycleState",
    "VaultResult",
    "VaultSession",
    "PasswordGeneratorSettings",
    "generate_password",
    "EXPORT_FILENAME",
    # Errors
    "VaultError",
    "AuthMismatch",
    "InvalidCredentials",
    "DecryptionError",
    "VaultLockedError",
    "PersistenceError",
    "SetupRequiredError",
    "VaultExistsError",
    "AccountRequiredError",
    "ImportFormatError",
]

# FirePass - Vault Manager
#
# Lifecycle state machine for the encrypted vault:
#   needs_setup --setup--> unlocked --lock--> locked --unlock--> unlocked
#   any --clear_vault--> needs_setup
#
# The whole entry list is one AES-256-GCM blob, rewritten on every change.
# The decrypted entries and the session key live together in a
# VaultSession, which exists only while the vault is unlocked.

import copy
import json
import logging
import os
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from ..core import EventSeverity, EventType, get_audit_logger, load_config
from .encryption import EncryptionService
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
from .models import AccountRecord, VaultLifecycleState, VaultResult, VaultSession
from .password_hasher import PasswordHasher, constant_time_equals
from .store import SQLiteVaultStore, VaultStore

logger = logging.getLogger(__name__)

VAULT_BLOB_KEY = "firepass_vault_encrypted"
VAULT_SALT_KEY = "firepass_vault_salt"
LEGACY_VAULT_BLOB_KEY = "fireplay_vault_encrypted"
EXPORT_FILENAME = "firepass_vault_export.json"
DEFAULT_NAMESPACE = "default"
IMPORT_REQUIRED_FIELDS = ("id", "key", "value")

Entries = List[Dict[str, Any]]


class VaultManager:
    """
    Owns the vault lifecycle and the only decrypted copy of its entries.

    Security:
    - Master password verified against the account hash before any key
      derivation (PBKDF2 200k rounds, see PasswordHasher)
    - Vault key derived separately (PBKDF2 100k rounds) from the vault salt
    - Session key zeroed on lock, clear, identity change and key rotation
    - Audit logging for every transition and failure

    Vault salt: setup() stores the salt segment of the account hash next
    to the blob, and change_master_password() stores its fresh salt there.
    unlock() reads the stored salt, falling back to the account hash's
    segment for vaults written before the salt was persisted. This keeps
    the key derivable after a password change.

    All operations are serialized through one re-entrant lock held across
    verify, derive, encrypt and persist. Every failure is reported as a
    VaultResult; no exception escapes a public operation.

    Known weaknesses:
    - update_entries()/import_vault() change the in-memory entries before
      persisting; a failed write leaves memory ahead of storage until the
      next successful save.
    - The default hash comparison is not constant-time
      (FIREPASS_CONSTANT_TIME_COMPARE=1 switches it).
    """

    def __init__(
        self,
        store: Optional[VaultStore] = None,
        account: Optional[AccountRecord] = None,
        hasher: Optional[PasswordHasher] = None,
        on_account_updated: Optional[Callable[[AccountRecord], None]] = None,
        store_factory: Optional[Callable[[str], VaultStore]] = None,
    ):
        """
        Initialize vault manager.

        Args:
            store: Blob persistence for a single fixed vault identity
            account: Current account record (may be set later)
            hasher: Master password hasher. If None, built from config
            on_account_updated: Called with the new record after a
                   master password change
            store_factory: Builds the store for a user id; called again
                   whenever set_account() switches identity. If neither
                   store nor store_factory is given, uses SQLite at
                   <FIREPASS_DATA_DIR>/vault.db, namespaced by user id
        """
        if (store is None and store_factory is None) or hasher is None:
            config = load_config()
            if store is None and store_factory is None:
                db_path = config.vault_db_path

                def store_factory(user_id: str) -> VaultStore:
                    return SQLiteVaultStore(db_path, namespace=user_id)

            if hasher is None:
                hasher = PasswordHasher(
                    constant_time_equals if config.constant_time_compare else None
                )

        if store is None:
            store = store_factory(account.user_id if account else DEFAULT_NAMESPACE)

        self.store = store
        self._store_factory = store_factory
        self.hasher = hasher
        self.on_account_updated = on_account_updated
        self._account = account
        self._session: Optional[VaultSession] = None
        self._lock = threading.RLock()

        self.logger = get_audit_logger()

    # ── State ────────────────────────────────────────────────────────

    @property
    def account(self) -> Optional[AccountRecord]:
        return self._account

    @property
    def is_unlocked(self) -> bool:
        return self._session is not None

    @property
    def vault_exists(self) -> bool:
        with self._lock:
            return self._load_blob() is not None

    @property
    def state(self) -> VaultLifecycleState:
        """Current lifecycle state, recomputed from account hash and store."""
        with self._lock:
            if self._session is not None:
                return VaultLifecycleState.UNLOCKED
            if not self._account or not self._account.hashed_master_password:
                return VaultLifecycleState.LOCKED
            try:
                exists = self._load_blob() is not None
            except PersistenceError as e:
                logger.warning("Cannot determine vault state: %s", e)
                return VaultLifecycleState.LOCKED
            return VaultLifecycleState.LOCKED if exists else VaultLifecycleState.NEEDS_SETUP

    @property
    def needs_setup(self) -> bool:
        return self.state == VaultLifecycleState.NEEDS_SETUP

    @property
    def entries(self) -> Entries:
        """Copy of the decrypted entries; empty while locked."""
        with self._lock:
            if self._session is None:
                return []
            return copy.deepcopy(self._session.entries)

    def set_account(self, account: Optional[AccountRecord]) -> VaultLifecycleState:
        """
        Replace the account record and re-evaluate the lifecycle state.

        A different identity (or no account) locks the vault first. With a
        store factory, the store is switched to the new identity's vault.
        """
        with self._lock:
            previous = self._account
            identity_changed = (
                account is None or previous is None or account.user_id != previous.user_id
            )
            if identity_changed and self._session is not None:
                self._end_session()

            if identity_changed and account is not None and self._store_factory is not None:
                self.store = self._store_factory(account.user_id)

            self._account = account
            state = self.state
            self.logger.log_vault_event(
                event_type=EventType.ACCOUNT_CHANGED,
                message="Account record changed",
                details={
                    "user_id": account.user_id if account else None,
                    "identity_changed": identity_changed,
                    "state": state.value,
                },
            )
            return state

    # ── Lifecycle ────────────────────────────────────────────────────

    def setup(self, master_password: str) -> VaultResult:
        """
        Create the vault with an empty entry list.

        The password must match the account's master password. The vault
        salt is the salt segment of the account hash.

        Returns:
            VaultResult; on success the vault is unlocked
        """
        with self._lock:
            try:
                stored_hash = self._require_hash()
                if self._load_blob() is not None:
                    raise VaultExistsError()
                if not self.hasher.verify(master_password, stored_hash):
                    raise AuthMismatch()

                salt = PasswordHasher.salt_of(stored_hash)
                key = EncryptionService.derive_key(master_password, salt)
                try:
                    blob = EncryptionService.encrypt({"entries": []}, key)
                    self._persist(blob, salt)
                except Exception:
                    key.wipe()
                    raise

                self._start_session(VaultSession(key=key, entries=[]))

                self.logger.log_vault_event(
                    event_type=EventType.VAULT_CREATED,
                    message="Vault initialized with master password",
                )
                return VaultResult.ok("FirePass vault created successfully!")

            except Exception as e:
                return self._failed("setup", e)

    def unlock(self, master_password: str) -> VaultResult:
        """
        Unlock the vault with the master password.

        On any failure no session key is retained and an existing
        session (if any) is left untouched.
        """
        with self._lock:
            try:
                stored_hash = self._require_hash()
                blob = self._load_blob()
                if blob is None:
                    raise SetupRequiredError()
                if not self.hasher.verify(master_password, stored_hash):
                    raise InvalidCredentials()

                salt = self._vault_salt(stored_hash)
                key = EncryptionService.derive_key(master_password, salt)
                try:
                    entries = self._entries_from_payload(EncryptionService.decrypt(blob, key))
                except Exception:
                    key.wipe()
                    raise

                self._start_session(VaultSession(key=key, entries=entries))

                self.logger.log_vault_event(
                    event_type=EventType.VAULT_UNLOCKED,
                    message="Vault unlocked successfully",
                    details={"entry_count": len(entries)},
                )
                return VaultResult.ok("Vault Unlocked")

            except Exception as e:
                return self._failed("unlock", e)

    def lock(self) -> VaultResult:
        """Wipe the session key and decrypted entries. Never fails."""
        with self._lock:
            was_unlocked = self._session is not None
            self._end_session()
            if was_unlocked:
                self.logger.log_vault_event(
                    event_type=EventType.VAULT_LOCKED,
                    message="Vault locked",
                )
            return VaultResult.ok("FirePass vault has been locked.")

    def close(self) -> None:
        """Process teardown: make sure no key material outlives the manager."""
        self.lock()

    # ── Mutations ────────────────────────────────────────────────────

    def update_entries(self, entries: Entries) -> VaultResult:
        """
        Replace all entries and re-encrypt the vault under the session key.

        In-memory entries are replaced before the write; if persisting
        fails they stay replaced.
        """
        with self._lock:
            try:
                self._replace_entries(entries)
                self.logger.log_vault_event(
                    event_type=EventType.VAULT_ENTRIES_UPDATED,
                    message="Vault entries updated",
                    details={"entry_count": len(entries)},
                )
                return VaultResult.ok("Secrets saved.")
            except Exception as e:
                return self._failed("update_entries", e)

    def import_vault(self, entries: Entries) -> VaultResult:
        """Overwrite all entries with an imported list (no merge)."""
        with self._lock:
            try:
                self._replace_entries(entries)
                self.logger.log_vault_event(
                    event_type=EventType.VAULT_IMPORTED,
                    message="Vault imported",
                    details={"entry_count": len(entries)},
                )
                return VaultResult.ok("Vault imported successfully!")
            except Exception as e:
                return self._failed("import_vault", e)

    def change_master_password(self, old_password: str, new_password: str) -> VaultResult:
        """
        Re-key the vault under a new master password.

        A fresh vault salt is generated (independent of the new account
        hash) and persisted with the re-encrypted blob. The account hash is
        then replaced and the session continues under the new key.
        """
        with self._lock:
            try:
                session = self._require_session()
                stored_hash = self._require_hash()
                if not self.hasher.verify(old_password, stored_hash):
                    raise AuthMismatch("The current master password is incorrect")

                new_salt = EncryptionService.generate_salt()
                new_key = EncryptionService.derive_key(new_password, new_salt)
                try:
                    blob = EncryptionService.encrypt({"entries": session.entries}, new_key)
                    self._persist(blob, new_salt)
                except Exception:
                    new_key.wipe()
                    raise

                old_key = session.key
                session.key = new_key
                old_key.wipe()

                self._account = replace(
                    self._account, hashed_master_password=self.hasher.hash(new_password)
                )

                self.logger.log_vault_event(
                    event_type=EventType.MASTER_PASSWORD_CHANGED,
                    message="Master password changed and vault re-encrypted",
                )

            except Exception as e:
                return self._failed("change_master_password", e)

            # The change is committed here; callback failures are only logged.
            if self.on_account_updated is not None:
                try:
                    self.on_account_updated(self._account)
                except Exception as e:
                    logger.exception("Account update callback failed")
                    self.logger.log_event(
                        event_type=EventType.VAULT_ERROR,
                        severity=EventSeverity.ALERT,
                        message=f"Account update after master password change failed: {e}",
                        details={"operation": "change_master_password",
                                 "error": type(e).__name__},
                    )

            return VaultResult.ok("Master password changed successfully.")

    def clear_vault(self) -> VaultResult:
        """
        Delete the persisted vault and wipe the session.

        Irreversible. The caller is responsible for confirming intent.
        """
        with self._lock:
            try:
                self._end_session()
                for key in (VAULT_BLOB_KEY, VAULT_SALT_KEY, LEGACY_VAULT_BLOB_KEY):
                    self.store.clear(key)

                self.logger.log_vault_event(
                    event_type=EventType.VAULT_CLEARED,
                    message="Vault has been cleared",
                    severity=EventSeverity.ALERT,
                )
                return VaultResult.ok("Vault has been cleared.")
            except Exception as e:
                return self._failed("clear_vault", e)

    # ── Export / import ──────────────────────────────────────────────

    def export_vault(self, path: Optional[Union[str, Path]] = None) -> VaultResult:
        """
        Serialize the decrypted entries as a pretty-printed JSON array.

        The document is returned in result.data. If path is given it is
        also written there (a directory gets EXPORT_FILENAME appended).
        The output is plaintext; it never contains key material.
        """
        with self._lock:
            try:
                session = self._require_session()
                document = json.dumps(session.entries, indent=2, ensure_ascii=False)

                written_to = None
                if path is not None:
                    target = Path(path)
                    if target.is_dir():
                        target = target / EXPORT_FILENAME
                    try:
                        fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
                        with os.fdopen(fd, "w", encoding="utf-8") as f:
                            f.write(document)
                    except OSError as e:
                        raise PersistenceError(f"Failed to write export: {e}") from e
                    written_to = str(target)

                self.logger.log_vault_event(
                    event_type=EventType.VAULT_EXPORTED,
                    message="Vault exported as plaintext",
                    details={"entry_count": len(session.entries), "path": written_to},
                    severity=EventSeverity.INVESTIGATE,
                )
                return VaultResult.ok("Vault exported successfully.", data=document)

            except Exception as e:
                return self._failed("export_vault", e)

    @staticmethod
    def parse_import(document: Any) -> Entries:
        """
        Parse and validate an import document.

        Accepts the raw file text or an already-decoded JSON value. Every
        element must be an object with non-empty "id", "key" and "value".

        Raises:
            ImportFormatError: not JSON, not an array, or an element
                is not a complete entry
        """
        data = document
        if isinstance(document, str):
            try:
                data = json.loads(document)
            except json.JSONDecodeError as e:
                raise ImportFormatError(f"Import file is not valid JSON: {e.msg}") from e

        if not isinstance(data, list):
            raise ImportFormatError()
        for item in data:
            if not isinstance(item, dict) or not all(item.get(f) for f in IMPORT_REQUIRED_FIELDS):
                raise ImportFormatError("Invalid secret format")
        return data

    # ── Internals ────────────────────────────────────────────────────

    def _require_hash(self) -> str:
        if not self._account or not self._account.hashed_master_password:
            raise AccountRequiredError()
        return self._account.hashed_master_password

    def _require_session(self) -> VaultSession:
        if self._session is None:
            raise VaultLockedError()
        return self._session

    def _start_session(self, session: VaultSession) -> None:
        self._end_session()
        self._session = session

    def _end_session(self) -> None:
        if self._session is not None:
            self._session.wipe()
            self._session = None

    def _load_blob(self) -> Optional[str]:
        legacy = self.store.load(LEGACY_VAULT_BLOB_KEY)
        if legacy is not None:
            logger.info("Migrating vault blob from legacy key %s", LEGACY_VAULT_BLOB_KEY)
            self.store.save(VAULT_BLOB_KEY, legacy)
            self.store.clear(LEGACY_VAULT_BLOB_KEY)
        return self.store.load(VAULT_BLOB_KEY)

    def _vault_salt(self, stored_hash: str) -> bytes:
        salt_hex = self.store.load(VAULT_SALT_KEY)
        if salt_hex is None:
            return PasswordHasher.salt_of(stored_hash)
        try:
            return bytes.fromhex(salt_hex)
        except ValueError as e:
            raise DecryptionError("Stored vault salt is corrupted") from e

    def _persist(self, blob: str, salt: bytes) -> None:
        """Write salt and blob; restore the previous salt if the blob write fails."""
        previous_salt = self.store.load(VAULT_SALT_KEY)
        self.store.save(VAULT_SALT_KEY, salt.hex())
        try:
            self.store.save(VAULT_BLOB_KEY, blob)
        except PersistenceError:
            if previous_salt is None:
                self.store.clear(VAULT_SALT_KEY)
            else:
                self.store.save(VAULT_SALT_KEY, previous_salt)
            raise

    def _replace_entries(self, entries: Entries) -> None:
        session = self._require_session()
        if not isinstance(entries, list):
            raise ImportFormatError("Vault entries must be a list")

        session.entries = copy.deepcopy(entries)
        blob = EncryptionService.encrypt({"entries": session.entries}, session.key)
        self.store.save(VAULT_BLOB_KEY, blob)

    @staticmethod
    def _entries_from_payload(payload: Any) -> Entries:
        if not isinstance(payload, dict):
            raise DecryptionError("Decrypted vault has an unexpected shape")
        entries = payload.get("entries") or []
        if not isinstance(entries, list):
            raise DecryptionError("Decrypted vault has an unexpected shape")
        return entries

    def _failed(self, operation: str, error: Exception) -> VaultResult:
        """Convert any failure into a VaultResult and audit it."""
        if not isinstance(error, VaultError):
            logger.exception("Unexpected error during %s", operation)
            error = VaultError(f"Failed to {operation.replace('_', ' ')}: {error}")

        if isinstance(error, AuthMismatch):
            event_type = (
                EventType.VAULT_UNLOCK_FAILED if operation == "unlock"
                else EventType.VAULT_AUTH_FAILED
            )
            severity = EventSeverity.INVESTIGATE
        elif isinstance(error, DecryptionError):
            event_type, severity = EventType.VAULT_UNLOCK_FAILED, EventSeverity.ALERT
        elif isinstance(error, (VaultLockedError, SetupRequiredError, VaultExistsError,
                                AccountRequiredError, ImportFormatError)):
            event_type, severity = EventType.VAULT_ERROR, EventSeverity.INFO
        else:
            event_type, severity = EventType.VAULT_ERROR, EventSeverity.CRITICAL

        self.logger.log_event(
            event_type=event_type,
            severity=severity,
            message=f"Vault {operation} failed: {error}",
            details={"operation": operation, "error": error.code},
        )
        return VaultResult.fail(error)

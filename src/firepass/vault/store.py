# FirePass - Vault Store
#
# Opaque key/value persistence for the encrypted vault blob.
# The store knows nothing about encryption: load/save/clear by key.
# SQLite-backed by default (core.db helper); in-memory for ephemeral use.

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Union

from ..core.db import open_db
from .exceptions import PersistenceError

logger = logging.getLogger(__name__)


class VaultStore(ABC):
    """Persists one opaque string value per key."""

    @abstractmethod
    def load(self, key: str) -> Optional[str]:
        """Return the stored value, or None if absent."""

    @abstractmethod
    def save(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def clear(self, key: str) -> None:
        """Remove key. Removing a missing key is not an error."""


class MemoryVaultStore(VaultStore):
    """Dict-backed store. Contents vanish with the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def load(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def save(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def clear(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class SQLiteVaultStore(VaultStore):
    """SQLite key/value store, partitioned by vault identity.

    Args:
        db_path: Path to SQLite file. Defaults to data/vault.db.
        namespace: Vault identity (usually the user id). Each namespace
            sees only its own keys.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None, namespace: str = "default"):
        self.db_path = Path(db_path) if db_path else Path("data/vault.db")
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.namespace = namespace
        self._init_database()

    def _init_database(self):
        try:
            with open_db(self.db_path) as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS vault_store (
                        namespace TEXT NOT NULL,
                        key TEXT NOT NULL,
                        value TEXT NOT NULL,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        PRIMARY KEY (namespace, key)
                    )
                """)
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to open vault store: {e}") from e

    def load(self, key: str) -> Optional[str]:
        try:
            with open_db(self.db_path, row_factory=True) as conn:
                row = conn.execute(
                    "SELECT value FROM vault_store WHERE namespace = ? AND key = ?",
                    (self.namespace, key),
                ).fetchone()
        except sqlite3.Error as e:
            logger.error("Vault store read failed for %s: %s", key, e)
            raise PersistenceError(f"Failed to read vault store: {e}") from e
        if row is None:
            return None
        return row["value"]

    def save(self, key: str, value: str) -> None:
        now = datetime.utcnow().isoformat()
        try:
            with open_db(self.db_path) as conn:
                conn.execute(
                    """INSERT INTO vault_store (namespace, key, value, updated_at)
                       VALUES (?, ?, ?, ?)
                       ON CONFLICT(namespace, key) DO UPDATE SET
                           value = excluded.value,
                           updated_at = excluded.updated_at""",
                    (self.namespace, key, value, now),
                )
        except sqlite3.Error as e:
            logger.error("Vault store write failed for %s: %s", key, e)
            raise PersistenceError(f"Failed to write vault store: {e}") from e

    def clear(self, key: str) -> None:
        try:
            with open_db(self.db_path) as conn:
                conn.execute(
                    "DELETE FROM vault_store WHERE namespace = ? AND key = ?",
                    (self.namespace, key),
                )
        except sqlite3.Error as e:
            logger.error("Vault store delete failed for %s: %s", key, e)
            raise PersistenceError(f"Failed to clear vault store: {e}") from e

# FirePass - Vault Data Model
#
# Account record, lifecycle state, session, operation result, and the
# conventional entry shape used by the FirePass UI. The vault itself
# treats entries as opaque JSON objects.

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .encryption import SessionKey
from .exceptions import VaultError

ENTRY_CATEGORIES = ("api", "database", "ssh", "token", "other")


class VaultLifecycleState(str, Enum):
    NEEDS_SETUP = "needs_setup"
    LOCKED = "locked"
    UNLOCKED = "unlocked"


@dataclass(frozen=True)
class AccountRecord:
    """The slice of the user record the vault reads.

    hashed_master_password is "<saltHex>:<hashHex>" or None when the
    account has no master password yet.
    """
    user_id: str
    hashed_master_password: Optional[str] = None


@dataclass
class VaultSession:
    """Decrypted vault state. Exists only while the vault is unlocked."""
    key: SessionKey
    entries: List[Dict[str, Any]]

    def wipe(self) -> None:
        self.key.wipe()
        self.entries = []


@dataclass(frozen=True)
class VaultResult:
    """Outcome of a VaultManager operation.

    Attributes:
        success: Whether the operation completed.
        message: Caller-facing description.
        error: The VaultError that caused a failure, if any.
        data: Operation payload (e.g. the export document).
    """
    success: bool
    message: str
    error: Optional[VaultError] = None
    data: Any = None

    @classmethod
    def ok(cls, message: str, data: Any = None) -> "VaultResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, error: VaultError) -> "VaultResult":
        return cls(success=False, message=str(error), error=error)


@dataclass
class VaultEntry:
    """A stored secret as the FirePass UI shapes it."""
    key: str
    value: str
    category: str = "other"
    username: Optional[str] = None
    description: Optional[str] = None
    group: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    last_updated: str = field(default_factory=lambda: datetime.utcnow().isoformat())

    def __post_init__(self):
        if self.category not in ENTRY_CATEGORIES:
            raise ValueError(f"Unknown entry category: {self.category}")

    def to_dict(self) -> Dict[str, Any]:
        metadata = {}
        if self.username is not None:
            metadata["username"] = self.username
        if self.description is not None:
            metadata["description"] = self.description

        data = {
            "id": self.id,
            "key": self.key,
            "value": self.value,
            "category": self.category,
            "metadata": metadata,
            "lastUpdated": self.last_updated,
        }
        if self.group is not None:
            data["group"] = self.group
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VaultEntry":
        metadata = data.get("metadata") or {}
        kwargs = {
            "key": data["key"],
            "value": data["value"],
            "category": data.get("category", "other"),
            "username": metadata.get("username"),
            "description": metadata.get("description"),
            "group": data.get("group"),
        }
        if data.get("id"):
            kwargs["id"] = data["id"]
        if data.get("lastUpdated"):
            kwargs["last_updated"] = data["lastUpdated"]
        return cls(**kwargs)

# FirePass - Master Password Hashing
#
# Account record format: "<saltHex>:<hashHex>"
#   saltHex: 16 random bytes, 32 lowercase hex chars
#   hashHex: PBKDF2-HMAC-SHA256, 200k rounds, 32 bytes, 64 lowercase hex chars

import hmac
import os
from typing import Callable, Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

HashComparator = Callable[[str, str], bool]


def plain_equals(a: str, b: str) -> bool:
    """Ordinary string equality. Returns early on the first differing char."""
    return a == b


def constant_time_equals(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode('ascii', 'replace'), b.encode('ascii', 'replace'))


class PasswordHasher:
    """
    Hashes and verifies the account master password.

    Independent of vault encryption: the vault key uses its own
    100k-round derivation (see EncryptionService).

    The comparison strategy defaults to plain_equals, which leaks timing
    proportional to the matching prefix. Pass constant_time_equals to
    close that gap.
    """

    ITERATIONS = 200_000
    SALT_LENGTH = 16
    HASH_LENGTH = 32  # 256 bits

    def __init__(self, comparator: Optional[HashComparator] = None):
        self.comparator = comparator or plain_equals

    @classmethod
    def _derive_hex(cls, password: str, salt: bytes) -> str:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=cls.HASH_LENGTH,
            salt=salt,
            iterations=cls.ITERATIONS,
        )
        return kdf.derive(password.encode('utf-8')).hex()

    def hash(self, password: str) -> str:
        """Hash a password under a fresh salt. Returns "saltHex:hashHex"."""
        salt = os.urandom(self.SALT_LENGTH)
        return f"{salt.hex()}:{self._derive_hex(password, salt)}"

    def verify(self, password: str, stored: str) -> bool:
        """Check a password against a "saltHex:hashHex" record."""
        salt_hex, _, stored_hash = (stored or "").partition(":")
        if not salt_hex or not stored_hash:
            return False

        try:
            salt = bytes.fromhex(salt_hex)
        except ValueError:
            return False

        return self.comparator(self._derive_hex(password, salt), stored_hash)

    @staticmethod
    def salt_of(stored: str) -> bytes:
        """
        Decode the salt segment of a "saltHex:hashHex" record.

        Raises:
            ValueError: missing or non-hex salt segment
        """
        salt_hex, sep, _ = (stored or "").partition(":")
        if not salt_hex or not sep:
            raise ValueError("Password hash has no salt segment")
        return bytes.fromhex(salt_hex)

# FirePass - Vault Encryption Service
#
# Master password + salt -> AES-256 key (PBKDF2-HMAC-SHA256, 100k rounds)
# Vault payload -> base64(IV || ciphertext || tag) (AES-256-GCM)

import base64
import binascii
import json
import os
from typing import Any, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .exceptions import DecryptionError


class SessionKey:
    """
    AES-256 key material held in a mutable buffer.

    The key is exportable: export_raw() hands out a copy of the bytes.
    Hardened builds should not expose this; it is kept because callers
    of the vault rely on being able to extract the key.

    wipe() zeroes the buffer in place. Copies already handed to AESGCM
    or export_raw() callers are outside our control.
    """

    __slots__ = ("_material",)

    def __init__(self, material: bytes):
        if len(material) != EncryptionService.KEY_LENGTH:
            raise ValueError("Session key must be 32 bytes")
        self._material: Optional[bytearray] = bytearray(material)

    @property
    def is_wiped(self) -> bool:
        return self._material is None

    def export_raw(self) -> bytes:
        if self._material is None:
            raise ValueError("Session key has been wiped")
        return bytes(self._material)

    def wipe(self) -> None:
        if self._material is not None:
            for i in range(len(self._material)):
                self._material[i] = 0
            self._material = None

    def __repr__(self) -> str:
        state = "wiped" if self._material is None else "active"
        return f"<SessionKey {state}>"


class EncryptionService:
    """
    Key derivation and authenticated encryption for the vault blob.

    Flow:
    1. PBKDF2 derives a 256-bit key from master password + salt
    2. The vault payload is serialized to compact JSON
    3. AES-256-GCM encrypts it under a fresh 12-byte IV
    4. IV || ciphertext || tag is base64-encoded for storage

    The iteration count is intentionally lower than the account password
    hash (200k); the two stretchings serve different purposes.
    """

    PBKDF2_ITERATIONS = 100_000
    KEY_LENGTH = 32  # 256 bits for AES-256
    SALT_LENGTH = 16
    NONCE_LENGTH = 12  # 96-bit IV for GCM
    TAG_LENGTH = 16

    @staticmethod
    def generate_salt() -> bytes:
        """Generate cryptographically random salt."""
        return os.urandom(EncryptionService.SALT_LENGTH)

    @staticmethod
    def derive_key(master_password: str, salt: bytes) -> SessionKey:
        """
        Derive the vault key from master password using PBKDF2.

        Args:
            master_password: User's master password
            salt: Vault salt (16 bytes)

        Returns:
            Exportable 256-bit SessionKey
        """
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=EncryptionService.KEY_LENGTH,
            salt=salt,
            iterations=EncryptionService.PBKDF2_ITERATIONS,
        )
        return SessionKey(kdf.derive(master_password.encode('utf-8')))

    @staticmethod
    def serialize(payload: Any) -> bytes:
        """Canonical text encoding: compact UTF-8 JSON."""
        return json.dumps(payload, separators=(',', ':'), ensure_ascii=False).encode('utf-8')

    @staticmethod
    def encrypt(payload: Any, key: SessionKey) -> str:
        """
        Encrypt a JSON-serializable payload using AES-256-GCM.

        Every call uses a new random IV, so identical payloads never
        produce the same blob.

        Returns:
            base64(IV || ciphertext || tag)
        """
        nonce = os.urandom(EncryptionService.NONCE_LENGTH)
        aesgcm = AESGCM(key.export_raw())
        ciphertext = aesgcm.encrypt(nonce, EncryptionService.serialize(payload), None)

        return EncryptionService.encode_for_storage(nonce + ciphertext)

    @staticmethod
    def decrypt(blob: str, key: SessionKey) -> Any:
        """
        Decrypt a vault blob produced by encrypt().

        Raises:
            DecryptionError: bad base64, truncated blob, tag mismatch
                (wrong key or tampering), or undecodable plaintext
        """
        try:
            raw = EncryptionService.decode_from_storage(blob)
        except (binascii.Error, ValueError) as e:
            raise DecryptionError("Vault blob is not valid base64") from e

        if len(raw) < EncryptionService.NONCE_LENGTH + EncryptionService.TAG_LENGTH:
            raise DecryptionError("Vault blob is truncated")

        nonce = raw[:EncryptionService.NONCE_LENGTH]
        ciphertext = raw[EncryptionService.NONCE_LENGTH:]

        try:
            plaintext = AESGCM(key.export_raw()).decrypt(nonce, ciphertext, None)
        except InvalidTag as e:
            raise DecryptionError() from e

        try:
            return json.loads(plaintext.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecryptionError("Decrypted vault is not valid JSON") from e

    @staticmethod
    def encode_for_storage(data: bytes) -> str:
        """Encode binary data as base64 text."""
        return base64.b64encode(data).decode('ascii')

    @staticmethod
    def decode_from_storage(data: str) -> bytes:
        """Decode base64 text, rejecting non-alphabet characters."""
        return base64.b64decode(data.encode('ascii'), validate=True)

# Tests for the vault encryption service
# Covers: SessionKey, derive_key, encrypt/decrypt, tamper detection,
#         wrong-key rejection, blob layout

import base64
import os

import pytest

from firepass.vault.encryption import EncryptionService, SessionKey
from firepass.vault.exceptions import DecryptionError


@pytest.fixture(scope="module")
def salt():
    return EncryptionService.generate_salt()


@pytest.fixture(scope="module")
def key(salt):
    return EncryptionService.derive_key("correct horse", salt)


# ── Key derivation ───────────────────────────────────────────────────


class TestDeriveKey:
    def test_salt_is_16_random_bytes(self):
        a = EncryptionService.generate_salt()
        b = EncryptionService.generate_salt()
        assert len(a) == 16
        assert a != b

    def test_key_is_256_bits(self, key):
        assert len(key.export_raw()) == 32

    def test_deterministic_for_same_password_and_salt(self, key, salt):
        again = EncryptionService.derive_key("correct horse", salt)
        assert again.export_raw() == key.export_raw()

    def test_different_salt_gives_different_key(self, key):
        other = EncryptionService.derive_key("correct horse", os.urandom(16))
        assert other.export_raw() != key.export_raw()

    def test_uses_100k_iterations(self):
        assert EncryptionService.PBKDF2_ITERATIONS == 100_000


class TestSessionKey:
    def test_wipe_zeroes_and_forgets(self):
        k = SessionKey(b"\x01" * 32)
        buffer = k._material
        k.wipe()
        assert k.is_wiped
        assert bytes(buffer) == b"\x00" * 32
        with pytest.raises(ValueError):
            k.export_raw()

    def test_wipe_twice_is_harmless(self):
        k = SessionKey(b"\x01" * 32)
        k.wipe()
        k.wipe()
        assert k.is_wiped

    def test_rejects_wrong_length(self):
        with pytest.raises(ValueError):
            SessionKey(b"short")

    def test_repr_hides_material(self):
        k = SessionKey(b"\xab" * 32)
        assert "ab" not in repr(k)


# ── Encrypt / decrypt ────────────────────────────────────────────────


class TestEncryptDecrypt:
    @pytest.mark.parametrize("payload", [
        {"entries": []},
        {"entries": [{"title": "a"}, {"key": "ключ", "value": "🔑", "n": 3}]},
        [1, 2.5, None, True, "x"],
    ])
    def test_roundtrip(self, payload, key):
        blob = EncryptionService.encrypt(payload, key)
        assert EncryptionService.decrypt(blob, key) == payload

    def test_fresh_iv_every_call(self, key):
        payload = {"entries": [{"title": "same"}]}
        a = EncryptionService.encrypt(payload, key)
        b = EncryptionService.encrypt(payload, key)
        assert a != b
        assert base64.b64decode(a)[:12] != base64.b64decode(b)[:12]

    def test_blob_layout_iv_ciphertext_tag(self, key):
        payload = {"entries": []}
        raw = base64.b64decode(EncryptionService.encrypt(payload, key))
        plaintext_len = len(EncryptionService.serialize(payload))
        assert len(raw) == 12 + plaintext_len + 16

    def test_canonical_encoding_is_compact_json(self):
        assert EncryptionService.serialize({"entries": [{"a": 1}]}) == b'{"entries":[{"a":1}]}'

    def test_every_flipped_byte_is_rejected(self, key):
        raw = base64.b64decode(EncryptionService.encrypt({"entries": [{"title": "a"}]}, key))
        for i in range(len(raw)):
            tampered = bytearray(raw)
            tampered[i] ^= 0x01
            with pytest.raises(DecryptionError):
                EncryptionService.decrypt(base64.b64encode(bytes(tampered)).decode(), key)

    def test_wrong_password_is_rejected(self, key, salt):
        blob = EncryptionService.encrypt({"entries": []}, key)
        wrong = EncryptionService.derive_key("wrong horse", salt)
        with pytest.raises(DecryptionError):
            EncryptionService.decrypt(blob, wrong)

    def test_wrong_salt_is_rejected(self, key):
        blob = EncryptionService.encrypt({"entries": []}, key)
        wrong = EncryptionService.derive_key("correct horse", os.urandom(16))
        with pytest.raises(DecryptionError):
            EncryptionService.decrypt(blob, wrong)

    @pytest.mark.parametrize("blob", ["", "not base64!!", "QUJD", "ü"])
    def test_malformed_blob_is_rejected(self, blob, key):
        with pytest.raises(DecryptionError):
            EncryptionService.decrypt(blob, key)

    def test_non_json_plaintext_is_rejected(self, key):
        from cryptography.hazmat.primitives.ciphers.aead import AESGCM

        nonce = os.urandom(12)
        ct = AESGCM(key.export_raw()).encrypt(nonce, b"\xff\xfenot json", None)
        blob = base64.b64encode(nonce + ct).decode()
        with pytest.raises(DecryptionError):
            EncryptionService.decrypt(blob, key)

"""Tests for master password hashing.

Covers:
  - "saltHex:hashHex" format
  - verify accepts the right password, rejects others
  - salt freshness
  - malformed records
  - pluggable comparison strategy
"""

import re

import pytest

from firepass.vault.password_hasher import (
    PasswordHasher,
    constant_time_equals,
    plain_equals,
)

HASH_FORMAT = re.compile(r"^[0-9a-f]{32}:[0-9a-f]{64}$")


class TestHash:
    def test_format(self, pw_hash):
        assert HASH_FORMAT.match(pw_hash)

    def test_salt_freshness(self, hasher, pw_hash):
        again = hasher.hash("pw")
        assert again != pw_hash
        assert again.split(":")[0] != pw_hash.split(":")[0]

    def test_uses_200k_iterations(self):
        assert PasswordHasher.ITERATIONS == 200_000

    def test_salt_of(self, pw_hash):
        assert PasswordHasher.salt_of(pw_hash) == bytes.fromhex(pw_hash[:32])

    @pytest.mark.parametrize("stored", ["", "nocolon", ":abc"])
    def test_salt_of_rejects_missing_salt(self, stored):
        with pytest.raises(ValueError):
            PasswordHasher.salt_of(stored)


class TestVerify:
    def test_correct_password(self, hasher, pw_hash):
        assert hasher.verify("pw", pw_hash) is True

    def test_wrong_password(self, hasher, pw_hash):
        assert hasher.verify("pw2", pw_hash) is False

    @pytest.mark.parametrize("stored", ["", "abcd", "abcd:", ":abcd", "zz:" + "0" * 64, None])
    def test_malformed_record(self, hasher, stored):
        assert hasher.verify("pw", stored) is False

    def test_fixed_record_rejects_unrelated_password(self, hasher):
        assert hasher.verify("pw", "a" * 32 + ":" + "b" * 64) is False

    def test_constant_time_strategy(self, pw_hash):
        hardened = PasswordHasher(constant_time_equals)
        assert hardened.verify("pw", pw_hash) is True
        assert hardened.verify("nope", pw_hash) is False

    def test_custom_strategy_is_consulted(self, pw_hash):
        calls = []

        def spy(a, b):
            calls.append((a, b))
            return a == b

        PasswordHasher(spy).verify("pw", pw_hash)
        assert calls == [(pw_hash.split(":")[1], pw_hash.split(":")[1])]


class TestComparators:
    def test_plain_equals(self):
        assert plain_equals("abc", "abc")
        assert not plain_equals("abc", "abd")

    def test_constant_time_equals(self):
        assert constant_time_equals("abc", "abc")
        assert not constant_time_equals("abc", "abd")
        assert not constant_time_equals("abc", "abcd")

    def test_default_is_plain(self):
        assert PasswordHasher().comparator is plain_equals

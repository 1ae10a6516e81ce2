"""Tests for the entry password generator."""

import pytest

from firepass.vault.password_generator import (
    DIGITS,
    LOWERCASE,
    SYMBOLS,
    UPPERCASE,
    PasswordGeneratorSettings,
    generate_password,
)


class TestGeneratePassword:
    def test_default_length(self):
        assert len(generate_password()) == 16

    @pytest.mark.parametrize("length", [8, 33, 64])
    def test_requested_length(self, length):
        assert len(generate_password(PasswordGeneratorSettings(length=length))) == length

    def test_every_selected_class_present(self):
        for _ in range(50):
            pw = generate_password(PasswordGeneratorSettings(length=8))
            assert any(c in LOWERCASE for c in pw)
            assert any(c in UPPERCASE for c in pw)
            assert any(c in DIGITS for c in pw)
            assert any(c in SYMBOLS for c in pw)

    def test_only_selected_classes_used(self):
        pw = generate_password(PasswordGeneratorSettings(
            length=64, use_uppercase=False, use_symbols=False
        ))
        assert set(pw) <= set(LOWERCASE + DIGITS)

    def test_outputs_differ(self):
        assert generate_password() != generate_password()

    def test_no_charset_selected(self):
        with pytest.raises(ValueError):
            generate_password(PasswordGeneratorSettings(
                use_uppercase=False, use_lowercase=False,
                use_numbers=False, use_symbols=False,
            ))

    @pytest.mark.parametrize("length", [0, 7, 65])
    def test_length_out_of_range(self, length):
        with pytest.raises(ValueError):
            generate_password(PasswordGeneratorSettings(length=length))

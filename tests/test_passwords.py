"""Unit tests for auth/passwords.py -- salted hashing and credential checks.

Covers:
- hash_password() returns a hash that is never the plaintext
- every call draws a fresh salt
- verify_password() accepts the right password and rejects the wrong one
- a corrupt salt is a mismatch, not an exception
- authenticate_user() returns None for unknown email and wrong password alike
"""

import pytest
from conftest import create_user

from auth.passwords import MAX_PASSWORD_BYTES, authenticate_user, hash_password, verify_password


class TestHashPassword:
    def test_hash_is_not_plaintext(self) -> None:
        hashed, salt = hash_password("secret123")
        assert hashed != "secret123"
        assert "secret123" not in hashed
        assert hashed.startswith(salt)

    def test_fresh_salt_per_call(self) -> None:
        first_hash, first_salt = hash_password("secret123")
        second_hash, second_salt = hash_password("secret123")
        assert first_salt != second_salt
        assert first_hash != second_hash

    def test_cost_factor_comes_from_settings(self) -> None:
        # conftest sets BCRYPT_ROUNDS=4 -> "$2b$04$..."
        _, salt = hash_password("secret123")
        assert salt.split("$")[2] == "04"

    def test_over_long_password_refused(self) -> None:
        with pytest.raises(ValueError):
            hash_password("a" * (MAX_PASSWORD_BYTES + 1))


class TestVerifyPassword:
    def test_correct_password_verifies(self) -> None:
        hashed, salt = hash_password("secret123")
        assert verify_password("secret123", hashed, salt) is True

    def test_wrong_password_fails(self) -> None:
        hashed, salt = hash_password("secret123")
        assert verify_password("secret124", hashed, salt) is False

    def test_other_records_salt_fails(self) -> None:
        hashed, _ = hash_password("secret123")
        _, other_salt = hash_password("secret123")
        assert verify_password("secret123", hashed, other_salt) is False

    def test_malformed_salt_is_mismatch(self) -> None:
        hashed, _ = hash_password("secret123")
        assert verify_password("secret123", hashed, "not-a-salt") is False

    def test_shared_72_byte_prefix_does_not_match(self) -> None:
        base = "a" * MAX_PASSWORD_BYTES
        hashed, salt = hash_password(base)
        assert verify_password(base + "extra", hashed, salt) is False


class TestAuthenticateUser:
    def test_correct_credentials_return_user(self, stores) -> None:
        user = create_user(stores.users, email="ana@example.com", password="secret123")
        result = authenticate_user(stores.users, "ana@example.com", "secret123")
        assert result is not None
        assert result.id == user.id

    def test_wrong_password_returns_none(self, stores) -> None:
        create_user(stores.users, email="ana@example.com", password="secret123")
        assert authenticate_user(stores.users, "ana@example.com", "wrong-password") is None

    def test_unknown_email_returns_none(self, stores) -> None:
        assert authenticate_user(stores.users, "nobody@example.com", "secret123") is None

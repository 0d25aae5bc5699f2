"""Unit tests for auth/passwords.py -- salted bcrypt hashing.

Covers:
- A hash verifies against its own plaintext and salt
- A different plaintext does not verify
- Every hash() call uses a fresh salt
- Malformed stored salt is a mismatch, not an exception
- Passwords over bcrypt's 72-byte window are refused, never truncated
"""

from __future__ import annotations

import pytest

from auth.passwords import BCRYPT_MAX_BYTES, PasswordHasher


class TestPasswordHasher:
    def test_verify_accepts_matching_plaintext(self, hasher: PasswordHasher) -> None:
        pw_hash, salt = hasher.hash("correct horse")
        assert hasher.verify("correct horse", pw_hash, salt) is True

    def test_verify_rejects_other_plaintext(self, hasher: PasswordHasher) -> None:
        pw_hash, salt = hasher.hash("correctpass")
        assert hasher.verify("wrongpass", pw_hash, salt) is False

    def test_hash_is_not_plaintext(self, hasher: PasswordHasher) -> None:
        pw_hash, salt = hasher.hash("secret")
        assert "secret" not in pw_hash
        assert pw_hash.startswith(salt)

    def test_each_hash_uses_fresh_salt(self, hasher: PasswordHasher) -> None:
        """Same plaintext twice must give different (hash, salt) pairs."""
        first = hasher.hash("secret")
        second = hasher.hash("secret")
        assert first[1] != second[1]
        assert first[0] != second[0]

    def test_verify_with_wrong_salt_fails(self, hasher: PasswordHasher) -> None:
        pw_hash, _salt = hasher.hash("secret")
        _other_hash, other_salt = hasher.hash("secret")
        assert hasher.verify("secret", pw_hash, other_salt) is False

    def test_malformed_salt_is_mismatch(self, hasher: PasswordHasher) -> None:
        pw_hash, _salt = hasher.hash("secret")
        assert hasher.verify("secret", pw_hash, "not-a-bcrypt-salt") is False

    def test_password_at_byte_limit_round_trips(self, hasher: PasswordHasher) -> None:
        pw = "p" * BCRYPT_MAX_BYTES
        pw_hash, salt = hasher.hash(pw)
        assert hasher.verify(pw, pw_hash, salt) is True

    @pytest.mark.parametrize("pw", ["p" * (BCRYPT_MAX_BYTES + 1), "\u00e9" * 37])
    def test_hash_refuses_over_byte_limit(self, hasher: PasswordHasher, pw: str) -> None:
        with pytest.raises(ValueError):
            hasher.hash(pw)

    def test_shared_prefix_does_not_verify(self, hasher: PasswordHasher) -> None:
        """A longer password must not match the hash of its first 72 bytes."""
        prefix = "a" * BCRYPT_MAX_BYTES
        pw_hash, salt = hasher.hash(prefix)
        assert hasher.verify(prefix + "attacker", pw_hash, salt) is False

    def test_rounds_are_applied(self) -> None:
        h = PasswordHasher(rounds=5)
        _pw_hash, salt = h.hash("secret")
        assert salt.startswith("$2b$05$")

    def test_dummy_verify_returns_none(self, hasher: PasswordHasher) -> None:
        assert hasher.dummy_verify("anything") is None

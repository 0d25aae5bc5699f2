"""
auth/passwords.py -- Salted one-way password hashing.

bcrypt is used directly (no passlib wrapper). hash() returns the bcrypt hash
and the salt it was derived with as two separate strings so both can be stored
in their own columns. verify() recomputes bcrypt with the stored salt and
compares the result in constant time.

Timing equalization [C1]: dummy_verify() runs the same bcrypt work against a
hash computed once per hasher. Login calls it when the username does not exist
so response time does not reveal whether an account exists.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import hmac

import bcrypt

from core.config import Settings

# bcrypt only reads the first 72 bytes of its input.
BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """Derive and verify salted bcrypt hashes.

    Usage:
        hasher = PasswordHasher(rounds=12)
        pw_hash, salt = hasher.hash("secret")
        hasher.verify("secret", pw_hash, salt)  # True
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        self._dummy_hash, self._dummy_salt = self.hash("contactuser_timing_dummy")

    @classmethod
    def from_settings(cls, settings: Settings) -> PasswordHasher:
        return cls(rounds=settings.bcrypt_rounds)

    def hash(self, plaintext: str) -> tuple[str, str]:
        """Return (hash, salt) for the plaintext. A fresh random salt is used every call.

        Raises ValueError for a plaintext longer than BCRYPT_MAX_BYTES in UTF-8.
        """
        encoded = plaintext.encode("utf-8")
        if len(encoded) > BCRYPT_MAX_BYTES:
            raise ValueError(f"password exceeds {BCRYPT_MAX_BYTES} bytes")
        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = bcrypt.hashpw(encoded, salt)
        return hashed.decode("utf-8"), salt.decode("utf-8")

    def verify(self, plaintext: str, password_hash: str, salt: str) -> bool:
        """Return True if plaintext + salt reproduces password_hash.

        A malformed stored salt is treated as a mismatch, not an error. So is a
        plaintext over BCRYPT_MAX_BYTES: hash() never accepts one, so no stored
        hash can match it.
        """
        encoded = plaintext.encode("utf-8")
        if len(encoded) > BCRYPT_MAX_BYTES:
            return False
        try:
            recomputed = bcrypt.hashpw(encoded, salt.encode("utf-8"))
        except (ValueError, TypeError):
            return False
        return hmac.compare_digest(recomputed, password_hash.encode("utf-8"))

    def dummy_verify(self, plaintext: str) -> None:
        """Spend the same bcrypt work as verify() without a real account."""
        self.verify(plaintext, self._dummy_hash, self._dummy_salt)

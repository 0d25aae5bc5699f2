"""
auth/validators.py -- Declarative rules for sign-up payloads.

SignUpValidator.validate() checks every rule and returns the complete list of
violations (empty list = valid). It never raises and never touches a store;
AuthService turns a non-empty list into a single ValidationError.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import re

from auth.models import SignUpData, Violation

NAME_MAX_LEN = 100
USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 50
EMAIL_MAX_LEN = 100
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128
# bcrypt input window; longer passwords would collide on their first 72 bytes.
PASSWORD_MAX_BYTES = 72

_USERNAME_RE = re.compile(r"[A-Za-z0-9_.]+")
_EMAIL_RE = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")
# Optional leading +, then 7-15 digits (E.164 length bounds).
_PHONE_RE = re.compile(r"\+?\d{7,15}")


class SignUpValidator:
    """Rule set for SignUpData."""

    def validate(self, data: SignUpData) -> list[Violation]:
        violations: list[Violation] = []
        violations.extend(_check_names(data))
        violations.extend(_check_username(data.username))
        violations.extend(_check_email(data.email))
        violations.extend(_check_phone(data.phone_number))
        violations.extend(_check_password(data.password))
        return violations


def _check_names(data: SignUpData) -> list[Violation]:
    out = []
    if not (data.first_name or "").strip():
        out.append(Violation("first_name", "First name is required."))
    elif len(data.first_name) > NAME_MAX_LEN:
        out.append(Violation("first_name", f"First name must be at most {NAME_MAX_LEN} characters."))
    if len(data.last_name or "") > NAME_MAX_LEN:
        out.append(Violation("last_name", f"Last name must be at most {NAME_MAX_LEN} characters."))
    return out


def _check_username(username: str | None) -> list[Violation]:
    username = username or ""
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        return [
            Violation(
                "username",
                f"Username must be between {USERNAME_MIN_LEN} and {USERNAME_MAX_LEN} characters.",
            )
        ]
    if not _USERNAME_RE.fullmatch(username):
        return [Violation("username", "Username may contain only letters, digits, '_' and '.'.")]
    return []


def _check_email(email: str | None) -> list[Violation]:
    email = email or ""
    if not email:
        return [Violation("email", "Email is required.")]
    if len(email) > EMAIL_MAX_LEN or not _EMAIL_RE.fullmatch(email):
        return [Violation("email", "Email address is not valid.")]
    return []


def _check_phone(phone: str | None) -> list[Violation]:
    if not _PHONE_RE.fullmatch(phone or ""):
        return [Violation("phone_number", "Phone number must contain 7 to 15 digits.")]
    return []


def _check_password(password: str | None) -> list[Violation]:
    password = password or ""
    if not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        return [
            Violation(
                "password",
                f"Password must be between {PASSWORD_MIN_LEN} and {PASSWORD_MAX_LEN} characters.",
            )
        ]
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        return [Violation("password", f"Password must be at most {PASSWORD_MAX_BYTES} bytes in UTF-8.")]
    return []

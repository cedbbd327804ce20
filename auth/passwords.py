"""
auth/passwords.py -- Salted password hashing and credential checks.

bcrypt is used directly (no passlib wrapper). Each call to hash_password()
draws a fresh salt with bcrypt.gensalt() at the configured cost factor
(BCRYPT_ROUNDS, default 10). The salt is returned alongside the hash so the
credential store can persist both columns; verify_password() recomputes the
hash with the stored salt and compares with hmac.compare_digest.

bcrypt only reads the first 72 bytes of a password. Longer passwords are
refused by hash_password() and never match in verify_password(), so two
passwords sharing a 72-byte prefix cannot be confused.

Layer rule: no imports from api/ or storage/.
"""

from __future__ import annotations

import hmac
import logging
from typing import TYPE_CHECKING

import bcrypt

from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("filevault.auth")

_settings = get_settings()

MAX_PASSWORD_BYTES = 72


def hash_password(plain: str) -> tuple[str, str]:
    """Return (hash, salt) for the given plaintext password.

    A new random salt is generated on every call, so hashing the same password
    twice gives two different hashes.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password exceeds {MAX_PASSWORD_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    hashed = bcrypt.hashpw(encoded, salt)
    return hashed.decode("utf-8"), salt.decode("utf-8")


def verify_password(plain: str, hashed: str, salt: str) -> bool:
    """Return True if plain, hashed with salt, reproduces hashed.

    A corrupt salt makes bcrypt raise ValueError; that is reported as a
    mismatch rather than an error.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        candidate = bcrypt.hashpw(encoded, salt.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password salt is malformed")
        return False
    return hmac.compare_digest(candidate, hashed.encode("utf-8"))


# Computed once at import so the first failed login is not measurably slower
# than later ones. Verified against when the email is unknown so both failure
# paths cost one bcrypt computation.
_DUMMY_HASH, _DUMMY_SALT = hash_password("filevault_timing_dummy")


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Check an email/password pair. Returns the User on success, None otherwise.

    Unknown email and wrong password both return None after the same amount
    of bcrypt work, so neither the result nor the timing reveals which.
    """
    user = store.get_by_email(email)
    if user is None:
        verify_password(password, _DUMMY_HASH, _DUMMY_SALT)
        return None
    if not verify_password(password, user.password_hash, user.salt):
        return None
    return user

"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work; these classes only own the shape.

Layer rule: no imports from api/ or storage/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """A registered account.

    email is the natural key used at login and must be unique across all
    records. password_hash and salt are produced by auth.passwords.hash_password;
    the plaintext is never stored.

    id and created_at are None / "" until the record is written by UserStore.
    Users are never updated or deleted once created.
    """

    username: str
    email: str
    password_hash: str
    salt: str
    id: int | None = None
    created_at: str = ""


@dataclass(frozen=True)
class TokenClaim:
    """The verified contents of a session token.

    Not persisted anywhere. Validity is fully determined by the JWT signature
    and expires_at -- there is no server-side revocation list.
    """

    user_id: int
    issued_at: datetime
    expires_at: datetime

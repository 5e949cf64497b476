"""Password helpers for user rows created by the sync.

Synced users never log in with the password we give them; they get a
random one, hashed with bcrypt like any other credential.
"""

from __future__ import annotations

import secrets

import bcrypt


def hash_password(password: str) -> str:
    """Hash a plaintext password using bcrypt."""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a plaintext password against its bcrypt hash."""
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def generate_password(nbytes: int = 10) -> str:
    """Random throwaway password for accounts nobody has logged into yet."""
    return secrets.token_hex(nbytes)

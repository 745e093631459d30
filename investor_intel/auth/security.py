from __future__ import annotations

import secrets

from passlib.context import CryptContext


_pwd = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# 32 random bytes -> 64 hex chars.
TOKEN_BYTES = 32


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("password_blank")
    return _pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return _pwd.verify(password, password_hash)
    except (ValueError, TypeError):
        # Malformed / unknown hash format in config.
        return False


def check_app_password(password: str, *, plaintext: str = "", password_hash: str = "") -> bool:
    """Compare a submitted password with the configured app password.

    A configured hash wins over the plaintext setting.
    """
    if not password:
        return False
    if password_hash:
        return verify_password(password, password_hash)
    if not plaintext:
        return False
    return secrets.compare_digest(password.encode("utf-8"), plaintext.encode("utf-8"))


def generate_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)

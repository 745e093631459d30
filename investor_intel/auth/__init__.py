"""Authentication helpers.

Auth is deliberately minimal for a single-user app:

- One shared password (APP_PASSWORD, or a passlib hash in APP_PASSWORD_HASH)
- Opaque random session tokens stored in the `sessions` table
- The token travels in an httpOnly, SameSite=Strict cookie
"""

from .deps import get_session_token, require_session
from .sessions import cleanup_expired_sessions, login, logout, validate_token

__all__ = [
    "get_session_token",
    "require_session",
    "cleanup_expired_sessions",
    "login",
    "logout",
    "validate_token",
]

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Any, Optional

from investor_intel.config import Config
from investor_intel.models import Session
from investor_intel.util.time import to_iso, utcnow, utcnow_iso

from .security import check_app_password, generate_token


def _debug(msg: str) -> None:
    print(f"[auth] {msg}")


def password_configured(cfg: Config) -> bool:
    return bool(cfg.APP_PASSWORD_HASH or cfg.APP_PASSWORD)


def session_max_age_seconds(cfg: Config) -> int:
    return max(1, int(cfg.SESSION_DURATION_DAYS)) * 24 * 60 * 60


def _row_to_session(row: Any) -> Session:
    return Session(
        id=str(row["id"]),
        token=str(row["token"]),
        created_at=str(row["created_at"]),
        expires_at=str(row["expires_at"]),
    )


def create_session(conn: Any, *, duration_days: int) -> Session:
    now = utcnow()
    session = Session(
        id=str(uuid.uuid4()),
        token=generate_token(),
        created_at=to_iso(now),
        expires_at=to_iso(now + timedelta(days=max(1, int(duration_days)))),
    )
    conn.execute(
        "INSERT INTO sessions (id, token, created_at, expires_at) VALUES (?,?,?,?)",
        (session.id, session.token, session.created_at, session.expires_at),
    )
    return session


def login(conn: Any, cfg: Config, password: str) -> Optional[str]:
    """Check the shared password and open a session.

    Returns the new session token, or None when no password is configured or it doesn't match.
    """
    if not password_configured(cfg):
        _debug("No APP_PASSWORD / APP_PASSWORD_HASH configured; refusing login")
        return None

    if not check_app_password(
        password,
        plaintext=cfg.APP_PASSWORD,
        password_hash=cfg.APP_PASSWORD_HASH,
    ):
        return None

    session = create_session(conn, duration_days=cfg.SESSION_DURATION_DAYS)
    _debug(f"Session created id={session.id} expires_at={session.expires_at}")
    return session.token


def logout(conn: Any, token: str) -> None:
    conn.execute("DELETE FROM sessions WHERE token=?", (token,))


def validate_token(conn: Any, token: str | None) -> Optional[Session]:
    """Return the session for token if it exists and hasn't expired (now < expires_at)."""
    if not token:
        return None
    row = conn.execute(
        "SELECT * FROM sessions WHERE token=? AND expires_at > ? LIMIT 1",
        (token, utcnow_iso()),
    ).fetchone()
    if row is None:
        return None
    return _row_to_session(row)


def cleanup_expired_sessions(conn: Any) -> int:
    """Delete every session that is no longer valid. Returns the number of rows removed."""
    cur = conn.execute("DELETE FROM sessions WHERE expires_at <= ?", (utcnow_iso(),))
    n = int(cur.rowcount or 0)
    if n:
        _debug(f"Deleted {n} expired session(s)")
    return n

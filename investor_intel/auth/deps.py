from __future__ import annotations

from fastapi import HTTPException, Request

from investor_intel.db import connect
from investor_intel.models import Session

from .sessions import validate_token


def get_session_token(request: Request) -> str | None:
    cfg = getattr(request.app.state, "cfg", None)
    if cfg is None:
        raise HTTPException(status_code=500, detail="server_config_missing")
    return request.cookies.get(cfg.SESSION_COOKIE_NAME) or None


def require_session(request: Request) -> Session:
    """Authenticate a request via the httpOnly session cookie set by /api/auth/login."""

    token = get_session_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")

    cfg = request.app.state.cfg
    with connect(cfg.DB_DSN) as conn:
        session = validate_token(conn, token)

    if session is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return session

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from investor_intel import __version__
from investor_intel.auth import get_session_token, require_session
from investor_intel.auth.sessions import (
    cleanup_expired_sessions,
    login,
    logout,
    session_max_age_seconds,
)
from investor_intel.config import Config, load_config
from investor_intel.db import connect, init_db
from investor_intel.intel.service import fetch_social_sentiment
from investor_intel.intel.store import (
    clear_social_sentiment,
    get_intel,
    normalize_symbol,
    public_intel,
    upsert_social_sentiment,
)
from investor_intel.models import Session


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


app = FastAPI(title="Investor Intel", version=__version__)
cfg: Config = load_config()

# CORS is only needed when the frontend dev server runs on another origin.
_cors_origins = [o.strip() for o in (cfg.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]
if _cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(StarletteHTTPException)
async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Clients expect {"error": "..."} bodies.
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.on_event("startup")
def _on_startup() -> None:
    # Make config available to auth deps.
    app.state.cfg = cfg

    init_db(cfg.DB_DSN)

    with connect(cfg.DB_DSN) as conn:
        removed = cleanup_expired_sessions(conn)
    if removed:
        _debug(f"Startup cleanup removed {removed} expired session(s)")

    if not (cfg.APP_PASSWORD or cfg.APP_PASSWORD_HASH):
        _debug("WARNING: APP_PASSWORD is not set; every login will be rejected")


# -----------------------------
# Health
# -----------------------------


@app.get("/health")
def health() -> Dict[str, Any]:
    return {"status": "ok"}


# -----------------------------
# Auth
# -----------------------------


def _samesite() -> str:
    # Rendered as given: "Strict", "Lax" or "None".
    return (cfg.SESSION_COOKIE_SAMESITE or "strict").strip().capitalize()


def _set_session_cookie(response: Response, token: str) -> None:
    samesite = _samesite()
    response.set_cookie(
        key=cfg.SESSION_COOKIE_NAME,
        value=token,
        max_age=session_max_age_seconds(cfg),
        path=cfg.SESSION_COOKIE_PATH or "/",
        httponly=True,
        samesite=samesite,
        # Browsers require Secure when SameSite=None
        secure=cfg.SESSION_COOKIE_SECURE or samesite == "None",
    )


def _clear_session_cookie(response: Response) -> None:
    samesite = _samesite()
    response.delete_cookie(
        key=cfg.SESSION_COOKIE_NAME,
        path=cfg.SESSION_COOKIE_PATH or "/",
        httponly=True,
        samesite=samesite,
        secure=cfg.SESSION_COOKIE_SECURE or samesite == "None",
    )


async def _json_object(request: Request) -> Dict[str, Any]:
    """Request body as a dict; empty, invalid or non-object bodies give {}."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class LoginRequest(BaseModel):
    password: Optional[str] = None


async def _login_body(request: Request) -> LoginRequest:
    # Parsed by hand so a missing or malformed password is a 400 {error}, not a 422.
    password = (await _json_object(request)).get("password")
    return LoginRequest(password=password if isinstance(password, str) else None)


@app.post("/api/auth/login")
def auth_login(response: Response, payload: LoginRequest = Depends(_login_body)) -> Dict[str, Any]:
    if not payload.password:
        raise HTTPException(status_code=400, detail="Password required")

    try:
        with connect(cfg.DB_DSN) as conn:
            token = login(conn, cfg, payload.password)
    except Exception as e:
        _debug(f"Login error: {e}")
        raise HTTPException(status_code=500, detail="Login failed")

    if not token:
        raise HTTPException(status_code=401, detail="Invalid password")

    _set_session_cookie(response, token)
    return {"success": True}


@app.post("/api/auth/logout")
def auth_logout(request: Request, response: Response) -> Dict[str, Any]:
    token = get_session_token(request)
    try:
        if token:
            with connect(cfg.DB_DSN) as conn:
                logout(conn, token)
    except Exception as e:
        _debug(f"Logout error: {e}")
        raise HTTPException(status_code=500, detail="Logout failed")

    _clear_session_cookie(response)
    return {"success": True}


@app.get("/api/auth/session")
def auth_session(session: Session = Depends(require_session)) -> Dict[str, Any]:
    return {"authenticated": True, "expires_at": session.expires_at}


# -----------------------------
# Intel
# -----------------------------


def _symbol_or_400(symbol: str) -> str:
    s = normalize_symbol(symbol)
    if not s:
        raise HTTPException(status_code=400, detail="Symbol required")
    return s


@app.get("/api/intel/{symbol}")
def intel_get(symbol: str, _session: Session = Depends(require_session)) -> Dict[str, Any]:
    s = _symbol_or_400(symbol)
    try:
        with connect(cfg.DB_DSN) as conn:
            row = get_intel(conn, s)
        return public_intel(s, row)
    except Exception as e:
        _debug(f"Intel GET error symbol={s}: {e}")
        raise HTTPException(status_code=500, detail="Server error")


class ValuePickrRequest(BaseModel):
    url: Optional[str] = None


async def _optional_body(request: Request) -> ValuePickrRequest:
    # Refresh calls send no body at all.
    url = (await _json_object(request)).get("url")
    return ValuePickrRequest(url=str(url).strip() if url else None)


@app.delete("/api/intel/{symbol}/valuepickr")
def valuepickr_delete(symbol: str, _session: Session = Depends(require_session)) -> Dict[str, Any]:
    """Remove the ValuePickr research only; fundamentals and news sentiment stay."""
    s = _symbol_or_400(symbol)
    try:
        with connect(cfg.DB_DSN) as conn:
            found = clear_social_sentiment(conn, s)
    except Exception as e:
        _debug(f"Error deleting ValuePickr data symbol={s}: {e}")
        raise HTTPException(status_code=500, detail="Internal Server Error")

    if not found:
        raise HTTPException(status_code=404, detail="Not found")
    return {"success": True}


@app.post("/api/intel/{symbol}/valuepickr")
def valuepickr_refresh(
    symbol: str,
    _session: Session = Depends(require_session),
    payload: ValuePickrRequest = Depends(_optional_body),
) -> Dict[str, Any]:
    """Add (explicit URL) or refresh (stored URL / symbol search) ValuePickr research."""
    s = _symbol_or_400(symbol)
    try:
        with connect(cfg.DB_DSN) as conn:
            existing = get_intel(conn, s)

        # Scrape outside any DB connection: forum + LLM calls are slow.
        research = fetch_social_sentiment(cfg, s, url=payload.url, existing=existing)
        if research is None:
            raise HTTPException(status_code=404, detail="Could not fetch ValuePickr data")

        with connect(cfg.DB_DSN) as conn:
            upsert_social_sentiment(conn, s, research)
    except HTTPException:
        raise
    except Exception as e:
        _debug(f"Error updating ValuePickr data symbol={s}: {e}")
        raise HTTPException(status_code=500, detail="Internal Server Error")

    return {"success": True, "data": research}

import os
from dataclasses import dataclass
from typing import Optional

# Optional: load a local .env file if present.
try:
    from dotenv import load_dotenv

    load_dotenv()
except Exception:
    # If python-dotenv isn't installed or .env isn't present, that's fine.
    pass


def _env_bool(name: str, default: Optional[bool] = None) -> Optional[bool]:
    """Parse a boolean environment variable.

    Returns:
      - True/False if the env var is set to a recognizable value
      - default if unset or unrecognized

    Accepted truthy: 1, true, yes, y, on
    Accepted falsy:  0, false, no, n, off
    """

    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "y", "on"):
        return True
    if v in ("0", "false", "no", "n", "off"):
        return False
    return default


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    IMPORTANT: Provide the app password and API keys via environment variables or a .env file.
    Do not hardcode secrets in source code.
    """

    # -----------------
    # Core
    # -----------------
    # Preferred: set INVESTOR_DATABASE_URL (or DATABASE_URL) to use Postgres.
    # Fallback: INVESTOR_DB_PATH for SQLite.
    DB_DSN: str = (
        os.environ.get("INVESTOR_DATABASE_URL")
        or os.environ.get("DATABASE_URL")
        or os.environ.get("INVESTOR_DB_PATH", "./investor_intel.sqlite")
    )

    # -----------------
    # Auth (single shared password + DB-backed sessions)
    # -----------------
    # APP_PASSWORD is compared as-is. If APP_PASSWORD_HASH is set (see scripts/hash_password.py)
    # it takes precedence and the plaintext value is never needed at runtime.
    APP_PASSWORD: str = os.environ.get("APP_PASSWORD", "")
    APP_PASSWORD_HASH: str = os.environ.get("APP_PASSWORD_HASH", "")

    SESSION_COOKIE_NAME: str = os.environ.get("SESSION_COOKIE_NAME", "investor_session")
    SESSION_DURATION_DAYS: int = int(os.environ.get("SESSION_DURATION_DAYS", "30"))
    SESSION_COOKIE_PATH: str = os.environ.get("SESSION_COOKIE_PATH", "/")
    SESSION_COOKIE_SAMESITE: str = os.environ.get("SESSION_COOKIE_SAMESITE", "strict")  # lax|strict|none
    # NOTE: Browsers require Secure when SameSite=None.
    SESSION_COOKIE_SECURE: bool = _env_bool("SESSION_COOKIE_SECURE", False) is True

    # -----------------
    # ValuePickr (Discourse forum)
    # -----------------
    VALUEPICKR_BASE_URL: str = os.environ.get("VALUEPICKR_BASE_URL", "https://forum.valuepickr.com")
    VALUEPICKR_TIMEOUT_SECONDS: int = int(os.environ.get("VALUEPICKR_TIMEOUT_SECONDS", "30"))
    # Stored social sentiment younger than this is reused by batch refreshes.
    VALUEPICKR_MAX_AGE_DAYS: int = int(os.environ.get("VALUEPICKR_MAX_AGE_DAYS", "3"))

    # -----------------
    # Gemini (thread summarization)
    # -----------------
    GEMINI_API_KEY: str | None = os.environ.get("GEMINI_API_KEY")
    GEMINI_MODEL: str = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
    GEMINI_BASE_URL: str = os.environ.get(
        "GEMINI_BASE_URL",
        "https://generativelanguage.googleapis.com/v1beta",
    )
    SUMMARY_MAX_TOKENS: int = int(os.environ.get("SUMMARY_MAX_TOKENS", "2048"))

    # -----------------
    # EODHD (fundamentals + news sentiment)
    # -----------------
    EODHD_API_KEY: str | None = os.environ.get("EODHD_API_KEY")
    EODHD_BASE_URL: str = os.environ.get("EODHD_BASE_URL", "https://eodhd.com/api")
    NEWS_LOOKBACK_DAYS: int = int(os.environ.get("NEWS_LOOKBACK_DAYS", "30"))

    # Polite pause between symbols during batch refreshes.
    INTEL_REQUEST_DELAY_SECONDS: float = float(os.environ.get("INTEL_REQUEST_DELAY_SECONDS", "1.0"))

    # -----------------
    # CORS (development)
    # -----------------
    # In production (same origin behind a reverse proxy) CORS is not required.
    CORS_ALLOW_ORIGINS: str = os.environ.get(
        "CORS_ALLOW_ORIGINS",
        "http://localhost:4321,http://127.0.0.1:4321",
    )


def load_config() -> Config:
    return Config()

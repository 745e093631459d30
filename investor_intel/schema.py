"""Database schema for Investor Intel.

SQLite is the default store; Postgres is supported through the same DDL.

Timestamps are ISO-8601 TEXT (UTC, with 'Z', second precision). ISO strings sort
lexicographically in time order, so comparisons like `expires_at > now_iso` behave
correctly on both engines.

JSON payloads (fundamentals, news sentiment, social sentiment) are stored as TEXT
and are opaque to the database.
"""

from __future__ import annotations


SCHEMA_SQLITE = r"""
PRAGMA foreign_keys = ON;

-- Auth sessions (one shared password, many browser sessions)
CREATE TABLE IF NOT EXISTS sessions (
    id TEXT PRIMARY KEY,
    token TEXT NOT NULL UNIQUE,
    created_at TEXT NOT NULL,
    expires_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_sessions_token ON sessions (token);
CREATE INDEX IF NOT EXISTS idx_sessions_expires ON sessions (expires_at);

-- Per-symbol research intel
CREATE TABLE IF NOT EXISTS stock_intel (
    symbol TEXT PRIMARY KEY,
    fundamentals TEXT,      -- JSON: pe_ratio, market_cap, roe, ...
    news_sentiment TEXT,    -- JSON: aggregated news polarity + headlines
    social_sentiment TEXT,  -- JSON: ValuePickr thesis + recent sentiment
    updated_at TEXT
);
"""


def _sqlite_to_postgres(ddl: str) -> str:
    lines: list[str] = []
    for line in ddl.splitlines():
        if line.strip().upper().startswith("PRAGMA "):
            continue
        lines.append(line)
    return "\n".join(lines)


SCHEMA_POSTGRES = _sqlite_to_postgres(SCHEMA_SQLITE)


def get_schema_sql(dialect: str) -> str:
    d = (dialect or "").lower()
    if d.startswith("post"):
        return SCHEMA_POSTGRES
    return SCHEMA_SQLITE

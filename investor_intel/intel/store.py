from __future__ import annotations

import json
from typing import Any, Dict, Optional

from investor_intel.util.time import utcnow_iso


def normalize_symbol(symbol: str | None) -> str:
    return (symbol or "").strip().upper()


def _loads(raw: Any) -> Any:
    if raw is None or raw == "":
        return None
    if isinstance(raw, (dict, list)):
        # Postgres JSON columns may already be decoded.
        return raw
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return None


def get_intel(conn: Any, symbol: str) -> Optional[Any]:
    return conn.execute(
        "SELECT * FROM stock_intel WHERE symbol=?",
        (normalize_symbol(symbol),),
    ).fetchone()


def public_intel(symbol: str, row: Any | None) -> Dict[str, Any]:
    """API shape of an intel record. A missing row gives null fields rather than 404."""
    if row is None:
        return {
            "symbol": normalize_symbol(symbol),
            "fundamentals": None,
            "news_sentiment": None,
            "valuepickr": None,
            "updated_at": None,
        }
    d = dict(row)
    return {
        "symbol": d["symbol"],
        "fundamentals": _loads(d.get("fundamentals")),
        "news_sentiment": _loads(d.get("news_sentiment")),
        "valuepickr": _loads(d.get("social_sentiment")),
        "updated_at": d.get("updated_at"),
    }


def stored_social_sentiment(row: Any | None) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    parsed = _loads(dict(row).get("social_sentiment"))
    return parsed if isinstance(parsed, dict) else None


def stored_topic_url(row: Any | None) -> Optional[str]:
    """The forum thread previously scraped for this symbol, if any."""
    social = stored_social_sentiment(row)
    if not social:
        return None
    url = str(social.get("topic_url") or "").strip()
    return url or None


def clear_social_sentiment(conn: Any, symbol: str) -> bool:
    """Null out social sentiment only. Returns False when the symbol has no row."""
    s = normalize_symbol(symbol)
    if get_intel(conn, s) is None:
        return False
    conn.execute(
        "UPDATE stock_intel SET social_sentiment=NULL, updated_at=? WHERE symbol=?",
        (utcnow_iso(), s),
    )
    return True


def _upsert_column(conn: Any, symbol: str, column: str, value: Any) -> None:
    # column is always one of the fixed names below, never caller input.
    payload = json.dumps(value) if value is not None else None
    conn.execute(
        f"""
        INSERT INTO stock_intel (symbol, {column}, updated_at) VALUES (?, ?, ?)
        ON CONFLICT(symbol) DO UPDATE SET
            {column}=excluded.{column},
            updated_at=excluded.updated_at
        """,
        (normalize_symbol(symbol), payload, utcnow_iso()),
    )


def upsert_social_sentiment(conn: Any, symbol: str, research: Dict[str, Any]) -> None:
    _upsert_column(conn, symbol, "social_sentiment", research)


def upsert_news_sentiment(conn: Any, symbol: str, news: Dict[str, Any]) -> None:
    _upsert_column(conn, symbol, "news_sentiment", news)


def upsert_fundamentals(
    conn: Any,
    symbol: str,
    fundamentals: Dict[str, Any],
    *,
    social_sentiment: Optional[Dict[str, Any]] = None,
) -> None:
    """Write fundamentals and social sentiment together (batch refresh owns both fields)."""
    now = utcnow_iso()
    conn.execute(
        """
        INSERT INTO stock_intel (symbol, fundamentals, social_sentiment, updated_at) VALUES (?, ?, ?, ?)
        ON CONFLICT(symbol) DO UPDATE SET
            fundamentals=excluded.fundamentals,
            social_sentiment=excluded.social_sentiment,
            updated_at=excluded.updated_at
        """,
        (
            normalize_symbol(symbol),
            json.dumps(fundamentals),
            json.dumps(social_sentiment) if social_sentiment is not None else None,
            now,
        ),
    )

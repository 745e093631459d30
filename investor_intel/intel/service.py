from __future__ import annotations

import re
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from investor_intel.config import Config
from investor_intel.db import connect
from investor_intel.eodhd import client as eodhd
from investor_intel.valuepickr import client as valuepickr
from investor_intel.util.time import is_older_than

from .store import (
    get_intel,
    normalize_symbol,
    stored_social_sentiment,
    stored_topic_url,
    upsert_fundamentals,
    upsert_news_sentiment,
)


def _debug(msg: str) -> None:
    print(f"[intel] {msg}")


_NAME_SUFFIX_RE = re.compile(r" limited| ltd\.?| inc\.?| corp\.?| corporation", re.IGNORECASE)


def clean_company_name(raw: str) -> str:
    """'Tata Motors Limited' -> 'Tata Motors' (forum thread titles rarely carry the suffix)."""
    return _NAME_SUFFIX_RE.sub("", raw or "").strip()


def fetch_social_sentiment(
    cfg: Config,
    symbol: str,
    *,
    url: Optional[str] = None,
    existing: Any | None = None,
) -> Optional[Dict[str, Any]]:
    """Get fresh ValuePickr research for a symbol.

    Source precedence:
      1. an explicit thread URL from the caller
      2. the topic_url stored with the previous scrape
      3. a forum search by symbol
    """
    s = normalize_symbol(symbol)

    if url:
        _debug(f"Manual ValuePickr add for {s}: {url}")
        return valuepickr.get_research_from_url(cfg, url)

    topic_url = stored_topic_url(existing)
    if topic_url:
        _debug(f"Refreshing ValuePickr for {s} from stored thread {topic_url}")
        return valuepickr.get_research_from_url(cfg, topic_url)

    # Symbol search is a weak match for forum titles (TATACHEM vs "Tata Chemicals");
    # the user can always supply the URL manually.
    _debug(f"Searching ValuePickr for {s}")
    return valuepickr.get_research(cfg, s)


def _news_sentiment(cfg: Config, symbol: str) -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    items = eodhd.fetch_news(
        cfg.EODHD_BASE_URL,
        cfg.EODHD_API_KEY or "",
        symbol=symbol,
        limit=50,
        date_from=(now - timedelta(days=int(cfg.NEWS_LOOKBACK_DAYS))).date().isoformat(),
        date_to=now.date().isoformat(),
    )
    return eodhd.summarize_news(items, lookback_days=cfg.NEWS_LOOKBACK_DAYS)


def refresh_symbol(cfg: Config, symbol: str) -> None:
    """Refresh fundamentals, news sentiment and (when stale) ValuePickr intel for one symbol.

    Raises on fundamentals failures; news and ValuePickr are best-effort.
    """
    s = normalize_symbol(symbol)
    if not s:
        raise RuntimeError("Symbol is blank")
    if not cfg.EODHD_API_KEY:
        raise RuntimeError("EODHD_API_KEY is not configured")

    resolved, payload = eodhd.fetch_fundamentals_any(cfg.EODHD_BASE_URL, cfg.EODHD_API_KEY, s)
    fundamentals = eodhd.extract_fundamentals(payload)

    with connect(cfg.DB_DSN) as conn:
        existing = get_intel(conn, s)

    social = stored_social_sentiment(existing)
    updated_at = dict(existing).get("updated_at") if existing is not None else None
    if social and not is_older_than(updated_at, days=cfg.VALUEPICKR_MAX_AGE_DAYS):
        _debug(f"Using cached ValuePickr data for {s}")
    else:
        name = clean_company_name(str(fundamentals.get("name") or "")) or s
        try:
            fresh = valuepickr.get_research(cfg, name)
        except Exception as e:
            _debug(f"ValuePickr skip for {s}: {e}")
            fresh = None
        if fresh is not None:
            social = fresh
        elif social:
            _debug(f"ValuePickr found nothing new for {name}; keeping stored thread")

    news: Optional[Dict[str, Any]] = None
    try:
        news = _news_sentiment(cfg, resolved)
    except Exception as e:
        _debug(f"News skip for {s}: {e}")

    with connect(cfg.DB_DSN) as conn:
        upsert_fundamentals(conn, s, fundamentals, social_sentiment=social)
        if news is not None:
            upsert_news_sentiment(conn, s, news)

    _debug(
        f"Updated intel symbol={s} resolved={resolved} pe={fundamentals.get('pe_ratio')} "
        f"valuepickr={'yes' if social else 'no'} news={news.get('article_count') if news else 'skip'}"
    )


def refresh_symbols(cfg: Config, symbols: Iterable[str]) -> List[str]:
    """Refresh several symbols, one at a time. Returns the symbols that succeeded."""
    wanted = [s for s in (normalize_symbol(x) for x in symbols) if s]
    _debug(f"Updating intel for {len(wanted)} symbols...")

    updated: List[str] = []
    for i, s in enumerate(wanted):
        if i > 0 and cfg.INTEL_REQUEST_DELAY_SECONDS > 0:
            time.sleep(cfg.INTEL_REQUEST_DELAY_SECONDS)
        try:
            refresh_symbol(cfg, s)
            updated.append(s)
        except Exception as e:
            _debug(f"Error refreshing {s}: {e}")
    return updated

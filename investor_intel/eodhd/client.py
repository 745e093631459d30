from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests


def _debug(msg: str) -> None:
    print(f"[eodhd] {msg}")


# Indian listings: try NSE first, then BSE.
EXCHANGES = ("NSE", "BSE")

HEADLINE_LIMIT = 5


def exchange_symbols(symbol: str) -> List[str]:
    """Candidate EODHD symbols for a bare ticker (e.g. TATAMOTORS -> TATAMOTORS.NSE, TATAMOTORS.BSE).

    Tickers that already carry an exchange suffix are returned as-is.
    """
    s = (symbol or "").strip().upper()
    if not s:
        raise RuntimeError("Symbol is blank; cannot build EODHD symbol")
    if "." in s:
        return [s]
    return [f"{s}.{ex}" for ex in EXCHANGES]


def fetch_fundamentals(base_url: str, api_key: str, symbol: str) -> Dict[str, Any]:
    """Fetch the fundamentals payload for a symbol.

    Docs: https://eodhd.com/api/fundamentals/{SYMBOL.EXCHANGE}?api_token=...&fmt=json
    """
    url = f"{base_url.rstrip('/')}/fundamentals/{symbol}"
    params = {"api_token": api_key, "fmt": "json"}
    _debug(f"Fetching fundamentals: {url}")
    r = requests.get(url, params=params, timeout=120)
    if r.status_code != 200:
        raise RuntimeError(f"EODHD fundamentals error {r.status_code}: {r.text}")
    data = r.json() if r.text else {}
    if not isinstance(data, dict) or not data:
        raise RuntimeError(f"EODHD fundamentals returned unexpected payload for {symbol}")
    return data


def fetch_fundamentals_any(base_url: str, api_key: str, symbol: str) -> tuple[str, Dict[str, Any]]:
    """Try each exchange candidate in order; return (resolved_symbol, payload)."""
    last_err: Optional[Exception] = None
    for candidate in exchange_symbols(symbol):
        try:
            return candidate, fetch_fundamentals(base_url, api_key, candidate)
        except (RuntimeError, requests.RequestException) as e:
            last_err = e
            _debug(f"No fundamentals for {candidate}: {e}")
    raise RuntimeError(f"No fundamentals for {symbol} on {', '.join(EXCHANGES)}") from last_err


def fetch_news(
    base_url: str,
    api_key: str,
    *,
    symbol: str,
    limit: int = 50,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Fetch financial news + per-article sentiment.

    Endpoint: GET /news?s={SYMBOL}
    """
    url = f"{base_url.rstrip('/')}/news"
    params: Dict[str, Any] = {
        "api_token": api_key,
        "fmt": "json",
        "s": symbol,
        "limit": int(limit),
        "offset": 0,
    }
    if date_from:
        params["from"] = date_from
    if date_to:
        params["to"] = date_to

    _debug(f"Fetching news: {url} symbol={symbol} limit={limit}")
    r = requests.get(url, params=params, timeout=120)
    if r.status_code != 200:
        raise RuntimeError(f"EODHD news error {r.status_code}: {r.text}")

    data = r.json() if r.text else []
    if not isinstance(data, list):
        raise RuntimeError(f"EODHD news returned unexpected payload: {data}")
    return data


def _to_float(x: Any) -> Optional[float]:
    try:
        if x is None or x == "":
            return None
        return float(x)
    except (TypeError, ValueError):
        return None


def extract_fundamentals(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Pick the handful of fields the UI shows from a raw fundamentals payload.

    Payload shape varies by instrument, so every field is best-effort.
    """
    general = payload.get("General") or {}
    highlights = payload.get("Highlights") or {}
    valuation = payload.get("Valuation") or {}

    return {
        "name": general.get("Name"),
        "pe_ratio": _to_float(highlights.get("PERatio") or valuation.get("TrailingPE")),
        "market_cap": _to_float(highlights.get("MarketCapitalization")),
        "roe": _to_float(highlights.get("ReturnOnEquityTTM")),
        "pb_ratio": _to_float(valuation.get("PriceBookMRQ")),
        "eps": _to_float(highlights.get("EarningsShare")),
        "sector": general.get("Sector"),
        "industry": general.get("Industry"),
    }


def _polarity(item: Dict[str, Any]) -> Optional[float]:
    sent = item.get("sentiment")
    if not isinstance(sent, dict):
        return None
    for k in ("polarity", "score", "compound"):
        if k in sent:
            return _to_float(sent[k])
    return None


def summarize_news(items: List[Dict[str, Any]], *, lookback_days: int) -> Dict[str, Any]:
    """Aggregate per-article polarity into a single news sentiment blob."""
    scored: List[float] = []
    positive = negative = neutral = 0
    headlines: List[Dict[str, Any]] = []

    for it in items:
        pol = _polarity(it)
        if pol is not None:
            scored.append(pol)
            if pol > 0.1:
                positive += 1
            elif pol < -0.1:
                negative += 1
            else:
                neutral += 1

        title = str(it.get("title") or "").strip()
        if title and len(headlines) < HEADLINE_LIMIT:
            headlines.append(
                {
                    "title": title,
                    "date": it.get("date"),
                    "link": it.get("link"),
                    "polarity": pol,
                }
            )

    avg = round(sum(scored) / len(scored), 4) if scored else None
    return {
        "source": "eodhd",
        "lookback_days": int(lookback_days),
        "article_count": len(items),
        "avg_polarity": avg,
        "positive": positive,
        "negative": negative,
        "neutral": neutral,
        "headlines": headlines,
    }

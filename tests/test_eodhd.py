"""Tests for the EODHD fundamentals/news client."""

from __future__ import annotations

from typing import Any, List

import pytest
import requests

from conftest import FakeResponse
from investor_intel.eodhd import client as eodhd

BASE = "https://eodhd.com/api"


class TestExchangeSymbols:
    def test_bare_ticker_tries_nse_then_bse(self):
        assert eodhd.exchange_symbols(" tatachem ") == ["TATACHEM.NSE", "TATACHEM.BSE"]

    def test_suffixed_ticker_is_kept(self):
        assert eodhd.exchange_symbols("500770.BSE") == ["500770.BSE"]

    def test_blank_raises(self):
        with pytest.raises(RuntimeError):
            eodhd.exchange_symbols("  ")


class TestFetchFundamentals:
    def test_falls_back_to_bse(self, monkeypatch):
        calls: List[str] = []

        def fake_get(url: str, params: Any = None, timeout: Any = None):
            calls.append(url)
            if url.endswith(".NSE"):
                return FakeResponse(404, {"error": "not found"})
            return FakeResponse(200, {"General": {"Name": "Tata Chemicals Limited"}})

        monkeypatch.setattr(eodhd.requests, "get", fake_get)
        resolved, payload = eodhd.fetch_fundamentals_any(BASE, "k", "TATACHEM")
        assert resolved == "TATACHEM.BSE"
        assert payload["General"]["Name"] == "Tata Chemicals Limited"
        assert calls == [f"{BASE}/fundamentals/TATACHEM.NSE", f"{BASE}/fundamentals/TATACHEM.BSE"]

    def test_empty_payload_everywhere_raises(self, monkeypatch):
        monkeypatch.setattr(eodhd.requests, "get", lambda url, params=None, timeout=None: FakeResponse(200, {}))
        with pytest.raises(RuntimeError, match="No fundamentals for TATACHEM"):
            eodhd.fetch_fundamentals_any(BASE, "k", "TATACHEM")

    def test_transport_error_falls_back_to_bse(self, monkeypatch):
        def fake_get(url: str, params: Any = None, timeout: Any = None):
            if url.endswith(".NSE"):
                raise requests.ConnectionError("reset by peer")
            return FakeResponse(200, {"General": {"Name": "Tata Chemicals Limited"}})

        monkeypatch.setattr(eodhd.requests, "get", fake_get)
        resolved, _ = eodhd.fetch_fundamentals_any(BASE, "k", "TATACHEM")
        assert resolved == "TATACHEM.BSE"


class TestExtractFundamentals:
    def test_picks_known_fields(self):
        payload = {
            "General": {"Name": "Tata Chemicals Limited", "Sector": "Basic Materials", "Industry": "Chemicals"},
            "Highlights": {
                "PERatio": "18.4",
                "MarketCapitalization": 270000000000,
                "ReturnOnEquityTTM": 0.061,
                "EarningsShare": 55.2,
            },
            "Valuation": {"PriceBookMRQ": 1.3},
        }
        assert eodhd.extract_fundamentals(payload) == {
            "name": "Tata Chemicals Limited",
            "pe_ratio": 18.4,
            "market_cap": 270000000000.0,
            "roe": 0.061,
            "pb_ratio": 1.3,
            "eps": 55.2,
            "sector": "Basic Materials",
            "industry": "Chemicals",
        }

    def test_trailing_pe_fallback_and_missing_sections(self):
        out = eodhd.extract_fundamentals({"Valuation": {"TrailingPE": 22}})
        assert out["pe_ratio"] == 22.0
        assert out["name"] is None
        assert out["market_cap"] is None


class TestSummarizeNews:
    def test_counts_and_average(self):
        items = [
            {"title": "Up", "date": "2026-01-01", "link": "a", "sentiment": {"polarity": 0.8}},
            {"title": "Down", "date": "2026-01-02", "link": "b", "sentiment": {"polarity": -0.5}},
            {"title": "Flat", "date": "2026-01-03", "link": "c", "sentiment": {"polarity": 0.05}},
            {"title": "Unscored", "date": "2026-01-04", "link": "d"},
        ]
        out = eodhd.summarize_news(items, lookback_days=30)
        assert out["source"] == "eodhd"
        assert out["article_count"] == 4
        assert (out["positive"], out["negative"], out["neutral"]) == (1, 1, 1)
        assert out["avg_polarity"] == pytest.approx(0.1167, abs=1e-4)
        assert [h["title"] for h in out["headlines"]] == ["Up", "Down", "Flat", "Unscored"]
        assert out["headlines"][3]["polarity"] is None

    def test_headlines_are_capped(self):
        items = [{"title": f"T{i}"} for i in range(10)]
        out = eodhd.summarize_news(items, lookback_days=7)
        assert len(out["headlines"]) == eodhd.HEADLINE_LIMIT
        assert out["avg_polarity"] is None

    def test_fetch_news_params(self, monkeypatch):
        seen = {}

        def fake_get(url: str, params: Any = None, timeout: Any = None):
            seen.update(url=url, params=params)
            return FakeResponse(200, [])

        monkeypatch.setattr(eodhd.requests, "get", fake_get)
        assert eodhd.fetch_news(BASE, "k", symbol="TATACHEM.NSE", date_from="2026-01-01") == []
        assert seen["url"] == f"{BASE}/news"
        assert seen["params"]["s"] == "TATACHEM.NSE"
        assert seen["params"]["from"] == "2026-01-01"
        assert "to" not in seen["params"]

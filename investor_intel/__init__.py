"""Investor Intel - Backend.

A small personal investing backend:
- A single shared password gates the app; logins create DB-backed sessions
  carried in an httpOnly cookie.
- Per-symbol "intel" records (fundamentals, news sentiment, social sentiment)
  are stored as JSON blobs keyed by stock symbol.
- Social sentiment comes from ValuePickr forum threads, summarized by Gemini.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"

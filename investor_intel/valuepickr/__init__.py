"""ValuePickr forum scraping (social sentiment source)."""

from .client import get_research, get_research_from_url

__all__ = ["get_research", "get_research_from_url"]

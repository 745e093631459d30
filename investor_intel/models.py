from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Session:
    id: str
    token: str
    created_at: str
    expires_at: str


@dataclass(frozen=True)
class Topic:
    """A ValuePickr (Discourse) topic reference."""

    id: int
    slug: str
    title: str
    posts_count: int = 0

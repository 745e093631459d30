"""ValuePickr forum client.

ValuePickr runs on Discourse, so everything here goes through the public JSON endpoints:

- GET /search/query.json?term=...          topic search
- GET /t/{slug}/{id}.json                  topic + first page of posts
- GET /t/{id}/posts.json?post_ids[]=...    specific posts (used for the tail of long threads)

The public entry points (`get_research`, `get_research_from_url`) return a JSON-serializable
dict or None. "Nothing found" and transport failures both come back as None so callers can
treat the forum as best-effort.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import requests

from investor_intel.config import Config
from investor_intel.models import Topic
from investor_intel.util.time import utcnow_iso

from .summary import summarize


def _debug(msg: str) -> None:
    print(f"[valuepickr] {msg}")


# Posts shorter than this (after stripping HTML) are "Thanks!" / emoji noise.
MIN_POST_LENGTH = 15
MAX_INITIAL_POSTS = 10
RECENT_POSTS = 20


@dataclass(frozen=True)
class Post:
    author: str
    date: str
    content: str
    post_number: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "author": self.author,
            "date": self.date,
            "content": self.content,
            "post_number": self.post_number,
        }


@dataclass
class Discussion:
    topic_url: str
    topic_title: str
    total_posts: int
    last_activity: str
    initial_posts: List[Post] = field(default_factory=list)
    recent_posts: List[Post] = field(default_factory=list)


_TAG_RE = re.compile(r"<[^>]*>?")
_WS_RE = re.compile(r"\s+")


def strip_html(raw: str | None) -> str:
    """Plain text from Discourse 'cooked' HTML."""
    text = _TAG_RE.sub("", raw or "")
    text = html.unescape(text)
    return _WS_RE.sub(" ", text).strip()


def _get_json(url: str, *, params: Any = None, timeout: int) -> Optional[Any]:
    r = requests.get(url, params=params, timeout=timeout, headers={"Accept": "application/json"})
    if r.status_code != 200:
        _debug(f"GET {url} -> HTTP {r.status_code}")
        return None
    return r.json() if r.text else None


def _topic_from_json(it: Dict[str, Any]) -> Optional[Topic]:
    try:
        return Topic(
            id=int(it["id"]),
            slug=str(it.get("slug") or ""),
            title=str(it.get("title") or ""),
            posts_count=int(it.get("posts_count") or 0),
        )
    except (KeyError, TypeError, ValueError):
        return None


def pick_topic(query: str, topics: List[Topic]) -> Optional[Topic]:
    """Choose the best thread for a query among search results.

    - Portfolio threads are skipped unless the query itself mentions "portfolio".
    - The title must contain the first word of the query.
    - Preference: title starts with the query, then title contains it, then the first candidate.
    """
    q = (query or "").strip().lower()
    if not q:
        return None
    first_word = q.split()[0]

    candidates: List[Topic] = []
    for t in topics:
        title = t.title.lower()
        if "portfolio" in title and "portfolio" not in q:
            continue
        if first_word not in title:
            continue
        candidates.append(t)

    if not candidates:
        return None

    for t in candidates:
        if t.title.lower().startswith(q):
            return t
    for t in candidates:
        if q in t.title.lower():
            return t
    return candidates[0]


def search_thread(base_url: str, query: str, *, timeout: int = 30) -> Optional[Topic]:
    """Search the forum for a stock discussion thread."""
    q = (query or "").strip()
    if not q:
        return None
    data = _get_json(f"{base_url.rstrip('/')}/search/query.json", params={"term": q}, timeout=timeout)
    if not isinstance(data, dict):
        return None
    topics = [t for t in (_topic_from_json(it) for it in (data.get("topics") or [])) if t is not None]
    if not topics:
        return None
    return pick_topic(q, topics)


def parse_topic_url(base_url: str, url: str) -> Optional[Topic]:
    """Turn a forum thread URL into a Topic reference.

    Accepts https://forum.valuepickr.com/t/<slug>/<id> with an optional trailing post number.
    URLs on any other host, or with any other path shape, give None.
    """
    try:
        parsed = urlparse((url or "").strip())
    except ValueError:
        return None
    expected_host = (urlparse(base_url).hostname or "").lower()
    if not parsed.hostname or parsed.hostname.lower() != expected_host:
        return None

    parts = [p for p in parsed.path.split("/") if p]
    if len(parts) < 3 or parts[0] != "t":
        return None
    slug = parts[1]
    if not parts[2].isdigit():
        return None
    # The slug doubles as a title until the topic JSON tells us the real one.
    return Topic(id=int(parts[2]), slug=slug, title=slug.replace("-", " "))


def _to_post(p: Dict[str, Any]) -> Post:
    return Post(
        author=str(p.get("username") or ""),
        date=str(p.get("created_at") or ""),
        content=strip_html(p.get("cooked")),
        post_number=int(p.get("post_number") or 0),
    )


def fetch_discussion(base_url: str, topic: Topic, *, timeout: int = 30) -> Optional[Discussion]:
    """Fetch the opening thesis posts plus the most recent significant posts of a thread."""
    base = base_url.rstrip("/")
    data = _get_json(f"{base}/t/{topic.slug}/{topic.id}.json", timeout=timeout)
    if not isinstance(data, dict):
        return None

    post_stream = data.get("post_stream") or {}
    posts: List[Dict[str, Any]] = post_stream.get("posts") or []
    all_post_ids: List[int] = post_stream.get("stream") or []
    if not posts:
        return None

    initial_raw = [p for p in posts if len(strip_html(p.get("cooked"))) >= MIN_POST_LENGTH][:MAX_INITIAL_POSTS]
    if not initial_raw:
        return None

    if len(all_post_ids) > RECENT_POSTS:
        # Long thread: the first page doesn't reach the end, so ask for the last N ids.
        last_ids = all_post_ids[-RECENT_POSTS:]
        try:
            recent_data = _get_json(
                f"{base}/t/{topic.id}/posts.json",
                params={"post_ids[]": last_ids},
                timeout=timeout,
            )
            recent_raw = ((recent_data or {}).get("post_stream") or {}).get("posts") or []
        except requests.RequestException as e:
            _debug(f"Failed to fetch recent posts topic={topic.id}: {e}")
            recent_raw = posts[-RECENT_POSTS:]
    else:
        initial_ids = {p.get("id") for p in initial_raw}
        recent_raw = [p for p in posts if p.get("id") not in initial_ids][-RECENT_POSTS:]

    recent_raw = [p for p in recent_raw if len(strip_html(p.get("cooked"))) >= MIN_POST_LENGTH][-RECENT_POSTS:]

    slug = str(data.get("slug") or topic.slug)
    return Discussion(
        topic_url=f"{base}/t/{slug}/{topic.id}",
        topic_title=str(data.get("title") or topic.title),
        total_posts=int(data.get("posts_count") or topic.posts_count or len(all_post_ids)),
        last_activity=str(data.get("last_posted_at") or utcnow_iso()),
        initial_posts=[_to_post(p) for p in initial_raw],
        recent_posts=[_to_post(p) for p in recent_raw],
    )


def _research(cfg: Config, discussion: Discussion) -> Dict[str, Any]:
    thesis, sentiment = summarize(cfg, discussion)
    return {
        "source": "valuepickr",
        "topic_url": discussion.topic_url,
        "topic_title": discussion.topic_title,
        "thesis_summary": thesis,
        "recent_sentiment_summary": sentiment,
        "last_activity": discussion.last_activity,
    }


def get_research(cfg: Config, query: str) -> Optional[Dict[str, Any]]:
    """Search by symbol / company name, then fetch and summarize the best thread."""
    base = cfg.VALUEPICKR_BASE_URL
    timeout = cfg.VALUEPICKR_TIMEOUT_SECONDS
    try:
        topic = search_thread(base, query, timeout=timeout)
        if topic is None:
            _debug(f"No thread found for: {query}")
            return None
        _debug(f'Found thread: "{topic.title}" ({topic.posts_count} posts)')

        discussion = fetch_discussion(base, topic, timeout=timeout)
    except requests.RequestException as e:
        _debug(f"Search/fetch error for {query}: {e}")
        return None

    if discussion is None:
        _debug(f"Failed to fetch discussion for: {query}")
        return None

    _debug(
        f"Fetched {len(discussion.initial_posts)} initial posts + {len(discussion.recent_posts)} recent posts"
    )
    return _research(cfg, discussion)


def get_research_from_url(cfg: Config, url: str) -> Optional[Dict[str, Any]]:
    """Fetch and summarize a thread from a direct forum URL."""
    topic = parse_topic_url(cfg.VALUEPICKR_BASE_URL, url)
    if topic is None:
        _debug(f"Not a ValuePickr thread URL: {url}")
        return None

    try:
        discussion = fetch_discussion(cfg.VALUEPICKR_BASE_URL, topic, timeout=cfg.VALUEPICKR_TIMEOUT_SECONDS)
    except requests.RequestException as e:
        _debug(f"Error fetching {url}: {e}")
        return None

    if discussion is None:
        return None
    return _research(cfg, discussion)

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Iterable, Tuple

from investor_intel.ai.gemini import GeminiError, generate_content
from investor_intel.config import Config

if TYPE_CHECKING:
    from .client import Discussion, Post


def _debug(msg: str) -> None:
    print(f"[valuepickr] {msg}")


FALLBACK_THESIS_CHARS = 1000

_THESIS_RE = re.compile(r"THESIS:\s*(.*?)(?=SENTIMENT:|$)", re.IGNORECASE | re.DOTALL)
_SENTIMENT_RE = re.compile(r"SENTIMENT:\s*(.*)$", re.IGNORECASE | re.DOTALL)


def _format_posts(posts: Iterable["Post"]) -> str:
    blocks = []
    for p in posts:
        day = (p.date or "")[:10] or "unknown date"
        blocks.append(f"[Post #{p.post_number} by {p.author} on {day}]\n{p.content}")
    return "\n\n---\n\n".join(blocks)


def build_prompt(discussion: "Discussion") -> str:
    initial = _format_posts(discussion.initial_posts)
    recent = _format_posts(discussion.recent_posts)
    n_initial = len(discussion.initial_posts)
    n_recent = len(discussion.recent_posts)

    return f"""You are analyzing an investment discussion from ValuePickr (Indian value investing forum).

## Initial Discussion (First {n_initial} posts)
This section contains the original thesis, any questions asked, and early clarifications:

{initial}

## Recent Discussion (Last {n_recent} significant posts out of {discussion.total_posts} total)

{recent or "(No recent significant posts)"}

---

Please provide TWO separate summaries:

1. **THESIS SUMMARY** (2-3 paragraphs): What is the core investment thesis? What makes this company attractive? What are the key growth drivers, competitive advantages, or catalysts mentioned? Extract this from the initial discussion above.

2. **RECENT SENTIMENT** (1-2 paragraphs): Based on recent posts, what is the current community sentiment? Are there concerns being raised? Is sentiment positive, negative, or mixed? Any recent developments discussed?

Format your response as:
THESIS:
[Your thesis summary here]

SENTIMENT:
[Your sentiment summary here]"""


def parse_summary(text: str) -> Tuple[str, str]:
    """Split a model reply into (thesis, sentiment)."""
    t = text or ""
    thesis_m = _THESIS_RE.search(t)
    sentiment_m = _SENTIMENT_RE.search(t)
    thesis = thesis_m.group(1).strip() if thesis_m else ""
    sentiment = sentiment_m.group(1).strip() if sentiment_m else ""
    return (
        thesis or "Unable to summarize thesis",
        sentiment or "Unable to determine sentiment",
    )


def fallback_summary(discussion: "Discussion") -> Tuple[str, str]:
    """Raw-content summaries used when the model is unavailable."""
    first = discussion.initial_posts[0].content if discussion.initial_posts else ""
    thesis = first[:FALLBACK_THESIS_CHARS] + "... (summarization failed)"
    if discussion.recent_posts:
        sentiment = f"{len(discussion.recent_posts)} recent posts found, but summarization failed."
    else:
        sentiment = "No recent activity"
    return thesis, sentiment


def summarize(cfg: Config, discussion: "Discussion") -> Tuple[str, str]:
    """Summarize thesis + recent sentiment with Gemini, falling back to raw content."""
    try:
        _debug(f"Summarizing with {cfg.GEMINI_MODEL}...")
        text = generate_content(
            cfg.GEMINI_API_KEY,
            cfg.GEMINI_BASE_URL,
            cfg.GEMINI_MODEL,
            build_prompt(discussion),
            max_output_tokens=cfg.SUMMARY_MAX_TOKENS,
        )
    except GeminiError as e:
        _debug(f"LLM summarization failed: {e.message}")
        return fallback_summary(discussion)
    except Exception as e:
        _debug(f"LLM summarization failed: {e}")
        return fallback_summary(discussion)
    return parse_summary(text)

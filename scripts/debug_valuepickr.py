"""Poke at the ValuePickr scraper without touching the DB.

Usage:
  python scripts/debug_valuepickr.py --query "Tata Motors"
  python scripts/debug_valuepickr.py --url https://forum.valuepickr.com/t/some-thread/1234
  python scripts/debug_valuepickr.py --query "Vinati Organics" --summarize
"""

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from investor_intel.config import load_config
from investor_intel.valuepickr.client import (
    fetch_discussion,
    get_research,
    get_research_from_url,
    parse_topic_url,
    search_thread,
)


def main() -> None:
    ap = argparse.ArgumentParser()
    g = ap.add_mutually_exclusive_group(required=True)
    g.add_argument("--query", type=str)
    g.add_argument("--url", type=str)
    ap.add_argument("--summarize", action="store_true", help="Also run the Gemini summary")
    args = ap.parse_args()

    cfg = load_config()

    if args.summarize:
        research = get_research(cfg, args.query) if args.query else get_research_from_url(cfg, args.url)
        print(json.dumps(research, indent=2))
        return

    if args.query:
        topic = search_thread(cfg.VALUEPICKR_BASE_URL, args.query, timeout=cfg.VALUEPICKR_TIMEOUT_SECONDS)
    else:
        topic = parse_topic_url(cfg.VALUEPICKR_BASE_URL, args.url)

    if topic is None:
        print("No thread found")
        sys.exit(1)

    print(f"Thread: {topic.title} (id={topic.id} slug={topic.slug} posts={topic.posts_count})")
    if "portfolio" in topic.title.lower():
        print("WARN: returned a portfolio thread")

    discussion = fetch_discussion(cfg.VALUEPICKR_BASE_URL, topic, timeout=cfg.VALUEPICKR_TIMEOUT_SECONDS)
    if discussion is None:
        print("Failed to fetch discussion")
        sys.exit(1)

    print(f"URL: {discussion.topic_url}")
    print(f"Total posts: {discussion.total_posts} last activity: {discussion.last_activity}")
    print(
        json.dumps(
            {
                "initial_posts": [p.to_dict() for p in discussion.initial_posts],
                "recent_posts": [p.to_dict() for p in discussion.recent_posts],
            },
            indent=2,
        )
    )


if __name__ == "__main__":
    main()

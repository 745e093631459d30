"""Delete expired login sessions.

Usage:
  python scripts/cleanup_sessions.py

Safe to run from cron; the API also does this once at startup.
"""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from investor_intel.auth.sessions import cleanup_expired_sessions
from investor_intel.config import load_config
from investor_intel.db import connect, init_db


def main() -> None:
    cfg = load_config()
    init_db(cfg.DB_DSN)

    with connect(cfg.DB_DSN) as conn:
        n = cleanup_expired_sessions(conn)

    print(f"Deleted {n} expired session(s)")


if __name__ == "__main__":
    main()

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from investor_intel.config import load_config
from investor_intel.db import connect, init_db
from investor_intel.intel.service import refresh_symbols


def main() -> None:
    p = argparse.ArgumentParser(
        description="Refresh fundamentals, news sentiment and ValuePickr intel (EODHD + forum) for symbols."
    )
    g = p.add_mutually_exclusive_group(required=True)
    g.add_argument("--symbol", type=str, help="Single NSE/BSE symbol")
    g.add_argument("--symbols", type=str, help="Comma-separated symbols")
    g.add_argument("--all", action="store_true", help="Every symbol already in stock_intel")
    args = p.parse_args()

    cfg = load_config()
    init_db(cfg.DB_DSN)

    if args.symbol:
        symbols = [args.symbol]
    elif args.symbols:
        symbols = [s for s in args.symbols.split(",") if s.strip()]
    else:
        with connect(cfg.DB_DSN) as conn:
            rows = conn.execute("SELECT symbol FROM stock_intel ORDER BY symbol").fetchall()
        symbols = [str(r["symbol"]) for r in rows]

    updated = refresh_symbols(cfg, symbols)
    print(f"Updated {len(updated)}/{len(symbols)}: {', '.join(updated)}")
    if len(updated) < len(symbols):
        sys.exit(1)


if __name__ == "__main__":
    main()

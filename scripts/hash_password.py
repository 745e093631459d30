"""Print a value for APP_PASSWORD_HASH.

Usage:
  python scripts/hash_password.py --password '...'
  python scripts/hash_password.py            # prompts without echo

Put the output in .env as APP_PASSWORD_HASH=... and drop APP_PASSWORD.
"""

import argparse
import getpass
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from investor_intel.auth.security import hash_password


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--password", default=None)
    args = ap.parse_args()

    password = args.password
    if password is None:
        password = getpass.getpass("App password: ")
        if password != getpass.getpass("Repeat: "):
            print("Passwords do not match", file=sys.stderr)
            sys.exit(1)

    print(hash_password(password))


if __name__ == "__main__":
    main()

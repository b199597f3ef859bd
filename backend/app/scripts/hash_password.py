"""Print a bcrypt hash for SVR_ADMIN_PASSWORD_HASH.

Usage: python -m app.scripts.hash_password <password>
"""

from __future__ import annotations

import argparse

from app.core.auth import hash_password


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Hash an admin password with bcrypt.")
    parser.add_argument("password")
    parser.add_argument("--rounds", type=int, default=10)
    args = parser.parse_args(argv)
    print(hash_password(args.password, rounds=args.rounds))


if __name__ == "__main__":
    main()
